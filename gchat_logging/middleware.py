from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_current_request: ContextVar[Optional[Request]] = ContextVar("gchat_current_request", default=None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Keeps the request being served available to log handlers."""

    async def dispatch(self, request: Request, call_next):
        token = _current_request.set(request)
        try:
            return await call_next(request)
        finally:
            _current_request.reset(token)


def current_request() -> Optional[Request]:
    return _current_request.get()


def current_url() -> Optional[str]:
    request = current_request()
    if request is None:
        return None
    return str(request.url.replace(query="", fragment=""))
