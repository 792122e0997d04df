import logging
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException

from .config_manager import Settings, install_handler, load_settings
from .googlechat import CustomLogs
from .levels import Level
from .middleware import RequestContextMiddleware

log = logging.getLogger("gchat_logging.app")


def request_details(request):
    if request is None:
        return {}
    return {
        "method": request.method,
        "client_ip": request.client.host if request.client else "",
    }


def create_app(settings: Optional[Settings] = None,
               custom_logs: Optional[CustomLogs] = request_details,
               client: Optional[httpx.Client] = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title=settings.app_name or "Google Chat Logging")
    app.add_middleware(RequestContextMiddleware)
    app.state.settings = settings
    app.state.chat_handler = None

    @app.on_event("startup")
    async def startup():
        logging.basicConfig(level=logging.INFO)
        log.setLevel(settings.level)
        log.info(f"Starting {app.title}")
        app.state.chat_handler = install_handler(settings, log.name, custom_logs, client)

    @app.on_event("shutdown")
    async def shutdown():
        handler = app.state.chat_handler
        if handler is not None:
            log.removeHandler(handler)
            handler.close()

    @app.get("/healthz")
    async def health():
        return {"ok": True, "google_chat": app.state.chat_handler is not None}

    @app.post("/notify")
    async def notify(body: dict):
        level = body.get("level", "info")
        message = body.get("message")
        if not message:
            raise HTTPException(400, "Invalid")
        context = body.get("context") or {}
        if not isinstance(context, dict):
            raise HTTPException(400, "Invalid")
        try:
            levelno = Level.from_name(level)
        except ValueError:
            raise HTTPException(400, "Unknown level")
        log.log(levelno, message, extra={"context": context})
        return {"logged": True}

    return app
