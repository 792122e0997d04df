import json

import httpx
import pytest

WEBHOOK_URL = "https://chat.googleapis.com/v1/spaces/AAA/messages?key=k&token=t"


class Recorder:

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"name": "spaces/AAA/messages/1"})

    @property
    def payloads(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(recorder):
    with httpx.Client(transport=httpx.MockTransport(recorder)) as c:
        yield c


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("GOOGLE_CHAT_WEBHOOK_URL", "APP_NAME", "APP_ENV", "APP_BASE_PATH",
                 "GOOGLE_CHAT_LEVEL", "GOOGLE_CHAT_BUBBLE", "GOOGLE_CHAT_DETAILED",
                 "GOOGLE_CHAT_ATTACHMENT", "GOOGLE_CHAT_SHORT_ATTACHMENT",
                 "GOOGLE_CHAT_INCLUDE_CONTEXT", "GOOGLE_CHAT_EXCLUDE_FIELDS",
                 "GOOGLE_CHAT_NOTIFY_DEFAULT", "GOOGLE_CHAT_NOTIFY_ERROR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def webhook_url():
    return WEBHOOK_URL
