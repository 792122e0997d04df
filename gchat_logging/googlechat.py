import json
import logging
import re
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import httpx

from .levels import Level, color_text
from .middleware import current_request, current_url
from .models import FormatterConfig, LogEvent, NotificationConfig
from .record import CARD_ID, GoogleChatRecord, card_widget

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4096
CUSTOM_LOG_ICON = "CONFIRMATION_NUMBER_ICON"
NUMERIC_KEY = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

CustomLogs = Callable[[Any], Any]


class CustomLogError(Exception):
    pass


class WebhookDispatcher:
    """Posts one JSON payload per call to a Google Chat webhook."""

    def __init__(self, url: str, client: Optional[httpx.Client] = None):
        if not url:
            raise ValueError("Webhook url not provided")
        self.url = url
        self._client = client

    def send(self, payload: Dict[str, Any]) -> httpx.Response:
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)
        headers = {"Content-type": "application/json"}
        if self._client is not None:
            r = self._client.post(self.url, content=body.encode("utf-8"), headers=headers)
        else:
            r = httpx.post(self.url, content=body.encode("utf-8"), headers=headers)
        r.raise_for_status()
        return r


def construct_notifiable_text(user_ids: str) -> str:
    if not user_ids:
        return ""

    all_users = ""
    others = []
    for user_id in dict.fromkeys(u.strip() for u in user_ids.split(",")):
        if not user_id:
            continue
        if user_id.lower() == "all":
            all_users = "<users/all> "
            continue
        others.append(f"<users/{user_id}> ")
    return all_users + "".join(others)


def is_numeric(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, (int, float)):
        return True
    return NUMERIC_KEY.fullmatch(str(key).strip()) is not None


def label_text(key: Any, value: str) -> str:
    if is_numeric(key):
        return value
    label = re.sub(r"(^|\s)(\S)", lambda m: m.group(1) + m.group(2).upper(),
                   str(key).replace("_", " "))
    return f"<b>{label}:</b> {value}"


class GoogleChatHandler(logging.Handler):
    """Logging handler sending every record to a Google Chat space."""

    def __init__(self,
                 url: str,
                 notify_users: Union[NotificationConfig, Mapping[str, str], None] = None,
                 level: Union[int, str] = Level.DEBUG,
                 bubble: bool = True,
                 detailed: bool = True,
                 formatter_config: Optional[FormatterConfig] = None,
                 app_name: str = "",
                 environment: str = "",
                 base_path: str = "",
                 custom_logs: Optional[CustomLogs] = None,
                 client: Optional[httpx.Client] = None):
        super().__init__(Level.from_name(level))
        self.dispatcher = WebhookDispatcher(url, client)
        if notify_users is None or isinstance(notify_users, NotificationConfig):
            self.notify_users = notify_users or NotificationConfig()
        else:
            self.notify_users = NotificationConfig(**{k.lower(): v for k, v in notify_users.items()})
        self.bubble = bubble
        self.detailed = detailed
        self.environment = environment
        self.custom_logs = custom_logs
        self.google_chat_record = GoogleChatRecord(formatter_config, app_name, base_path)
        self._sending = threading.local()

    @property
    def webhook_url(self) -> str:
        return self.dispatcher.url

    def emit(self, record: logging.LogRecord):
        # httpx logs its own requests, those must not loop back here
        if getattr(self._sending, "active", False):
            return
        self._sending.active = True
        try:
            self.write(LogEvent.from_record(record, self.format(record)))
        except Exception:
            self.handleError(record)
        finally:
            self._sending.active = False

    def write(self, event: LogEvent) -> httpx.Response:
        """Build the payload for ``event`` and post it, errors propagate."""
        if self.detailed:
            payload = self.get_request_body(event)
        else:
            payload = self.google_chat_record.get_google_chat_data(event)
        logger.debug(f"Sending {event.level_name} record to Google Chat")
        return self.dispatcher.send(payload)

    def get_request_body(self, event: LogEvent) -> Dict[str, Any]:
        env_label = self.environment_label()
        widgets = [
            card_widget(f"{env_label} [Env]", "BOOKMARK"),
            card_widget(self.level_content(event.level), "TICKET"),
            card_widget(event.datetime.isoformat(), "CLOCK"),
        ]
        url = current_url()
        if url is not None:
            widgets.append(card_widget(url, "BUS"))
        widgets.extend(self.get_custom_logs())
        context_widgets, exception = self.google_chat_record.context_widgets(event)
        widgets.extend(context_widgets)
        if exception is not None:
            widgets.append(self.google_chat_record.generate_attachment_field("exception", exception))

        text = self.get_notifiable_text(event.level) + (event.formatted or event.message)
        return {
            "text": text[:MAX_TEXT_LENGTH],
            "cardsV2": [{
                "cardId": CARD_ID,
                "card": {
                    "header": {
                        "title": f"{event.level_name}: {event.message}",
                        "subtitle": env_label,
                    },
                    "sections": [{
                        "header": "Details",
                        "collapsible": True,
                        "uncollapsibleWidgetsCount": 3,
                        "widgets": widgets,
                    }],
                },
            }],
        }

    def environment_label(self) -> str:
        env = self.environment or "NA"
        return " ".join(word[:1].upper() + word[1:] for word in env.split(" "))

    def level_content(self, level: Level) -> str:
        return color_text(level, level.name)

    def get_notifiable_text(self, level: Level) -> str:
        return construct_notifiable_text(self.notify_users.ids_for(level))

    def get_custom_logs(self) -> List[Dict[str, Any]]:
        if self.custom_logs is None:
            return []

        additional = self.custom_logs(current_request())
        if not isinstance(additional, Mapping):
            raise CustomLogError("Data returned from the additional log must be a mapping.")

        logs = []
        for key, value in additional.items():
            if value is not None and not isinstance(value, str):
                try:
                    value = json.dumps(value, ensure_ascii=False)
                except (TypeError, ValueError) as e:
                    raise CustomLogError(
                        f"Additional log value should be a string for key[{key}]. "
                        "For logging objects, please serialize the value first.") from e
            logs.append(card_widget(label_text(key, "" if value is None else str(value)), CUSTOM_LOG_ICON))
        return logs
