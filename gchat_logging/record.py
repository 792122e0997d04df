"""
Google Chat record utility preparing log events for Google Chat webhooks.

See https://developers.google.com/chat/how-tos/webhooks
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import FormatterConfig, LogEvent
from .normalizer import normalize_value

CARD_ID = "info-card-id"
MAX_BLOCK_LENGTH = 1990

ICONS = {
    "user": "PERSON",
    "user_id": "PERSON",
    "email": "EMAIL",
    "url": "BUS",
    "phone": "PHONE",
}


def to_json(value: Any, pretty: bool = False) -> str:
    if pretty:
        return json.dumps(value, indent=4, ensure_ascii=False, default=str)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return to_json(value)


def icon_mapping(key: str) -> str:
    return ICONS.get(key, "TICKET")


def card_widget(text: str, icon: str, label: Optional[str] = None) -> Dict[str, Any]:
    decorated: Dict[str, Any] = {"startIcon": {"knownIcon": icon}}
    if label is not None:
        decorated["topLabel"] = label
    decorated["text"] = text
    return {"decoratedText": decorated}


def remove_path(data: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Return ``data`` without the dot separated ``path``.

    Every mapping along the path is copied before it is changed, so neither
    ``data`` nor anything reachable from it is modified. A missing segment
    leaves the data as it is.
    """
    keys = path.split(".")
    root = dict(data)
    node = root
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            return data
        child = dict(child)
        node[key] = child
        node = child
    if keys[-1] not in node:
        return data
    del node[keys[-1]]
    return root


class GoogleChatRecord:

    def __init__(self,
                 config: Optional[FormatterConfig] = None,
                 app_name: str = "",
                 base_path: str = ""):
        config = config or FormatterConfig()
        self.app_name = app_name
        self.base_path = base_path.rstrip("/")
        self.use_attachment(config.use_attachment)
        self.use_short_attachment(config.use_short_attachment)
        self.include_context_and_extra(config.include_context_and_extra)
        self.exclude_fields(config.exclude_fields)

    def use_attachment(self, use_attachment: bool = True) -> "GoogleChatRecord":
        self._use_attachment = use_attachment
        return self

    def use_short_attachment(self, use_short_attachment: bool = False) -> "GoogleChatRecord":
        self._use_short_attachment = use_short_attachment
        return self

    def include_context_and_extra(self, include: bool = False) -> "GoogleChatRecord":
        self._include_context_and_extra = include
        return self

    def exclude_fields(self, exclude_fields: Sequence[str] = ()) -> "GoogleChatRecord":
        self._exclude_fields = tuple(exclude_fields)
        return self

    @property
    def config(self) -> FormatterConfig:
        return FormatterConfig(
            use_attachment=self._use_attachment,
            use_short_attachment=self._use_short_attachment,
            include_context_and_extra=self._include_context_and_extra,
            exclude_fields=self._exclude_fields,
        )

    def get_google_chat_data(self, event: LogEvent) -> Dict[str, Any]:
        """Payload with the headline as text and context/extra as a card."""
        data: Dict[str, Any] = {}
        exception = None

        if self._use_attachment:
            widgets, exception = self.context_widgets(event)
            if widgets:
                data["cardsV2"] = [{
                    "cardId": CARD_ID,
                    "card": {
                        "sections": [{
                            "collapsible": True,
                            "uncollapsibleWidgetsCount": 5,
                            "widgets": widgets,
                        }]
                    },
                }]

        text = f"*{self.app_name} : {event.level_name}:* {event.message}"
        if exception is not None:
            field = self.generate_attachment_field("exception", exception)
            text += " " + field["decoratedText"]["text"]
        data["text"] = text
        return data

    def context_widgets(self, event: LogEvent) -> Tuple[List[Dict[str, Any]], Optional[Any]]:
        """Widgets for extra and context, plus the exception pulled out of them."""
        widgets: List[Dict[str, Any]] = []
        exception = None
        if not self._include_context_and_extra:
            return widgets, exception

        record_data = self.remove_excluded_fields(event)
        for key in ("extra", "context"):
            values = record_data.get(key)
            if not values:
                continue
            if self._use_short_attachment:
                widgets.append(self.generate_attachment_field(key, values))
            else:
                fields, found = self.generate_attachment_fields(values)
                widgets.extend(fields)
                if found is not None:
                    exception = found
        return widgets, exception

    def stringify(self, fields: Any) -> str:
        normalized = normalize_value(fields)
        if isinstance(normalized, dict):
            values = list(normalized.values())
        elif isinstance(normalized, list):
            values = normalized
        else:
            return to_json(normalized)
        has_second_dimension = any(isinstance(v, (dict, list)) for v in values)
        has_only_named_keys = isinstance(normalized, dict)
        return to_json(normalized, pretty=has_second_dimension or has_only_named_keys)

    def strip_base_path(self, text: Any) -> Any:
        if not isinstance(text, str) or not self.base_path:
            return text
        return text.replace(self.base_path + "/", "")

    def generate_attachment_field(self, title: str, value: Any) -> Dict[str, Any]:
        if title == "exception" and isinstance(value, dict):
            value = dict(value)
            if "file" in value:
                value["file"] = self.strip_base_path(value["file"])
            if isinstance(value.get("trace"), list):
                value["trace"] = [self.strip_base_path(entry) for entry in value["trace"]]

        if isinstance(value, (dict, list)):
            text = f"```{self.stringify(value)[:MAX_BLOCK_LENGTH]}```"
        else:
            text = scalar_text(value)

        return card_widget(text, icon_mapping(title), title[:1].upper() + title[1:])

    def generate_attachment_fields(self, data: Dict[str, Any]) -> Tuple[List[Dict[str, Any]], Optional[Any]]:
        normalized = normalize_value(data)
        fields = []
        exception = None
        for key, value in normalized.items():
            if key == "exception" and isinstance(value, dict):
                exception = value
                continue
            fields.append(self.generate_attachment_field(key, value))
        return fields, exception

    def remove_excluded_fields(self, event: LogEvent) -> Dict[str, Any]:
        record_data = event.to_dict()
        for field in self._exclude_fields:
            record_data = remove_path(record_data, field)
        return record_data
