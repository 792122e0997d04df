import os
import logging
from typing import Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict

from .googlechat import CustomLogs, GoogleChatHandler
from .levels import Level
from .models import FormatterConfig, NotificationConfig


def env_bool(name, default="false"):
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def env_list(name, default=""):
    return tuple(p.strip() for p in os.getenv(name, default).split(",") if p.strip())


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    webhook_url: str = ""
    app_name: str = ""
    environment: str = ""
    base_path: str = ""
    level: Level = Level.DEBUG
    bubble: bool = True
    detailed: bool = True
    use_attachment: bool = True
    use_short_attachment: bool = False
    include_context_and_extra: bool = True
    exclude_fields: Tuple[str, ...] = ()
    notify_users: NotificationConfig = NotificationConfig()

    @property
    def formatter_config(self) -> FormatterConfig:
        return FormatterConfig(
            use_attachment=self.use_attachment,
            use_short_attachment=self.use_short_attachment,
            include_context_and_extra=self.include_context_and_extra,
            exclude_fields=self.exclude_fields,
        )


def load_settings() -> Settings:
    notify = {"default": os.getenv("GOOGLE_CHAT_NOTIFY_DEFAULT", "")}
    for level in Level:
        notify[level.name.lower()] = os.getenv(f"GOOGLE_CHAT_NOTIFY_{level.name}", "")

    return Settings(
        webhook_url=os.getenv("GOOGLE_CHAT_WEBHOOK_URL", ""),
        app_name=os.getenv("APP_NAME", ""),
        environment=os.getenv("APP_ENV", ""),
        base_path=os.getenv("APP_BASE_PATH", os.getcwd()),
        level=Level.from_name(os.getenv("GOOGLE_CHAT_LEVEL", "debug")),
        bubble=env_bool("GOOGLE_CHAT_BUBBLE", "true"),
        detailed=env_bool("GOOGLE_CHAT_DETAILED", "true"),
        use_attachment=env_bool("GOOGLE_CHAT_ATTACHMENT", "true"),
        use_short_attachment=env_bool("GOOGLE_CHAT_SHORT_ATTACHMENT"),
        include_context_and_extra=env_bool("GOOGLE_CHAT_INCLUDE_CONTEXT", "true"),
        exclude_fields=env_list("GOOGLE_CHAT_EXCLUDE_FIELDS"),
        notify_users=NotificationConfig(**notify),
    )


def create_handler(settings: Settings,
                   custom_logs: Optional[CustomLogs] = None,
                   client: Optional[httpx.Client] = None) -> GoogleChatHandler:
    return GoogleChatHandler(
        settings.webhook_url,
        notify_users=settings.notify_users,
        level=settings.level,
        bubble=settings.bubble,
        detailed=settings.detailed,
        formatter_config=settings.formatter_config,
        app_name=settings.app_name,
        environment=settings.environment,
        base_path=settings.base_path,
        custom_logs=custom_logs,
        client=client,
    )


def install_handler(settings: Optional[Settings] = None,
                    logger_name: Optional[str] = None,
                    custom_logs: Optional[CustomLogs] = None,
                    client: Optional[httpx.Client] = None) -> Optional[GoogleChatHandler]:
    """Attach a Google Chat handler to ``logger_name`` (root by default).

    Nothing is installed when no webhook url is configured.
    """
    settings = settings or load_settings()
    if not settings.webhook_url:
        logging.info("GOOGLE_CHAT_WEBHOOK_URL not set; Google Chat logging disabled")
        return None

    handler = create_handler(settings, custom_logs, client)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    if not handler.bubble:
        target.propagate = False
    return handler
