import logging
from enum import IntEnum

DEFAULT_COLOR = "#ff1100"


class Level(IntEnum):
    DEBUG = 10
    INFO = 20
    NOTICE = 25
    WARNING = 30
    ERROR = 40
    CRITICAL = 50
    ALERT = 55
    EMERGENCY = 60

    @classmethod
    def from_levelno(cls, levelno: int) -> "Level":
        """Highest defined level not above ``levelno``."""
        found = cls.DEBUG
        for level in cls:
            if level <= levelno:
                found = level
        return found

    @classmethod
    def from_name(cls, name) -> "Level":
        if isinstance(name, int):
            return cls.from_levelno(name)
        name = str(name).strip()
        if name.isdigit():
            return cls.from_levelno(int(name))
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name}") from None


for _level in (Level.NOTICE, Level.ALERT, Level.EMERGENCY):
    logging.addLevelName(_level.value, _level.name)

LEVEL_COLORS = {
    Level.EMERGENCY: "#ff1100",
    Level.ALERT: "#ff1100",
    Level.CRITICAL: "#ff1100",
    Level.ERROR: "#ff1100",
    Level.WARNING: "#ffc400",
    Level.NOTICE: "#00aeff",
    Level.INFO: "#48d62f",
    Level.DEBUG: "#000000",
}


def level_color(level: int) -> str:
    # exact match only, anything unknown is shown as an error
    return LEVEL_COLORS.get(level, DEFAULT_COLOR)


def color_text(level: int, text: str) -> str:
    return f"<font color='{level_color(level)}'>{text}</font>"
