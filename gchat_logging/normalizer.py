"""
Turns arbitrary log context values into plain JSON-friendly structures.

Mappings and sequences are walked recursively, everything else is reduced to
a scalar or to a ``{class name: ...}`` mapping so it can be JSON encoded.
"""

import dataclasses
import datetime as dt
import math
import traceback
from typing import Any

from pydantic import BaseModel

MAX_DEPTH = 9
MAX_ITEMS = 1000


def class_name(obj: Any) -> str:
    cls = type(obj)
    if cls.__module__ in ("builtins", "__main__"):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def normalize_exception(exc: BaseException, depth: int = 0) -> dict:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    trace = [f"{frame.filename}:{frame.lineno}" for frame in reversed(frames)]
    data = {
        "class": class_name(exc),
        "message": str(exc),
    }
    code = getattr(exc, "code", None) or getattr(exc, "errno", None)
    if code:
        data["code"] = code
    data["file"] = trace[0] if trace else ""
    data["trace"] = trace
    previous = exc.__cause__ or exc.__context__
    if previous is not None and depth < MAX_DEPTH:
        data["previous"] = normalize_exception(previous, depth + 1)
    return data


def normalize_value(data: Any, depth: int = 0) -> Any:
    if depth > MAX_DEPTH:
        return f"Over {MAX_DEPTH} levels deep, aborting normalization"

    if data is None or isinstance(data, (bool, int, str)):
        return data

    if isinstance(data, float):
        if math.isinf(data):
            return "INF" if data > 0 else "-INF"
        if math.isnan(data):
            return "NaN"
        return data

    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")

    if isinstance(data, dict):
        normalized = {}
        for count, (key, value) in enumerate(data.items()):
            if count >= MAX_ITEMS:
                normalized["..."] = f"Over {MAX_ITEMS} items ({len(data)} total), aborting normalization"
                break
            normalized[str(key)] = normalize_value(value, depth + 1)
        return normalized

    if isinstance(data, (list, tuple, set, frozenset)):
        items = list(data)
        normalized = [normalize_value(value, depth + 1) for value in items[:MAX_ITEMS]]
        if len(items) > MAX_ITEMS:
            normalized.append(f"Over {MAX_ITEMS} items ({len(items)} total), aborting normalization")
        return normalized

    if isinstance(data, (dt.datetime, dt.date, dt.time)):
        return data.isoformat()

    if isinstance(data, BaseException):
        return normalize_exception(data)

    if isinstance(data, BaseModel):
        return normalize_value(data.model_dump(mode="json"), depth)

    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {class_name(data): normalize_value(dataclasses.asdict(data), depth + 1)}

    if hasattr(data, "__dict__") and not isinstance(data, type):
        return {class_name(data): normalize_value(vars(data), depth + 1)}

    return {class_name(data): str(data)}
