from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

SENSITIVE_KEYS = {"password", "secret", "token", "authorization", "api_key", "auth_provider"}


def _iso_now() -> str:
    return dt.datetime.now(dt.UTC).isoformat()


def _redact(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in obj.items():
            if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
                redacted[k] = "[REDACTED]"
            else:
                redacted[k] = _redact(v)
        return redacted
    if isinstance(obj, list | tuple):
        return [_redact(v) for v in obj]
    return obj


def _build_base_payload(record: logging.LogRecord) -> dict[str, Any]:
    service = getattr(record, "service", None) or os.getenv("SERVICE_NAME") or "cassatodo"
    return {
        "ts": _iso_now(),
        "level": record.levelname.lower(),
        "service": service,
        "msg": record.getMessage(),
    }


def _add_standard_extras(payload: dict[str, Any], record: logging.LogRecord) -> None:
    for attr in (
        "event",
        "contact_point",
        "keyspace",
        "todo_id",
        "attributes",
    ):
        if hasattr(record, attr):
            payload[attr] = getattr(record, attr)
    attributes = payload.get("attributes")
    if isinstance(attributes, dict):
        payload["attributes"] = _redact(attributes)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = _build_base_payload(record)
        _add_standard_extras(payload, record)
        # Attach error fields if present, keeping the JSON single-line
        if record.exc_info:
            exc_type, exc_value, _tb = record.exc_info
            payload["err_type"] = getattr(exc_type, "__name__", str(exc_type))
            if exc_value is not None:
                payload["err"] = str(exc_value)
            payload["stack"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ConsoleLogFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(message)s")

    @staticmethod
    def _shorten(value: str | None, *, n: int = 8) -> str:
        if not value:
            return "-"
        return value[:n]

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = _iso_now()[11:19]  # HH:MM:SS
        parts: list[str] = [ts, record.levelname.upper(), record.name]
        event = getattr(record, "event", None)
        if event:
            parts.append(str(event))
        keyspace = getattr(record, "keyspace", None)
        if keyspace:
            parts.append(f"ks={keyspace}")
        todo_id = getattr(record, "todo_id", None)
        if todo_id:
            parts.append(f"todo={self._shorten(str(todo_id))}")
        parts.append("-")
        parts.append(record.getMessage())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _choose_formatter() -> logging.Formatter:
    format_pref = (os.getenv("LOG_FORMAT") or "").strip().lower() or "auto"
    if format_pref == "auto":
        try:
            if sys.stdout.isatty():
                return ConsoleLogFormatter()
        except (AttributeError, ValueError):
            pass
        return JsonLogFormatter()
    if format_pref == "console":
        return ConsoleLogFormatter()
    return JsonLogFormatter()


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    name = (value or "").strip().upper()
    if not name:
        return default
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else default


def _level_for_logger(logger_name: str, unmatched: int | None = None) -> int:
    """Resolve a logger level from LOG_LEVEL and LOG_MODULE_LEVELS.

    LOG_MODULE_LEVELS is a comma-separated list of ``prefix=level`` entries,
    e.g. ``cassatodo.store=debug,cassandra=warning``. The longest matching
    prefix wins. Without a match the result is ``unmatched`` when given,
    otherwise the LOG_LEVEL base.
    """
    base_level = _parse_level(os.getenv("LOG_LEVEL"), logging.INFO)
    fallback = base_level if unmatched is None else unmatched
    overrides = (os.getenv("LOG_MODULE_LEVELS") or "").strip()
    if not overrides:
        return fallback
    best: tuple[int, int] | None = None
    for entry in overrides.split(","):
        entry = entry.strip()
        if not entry or "=" not in entry:
            continue
        prefix, lvl = entry.split("=", 1)
        prefix = prefix.strip()
        if not prefix:
            continue
        if logger_name == prefix or logger_name.startswith(prefix + "."):
            if best is None or len(prefix) > best[0]:
                best = (len(prefix), _parse_level(lvl, base_level))
    return best[1] if best is not None else fallback


def get_json_logger(name: str = "cassatodo") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_choose_formatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_logger(name))
        logger.propagate = False
    return logger


def configure_driver_logging() -> None:
    """Route the ``cassandra`` driver loggers through our formatter and levels.

    The driver is chatty at INFO during topology discovery; it defaults to
    WARNING unless LOG_MODULE_LEVELS names it.
    """
    lg = logging.getLogger("cassandra")
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(_choose_formatter())
    lg.addHandler(handler)
    lg.setLevel(_level_for_logger("cassandra", unmatched=logging.WARNING))
    lg.propagate = False


__all__ = [
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "configure_driver_logging",
    "get_json_logger",
]
