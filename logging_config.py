from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "device_id",
    "partition",
    "path",
    "record_count",
    "expected",
    "generated",
    "lost",
    "loss_rate",
    "reason",
)

_configured = False


def _collect_context(record: logging.LogRecord, keys: Sequence[str]) -> dict[str, Any]:
    context: dict[str, Any] = {}
    for key in keys:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class ContextualFormatter(logging.Formatter):
    """Appends known ``extra`` fields to the message as ``key=value`` pairs."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = _collect_context(record, self._extra_keys)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            return f"{message} | {pairs}"
        return message


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def __init__(
        self,
        datefmt: str | None = None,
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt) + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_collect_context(record, self._extra_keys))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int | None = None, json_logs: bool | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level
    use_json = settings.json_logs if json_logs is None else json_logs

    formatters: dict[str, dict[str, Any]] = {
        "contextual": {
            "()": "logging_config.ContextualFormatter",
            "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "%",
            "extra_keys": list(_DEFAULT_EXTRA_KEYS),
        },
        "json": {
            "()": "logging_config.JsonFormatter",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "extra_keys": list(_DEFAULT_EXTRA_KEYS),
        },
    }

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "json" if use_json else "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
