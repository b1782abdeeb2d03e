"""JSON logging for the outfit engine.

Every record carries the correlation id of the user action it belongs to and
the scope ``operation_context`` opened for that action (operation name,
session id, style). Wardrobe photo URLs never reach the log verbatim, and user
ids are replaced by a stable pseudonym so one user's actions can still be
followed across records.
"""

from __future__ import annotations

import contextlib
import contextvars
import hashlib
import json
import logging
import uuid
from typing import Any, Dict, Iterator, Mapping, Optional

_CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)
_ACTION_SCOPE: contextvars.ContextVar[Mapping[str, Any]] = contextvars.ContextVar("action_scope", default={})

# Attributes every LogRecord has; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {"message", "asctime"}
_BASE_FIELDS = ("timestamp", "level", "logger", "event", "message", "correlation_id")
_PHOTO_URL_KEYS = frozenset({"url", "top_url", "bottom_url", "shoes_url", "removed_url"})
_USER_KEYS = frozenset({"user_id"})
_HANDLER_NAME = "outfit-engine-json"


def pseudonymize_user(user_id: str) -> str:
    digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
    return f"anon-{digest[:10]}"


def _redact_field(key: Any, value: Any) -> Any:
    if value is None:
        return None
    if key in _USER_KEYS:
        return pseudonymize_user(str(value))
    if key in _PHOTO_URL_KEYS:
        return "[photo-url]"
    return redact_for_log(value)


def redact_for_log(payload: Any) -> Any:
    """Mask photo URLs and pseudonymize user ids, recursively.

    Keys name what a value is (``url``, ``top_url``, ``user_id``); bare
    strings that look like links are masked wherever they appear. RGB tuples
    and other plain values pass through.
    """

    if isinstance(payload, Mapping):
        return {key: _redact_field(key, value) for key, value in payload.items()}
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(value) for value in payload]
    if isinstance(payload, str):
        return "[redacted-url]" if payload.lower().startswith(("http://", "https://")) else payload
    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    return str(payload)


class JsonFormatter(logging.Formatter):
    """One JSON object per record: base fields, then action scope, then extras."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = super().format(record)
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or _CORRELATION_ID.get(),
        }
        payload.update(redact_for_log(_ACTION_SCOPE.get()))
        for key, value in vars(record).items():
            if key in _RECORD_ATTRS or key in _BASE_FIELDS:
                continue
            payload[key] = _redact_field(key, value)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str = "INFO") -> None:
    """Install the JSON handler on the root logger, replacing one installed earlier."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def get_logger(name: str) -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def current_correlation_id() -> str:
    """The active action's correlation id, or a fresh one outside any action."""

    return _CORRELATION_ID.get() or uuid.uuid4().hex


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    token = _CORRELATION_ID.set(correlation_id or current_correlation_id())
    try:
        yield _CORRELATION_ID.get()
    finally:
        _CORRELATION_ID.reset(token)


@contextlib.contextmanager
def operation_context(name: str, **scope: Any) -> Iterator[str]:
    """Scope one user action and stamp ``scope`` onto every record inside it.

    A nested action (a session step run from an app call) keeps the outer
    correlation id and layers its own fields over the outer scope.
    """

    token = _ACTION_SCOPE.set({**_ACTION_SCOPE.get(), "operation": name, **scope})
    try:
        with correlation_context(_CORRELATION_ID.get()) as correlation_id:
            yield correlation_id
    finally:
        _ACTION_SCOPE.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit ``event`` with ``fields`` as structured extras; the formatter redacts them."""

    correlation_id = fields.pop("correlation_id", None) or current_correlation_id()
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, **fields},
    )


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "current_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "pseudonymize_user",
    "redact_for_log",
]
