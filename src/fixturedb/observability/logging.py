"""
Logging — fixturedb loggers and the events they emit.

Store and collection code never call logger methods with ad-hoc extras;
they go through log_event(), which attaches a scope label and a dict of
structured fields. The scope is the store's own label when it has one
(StoreConfig.scope), else the innermost LogScope, else "-".
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, TextIO

ROOT_LOGGER = "fixturedb"

_active_scope: ContextVar[str | None] = ContextVar("fixturedb_scope", default=None)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a fixturedb component."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_scope() -> str | None:
    """Scope label set by the innermost LogScope, if any."""
    return _active_scope.get()


def set_scope(label: str | None) -> None:
    """Set the scope label for the current context."""
    _active_scope.set(label or None)


class LogScope:
    """
    Label every fixturedb event emitted inside the block.

    Usage:
        with LogScope("test_checkout_flow"):
            store.collection("orders").insert({...})

    A store created with StoreConfig(scope=...) keeps its own label.
    """

    def __init__(self, label: str | None):
        self.label = label
        self._token = None

    def __enter__(self) -> "LogScope":
        self._token = _active_scope.set(self.label or None)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _active_scope.reset(self._token)
            self._token = None


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    scope: str | None = None,
    **fields: Any,
) -> None:
    """Emit one structured event; fields end up as keys of the log line."""
    if not logger.isEnabledFor(level):
        return
    logger.log(
        level,
        event,
        extra={"scope": scope or get_scope() or "-", "fields": fields},
    )


class EventFormatter(logging.Formatter):
    """
    Renders events either as JSON lines or as readable text.

    JSON:     {"timestamp": ..., "level": ..., "scope": ..., "collection": ...}
    Readable: DEBUG   [test_a] fixturedb.collection: Inserted records (ids=[0])
    """

    def __init__(self, json_format: bool = False):
        super().__init__()
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        scope = getattr(record, "scope", None) or "-"
        fields: dict[str, Any] = getattr(record, "fields", {})

        if self.json_format:
            payload = {
                "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                "scope": scope,
                **fields,
            }
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=repr)

        line = f"{record.levelname:<7} [{scope}] {record.name}: {record.getMessage()}"
        if fields:
            line += " (" + " ".join(f"{k}={v!r}" for k, v in fields.items()) + ")"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """
    Send fixturedb events to a stream.

    Replaces any handler installed by an earlier call and returns the new
    one, so tests can detach it.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(EventFormatter(json_format=json_format))

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
    root.propagate = False
    return handler
