"""
Logging setup for rulekit.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed once, by the CLI, through ``configure_logging(config)``. An
application embedding the engine keeps its own logging untouched.

Run context
-----------
Engine log lines do not know which rule set config or identifier field they
belong to. ``log_context(config_id=..., id_field=...)`` binds those fields for
the duration of a block, and every handler installed here stamps them onto
the records it emits::

    with log_context(config_id=cfg.id, id_field=engine.id_field):
        engine.get_bulk_recommendations(products, products, cfg.rule_set)

Text lines end with ``[config_id=laptop-accessories id_field=id]``. JSON lines
(``json_format = true`` in ``[logging]``) carry the same keys at the top
level::

    {"ts": "2026-03-01T09:00:00Z", "level": "WARNING",
     "logger": "rulekit.recommendations.composer", "msg": "...",
     "config_id": "laptop-accessories", "id_field": "id"}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rulekit.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

CONTEXT_FIELDS: tuple[str, ...] = ("config_id", "id_field")

_context: ContextVar[dict[str, Any]] = ContextVar("rulekit_log_context", default={})

# Attributes every LogRecord carries; anything else came from ``extra=``
# or from the run context.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


@contextmanager
def log_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """Bind run fields (``config_id``, ``id_field``) to log records in a block.

    Nested blocks add to, and may override, the enclosing fields. Unknown
    field names raise ``TypeError``.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
    merged = {**_context.get(), **fields}
    token = _context.set(merged)
    try:
        yield merged
    finally:
        _context.reset(token)


class _RunContextFilter(logging.Filter):
    """Copy the bound run fields onto each record (never overwriting ``extra=``)."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _context_items(record: logging.LogRecord) -> list[tuple[str, Any]]:
    return [
        (key, getattr(record, key)) for key in CONTEXT_FIELDS if hasattr(record, key)
    ]


class _TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TIME_FORMAT)
        self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        items = _context_items(record)
        if not items:
            return line
        tags = " ".join(f"{k}={v}" for k, v in items)
        # Keep tracebacks last.
        first, sep, rest = line.partition("\n")
        return f"{first} [{tags}]{sep}{rest}"


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, msg, run fields, extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                TIME_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val) for key, val in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_handlers(config: "LoggingConfig") -> list[logging.Handler]:
    """Handlers for stderr and, if configured, ``config.log_file``.

    Command output goes to stdout, so the console handler writes to stderr.
    """
    formatter: logging.Formatter = _JsonFormatter() if config.json_format else _TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    context_filter = _RunContextFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
    return handlers


def configure_logging(config: "LoggingConfig") -> None:
    """Replace the root logger's handlers with rulekit's.

    pyarrow is held at WARNING whatever the configured level.
    """
    level = logging.getLevelName(config.level)
    logging.basicConfig(level=level, handlers=build_handlers(config), force=True)
    logging.getLogger("pyarrow").setLevel(logging.WARNING)
