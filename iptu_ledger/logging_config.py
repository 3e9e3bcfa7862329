"""
Structured logging for the IPTU ledger.

Every record emitted under the ``iptu_ledger`` logger is rendered as one
JSON object per line.  Services log a snake_case event name as the message
and put the data in ``extra``:

    logger.info("installment_paid", extra={"installment_number": 2, "amount": 250})

Fields bound with ``LogContext.bind`` (the operation being run, its caller,
the assessment it touches) are merged into every record logged inside the
block, including records from collaborators that know nothing about the
call.  A raised ``IptuLedgerError`` logged with ``exc_info`` is rendered
under ``error`` with its ``code`` and structured attributes.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Iterator, Mapping, TextIO

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

ROOT_LOGGER = "iptu_ledger"
_HANDLER_NAME = "iptu_ledger.json"

_EMPTY: Mapping[str, str] = MappingProxyType({})
_bound: ContextVar[Mapping[str, str]] = ContextVar("iptu_ledger_log_context", default=_EMPTY)


class LogContext:
    """Per-call log fields, isolated per thread and per asyncio task."""

    FIELDS = frozenset({"correlation_id", "assessment_id", "caller", "operation"})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[None]:
        """
        Add fields for the duration of the block.

        None values are ignored; inner bindings shadow outer ones and the
        outer values come back on exit.
        """
        unknown = set(fields) - cls.FIELDS
        if unknown:
            raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
        merged = dict(_bound.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _bound.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _bound.reset(token)

    @staticmethod
    def current() -> dict[str, str]:
        return dict(_bound.get())

    @staticmethod
    def clear() -> None:
        _bound.set(_EMPTY)


# Attributes every LogRecord has; anything else on a record came from ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _describe_error(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    code = getattr(exc, "code", None)
    if code is not None:
        error["code"] = code
    attrs = {k: v for k, v in vars(exc).items() if not k.startswith("_")}
    if attrs:
        error["attrs"] = attrs
    return error


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, bound context, extras, error."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_bound.get(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry["error"] = _describe_error(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """Logger ``iptu_ledger.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _ledger_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if h.get_name() == _HANDLER_NAME]


def configure_logging(level: int = logging.INFO, stream: TextIO | None = None) -> None:
    """
    Send ledger logs as JSON lines to ``stream`` (stderr by default).

    Calling it again only adjusts the level; it never adds a second handler.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    if _ledger_handlers(root):
        return
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)


def reset_logging() -> None:
    """Remove the handler installed by configure_logging. FOR TESTING ONLY."""
    root = logging.getLogger(ROOT_LOGGER)
    for handler in _ledger_handlers(root):
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
    root.propagate = True
