"""
cargo-gate Structured Logging

Provides structured logging with context propagation and JSON formatting.
Log records go to stderr so they never mix with the echoed commands on stdout.
"""

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Generator, Optional


STANDARD_FIELDS = ("run_id", "toolchain", "stage")

_RESERVED_LOG_RECORD_ATTRS = set(
    logging.LogRecord(
        name="",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="",
        args=(),
        exc_info=None,
    ).__dict__.keys()
)
_RESERVED_LOG_RECORD_ATTRS.update({"asctime", "message"})


def _json_fallback(value: Any) -> str:  # pragma: no cover - defensive
    """Best-effort conversion for non-JSON-serializable values (Path, tuples of flags, etc.)."""
    try:
        return str(value)
    except Exception:
        return repr(value)


_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("CARGOGATE_LOG_CONTEXT", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current log context to avoid accidental mutation."""
    return dict(_LOG_CONTEXT.get() or {})


def set_log_context(**fields: Any) -> None:
    """Update the current log context with new fields."""
    current = get_log_context()
    current.update({k: v for k, v in fields.items() if v is not None})
    _LOG_CONTEXT.set(current)


def clear_log_context() -> None:
    """Clear all fields from the current log context."""
    _LOG_CONTEXT.set({})


@contextmanager
def log_context(**fields: Any) -> Generator[None, None, None]:
    """Context manager for temporarily adding fields to the log context."""
    token = _LOG_CONTEXT.set({**get_log_context(), **{k: v for k, v in fields.items() if v is not None}})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


class ContextFilter(logging.Filter):
    """
    Logging filter that ensures all standard context fields exist on every log record.

    Propagates contextvars-based fields onto log records and provides defaults
    for missing fields so formatters can rely on them.
    """

    def __init__(self, defaults: Optional[Dict[str, Any]] = None) -> None:
        super().__init__()
        self.defaults = {field: "-" for field in STANDARD_FIELDS}
        if defaults:
            self.defaults.update({k: v for k, v in defaults.items() if v is not None})

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_log_context()
        for key, value in ctx.items():
            if value is None or key in _RESERVED_LOG_RECORD_ATTRS:
                continue
            if not hasattr(record, key):
                setattr(record, key, value)

        for key, default in self.defaults.items():
            if not hasattr(record, key):
                setattr(record, key, default)
        return True


class JsonFormatter(logging.Formatter):
    """JSON log formatter that includes all context fields."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in STANDARD_FIELDS:
            data[field] = getattr(record, field, "-")

        # everything passed via `extra=`
        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_ATTRS or key in data:
                continue
            data[key] = value

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=_json_fallback)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """
    Configure the root logger with structured logging support.

    Args:
        level: Log level name, already validated by the configuration layer
        json_output: If True, use JSON formatting; otherwise use text format

    Returns:
        The cargogate logger instance
    """
    handler = logging.StreamHandler()
    handler.addFilter(ContextFilter())

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s "
                "run=%(run_id)s toolchain=%(toolchain)s stage=%(stage)s"
            )
        )

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.addHandler(handler)

    return logging.getLogger("cargogate")


def get_logger(name: str = "cargogate") -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def init_cli_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """Initialize logging for the CLI with the level resolved by load_config()."""
    return setup_logging(level, json_output=json_output)


def log_extra(
    *,
    run_id: Optional[str] = None,
    toolchain: Optional[str] = None,
    stage: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Build a consistent extra dict for structured logging.

    Only non-None values are included so defaults from ContextFilter still apply.

    Example:
        logger.info("Stage passed", extra=log_extra(stage="clippy", duration_seconds=3.2))
    """
    payload: Dict[str, Any] = {}
    if run_id is not None:
        payload["run_id"] = run_id
    if toolchain is not None:
        payload["toolchain"] = toolchain
    if stage is not None:
        payload["stage"] = stage
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload


# shell status for a run stopped by Ctrl-C
EXIT_INTERRUPTED = 130
