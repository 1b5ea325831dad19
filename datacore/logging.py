from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

__all__ = ["current_trace_id", "get_logger", "setup_logging", "trace_context"]

TRACE_ID_KEY = "trace_id"


def _resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _resolve_format(log_format: str | None) -> str:
    if log_format:
        return log_format.lower()
    if os.getenv("APP_ENV") == "dev" and "LOG_FORMAT" not in os.environ:
        return "console"
    return os.getenv("LOG_FORMAT", "json").lower()


def setup_logging(
    *,
    level: str | int | None = None,
    log_format: str | None = None,
    log_file: str | os.PathLike | None = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    - One JSON object per line (or console rendering for local work)
    - ISO/UTC timestamp, level and event name on every record
    - contextvars are merged, so a bound trace_id reaches repository logs
    - exc_info is rendered into the record instead of a separate traceback
    """

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if _resolve_format(log_format) == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        directory = os.path.dirname(str(log_file))
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=_resolve_level(level),
        handlers=handlers,
        force=True,
    )


def get_logger(*args: Any, **kwargs: Any) -> structlog.stdlib.BoundLogger:  # convenience
    return structlog.get_logger(*args, **kwargs)


def current_trace_id() -> str | None:
    """Return the trace id bound by an enclosing ``trace_context``, if any."""
    return structlog.contextvars.get_contextvars().get(TRACE_ID_KEY)


@contextmanager
def trace_context(trace_id: str, **extra: Any) -> Iterator[str]:
    """Bind ``trace_id`` (and any extra fields) to every log line in the block."""
    with structlog.contextvars.bound_contextvars(**{TRACE_ID_KEY: trace_id}, **extra):
        yield trace_id
