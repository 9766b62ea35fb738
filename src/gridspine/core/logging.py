"""
structlog setup for gridspine.

Modules log through ``get_logger(__name__)`` with snake_case event names and
key/value fields::

    logger = get_logger(__name__)
    logger.info("edit_committed", row_id=1, field="age", version=4)

``configure_logging`` is called once by the CLI (or by an embedding
application). Records go to stderr so stdout stays free for command output.

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ▼
        TimeStamper(iso)          (optional)
        merge_contextvars         dataset=... from LogContext
        add_log_level
        _stamp_service            service=gridspine
        format_exc_info           (JSON only)
        JSONRenderer | ConsoleRenderer

Tags:
    logging, structlog, gridspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog._config import BoundLoggerLazyProxy
from structlog.types import EventDict, Processor, WrappedLogger

_service = "gridspine"


def _stamp_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _service)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "gridspine",
    add_timestamp: bool = True,
) -> None:
    """Install the gridspine processor chain.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON lines when True, colored console when False;
            None picks JSON whenever stderr is not a terminal
        service: Value of the ``service`` key on every record
        add_timestamp: Prefix records with an ISO-8601 timestamp
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _stamp_service,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    threshold = logging.getLevelName(level.upper())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Lazy logger; records carry ``logger=name`` when a name is given."""
    if name is None:
        return structlog.get_logger()
    return BoundLoggerLazyProxy(None, logger_factory_args=(), initial_values={"logger": name})


def bind_context(**kwargs: Any) -> None:
    """Attach ``kwargs`` to every record logged from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Keys that were already bound get their outer values back on exit.

    Example:
        with LogContext(dataset="users"):
            engine.submit(1, "age", "31")   # records carry dataset="users"
    """

    def __init__(self, **fields: Any):
        self._scope = structlog.contextvars.bound_contextvars(**fields)

    def __enter__(self) -> LogContext:
        self._scope.__enter__()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._scope.__exit__(*exc_info)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
