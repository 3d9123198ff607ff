"""Structured logging configuration.

Every event carries the request context bound by the HTTP middleware
(``request_id``, ``method``, ``path``), so a failed generation or a rejected
step completion can be traced back to the call that caused it.
"""

import logging
import sys
import uuid

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

REQUEST_ID_HEADER = "X-Request-ID"

# Driver chatter that would drown out roadmap events
_QUIET_LOGGERS = ("aiosqlite", "httpx", "httpcore", "openai")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if not debug else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_request_context(request_id: str | None, **values: object) -> str:
    """Reset the per-request log context and return the request id in use."""
    resolved = request_id or uuid.uuid4().hex
    clear_contextvars()
    bind_contextvars(request_id=resolved, **values)
    return resolved


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)  # type: ignore[no-any-return]
