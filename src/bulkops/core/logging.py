"""Logging configuration using structlog."""

import logging
import sys
from uuid import UUID

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars


def setup_logging(debug: bool = False) -> None:
    """Configure structlog for structured logging.

    Args:
        debug: If True, use colored console output. If False, use JSON for production.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Set library log levels to reduce noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance.

    Args:
        name: Optional logger name.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def bind_request_context(
    request_id: str | None,
    tenant_id: str | None = None,
    user_id: UUID | None = None,
) -> None:
    """Bind request-level context to all subsequent log calls.

    Background stages inherit these bindings because structlog keeps them
    in contextvars, which the executor snapshots at dispatch time.

    Args:
        request_id: The correlation ID for the current request.
        tenant_id: Tenant the request acts for.
        user_id: The calling user.
    """
    if request_id:
        bind_contextvars(request_id=request_id)
    if tenant_id:
        bind_contextvars(tenant_id=tenant_id)
    if user_id:
        bind_contextvars(user_id=str(user_id))


def bind_operation_context(operation_id: UUID) -> None:
    """Bind the bulk operation being processed to subsequent log calls."""
    bind_contextvars(operation_id=str(operation_id))


def clear_request_context() -> None:
    """Clear all request-scoped context."""
    clear_contextvars()
