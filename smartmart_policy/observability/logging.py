"""
Decision logging utilities for SMARTMART_POLICY.

Provides structured logging with correlation IDs so that every allow/deny
decision can be traced back to the request that triggered it.
"""

import contextvars
import logging
import uuid
from datetime import datetime
from typing import Any

# Context variable for correlation ID
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


def get_logging_context() -> dict[str, Any]:
    """
    Get current logging context.

    Returns:
        Dictionary with a timestamp and the correlation ID when one is set
    """
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


def log_decision(
    logger: logging.Logger,
    allowed: bool,
    grant: str | None = None,
    **context: Any,
) -> None:
    """
    Log a policy decision with structured context.

    Allowed decisions are logged at DEBUG, denials at INFO.

    Args:
        logger: Logger instance
        allowed: Whether the request was allowed
        grant: Name of the grant that allowed the request, if any
        **context: Additional context (identity, action, path, ...)
    """
    log_context = get_logging_context()
    log_context.update({"decision": "allow" if allowed else "deny", "grant": grant})
    if context:
        log_context.update(context)

    details = ", ".join(f"{k}={v}" for k, v in context.items())
    if allowed:
        logger.debug(f"Access ALLOWED by '{grant}' ({details})", extra=log_context)
    else:
        logger.info(f"Access DENIED ({details})", extra=log_context)
