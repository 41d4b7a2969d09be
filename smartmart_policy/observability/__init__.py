"""
Observability components.

Provides structured decision logging with correlation IDs.
"""

from .logging import (
    clear_correlation_id,
    get_correlation_id,
    get_logging_context,
    log_decision,
    set_correlation_id,
)

__all__ = [
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "get_logging_context",
    "log_decision",
]
