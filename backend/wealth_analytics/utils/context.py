# backend/wealth_analytics/utils/context.py
"""
Calculation context management for the analytics engine.

This module provides context-local storage for call-scoped data:
- Correlation ID for tracing one calculation (or one batch) across log lines

Uses Python's contextvars so the value follows the caller's thread or task.
The batch runner copies the caller's context into each worker so log lines
emitted from worker threads keep the caller's correlation ID.

Usage:
    from wealth_analytics.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("batch-2024-q4")
    correlation_id = get_correlation_id()  # Returns "batch-2024-q4"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """
    Get the current correlation ID.

    Returns:
        The correlation ID for the current context, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set the correlation ID for the current context.

    Args:
        correlation_id: Unique identifier for this calculation or batch
    """
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID."""
    _correlation_id_var.set(None)
