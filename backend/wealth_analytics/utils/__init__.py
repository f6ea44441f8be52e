# backend/wealth_analytics/utils/__init__.py
"""
Cross-cutting utilities for the analytics engine.

- logging: Logging configuration with correlation ID support
- context: Context-local correlation IDs
- date_utils: Day-count and window helpers

Usage:
    from wealth_analytics.utils import setup_logging
    from wealth_analytics.utils import get_correlation_id, set_correlation_id
"""

from wealth_analytics.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from wealth_analytics.utils.date_utils import days_between, in_window
from wealth_analytics.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    # Dates
    "days_between",
    "in_window",
]
