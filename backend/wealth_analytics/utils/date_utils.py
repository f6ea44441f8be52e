# backend/wealth_analytics/utils/date_utils.py
"""
Date helpers shared by the performance calculators.

Usage:
    from wealth_analytics.utils.date_utils import days_between, in_window
"""

from datetime import date


def days_between(start_date: date, end_date: date) -> int:
    """
    Whole calendar days from start_date to end_date.

    Order-insensitive: the result is always >= 0.

    Example:
        >>> days_between(date(2024, 1, 1), date(2024, 1, 31))
        30
    """
    return abs((end_date - start_date).days)


def in_window(day: date, start_date: date, end_date: date) -> bool:
    """True when day falls in the half-open window [start_date, end_date)."""
    return start_date <= day < end_date
