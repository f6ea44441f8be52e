# backend/wealth_analytics/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO transport
knowledge. Whatever layer wraps the engine (API, batch job, report builder)
is responsible for mapping them to its own error responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidRequestError
    └── AnalyticsError
        ├── BenchmarkUnavailableError
        └── MissingBenchmarkForAttributionError

Degenerate numeric inputs (zero denominators, missing daily series, IRR
non-convergence) are NOT errors: calculators return 0 and add a warning.
"""

from datetime import date


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidRequestError(ValidationError):
    """
    Raised before any computation when a calculation request is malformed.

    Covers a missing portfolio id, an inverted or empty date range, and
    unknown enum values.
    """


def invalid_date_range(start_date: date, end_date: date) -> InvalidRequestError:
    """Build the error raised for a window where start >= end."""
    return InvalidRequestError(
        f"Invalid period: start date {start_date} must be before end date {end_date}",
        field="period_start",
    )


# =============================================================================
# ANALYTICS ERRORS
# =============================================================================


class AnalyticsError(ServiceError):
    """Base exception for analytics calculation errors."""


class BenchmarkUnavailableError(AnalyticsError):
    """
    Raised when a benchmark comparison was requested but the benchmark
    provider has no data for it.

    This is the one data problem that propagates: the caller explicitly
    asked for a comparison that cannot be honored.

    Attributes:
        benchmark_id: The benchmark that could not be resolved
    """

    def __init__(self, benchmark_id: str, reason: str | None = None) -> None:
        self.benchmark_id = benchmark_id
        self.reason = reason
        message = f"Benchmark '{benchmark_id}' is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MissingBenchmarkForAttributionError(AnalyticsError):
    """Raised when attribution is requested without a benchmark."""

    def __init__(self, portfolio_id: str) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(
            f"Attribution for portfolio '{portfolio_id}' requires a benchmark_id"
        )
