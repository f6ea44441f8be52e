# backend/wealth_analytics/services/protocols.py
"""
Protocol interfaces for the engine's collaborators.

The engine never fetches data itself: callers hand it objects satisfying
these protocols. Using typing.Protocol enables structural subtyping:
- Existing repositories and API clients satisfy protocols without modification
- Test fakes work without explicit inheritance
- Clear documentation of required interfaces

Returning None from a provider method means "no data"; providers should not
raise for missing data.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from wealth_analytics.services.performance.types import (
        AttributionDimension,
        AttributionSegment,
        ReturnPoint,
        TransactionRecord,
        ValuationPoint,
    )


class PortfolioValuationProvider(Protocol):
    """Market values of a portfolio."""

    def get_value_at(self, portfolio_id: str, valuation_date: date) -> Decimal | None:
        ...

    def get_daily_series(
        self,
        portfolio_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[ValuationPoint]:
        """Ordered daily valuations in [start_date, end_date]; may be empty."""
        ...


class TransactionProvider(Protocol):
    """Raw transactions of a portfolio."""

    def get_cash_flows(
        self,
        portfolio_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[TransactionRecord] | None:
        ...


class BenchmarkProvider(Protocol):
    """Return data of a benchmark index."""

    def get_return(self, benchmark_id: str, start_date: date, end_date: date) -> Decimal | None:
        ...

    def get_volatility(self, benchmark_id: str, start_date: date, end_date: date) -> Decimal | None:
        ...

    def get_daily_series(
        self,
        benchmark_id: str,
        start_date: date,
        end_date: date,
    ) -> Sequence[ReturnPoint]:
        """Daily benchmark returns keyed by date; may be empty."""
        ...


class RiskFreeRateProvider(Protocol):
    """Per-tenant risk-free rate (configuration, not market data)."""

    def get(self, tenant_id: str) -> Decimal:
        ...


class AttributionDataProvider(Protocol):
    """Per-group weights and returns for attribution."""

    def get_segments(
        self,
        portfolio_id: str,
        benchmark_id: str,
        start_date: date,
        end_date: date,
        dimension: AttributionDimension,
    ) -> Sequence[AttributionSegment]:
        ...
