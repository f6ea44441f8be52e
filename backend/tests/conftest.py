# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- In-memory collaborator fakes (valuations, transactions, benchmarks,
  attribution segments)
- A PerformanceService wired to those fakes
- Sample data factories
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

import pytest

from wealth_analytics.services.performance import (
    AttributionDimension,
    AttributionSegment,
    EngineConfig,
    PerformanceService,
    ReturnPoint,
    TransactionRecord,
    TransactionType,
    ValuationPoint,
)


# =============================================================================
# FAKE VALUATION PROVIDER
# =============================================================================

class FakeValuationProvider:
    """
    In-memory PortfolioValuationProvider.

    Values and daily series are configured per portfolio. Unknown dates
    return None, like a real provider with no data.
    """

    def __init__(self):
        self._values: dict[tuple[str, date], Decimal] = {}
        self._series: dict[str, list[ValuationPoint]] = {}
        self.calls: list[tuple[str, str]] = []

    def set_value(self, portfolio_id: str, valuation_date: date, value: Decimal) -> None:
        self._values[(portfolio_id, valuation_date)] = value

    def set_series(self, portfolio_id: str, points: Sequence[ValuationPoint]) -> None:
        self._series[portfolio_id] = list(points)
        for point in points:
            self._values.setdefault((portfolio_id, point.date), point.market_value)

    def get_value_at(self, portfolio_id: str, valuation_date: date) -> Decimal | None:
        self.calls.append(("get_value_at", portfolio_id))
        return self._values.get((portfolio_id, valuation_date))

    def get_daily_series(self, portfolio_id: str, start_date: date, end_date: date) -> list[ValuationPoint]:
        self.calls.append(("get_daily_series", portfolio_id))
        return [
            p for p in self._series.get(portfolio_id, [])
            if start_date <= p.date <= end_date
        ]


# =============================================================================
# FAKE TRANSACTION PROVIDER
# =============================================================================

class FakeTransactionProvider:
    """In-memory TransactionProvider. Portfolios marked missing return None."""

    def __init__(self):
        self._records: dict[str, list[TransactionRecord]] = {}
        self._missing: set[str] = set()
        self.calls: list[str] = []

    def add(self, portfolio_id: str, *records: TransactionRecord) -> None:
        self._records.setdefault(portfolio_id, []).extend(records)

    def set_missing(self, portfolio_id: str) -> None:
        self._missing.add(portfolio_id)

    def get_cash_flows(self, portfolio_id: str, start_date: date, end_date: date) -> list[TransactionRecord] | None:
        self.calls.append(portfolio_id)
        if portfolio_id in self._missing:
            return None
        return list(self._records.get(portfolio_id, []))


# =============================================================================
# FAKE BENCHMARK PROVIDER
# =============================================================================

class FakeBenchmarkProvider:
    """In-memory BenchmarkProvider. Unknown benchmarks have no return."""

    def __init__(self):
        self._returns: dict[str, Decimal] = {}
        self._volatility: dict[str, Decimal] = {}
        self._series: dict[str, list[ReturnPoint]] = {}

    def add_benchmark(
            self,
            benchmark_id: str,
            total_return: Decimal,
            series: Sequence[ReturnPoint] = (),
            volatility: Decimal | None = None,
    ) -> None:
        self._returns[benchmark_id] = total_return
        self._series[benchmark_id] = list(series)
        if volatility is not None:
            self._volatility[benchmark_id] = volatility

    def get_return(self, benchmark_id: str, start_date: date, end_date: date) -> Decimal | None:
        return self._returns.get(benchmark_id)

    def get_volatility(self, benchmark_id: str, start_date: date, end_date: date) -> Decimal | None:
        return self._volatility.get(benchmark_id)

    def get_daily_series(self, benchmark_id: str, start_date: date, end_date: date) -> list[ReturnPoint]:
        return list(self._series.get(benchmark_id, []))


# =============================================================================
# FAKE ATTRIBUTION PROVIDER
# =============================================================================

class FakeAttributionProvider:
    """In-memory AttributionDataProvider keyed by (portfolio, dimension)."""

    def __init__(self):
        self._segments: dict[tuple[str, AttributionDimension], list[AttributionSegment]] = {}

    def set_segments(
            self,
            portfolio_id: str,
            segments: Iterable[AttributionSegment],
            dimension: AttributionDimension = AttributionDimension.SECTOR,
    ) -> None:
        self._segments[(portfolio_id, dimension)] = list(segments)

    def get_segments(
            self,
            portfolio_id: str,
            benchmark_id: str,
            start_date: date,
            end_date: date,
            dimension: AttributionDimension,
    ) -> list[AttributionSegment]:
        return list(self._segments.get((portfolio_id, dimension), []))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def valuation_provider() -> FakeValuationProvider:
    return FakeValuationProvider()


@pytest.fixture
def transaction_provider() -> FakeTransactionProvider:
    return FakeTransactionProvider()


@pytest.fixture
def benchmark_provider() -> FakeBenchmarkProvider:
    return FakeBenchmarkProvider()


@pytest.fixture
def attribution_provider() -> FakeAttributionProvider:
    return FakeAttributionProvider()


@pytest.fixture
def engine_config() -> EngineConfig:
    """Default calculation parameters, independent of the environment."""
    return EngineConfig()


@pytest.fixture
def service(
        valuation_provider,
        transaction_provider,
        benchmark_provider,
        attribution_provider,
        engine_config,
) -> PerformanceService:
    """PerformanceService wired to fresh in-memory fakes."""
    return PerformanceService(
        valuation_provider=valuation_provider,
        transaction_provider=transaction_provider,
        benchmark_provider=benchmark_provider,
        attribution_provider=attribution_provider,
        config=engine_config,
    )


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_series(start: date, values: Iterable[str | Decimal]) -> list[ValuationPoint]:
    """Factory for a consecutive-day valuation series."""
    return [
        ValuationPoint(date=start + timedelta(days=i), market_value=Decimal(v))
        for i, v in enumerate(values)
    ]


def make_returns(start: date, values: Iterable[str | Decimal]) -> list[ReturnPoint]:
    """Factory for a consecutive-day return series."""
    return [
        ReturnPoint(date=start + timedelta(days=i), value=Decimal(v))
        for i, v in enumerate(values)
    ]


def make_transaction(
        day: date,
        transaction_type: TransactionType,
        amount: str | Decimal,
        description: str | None = None,
        **metadata: str,
) -> TransactionRecord:
    """Factory for TransactionRecord test data."""
    return TransactionRecord(
        date=day,
        transaction_type=transaction_type,
        amount=Decimal(amount),
        description=description,
        metadata=metadata,
    )
