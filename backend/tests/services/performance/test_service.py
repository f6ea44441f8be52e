# backend/tests/services/performance/test_service.py
"""
Tests for the PerformanceService orchestrator.

The service is wired to the in-memory fakes from conftest, so these tests
exercise the full pipeline (fetch, classify, calculate, assemble) without
any external system.

Test Coverage:
- Request validation and capability checks (fail before any fetch)
- Return method dispatch and net-of-fees return
- Cash flow timing conventions
- Benchmark comparison and attribution wiring
- Degenerate inputs, data quality scoring and flags
- Per-tenant risk-free rate
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from tests.conftest import make_returns, make_series, make_transaction
from wealth_analytics.services.exceptions import (
    AnalyticsError,
    BenchmarkUnavailableError,
    InvalidRequestError,
    MissingBenchmarkForAttributionError,
)
from wealth_analytics.services.performance import (
    AttributionSegment,
    CalculationMethod,
    CashFlowTiming,
    PerformanceRequest,
    PerformanceService,
    StaticRiskFreeRateProvider,
    TransactionType,
)

TENANT = "tenant-a"
PORTFOLIO = "P1"
JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)

TOLERANCE = Decimal("0.000000001")

SEGMENTS = [
    AttributionSegment("Technology", Decimal("0.6"), Decimal("0.5"), Decimal("0.10"), Decimal("0.08")),
    AttributionSegment("Healthcare", Decimal("0.4"), Decimal("0.5"), Decimal("0.03"), Decimal("0.04")),
]


def _request(**overrides) -> PerformanceRequest:
    fields = {
        "portfolio_id": PORTFOLIO,
        "period_start": JAN_1,
        "period_end": JAN_31,
    }
    fields.update(overrides)
    return PerformanceRequest(**fields)


def _seed_values(valuation_provider, begin: str, end: str) -> None:
    valuation_provider.set_value(PORTFOLIO, JAN_1, Decimal(begin))
    valuation_provider.set_value(PORTFOLIO, JAN_31, Decimal(end))


# =============================================================================
# VALIDATION & CAPABILITIES
# =============================================================================

class TestRequestValidation:
    """Invalid requests are rejected before any collaborator is called."""

    def test_start_after_end(self, service, valuation_provider, transaction_provider):
        request = _request(period_start=JAN_31, period_end=JAN_1)

        with pytest.raises(InvalidRequestError):
            service.calculate_performance(request, TENANT)

        assert valuation_provider.calls == []
        assert transaction_provider.calls == []

    def test_start_equals_end(self, service):
        with pytest.raises(InvalidRequestError):
            service.calculate_performance(_request(period_end=JAN_1), TENANT)

    def test_blank_portfolio_id(self, service, valuation_provider):
        with pytest.raises(InvalidRequestError) as exc_info:
            service.calculate_performance(_request(portfolio_id="  "), TENANT)

        assert exc_info.value.field == "portfolio_id"
        assert valuation_provider.calls == []

    def test_attribution_without_benchmark(self, service, valuation_provider):
        with pytest.raises(MissingBenchmarkForAttributionError):
            service.calculate_performance(_request(include_attribution=True), TENANT)

        assert valuation_provider.calls == []

    def test_unknown_benchmark(self, service, valuation_provider):
        """A benchmark without data fails before the portfolio is fetched."""
        with pytest.raises(BenchmarkUnavailableError):
            service.calculate_performance(_request(benchmark_id="UNKNOWN"), TENANT)

        assert valuation_provider.calls == []

    def test_benchmark_without_provider(self, valuation_provider, transaction_provider, engine_config):
        service = PerformanceService(
            valuation_provider=valuation_provider,
            transaction_provider=transaction_provider,
            config=engine_config,
        )

        with pytest.raises(BenchmarkUnavailableError):
            service.calculate_performance(_request(benchmark_id="SPY"), TENANT)

    def test_attribution_without_provider(
            self, valuation_provider, transaction_provider, benchmark_provider, engine_config,
    ):
        benchmark_provider.add_benchmark("SPY", Decimal("0.05"))
        service = PerformanceService(
            valuation_provider=valuation_provider,
            transaction_provider=transaction_provider,
            benchmark_provider=benchmark_provider,
            config=engine_config,
        )

        with pytest.raises(AnalyticsError):
            service.calculate_performance(
                _request(benchmark_id="SPY", include_attribution=True), TENANT,
            )


# =============================================================================
# RETURNS
# =============================================================================

class TestReturns:
    """Return selection and fee handling through the full pipeline."""

    def test_modified_dietz_with_mid_period_withdrawal(
            self, service, valuation_provider, transaction_provider,
    ):
        """
        Begin 100,000, End 110,000, withdrawal of 5,000 on day 15 of 30:
        Modified Dietz = 15,000 / 97,500 = 15.38%.
        """
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 16), TransactionType.WITHDRAWAL, "5000"),
        )

        result = service.calculate_performance(
            _request(calculation_method=CalculationMethod.MODIFIED_DIETZ), TENANT,
        )
        period = result.performance_period

        assert period.gross_return.quantize(Decimal("0.0001")) == Decimal("0.1538")
        assert period.returns.simple == Decimal("0.15")
        assert period.cash_flows.net_cash_flows == Decimal("-5000")
        assert period.cash_flows.withdrawals == Decimal("5000")
        assert period.net_return == period.gross_return
        assert period.total_return == period.gross_return
        assert period.currency_return == Decimal("0")
        assert not period.has_significant_cash_flows

    def test_money_weighted_selection(self, service, valuation_provider, transaction_provider):
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 10), TransactionType.DEPOSIT, "2000"),
        )

        result = service.calculate_performance(
            _request(calculation_method=CalculationMethod.MONEY_WEIGHTED), TENANT,
        )
        period = result.performance_period

        assert period.gross_return == period.returns.money_weighted
        assert period.calculation_method == CalculationMethod.MONEY_WEIGHTED

    def test_time_weighted_is_default(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.gross_return == result.performance_period.returns.time_weighted

    def test_net_of_fees(self, service, valuation_provider, transaction_provider):
        """Fees are not cash flows; they reduce the net return only."""
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 10), TransactionType.FEE, "1000", "Management fee"),
        )

        result = service.calculate_performance(
            _request(calculation_method=CalculationMethod.MODIFIED_DIETZ), TENANT,
        )
        period = result.performance_period

        assert period.gross_return == Decimal("0.1")
        assert period.net_return == Decimal("0.09")
        assert period.fees.management_fees == Decimal("1000")
        assert period.cash_flows.flows == ()

    @pytest.mark.parametrize("timing,expected", [
        (None, Decimal("0.15")),
        (CashFlowTiming.END_OF_DAY, Decimal("0.15")),
        (CashFlowTiming.BEGINNING_OF_DAY, Decimal("0.134375")),
    ])
    def test_cash_flow_timing(self, service, valuation_provider, transaction_provider, timing, expected):
        """Day 3 deposit of 500 between values 1100 and 1650."""
        valuation_provider.set_series(PORTFOLIO, make_series(JAN_1, ["1000", "1100", "1650", "1650"]))
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 3), TransactionType.DEPOSIT, "500"),
        )

        result = service.calculate_performance(
            _request(period_end=date(2024, 1, 4), cash_flow_timing=timing), TENANT,
        )

        assert abs(result.performance_period.returns.time_weighted - expected) < TOLERANCE

    def test_average_value_and_high_water_mark(self, service, valuation_provider):
        valuation_provider.set_series(PORTFOLIO, make_series(JAN_1, ["1000", "1100", "1650", "1650"]))

        result = service.calculate_performance(_request(period_end=date(2024, 1, 4)), TENANT)
        period = result.performance_period

        assert period.average_value == Decimal("1350")
        assert period.high_water_mark == Decimal("1650")

    def test_average_value_without_series_is_midpoint(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.average_value == Decimal("105000")
        assert result.performance_period.high_water_mark == Decimal("110000")


# =============================================================================
# BENCHMARK & ATTRIBUTION
# =============================================================================

class TestBenchmarkAndAttribution:
    """Benchmark comparison and attribution flow into the result."""

    SERIES = [
        "100000", "101000", "100500", "102000", "101500", "103000",
        "102500", "104000", "103500", "105000", "104500",
    ]
    BENCHMARK = ["0.008", "-0.004", "0.012", "-0.003", "0.011", "-0.004", "0.010", "-0.003", "0.009", "-0.004"]

    def _configure(self, valuation_provider, benchmark_provider, attribution_provider):
        valuation_provider.set_series(PORTFOLIO, make_series(JAN_1, self.SERIES))
        benchmark_provider.add_benchmark(
            "SPY",
            Decimal("0.032"),
            series=make_returns(date(2024, 1, 2), self.BENCHMARK),
        )
        attribution_provider.set_segments(PORTFOLIO, SEGMENTS)

    def test_full_calculation(
            self, service, valuation_provider, benchmark_provider, attribution_provider,
    ):
        self._configure(valuation_provider, benchmark_provider, attribution_provider)

        result = service.calculate_performance(
            _request(period_end=date(2024, 1, 11), benchmark_id="SPY", include_attribution=True),
            TENANT,
        )
        period = result.performance_period
        comparison = result.benchmark_comparison
        attribution = result.attribution

        assert comparison is not None
        assert comparison.observations == 10
        assert comparison.benchmark_return == Decimal("0.032")
        assert period.benchmark_return == Decimal("0.032")
        assert period.excess_return == period.gross_return - Decimal("0.032")
        assert period.tracking_error == comparison.tracking_error
        assert period.information_ratio == comparison.information_ratio
        assert period.risk_adjusted.beta == comparison.beta

        assert attribution is not None
        assert attribution.is_reconciled
        assert period.allocation_effect == Decimal("0.004")
        assert period.selection_effect == Decimal("0.005")
        assert period.interaction_effect == Decimal("0.003")
        assert period.total_attribution == Decimal("0.012")

    def test_benchmark_volatility_from_series(
            self, service, valuation_provider, benchmark_provider, attribution_provider,
    ):
        self._configure(valuation_provider, benchmark_provider, attribution_provider)

        result = service.calculate_performance(
            _request(period_end=date(2024, 1, 11), benchmark_id="SPY"), TENANT,
        )

        assert result.benchmark_comparison.benchmark_volatility > Decimal("0")
        assert result.benchmark_comparison.portfolio_volatility == result.performance_period.risk.volatility
        assert result.attribution is None

    def test_sparse_benchmark_keeps_default_beta(
            self, service, valuation_provider, benchmark_provider,
    ):
        _seed_values(valuation_provider, "100000", "110000")
        benchmark_provider.add_benchmark("SPY", Decimal("0.05"))

        result = service.calculate_performance(_request(benchmark_id="SPY"), TENANT)

        assert result.benchmark_comparison.observations == 0
        assert result.performance_period.risk_adjusted.beta == Decimal("1")
        assert any("Insufficient overlapping data" in w for w in result.warnings)

    def test_flat_benchmark_explains_zero_beta(
            self, service, valuation_provider, benchmark_provider,
    ):
        valuation_provider.set_series(PORTFOLIO, make_series(JAN_1, self.SERIES))
        benchmark_provider.add_benchmark(
            "SPY", Decimal("0.01"), series=make_returns(date(2024, 1, 2), ["0.001"] * 10),
        )

        result = service.calculate_performance(
            _request(period_end=date(2024, 1, 11), benchmark_id="SPY"), TENANT,
        )
        risk_adjusted = result.performance_period.risk_adjusted

        assert risk_adjusted.beta == Decimal("0")
        assert risk_adjusted.treynor_ratio == Decimal("0")
        assert any("SPY returns have zero variance" in w for w in result.warnings)
        assert any("Treynor" in w for w in result.warnings)

    def test_no_benchmark_zeroes_benchmark_fields(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(_request(), TENANT)

        assert result.benchmark_comparison is None
        assert result.performance_period.benchmark_return == Decimal("0")
        assert result.performance_period.excess_return == Decimal("0")


# =============================================================================
# DEGENERATE INPUTS & DATA QUALITY
# =============================================================================

class TestDegenerateInputs:
    """Missing or zero data never raises; it degrades with warnings."""

    def test_no_data_at_all(self, service):
        result = service.calculate_performance(_request(), TENANT)
        period = result.performance_period

        assert period.beginning_value == Decimal("0")
        assert period.ending_value == Decimal("0")
        assert period.returns.simple == Decimal("0")
        assert period.returns.time_weighted == Decimal("0")
        assert period.returns.money_weighted == Decimal("0")
        assert period.returns.modified_dietz == Decimal("0")
        assert period.risk.volatility == Decimal("0")
        assert period.risk.max_drawdown == Decimal("0")
        assert period.risk_adjusted.sharpe_ratio == Decimal("0")
        assert period.data_quality_score == 70
        assert result.warnings

    def test_warnings_are_unique(self, service):
        result = service.calculate_performance(_request(), TENANT)
        assert len(result.warnings) == len(set(result.warnings))

    def test_missing_transactions_penalized(self, service, valuation_provider, transaction_provider):
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.set_missing(PORTFOLIO)

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.data_quality_score == 70
        assert "Transaction data unavailable: cash flows treated as empty" in result.warnings

    def test_quality_without_cash_flows(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.data_quality_score == 90

    def test_full_quality(self, service, valuation_provider, transaction_provider):
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 5), TransactionType.DIVIDEND, "100"),
        )

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.data_quality_score == 100


class TestFlags:
    """Flags and metadata on the PerformancePeriod."""

    def test_significant_cash_flows(self, service, valuation_provider, transaction_provider):
        _seed_values(valuation_provider, "100000", "130000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 10), TransactionType.DEPOSIT, "20000"),
        )

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.has_significant_cash_flows

    def test_significant_cash_flows_undefined_without_beginning_value(
            self, service, valuation_provider, transaction_provider,
    ):
        """A first funding deposit into an empty portfolio does not set the flag."""
        _seed_values(valuation_provider, "0", "20500")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 2), TransactionType.DEPOSIT, "20000"),
        )

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.cash_flows.net_cash_flows == Decimal("20000")
        assert not result.performance_period.has_significant_cash_flows

    def test_rebalancing_period(self, service, valuation_provider, transaction_provider):
        _seed_values(valuation_provider, "100000", "110000")
        transaction_provider.add(
            PORTFOLIO,
            make_transaction(date(2024, 1, 10), TransactionType.REBALANCE, "0"),
        )

        result = service.calculate_performance(_request(), TENANT)

        assert result.performance_period.is_rebalancing_period

    def test_metadata(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(_request(), TENANT)
        period = result.performance_period

        assert period.tenant_id == TENANT
        assert period.portfolio_id == PORTFOLIO
        assert period.window.total_days == 30
        assert isinstance(period.calculated_at, datetime)
        assert period.calculated_at.tzinfo is not None
        assert result.calculation_time_ms >= 0


# =============================================================================
# RISK-FREE RATE
# =============================================================================

class TestRiskFreeRate:
    """The tenant's risk-free rate feeds the risk-adjusted ratios."""

    def test_tenant_override(self, valuation_provider, transaction_provider, engine_config):
        _seed_values(valuation_provider, "100000", "110000")
        service = PerformanceService(
            valuation_provider=valuation_provider,
            transaction_provider=transaction_provider,
            risk_free_rate_provider=StaticRiskFreeRateProvider(
                Decimal("0.02"), overrides={"acme": Decimal("0.05")},
            ),
            config=engine_config,
        )
        request = _request(calculation_method=CalculationMethod.MODIFIED_DIETZ)

        acme = service.calculate_performance(request, "acme")
        other = service.calculate_performance(request, "other")

        # Beta defaults to 1, so Treynor = gross - Rf
        assert acme.performance_period.risk_adjusted.treynor_ratio == Decimal("0.05")
        assert other.performance_period.risk_adjusted.treynor_ratio == Decimal("0.08")

    def test_default_from_config(self, service, valuation_provider):
        _seed_values(valuation_provider, "100000", "110000")

        result = service.calculate_performance(
            _request(calculation_method=CalculationMethod.MODIFIED_DIETZ), TENANT,
        )

        assert result.performance_period.risk_adjusted.treynor_ratio == Decimal("0.08")
