# backend/wealth_analytics/services/performance/service.py
"""
Performance Service orchestrator.

This is the main entry point of the engine. For one (portfolio, period)
request it:
1. Validates the request (fails fast before touching any collaborator)
2. Resolves the benchmark, if one was requested (fails fast if unavailable)
3. Fetches valuations and transactions from the caller's providers
4. Delegates to the calculators in dependency order
5. Assembles one immutable PerformancePeriod plus optional benchmark
   comparison and attribution

Nothing is persisted and nothing is cached: the service holds only its
providers and an immutable EngineConfig, so one instance can serve many
threads at once (see batch.py).

Architecture:
    PerformanceService
        ├── uses → PortfolioValuationProvider (values, daily series)
        ├── uses → TransactionProvider (raw transactions)
        ├── uses → BenchmarkProvider (optional)
        ├── uses → RiskFreeRateProvider (per tenant)
        ├── uses → AttributionDataProvider (optional)
        ├── uses → CashFlowClassifier
        ├── uses → ReturnCalculator (Simple, Log, TWR, MWR, Modified Dietz)
        ├── uses → RiskMetricsCalculator (Volatility, Drawdown)
        ├── uses → RiskAdjustedMetricsCalculator (Sharpe, Sortino, ...)
        ├── uses → BenchmarkComparator (Beta, Tracking Error, ...)
        └── uses → AttributionEngine (Brinson-Hood-Beebower)

Usage:
    from wealth_analytics.services.performance import PerformanceService

    service = PerformanceService(
        valuation_provider=valuations,
        transaction_provider=transactions,
        benchmark_provider=benchmarks,
    )
    result = service.calculate_performance(request, tenant_id="acme")
    print(result.performance_period.gross_return)
"""

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from wealth_analytics.config import Settings, settings
from wealth_analytics.services.constants import (
    ATTRIBUTION_TOLERANCE,
    DATA_QUALITY_MAX_SCORE,
    DATA_QUALITY_MISSING_INPUT_PENALTY,
    DATA_QUALITY_NO_CASH_FLOWS_PENALTY,
    DEFAULT_MARKET_RETURN,
    DEFAULT_RISK_FREE_RATE,
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_TOLERANCE,
    SIGNIFICANT_CASH_FLOW_THRESHOLD,
    TRADING_DAYS_PER_YEAR,
    ZERO,
)
from wealth_analytics.services.exceptions import (
    AnalyticsError,
    BenchmarkUnavailableError,
    MissingBenchmarkForAttributionError,
)
from wealth_analytics.services.performance.attribution import AttributionEngine
from wealth_analytics.services.performance.benchmark import BenchmarkComparator
from wealth_analytics.services.performance.cash_flows import CashFlowClassifier
from wealth_analytics.services.performance.returns import (
    ReturnCalculator,
    calculate_daily_returns,
    calculate_net_return,
    select_gross_return,
)
from wealth_analytics.services.performance.risk import RiskMetricsCalculator
from wealth_analytics.services.performance.risk_adjusted import RiskAdjustedMetricsCalculator
from wealth_analytics.services.performance.types import (
    AttributionResult,
    BenchmarkComparison,
    PerformanceCalculationResult,
    PerformancePeriod,
    PerformanceRequest,
    PeriodWindow,
    ReturnPoint,
    ValuationPoint,
)
from wealth_analytics.services.protocols import (
    AttributionDataProvider,
    BenchmarkProvider,
    PortfolioValuationProvider,
    RiskFreeRateProvider,
    TransactionProvider,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable calculation parameters handed to the engine at construction.

    Build it from Settings with EngineConfig.from_settings(), or directly
    in tests.
    """
    default_risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE
    market_return: Decimal = DEFAULT_MARKET_RETURN
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR
    irr_max_iterations: int = IRR_MAX_ITERATIONS
    irr_tolerance: Decimal = IRR_TOLERANCE
    irr_initial_guess: Decimal = IRR_INITIAL_GUESS
    significant_cash_flow_threshold: Decimal = SIGNIFICANT_CASH_FLOW_THRESHOLD
    attribution_tolerance: Decimal = ATTRIBUTION_TOLERANCE

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "EngineConfig":
        """Snapshot the calculation fields of Settings (module settings by default)."""
        source = source or settings
        return cls(
            default_risk_free_rate=source.default_risk_free_rate,
            market_return=source.market_return,
            trading_days_per_year=source.trading_days_per_year,
            irr_max_iterations=source.irr_max_iterations,
            irr_tolerance=source.irr_tolerance,
            irr_initial_guess=source.irr_initial_guess,
            significant_cash_flow_threshold=source.significant_cash_flow_threshold,
            attribution_tolerance=source.attribution_tolerance,
        )


class StaticRiskFreeRateProvider:
    """
    RiskFreeRateProvider backed by fixed values.

    Tenants listed in `overrides` get their own rate; everyone else gets
    the default.
    """

    def __init__(
            self,
            default_rate: Decimal = DEFAULT_RISK_FREE_RATE,
            overrides: Mapping[str, Decimal] | None = None,
    ):
        self._default_rate = default_rate
        self._overrides = dict(overrides or {})

    def get(self, tenant_id: str) -> Decimal:
        return self._overrides.get(tenant_id, self._default_rate)


# =============================================================================
# SERVICE
# =============================================================================

class PerformanceService:
    """
    Main performance engine service.

    Stateless apart from its injected collaborators and configuration;
    every call to calculate_performance is independent.
    """

    def __init__(
            self,
            valuation_provider: PortfolioValuationProvider,
            transaction_provider: TransactionProvider,
            benchmark_provider: BenchmarkProvider | None = None,
            risk_free_rate_provider: RiskFreeRateProvider | None = None,
            attribution_provider: AttributionDataProvider | None = None,
            config: EngineConfig | None = None,
    ):
        """
        Initialize the Performance Service.

        Args:
            valuation_provider: Source of portfolio values and daily series
            transaction_provider: Source of raw transactions
            benchmark_provider: Source of benchmark data (needed for
                requests with a benchmark_id)
            risk_free_rate_provider: Per-tenant risk-free rate. Defaults to
                the configured default_risk_free_rate for every tenant.
            attribution_provider: Source of attribution segments (needed
                for requests with include_attribution)
            config: Calculation parameters. Defaults to a snapshot of
                the module settings.
        """
        self._config = config or EngineConfig.from_settings()
        self._valuations = valuation_provider
        self._transactions = transaction_provider
        self._benchmarks = benchmark_provider
        self._risk_free_rates = risk_free_rate_provider or StaticRiskFreeRateProvider(
            self._config.default_risk_free_rate
        )
        self._attribution_data = attribution_provider

        self._returns = ReturnCalculator(
            irr_max_iterations=self._config.irr_max_iterations,
            irr_tolerance=self._config.irr_tolerance,
            irr_initial_guess=self._config.irr_initial_guess,
        )
        self._attribution = AttributionEngine(self._config.attribution_tolerance)

        logger.info("PerformanceService initialized")

    @property
    def config(self) -> EngineConfig:
        return self._config

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def calculate_performance(
            self,
            request: PerformanceRequest,
            tenant_id: str,
    ) -> PerformanceCalculationResult:
        """
        Calculate performance for one portfolio and period.

        Args:
            request: What to calculate
            tenant_id: Tenant owning the portfolio (selects the risk-free rate)

        Returns:
            PerformanceCalculationResult

        Raises:
            InvalidRequestError: Malformed request (checked before any fetch)
            MissingBenchmarkForAttributionError: Attribution without benchmark_id
            BenchmarkUnavailableError: Benchmark requested but has no data
            AnalyticsError: Attribution requested but no data provider configured
        """
        started = time.perf_counter()

        window = request.validate()
        self._check_capabilities(request)

        portfolio_id = request.portfolio_id
        logger.info(
            f"Calculating performance for portfolio {portfolio_id} "
            f"from {window.start_date} to {window.end_date} "
            f"({request.calculation_method.value})"
        )

        benchmark_data = None
        if request.benchmark_id:
            benchmark_data = self._fetch_benchmark(request.benchmark_id, window)

        # =====================================================================
        # STEP 1: Fetch portfolio data
        # =====================================================================
        beginning_value = self._valuations.get_value_at(portfolio_id, window.start_date)
        ending_value = self._valuations.get_value_at(portfolio_id, window.end_date)
        daily_series = list(
            self._valuations.get_daily_series(portfolio_id, window.start_date, window.end_date) or ()
        )
        records = self._transactions.get_cash_flows(portfolio_id, window.start_date, window.end_date)

        warnings: list[str] = []
        missing_inputs = beginning_value is None or ending_value is None or records is None
        if beginning_value is None:
            warnings.append(f"No valuation for {window.start_date}: beginning value treated as 0")
            beginning_value = ZERO
        if ending_value is None:
            warnings.append(f"No valuation for {window.end_date}: ending value treated as 0")
            ending_value = ZERO
        if records is None:
            warnings.append("Transaction data unavailable: cash flows treated as empty")

        # =====================================================================
        # STEP 2: Cash flows, returns, risk
        # =====================================================================
        classified = CashFlowClassifier.classify(records, window)
        cash_flows = classified.cash_flows

        returns = self._returns.calculate_all(
            beginning_value,
            ending_value,
            cash_flows,
            window,
            daily_series,
            request.timing,
        )

        daily_returns = calculate_daily_returns(daily_series, cash_flows)
        risk = RiskMetricsCalculator.calculate_all(daily_returns, self._config.trading_days_per_year)

        gross_return = select_gross_return(request.calculation_method, returns)
        net_return = calculate_net_return(gross_return, classified.fees, beginning_value)
        risk_free_rate = self._risk_free_rates.get(tenant_id)

        # =====================================================================
        # STEP 3: Benchmark comparison & risk-adjusted ratios
        # =====================================================================
        comparison: BenchmarkComparison | None = None
        if benchmark_data is not None:
            benchmark_return, benchmark_volatility, benchmark_series = benchmark_data
            comparison = BenchmarkComparator.compare(
                benchmark_id=request.benchmark_id,
                portfolio_return=gross_return,
                benchmark_return=benchmark_return,
                portfolio_returns=daily_returns,
                benchmark_returns=benchmark_series,
                portfolio_volatility=risk.volatility,
                benchmark_volatility=benchmark_volatility,
                risk_free_rate=risk_free_rate,
                trading_days=self._config.trading_days_per_year,
            )

        beta = comparison.beta if comparison is not None and comparison.has_sufficient_data else None
        risk_adjusted = RiskAdjustedMetricsCalculator.calculate_all(
            gross_return,
            risk,
            risk_free_rate=risk_free_rate,
            market_return=self._config.market_return,
            beta=beta,
        )

        # =====================================================================
        # STEP 4: Attribution
        # =====================================================================
        attribution: AttributionResult | None = None
        if request.include_attribution:
            segments = self._attribution_data.get_segments(
                portfolio_id,
                request.benchmark_id,
                window.start_date,
                window.end_date,
                request.attribution_dimension,
            )
            attribution = self._attribution.attribute(segments or (), request.attribution_dimension)

        # =====================================================================
        # STEP 5: Assemble
        # =====================================================================
        data_quality_score = DATA_QUALITY_MAX_SCORE
        if missing_inputs:
            data_quality_score -= DATA_QUALITY_MISSING_INPUT_PENALTY
        if not cash_flows.flows:
            data_quality_score -= DATA_QUALITY_NO_CASH_FLOWS_PENALTY

        period = PerformancePeriod(
            tenant_id=tenant_id,
            portfolio_id=portfolio_id,
            window=window,
            period_type=request.period_type,
            calculation_method=request.calculation_method,
            returns=returns,
            risk=risk,
            risk_adjusted=risk_adjusted,
            fees=classified.fees,
            cash_flows=cash_flows,
            gross_return=gross_return,
            net_return=net_return,
            beginning_value=beginning_value,
            ending_value=ending_value,
            average_value=_average_value(beginning_value, ending_value, daily_series),
            high_water_mark=_high_water_mark(beginning_value, ending_value, daily_series),
            benchmark_return=comparison.benchmark_return if comparison else ZERO,
            excess_return=comparison.excess_return if comparison else ZERO,
            tracking_error=comparison.tracking_error if comparison else ZERO,
            information_ratio=comparison.information_ratio if comparison else ZERO,
            allocation_effect=attribution.allocation_effect if attribution else ZERO,
            selection_effect=attribution.selection_effect if attribution else ZERO,
            interaction_effect=attribution.interaction_effect if attribution else ZERO,
            total_attribution=attribution.total_effect if attribution else ZERO,
            local_currency_return=gross_return,
            currency_return=ZERO,
            total_return=gross_return,
            data_quality_score=data_quality_score,
            is_rebalancing_period=classified.rebalance_count > 0,
            has_significant_cash_flows=_has_significant_cash_flows(
                cash_flows.net_cash_flows,
                beginning_value,
                self._config.significant_cash_flow_threshold,
            ),
            calculated_at=datetime.now(timezone.utc),
        )

        warnings.extend(returns.warnings)
        warnings.extend(risk.warnings)
        warnings.extend(risk_adjusted.warnings)
        if comparison is not None:
            warnings.extend(comparison.warnings)
        if attribution is not None:
            warnings.extend(attribution.warnings)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Performance for portfolio {portfolio_id}: gross={gross_return}, "
            f"net={net_return}, quality={data_quality_score}, "
            f"{len(warnings)} warnings, {elapsed_ms}ms"
        )

        return PerformanceCalculationResult(
            performance_period=period,
            attribution=attribution,
            benchmark_comparison=comparison,
            warnings=tuple(dict.fromkeys(warnings)),
            calculation_time_ms=elapsed_ms,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _check_capabilities(self, request: PerformanceRequest) -> None:
        """Reject requests this service cannot honor, before fetching anything."""
        if request.include_attribution and not request.benchmark_id:
            raise MissingBenchmarkForAttributionError(request.portfolio_id)

        if request.benchmark_id and self._benchmarks is None:
            raise BenchmarkUnavailableError(request.benchmark_id, "no benchmark provider configured")

        if request.include_attribution and self._attribution_data is None:
            raise AnalyticsError("Attribution requested but no attribution data provider is configured")

    def _fetch_benchmark(
            self,
            benchmark_id: str,
            window: PeriodWindow,
    ) -> tuple[Decimal, Decimal | None, Sequence[ReturnPoint]]:
        """
        Load benchmark return, volatility and daily series.

        Raises:
            BenchmarkUnavailableError: If the provider has no return for the window
        """
        benchmark_return = self._benchmarks.get_return(benchmark_id, window.start_date, window.end_date)
        if benchmark_return is None:
            logger.warning(
                f"Benchmark {benchmark_id} has no return for {window.start_date} to {window.end_date}"
            )
            raise BenchmarkUnavailableError(
                benchmark_id,
                f"no return data from {window.start_date} to {window.end_date}",
            )

        volatility = self._benchmarks.get_volatility(benchmark_id, window.start_date, window.end_date)
        series = self._benchmarks.get_daily_series(benchmark_id, window.start_date, window.end_date)

        return benchmark_return, volatility, list(series or ())


def _average_value(
        beginning_value: Decimal,
        ending_value: Decimal,
        daily_series: Sequence[ValuationPoint],
) -> Decimal:
    """Mean of the daily series, or of the two endpoints without one."""
    if daily_series:
        return sum((p.market_value for p in daily_series), ZERO) / Decimal(len(daily_series))
    return (beginning_value + ending_value) / Decimal(2)


def _high_water_mark(
        beginning_value: Decimal,
        ending_value: Decimal,
        daily_series: Sequence[ValuationPoint],
) -> Decimal:
    """Highest market value observed in the window."""
    return max([beginning_value, ending_value, *(p.market_value for p in daily_series)])


def _has_significant_cash_flows(
        net_cash_flows: Decimal,
        beginning_value: Decimal,
        threshold: Decimal,
) -> bool:
    """True when |net flows| / beginning value exceeds the threshold (False when undefined)."""
    if beginning_value <= ZERO:
        return False
    return abs(net_cash_flows) / beginning_value > threshold
