# backend/wealth_analytics/services/performance/types.py
"""
Data types for the performance engine.

This module defines the data structures used throughout the performance
calculations. All monetary and return values use Decimal for financial
precision; returns are decimal fractions (0.05 = 5%), never percentages.

Result records are frozen dataclasses. A re-calculation produces a new
record; nothing is edited in place. Warning lists are stored as tuples for
the same reason.

Architecture:
    - Enums: TransactionType, CalculationMethod, CashFlowTiming, ...
    - Inputs: TransactionRecord, ValuationPoint, ReturnPoint, PeriodWindow,
      AttributionSegment, PerformanceRequest
    - Intermediate: CashFlow, CashFlowSummary, FeeBreakdown, IRRSolution
    - Results: ReturnSet, RiskMetrics, RiskAdjustedMetrics,
      BenchmarkComparison, AttributionEntry, AttributionResult,
      PerformancePeriod, PerformanceCalculationResult
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from wealth_analytics.services.constants import MIN_BENCHMARK_OBSERVATIONS, ZERO
from wealth_analytics.services.exceptions import InvalidRequestError, invalid_date_range
from wealth_analytics.utils.date_utils import in_window


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    FEE = "FEE"
    TAX = "TAX"
    REBALANCE = "REBALANCE"


class FeeCategory(str, Enum):
    MANAGEMENT = "management"
    PERFORMANCE = "performance"
    OTHER = "other"


class PeriodType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    INCEPTION_TO_DATE = "INCEPTION_TO_DATE"
    CUSTOM = "CUSTOM"


class CalculationMethod(str, Enum):
    """Which return becomes the period's gross (headline) return."""
    TIME_WEIGHTED = "TIME_WEIGHTED"
    MONEY_WEIGHTED = "MONEY_WEIGHTED"
    MODIFIED_DIETZ = "MODIFIED_DIETZ"


class CashFlowTiming(str, Enum):
    """
    When a same-day cash flow is assumed to hit the portfolio.

    Attributes:
        BEGINNING_OF_DAY: Flow is invested for the whole day
        END_OF_DAY: Flow only affects the following day (default)
        ACTUAL_TIME: Midday approximation (half the flow is invested)
    """
    BEGINNING_OF_DAY = "BEGINNING_OF_DAY"
    END_OF_DAY = "END_OF_DAY"
    ACTUAL_TIME = "ACTUAL_TIME"


class AttributionDimension(str, Enum):
    SECTOR = "SECTOR"
    ASSET_CLASS = "ASSET_CLASS"
    REGION = "REGION"
    SECURITY = "SECURITY"


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class TransactionRecord:
    """
    A raw transaction as supplied by the transaction collaborator.

    Attributes:
        date: Transaction date
        transaction_type: Kind of transaction
        amount: Stored amount (withdrawals may be stored positive)
        description: Free text, used to classify fees
        metadata: Caller tags; "fee_category" overrides description matching
    """
    date: date
    transaction_type: TransactionType
    amount: Decimal
    description: str | None = None
    metadata: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ValuationPoint:
    """One trading day's total portfolio market value."""
    date: date
    market_value: Decimal


@dataclass(frozen=True)
class ReturnPoint:
    """A single daily return (fraction), keyed by the day it was earned."""
    date: date
    value: Decimal


@dataclass(frozen=True)
class PeriodWindow:
    """
    Half-open measurement window [start_date, end_date).

    Raises:
        InvalidRequestError: If start_date >= end_date
    """
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date >= self.end_date:
            raise invalid_date_range(self.start_date, self.end_date)

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days

    def contains(self, day: date) -> bool:
        return in_window(day, self.start_date, self.end_date)


@dataclass(frozen=True)
class AttributionSegment:
    """
    Weights and returns of one group (sector, asset class, ...) for the
    portfolio and its benchmark.
    """
    group_key: str
    portfolio_weight: Decimal
    benchmark_weight: Decimal
    portfolio_return: Decimal
    benchmark_return: Decimal


@dataclass(frozen=True)
class PerformanceRequest:
    """
    Value-object request for one (portfolio, period) calculation.

    Attributes:
        portfolio_id: Portfolio to measure
        period_start: First day of the window (inclusive)
        period_end: Last day of the window (exclusive for transactions)
        period_type: Reporting label for the window
        calculation_method: Selects the gross return
        include_attribution: Run Brinson attribution (needs benchmark_id)
        benchmark_id: Optional benchmark for comparison
        cash_flow_timing: TWR cash-flow convention (None = END_OF_DAY)
        attribution_dimension: Grouping used for attribution
    """
    portfolio_id: str
    period_start: date
    period_end: date
    period_type: PeriodType = PeriodType.CUSTOM
    calculation_method: CalculationMethod = CalculationMethod.TIME_WEIGHTED
    include_attribution: bool = False
    benchmark_id: str | None = None
    cash_flow_timing: CashFlowTiming | None = None
    attribution_dimension: AttributionDimension = AttributionDimension.SECTOR

    def validate(self) -> PeriodWindow:
        """
        Check the request and return its measurement window.

        Raises:
            InvalidRequestError: Missing portfolio id, bad enums or date range
        """
        if not self.portfolio_id or not str(self.portfolio_id).strip():
            raise InvalidRequestError("portfolio_id is required", field="portfolio_id")
        if self.period_start is None or self.period_end is None:
            raise InvalidRequestError("period_start and period_end are required", field="period_start")
        if not isinstance(self.calculation_method, CalculationMethod):
            raise InvalidRequestError(
                f"Unsupported calculation method: {self.calculation_method}",
                field="calculation_method",
            )
        if self.cash_flow_timing is not None and not isinstance(self.cash_flow_timing, CashFlowTiming):
            raise InvalidRequestError(
                f"Unsupported cash flow timing: {self.cash_flow_timing}",
                field="cash_flow_timing",
            )
        return PeriodWindow(self.period_start, self.period_end)

    @property
    def timing(self) -> CashFlowTiming:
        return self.cash_flow_timing or CashFlowTiming.END_OF_DAY


# =============================================================================
# CASH FLOWS & FEES
# =============================================================================

@dataclass(frozen=True)
class CashFlow:
    """
    An external cash flow into or out of the portfolio.

    Attributes:
        date: When the flow occurred
        amount: Positive = contribution, negative = withdrawal
        kind: Transaction type the flow was derived from
    """
    date: date
    amount: Decimal
    kind: TransactionType = TransactionType.DEPOSIT


@dataclass(frozen=True)
class CashFlowSummary:
    """
    Signed cash flows of a window plus their aggregates.

    Attributes:
        flows: Signed flows in date order
        total_cash_flows: Sum of |amount|
        net_cash_flows: Signed sum
        contributions: Sum of positive amounts
        withdrawals: Sum of |negative amounts| (a positive number)
    """
    flows: tuple[CashFlow, ...] = ()
    total_cash_flows: Decimal = ZERO
    net_cash_flows: Decimal = ZERO
    contributions: Decimal = ZERO
    withdrawals: Decimal = ZERO

    def net_on(self, day: date) -> Decimal:
        """Signed sum of flows dated on day."""
        return sum((cf.amount for cf in self.flows if cf.date == day), ZERO)


@dataclass(frozen=True)
class FeeBreakdown:
    """Fees charged in the window, as positive amounts."""
    management_fees: Decimal = ZERO
    performance_fees: Decimal = ZERO
    other_fees: Decimal = ZERO

    @property
    def total_fees(self) -> Decimal:
        return self.management_fees + self.performance_fees + self.other_fees


@dataclass(frozen=True)
class ClassifiedTransactions:
    """Output of the cash-flow classifier for one window."""
    cash_flows: CashFlowSummary
    fees: FeeBreakdown
    rebalance_count: int = 0


# =============================================================================
# RETURNS
# =============================================================================

@dataclass(frozen=True)
class IRRSolution:
    """
    Result of the Newton-Raphson IRR solver.

    Attributes:
        rate: Periodic rate (last iterate when not converged)
        iterations: Iterations actually performed
        converged: True when |NPV| fell below tolerance
    """
    rate: Decimal
    iterations: int
    converged: bool


@dataclass(frozen=True)
class ReturnSet:
    """
    All return measures for one window, as decimal fractions.

    Attributes:
        simple: (End - Begin - NetFlows) / Begin
        logarithmic: ln(1 + time_weighted)
        time_weighted: Geometrically chained daily sub-period returns
        money_weighted: Periodic IRR of the flow vector
        modified_dietz: Gain over time-weighted average capital
    """
    simple: Decimal = ZERO
    logarithmic: Decimal = ZERO
    time_weighted: Decimal = ZERO
    money_weighted: Decimal = ZERO
    modified_dietz: Decimal = ZERO
    warnings: tuple[str, ...] = ()


# =============================================================================
# RISK
# =============================================================================

@dataclass(frozen=True)
class RiskMetrics:
    """
    Volatility and drawdown metrics for a daily return series.

    Attributes:
        volatility: Annualized standard deviation
        standard_deviation: Daily (period) standard deviation
        downside_deviation: Annualized deviation of negative returns
        max_drawdown: Worst peak-to-trough decline (<= 0)
        max_drawdown_duration_days: Longest run below a prior peak (>= 0)
        observations: Number of daily returns used
    """
    volatility: Decimal = ZERO
    standard_deviation: Decimal = ZERO
    downside_deviation: Decimal = ZERO
    max_drawdown: Decimal = ZERO
    max_drawdown_duration_days: int = 0
    observations: int = 0
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class RiskAdjustedMetrics:
    sharpe_ratio: Decimal = ZERO
    sortino_ratio: Decimal = ZERO
    calmar_ratio: Decimal = ZERO
    treynor_ratio: Decimal = ZERO
    jensen_alpha: Decimal = ZERO
    beta: Decimal = Decimal("1")
    warnings: tuple[str, ...] = ()


# =============================================================================
# BENCHMARK
# =============================================================================

@dataclass(frozen=True)
class BenchmarkComparison:
    """
    Portfolio performance relative to a benchmark.

    Attributes:
        portfolio_return: Portfolio return for the window
        benchmark_return: Benchmark return for the window
        excess_return: portfolio_return - benchmark_return (active return)
        tracking_error: Annualized std dev of daily return differences
        information_ratio: excess_return / tracking_error
        correlation: Pearson correlation of daily returns
        beta: OLS slope of portfolio on benchmark daily returns
        alpha: portfolio_return - [Rf + beta (benchmark_return - Rf)]
        r_squared: correlation squared
        up_capture_ratio: Mean portfolio / mean benchmark on up days
        down_capture_ratio: Mean portfolio / mean benchmark on down days
        hit_rate: Share of days where portfolio >= benchmark
        observations: Overlapping daily observations used
    """
    benchmark_id: str
    portfolio_return: Decimal = ZERO
    benchmark_return: Decimal = ZERO
    excess_return: Decimal = ZERO
    tracking_error: Decimal = ZERO
    information_ratio: Decimal = ZERO
    correlation: Decimal = ZERO
    beta: Decimal = ZERO
    alpha: Decimal = ZERO
    r_squared: Decimal = ZERO
    up_capture_ratio: Decimal = ZERO
    down_capture_ratio: Decimal = ZERO
    hit_rate: Decimal = ZERO
    portfolio_volatility: Decimal = ZERO
    benchmark_volatility: Decimal = ZERO
    portfolio_sharpe_ratio: Decimal = ZERO
    benchmark_sharpe_ratio: Decimal = ZERO
    observations: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def active_return(self) -> Decimal:
        return self.excess_return

    @property
    def has_sufficient_data(self) -> bool:
        return self.observations >= MIN_BENCHMARK_OBSERVATIONS


# =============================================================================
# ATTRIBUTION
# =============================================================================

@dataclass(frozen=True)
class AttributionEntry:
    group_key: str
    allocation_effect: Decimal
    selection_effect: Decimal
    interaction_effect: Decimal
    portfolio_weight: Decimal
    benchmark_weight: Decimal
    portfolio_return: Decimal
    benchmark_return: Decimal

    @property
    def total_effect(self) -> Decimal:
        return self.allocation_effect + self.selection_effect + self.interaction_effect


@dataclass(frozen=True)
class AttributionResult:
    """
    Brinson-Hood-Beebower decomposition across one grouping dimension.

    allocation + selection + interaction + currency reconciles to
    excess_return; residual holds whatever floating error remains.
    """
    dimension: AttributionDimension
    entries: tuple[AttributionEntry, ...]
    portfolio_return: Decimal
    benchmark_return: Decimal
    excess_return: Decimal
    allocation_effect: Decimal
    selection_effect: Decimal
    interaction_effect: Decimal
    currency_effect: Decimal = ZERO
    residual: Decimal = ZERO
    is_reconciled: bool = True
    warnings: tuple[str, ...] = ()

    @property
    def total_effect(self) -> Decimal:
        return (
            self.allocation_effect
            + self.selection_effect
            + self.interaction_effect
            + self.currency_effect
        )


# =============================================================================
# COMBINED RESULT
# =============================================================================

@dataclass(frozen=True)
class PerformancePeriod:
    """
    The aggregate, immutable result for one (portfolio, period) pair.

    Created once per calculation call and never mutated afterwards.
    """
    tenant_id: str
    portfolio_id: str
    window: PeriodWindow
    period_type: PeriodType
    calculation_method: CalculationMethod

    returns: ReturnSet
    risk: RiskMetrics
    risk_adjusted: RiskAdjustedMetrics
    fees: FeeBreakdown
    cash_flows: CashFlowSummary

    gross_return: Decimal = ZERO
    net_return: Decimal = ZERO

    beginning_value: Decimal = ZERO
    ending_value: Decimal = ZERO
    average_value: Decimal = ZERO
    high_water_mark: Decimal = ZERO

    # Benchmark-derived (0 when no benchmark was requested)
    benchmark_return: Decimal = ZERO
    excess_return: Decimal = ZERO
    tracking_error: Decimal = ZERO
    information_ratio: Decimal = ZERO

    # Attribution totals (0 when attribution was not requested)
    allocation_effect: Decimal = ZERO
    selection_effect: Decimal = ZERO
    interaction_effect: Decimal = ZERO
    total_attribution: Decimal = ZERO

    # Single-currency engine: currency effect is always 0
    local_currency_return: Decimal = ZERO
    currency_return: Decimal = ZERO
    total_return: Decimal = ZERO

    data_quality_score: int = 100
    is_rebalancing_period: bool = False
    has_significant_cash_flows: bool = False
    calculated_at: datetime | None = None


@dataclass(frozen=True)
class PerformanceCalculationResult:
    """Value returned by PerformanceService.calculate_performance."""
    performance_period: PerformancePeriod
    attribution: AttributionResult | None = None
    benchmark_comparison: BenchmarkComparison | None = None
    warnings: tuple[str, ...] = ()
    calculation_time_ms: int = 0
