# backend/wealth_analytics/schemas/performance.py
"""
Pydantic schemas for the performance engine's public surface.

These schemas define the request/response formats for:
- Performance calculation requests
- Returns, risk and risk-adjusted metrics
- Benchmark comparison
- Brinson attribution

Design decisions:
- All Decimal values are serialized as STRINGS to preserve precision
- Return values are in decimal form (0.155 = 15.5%); display formatting is
  the consumer's job
- Response schemas are built straight from the engine's result
  dataclasses (from_attributes), so they never re-compute anything
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from wealth_analytics.services.performance.types import (
    AttributionDimension,
    CalculationMethod,
    CashFlowTiming,
    PerformanceCalculationResult,
    PerformanceRequest,
    PeriodType,
    TransactionType,
)


class DecimalStringModel(BaseModel):
    """Base for response schemas: Decimal attributes become strings."""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="before")
    @classmethod
    def decimal_to_string(cls, v: Any) -> Any:
        if isinstance(v, Decimal):
            return str(v)
        return v


# =============================================================================
# REQUEST
# =============================================================================

class PerformanceCalculationRequest(BaseModel):
    """Request to calculate performance for one portfolio and period."""

    portfolio_id: str = Field(..., min_length=1, description="Portfolio to measure")
    period_start: date = Field(..., description="First day of the window (inclusive)")
    period_end: date = Field(..., description="End of the window (exclusive for transactions)")
    period_type: PeriodType = Field(PeriodType.CUSTOM, description="Reporting label for the window")
    calculation_method: CalculationMethod = Field(
        CalculationMethod.TIME_WEIGHTED,
        description="Which return becomes the gross return"
    )
    include_attribution: bool = Field(
        False,
        description="Run Brinson attribution (requires benchmark_id)"
    )
    benchmark_id: str | None = Field(None, description="Benchmark to compare against")
    cash_flow_timing: CashFlowTiming | None = Field(
        None,
        description="Same-day cash flow convention for TWR (default END_OF_DAY)"
    )
    attribution_dimension: AttributionDimension = Field(
        AttributionDimension.SECTOR,
        description="Grouping used for attribution"
    )

    @field_validator('portfolio_id')
    @classmethod
    def strip_portfolio_id(cls, v: str) -> str:
        """Trim whitespace; reject blank ids."""
        v = v.strip()
        if not v:
            raise ValueError("portfolio_id must not be blank")
        return v

    @field_validator('benchmark_id')
    @classmethod
    def normalize_benchmark_id(cls, v: str | None) -> str | None:
        """Trim whitespace, or None."""
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def validate_period(self) -> "PerformanceCalculationRequest":
        if self.period_start >= self.period_end:
            raise ValueError(
                f"period_start ({self.period_start}) must be before period_end ({self.period_end})"
            )
        return self

    def to_request(self) -> PerformanceRequest:
        """Convert to the engine's value-object request."""
        return PerformanceRequest(
            portfolio_id=self.portfolio_id,
            period_start=self.period_start,
            period_end=self.period_end,
            period_type=self.period_type,
            calculation_method=self.calculation_method,
            include_attribution=self.include_attribution,
            benchmark_id=self.benchmark_id,
            cash_flow_timing=self.cash_flow_timing,
            attribution_dimension=self.attribution_dimension,
        )


# =============================================================================
# PERIOD & CASH FLOWS
# =============================================================================

class PeriodWindowResponse(DecimalStringModel):
    start_date: date
    end_date: date
    total_days: int = Field(..., description="Calendar days in the window")


class CashFlowResponse(DecimalStringModel):
    date: date
    amount: str = Field(..., description="Signed amount (+in / -out)")
    kind: TransactionType


class CashFlowSummaryResponse(DecimalStringModel):
    flows: list[CashFlowResponse] = Field(default_factory=list)
    total_cash_flows: str = Field("0", description="Sum of |amount|")
    net_cash_flows: str = Field("0", description="Signed sum of flows")
    contributions: str = Field("0", description="Sum of positive flows")
    withdrawals: str = Field("0", description="Sum of outflows (positive number)")


class FeeBreakdownResponse(DecimalStringModel):
    management_fees: str = "0"
    performance_fees: str = "0"
    other_fees: str = "0"
    total_fees: str = "0"


# =============================================================================
# METRICS
# =============================================================================

class ReturnSetResponse(DecimalStringModel):
    """All return measures, as decimal strings."""

    simple: str = Field("0", description="(End - Begin - NetFlows) / Begin")
    logarithmic: str = Field("0", description="ln(1 + TWR)")
    time_weighted: str = Field("0", description="Time-Weighted Return")
    money_weighted: str = Field("0", description="Money-Weighted Return (periodic IRR)")
    modified_dietz: str = Field("0", description="Modified Dietz return")
    warnings: list[str] = Field(default_factory=list)


class RiskMetricsResponse(DecimalStringModel):
    volatility: str = Field("0", description="Annualized volatility")
    standard_deviation: str = Field("0", description="Daily standard deviation")
    downside_deviation: str = Field("0", description="Annualized downside deviation")
    max_drawdown: str = Field("0", description="Worst peak-to-trough decline (negative)")
    max_drawdown_duration_days: int = Field(0, description="Longest run below a prior peak")
    observations: int = 0
    warnings: list[str] = Field(default_factory=list)


class RiskAdjustedMetricsResponse(DecimalStringModel):
    sharpe_ratio: str = "0"
    sortino_ratio: str = "0"
    calmar_ratio: str = "0"
    treynor_ratio: str = "0"
    jensen_alpha: str = "0"
    beta: str = "1"
    warnings: list[str] = Field(default_factory=list)


class BenchmarkComparisonResponse(DecimalStringModel):
    """Portfolio vs benchmark metrics."""

    benchmark_id: str
    portfolio_return: str = "0"
    benchmark_return: str = "0"
    excess_return: str = Field("0", description="Portfolio return - benchmark return")
    tracking_error: str = Field("0", description="Annualized std dev of daily return differences")
    information_ratio: str = Field("0", description="Excess return / tracking error")
    correlation: str = "0"
    beta: str = "0"
    alpha: str = "0"
    r_squared: str = "0"
    up_capture_ratio: str = "0"
    down_capture_ratio: str = "0"
    hit_rate: str = Field("0", description="Share of days portfolio >= benchmark")
    portfolio_volatility: str = "0"
    benchmark_volatility: str = "0"
    portfolio_sharpe_ratio: str = "0"
    benchmark_sharpe_ratio: str = "0"
    observations: int = 0
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# ATTRIBUTION
# =============================================================================

class AttributionEntryResponse(DecimalStringModel):
    group_key: str
    allocation_effect: str
    selection_effect: str
    interaction_effect: str
    total_effect: str
    portfolio_weight: str
    benchmark_weight: str
    portfolio_return: str
    benchmark_return: str


class AttributionResponse(DecimalStringModel):
    """Brinson-Hood-Beebower attribution totals and per-group entries."""

    dimension: AttributionDimension
    entries: list[AttributionEntryResponse] = Field(default_factory=list)
    portfolio_return: str
    benchmark_return: str
    excess_return: str
    allocation_effect: str
    selection_effect: str
    interaction_effect: str
    currency_effect: str = "0"
    total_effect: str
    residual: str = "0"
    is_reconciled: bool = True
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# PERFORMANCE PERIOD
# =============================================================================

class PerformancePeriodResponse(DecimalStringModel):
    """The full performance record for one portfolio and period."""

    tenant_id: str
    portfolio_id: str
    window: PeriodWindowResponse
    period_type: PeriodType
    calculation_method: CalculationMethod

    returns: ReturnSetResponse
    risk: RiskMetricsResponse
    risk_adjusted: RiskAdjustedMetricsResponse
    fees: FeeBreakdownResponse
    cash_flows: CashFlowSummaryResponse

    gross_return: str = "0"
    net_return: str = "0"
    beginning_value: str = "0"
    ending_value: str = "0"
    average_value: str = "0"
    high_water_mark: str = "0"

    benchmark_return: str = "0"
    excess_return: str = "0"
    tracking_error: str = "0"
    information_ratio: str = "0"

    allocation_effect: str = "0"
    selection_effect: str = "0"
    interaction_effect: str = "0"
    total_attribution: str = "0"

    local_currency_return: str = "0"
    currency_return: str = "0"
    total_return: str = "0"

    data_quality_score: int = Field(100, description="100 minus penalties for missing inputs")
    is_rebalancing_period: bool = False
    has_significant_cash_flows: bool = False
    calculated_at: datetime | None = None


class PerformanceCalculationResponse(DecimalStringModel):
    """Response wrapper for one calculation."""

    performance_period: PerformancePeriodResponse
    attribution: AttributionResponse | None = None
    benchmark_comparison: BenchmarkComparisonResponse | None = None
    warnings: list[str] = Field(
        default_factory=list,
        description="Degradations encountered (zeroed metrics, fallbacks, non-convergence)"
    )
    calculation_time_ms: int = 0

    @classmethod
    def from_result(cls, result: PerformanceCalculationResult) -> "PerformanceCalculationResponse":
        return cls.model_validate(result)
