# backend/wealth_analytics/services/performance/__init__.py
"""
Performance Engine Package.

This package measures portfolio performance for one (portfolio, period)
request at a time:
- Returns (Simple, Logarithmic, TWR, MWR/IRR, Modified Dietz, net of fees)
- Risk metrics (Volatility, Downside Deviation, Max Drawdown)
- Risk-adjusted ratios (Sharpe, Sortino, Calmar, Treynor, Jensen's Alpha)
- Benchmark comparison (Tracking Error, Information Ratio, Beta, Capture)
- Brinson-Hood-Beebower attribution

Usage:
    from wealth_analytics.services.performance import (
        PerformanceService,
        PerformanceRequest,
    )

    service = PerformanceService(valuations, transactions, benchmarks)
    result = service.calculate_performance(
        PerformanceRequest(
            portfolio_id="P-1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 2, 1),
            benchmark_id="MSCI-WORLD",
        ),
        tenant_id="acme",
    )

    print(f"TWR: {result.performance_period.returns.time_weighted}")
    print(f"Sharpe: {result.performance_period.risk_adjusted.sharpe_ratio}")
    print(f"Beta: {result.benchmark_comparison.beta}")

Data Flow:
    TransactionProvider ──→ CashFlowClassifier ──→ cash flows + fees
                                    ↓
    PortfolioValuationProvider ──→ ReturnCalculator ──→ ReturnSet
                                    ↓
                          RiskMetricsCalculator ──→ RiskMetrics
                                    ↓
    BenchmarkProvider ──→ BenchmarkComparator ──→ BenchmarkComparison
                                    ↓
                   RiskAdjustedMetricsCalculator ──→ RiskAdjustedMetrics
                                    ↓
    AttributionDataProvider ──→ AttributionEngine ──→ AttributionResult
                                    ↓
                         PerformanceCalculationResult
"""

from wealth_analytics.services.performance.attribution import AttributionEngine
from wealth_analytics.services.performance.batch import BatchItemResult, calculate_batch
from wealth_analytics.services.performance.benchmark import (
    BenchmarkComparator,
    calculate_alpha,
    calculate_beta,
    calculate_capture_ratios,
    calculate_hit_rate,
    calculate_information_ratio,
    calculate_tracking_error,
)
from wealth_analytics.services.performance.cash_flows import (
    CashFlowClassifier,
    aggregate_fees,
    classify_fee,
)
# Calculators (for testing / direct usage)
from wealth_analytics.services.performance.returns import (
    ReturnCalculator,
    allocate_flows,
    calculate_daily_returns,
    calculate_logarithmic_return,
    calculate_modified_dietz,
    calculate_money_weighted_return,
    calculate_net_return,
    calculate_simple_return,
    calculate_twr,
    select_gross_return,
    solve_irr,
)
from wealth_analytics.services.performance.risk import (
    RiskMetricsCalculator,
    calculate_downside_deviation,
    calculate_max_drawdown,
    calculate_volatility,
)
from wealth_analytics.services.performance.risk_adjusted import (
    RiskAdjustedMetricsCalculator,
    calculate_calmar_ratio,
    calculate_jensen_alpha,
    calculate_sharpe_ratio,
    calculate_sortino_ratio,
    calculate_treynor_ratio,
)
# Main service
from wealth_analytics.services.performance.service import (
    EngineConfig,
    PerformanceService,
    StaticRiskFreeRateProvider,
)
# Types
from wealth_analytics.services.performance.types import (
    AttributionDimension,
    AttributionEntry,
    AttributionResult,
    AttributionSegment,
    BenchmarkComparison,
    CalculationMethod,
    CashFlow,
    CashFlowSummary,
    CashFlowTiming,
    FeeBreakdown,
    IRRSolution,
    PerformanceCalculationResult,
    PerformancePeriod,
    PerformanceRequest,
    PeriodType,
    PeriodWindow,
    ReturnPoint,
    ReturnSet,
    RiskAdjustedMetrics,
    RiskMetrics,
    TransactionRecord,
    TransactionType,
    ValuationPoint,
)

__all__ = [
    # Service
    "PerformanceService",
    "EngineConfig",
    "StaticRiskFreeRateProvider",
    "calculate_batch",
    "BatchItemResult",
    # Calculators
    "CashFlowClassifier",
    "ReturnCalculator",
    "RiskMetricsCalculator",
    "RiskAdjustedMetricsCalculator",
    "BenchmarkComparator",
    "AttributionEngine",
    # Functions
    "aggregate_fees",
    "classify_fee",
    "calculate_simple_return",
    "calculate_logarithmic_return",
    "allocate_flows",
    "calculate_daily_returns",
    "calculate_twr",
    "solve_irr",
    "calculate_money_weighted_return",
    "calculate_modified_dietz",
    "calculate_net_return",
    "select_gross_return",
    "calculate_volatility",
    "calculate_downside_deviation",
    "calculate_max_drawdown",
    "calculate_sharpe_ratio",
    "calculate_sortino_ratio",
    "calculate_calmar_ratio",
    "calculate_treynor_ratio",
    "calculate_jensen_alpha",
    "calculate_beta",
    "calculate_alpha",
    "calculate_tracking_error",
    "calculate_information_ratio",
    "calculate_capture_ratios",
    "calculate_hit_rate",
    # Types
    "TransactionType",
    "TransactionRecord",
    "ValuationPoint",
    "ReturnPoint",
    "PeriodWindow",
    "PeriodType",
    "CalculationMethod",
    "CashFlowTiming",
    "AttributionDimension",
    "AttributionSegment",
    "PerformanceRequest",
    "CashFlow",
    "CashFlowSummary",
    "FeeBreakdown",
    "IRRSolution",
    "ReturnSet",
    "RiskMetrics",
    "RiskAdjustedMetrics",
    "BenchmarkComparison",
    "AttributionEntry",
    "AttributionResult",
    "PerformancePeriod",
    "PerformanceCalculationResult",
]
