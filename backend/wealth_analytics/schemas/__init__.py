# backend/wealth_analytics/schemas/__init__.py
"""
Pydantic schemas for request/response validation.

- performance: Performance calculation request and result responses

Usage:
    from wealth_analytics.schemas import PerformanceCalculationRequest
    from wealth_analytics.schemas import PerformanceCalculationResponse
"""

from wealth_analytics.schemas.performance import (
    # Request
    PerformanceCalculationRequest,
    # Components
    PeriodWindowResponse,
    CashFlowResponse,
    CashFlowSummaryResponse,
    FeeBreakdownResponse,
    ReturnSetResponse,
    RiskMetricsResponse,
    RiskAdjustedMetricsResponse,
    BenchmarkComparisonResponse,
    AttributionEntryResponse,
    AttributionResponse,
    # Wrappers
    PerformancePeriodResponse,
    PerformanceCalculationResponse,
)

__all__ = [
    "PerformanceCalculationRequest",
    "PeriodWindowResponse",
    "CashFlowResponse",
    "CashFlowSummaryResponse",
    "FeeBreakdownResponse",
    "ReturnSetResponse",
    "RiskMetricsResponse",
    "RiskAdjustedMetricsResponse",
    "BenchmarkComparisonResponse",
    "AttributionEntryResponse",
    "AttributionResponse",
    "PerformancePeriodResponse",
    "PerformanceCalculationResponse",
]
