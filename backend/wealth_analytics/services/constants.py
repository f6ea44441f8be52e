# backend/wealth_analytics/services/constants.py
"""
Centralized constants for the performance analytics engine.

This module provides a single source of truth for the financial constants
used across the calculators. Values that callers may want to tune per
deployment (risk-free rate, annualization factor, IRR solver limits) are
exposed again through Settings; the constants below are their defaults.

Usage:
    from wealth_analytics.services.constants import (
        TRADING_DAYS_PER_YEAR,
        DEFAULT_RISK_FREE_RATE,
        ZERO,
    )
"""

from decimal import Decimal


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Standard number of trading days in a year (excludes weekends and holidays)
# Used for annualizing volatility, downside deviation and tracking error
TRADING_DAYS_PER_YEAR: int = 252


# =============================================================================
# RATE DEFAULTS
# =============================================================================

# Default risk-free rate for Sharpe, Sortino, Treynor and alpha
# 2% = 0.02 as a decimal
DEFAULT_RISK_FREE_RATE: Decimal = Decimal("0.02")

# Broad-market return used by Jensen's alpha when no benchmark beta is known
# 8% = 0.08 as a decimal
DEFAULT_MARKET_RETURN: Decimal = Decimal("0.08")

# Beta assumed for Treynor / Jensen when no regression beta is available
DEFAULT_BETA: Decimal = Decimal("1")


# =============================================================================
# IRR CALCULATION SETTINGS
# =============================================================================

# Maximum iterations for the Newton-Raphson solver
IRR_MAX_ITERATIONS: int = 100

# |NPV| below which the solver stops (also the derivative underflow floor)
IRR_TOLERANCE: Decimal = Decimal("0.000001")

# Initial guess for the periodic rate (10%)
IRR_INITIAL_GUESS: Decimal = Decimal("0.1")

# Lower bound for the rate; (1 + r) must stay positive
IRR_MIN_RATE: Decimal = Decimal("-0.99")


# =============================================================================
# CASH FLOW THRESHOLDS
# =============================================================================

# |net cash flows| / beginning value above which a period is flagged
# as having significant cash flows (10%)
SIGNIFICANT_CASH_FLOW_THRESHOLD: Decimal = Decimal("0.10")


# =============================================================================
# DATA QUALITY SCORING
# =============================================================================

DATA_QUALITY_MAX_SCORE: int = 100

# Deducted when portfolio valuation or transaction inputs were missing
DATA_QUALITY_MISSING_INPUT_PENALTY: int = 20

# Deducted when the window contained no cash-flow records at all
DATA_QUALITY_NO_CASH_FLOWS_PENALTY: int = 10


# =============================================================================
# ATTRIBUTION
# =============================================================================

# Allowed gap between the summed effects and the excess return
ATTRIBUTION_TOLERANCE: Decimal = Decimal("0.000001")


# =============================================================================
# BENCHMARK COMPARISON
# =============================================================================

# Minimum overlapping daily observations for series-based statistics
MIN_BENCHMARK_OBSERVATIONS: int = 2


# =============================================================================
# BATCH EXECUTION
# =============================================================================

DEFAULT_BATCH_MAX_WORKERS: int = 4


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

# Type-safe zero / one for Decimal arithmetic
ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
