# backend/wealth_analytics/services/performance/risk_adjusted.py
"""
Risk-adjusted performance ratios.

Formulas:
    Sharpe  = (R_p - R_f) / σ_p
    Sortino = (R_p - R_f) / σ_downside
    Calmar  = R_p / |Max Drawdown|
    Treynor = (R_p - R_f) / β
    Jensen  = R_p - [R_f + β(R_m - R_f)]

R_m is a configured broad-market return, not derived from data. β is 1.0
unless a benchmark comparison supplied one.

Each ratio is 0 when its denominator is not positive (zero for Calmar).
"""

import logging
from decimal import Decimal

from wealth_analytics.services.constants import (
    DEFAULT_BETA,
    DEFAULT_MARKET_RETURN,
    DEFAULT_RISK_FREE_RATE,
    ZERO,
)
from wealth_analytics.services.performance.types import RiskAdjustedMetrics, RiskMetrics

logger = logging.getLogger(__name__)


# =============================================================================
# RATIOS
# =============================================================================

def calculate_sharpe_ratio(
        portfolio_return: Decimal,
        volatility: Decimal,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
) -> Decimal | None:
    """
    Sharpe Ratio: excess return per unit of total volatility.

    Returns:
        Sharpe ratio, or None if volatility <= 0
    """
    if volatility <= ZERO:
        return None

    return (portfolio_return - risk_free_rate) / volatility


def calculate_sortino_ratio(
        portfolio_return: Decimal,
        downside_deviation: Decimal,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
) -> Decimal | None:
    """
    Sortino Ratio: like Sharpe but only penalizes downside volatility.

    Returns:
        Sortino ratio, or None if downside_deviation <= 0
    """
    if downside_deviation <= ZERO:
        return None

    return (portfolio_return - risk_free_rate) / downside_deviation


def calculate_calmar_ratio(
        portfolio_return: Decimal,
        max_drawdown: Decimal,
) -> Decimal | None:
    """
    Calmar Ratio: return per unit of worst drawdown.

    Args:
        portfolio_return: Return of the window
        max_drawdown: Maximum drawdown (negative decimal)

    Returns:
        Calmar ratio, or None if max_drawdown is zero
    """
    if max_drawdown == ZERO:
        return None

    return portfolio_return / abs(max_drawdown)


def calculate_treynor_ratio(
        portfolio_return: Decimal,
        beta: Decimal = DEFAULT_BETA,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
) -> Decimal | None:
    """Treynor Ratio: excess return per unit of systematic risk, None if beta <= 0."""
    if beta <= ZERO:
        return None

    return (portfolio_return - risk_free_rate) / beta


def calculate_jensen_alpha(
        portfolio_return: Decimal,
        beta: Decimal = DEFAULT_BETA,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
        market_return: Decimal = DEFAULT_MARKET_RETURN,
) -> Decimal:
    """
    Jensen's Alpha: return above what CAPM predicts for the given beta.

    Formula: α = R_p - [R_f + β(R_m - R_f)]

    Example:
        R_p = 12%, R_f = 2%, R_m = 8%, β = 1.0
        α = 0.12 - (0.02 + 0.06) = 4%
    """
    expected_return = risk_free_rate + beta * (market_return - risk_free_rate)
    return portfolio_return - expected_return


# =============================================================================
# COMBINED CALCULATOR
# =============================================================================

class RiskAdjustedMetricsCalculator:
    """Calculator for all risk-adjusted ratios of one window."""

    @staticmethod
    def calculate_all(
            portfolio_return: Decimal,
            risk: RiskMetrics,
            risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
            market_return: Decimal = DEFAULT_MARKET_RETURN,
            beta: Decimal | None = None,
    ) -> RiskAdjustedMetrics:
        """
        Calculate all risk-adjusted ratios.

        Args:
            portfolio_return: Headline return of the window
            risk: Risk metrics of the same window
            risk_free_rate: Tenant risk-free rate
            market_return: Configured broad-market return for Jensen's alpha
            beta: Benchmark beta, or None to assume 1.0

        Returns:
            RiskAdjustedMetrics (degenerate ratios are 0 with a warning)
        """
        warnings: list[str] = []
        beta = DEFAULT_BETA if beta is None else beta

        sharpe = calculate_sharpe_ratio(portfolio_return, risk.volatility, risk_free_rate)
        if sharpe is None:
            warnings.append("Volatility is zero: Sharpe ratio set to 0")
            sharpe = ZERO

        sortino = calculate_sortino_ratio(portfolio_return, risk.downside_deviation, risk_free_rate)
        if sortino is None:
            warnings.append("No downside deviation: Sortino ratio set to 0")
            sortino = ZERO

        calmar = calculate_calmar_ratio(portfolio_return, risk.max_drawdown)
        if calmar is None:
            warnings.append("No drawdown in period: Calmar ratio set to 0")
            calmar = ZERO

        treynor = calculate_treynor_ratio(portfolio_return, beta, risk_free_rate)
        if treynor is None:
            warnings.append(f"Beta is {beta}: Treynor ratio set to 0")
            treynor = ZERO

        jensen = calculate_jensen_alpha(portfolio_return, beta, risk_free_rate, market_return)

        return RiskAdjustedMetrics(
            sharpe_ratio=sharpe,
            sortino_ratio=sortino,
            calmar_ratio=calmar,
            treynor_ratio=treynor,
            jensen_alpha=jensen,
            beta=beta,
            warnings=tuple(warnings),
        )
