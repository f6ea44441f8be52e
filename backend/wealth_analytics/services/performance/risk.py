# backend/wealth_analytics/services/performance/risk.py
"""
Risk calculation functions for the performance engine.

This module contains pure functions for calculating risk metrics from a
series of daily returns:
- Standard deviation (daily) and volatility (annualized)
- Downside deviation: dispersion of negative returns only
- Max drawdown: worst peak-to-trough decline of the compounded series,
  plus the longest run spent below a prior peak

All functions operate on Decimal values. Square roots use Decimal.sqrt(),
so no float conversion happens anywhere in this module.

Formulas:
    Variance (population) = Σ(r - μ)² / n
    Volatility = σ * √TradingDays          (default 252)
    Downside deviation = sqrt(Σ r² / k) * √TradingDays, over the k returns < 0
    Drawdown_t = (Peak - Cumulative_t) / Peak, reported as a negative number
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from wealth_analytics.services.constants import ONE, TRADING_DAYS_PER_YEAR, ZERO
from wealth_analytics.services.performance.types import ReturnPoint, RiskMetrics

logger = logging.getLogger(__name__)


def _values(daily_returns: Sequence[Decimal | ReturnPoint]) -> list[Decimal]:
    """Accept either bare Decimals or ReturnPoints."""
    return [r.value if isinstance(r, ReturnPoint) else r for r in daily_returns]


# =============================================================================
# DECIMAL STATISTICS
# =============================================================================

def _decimal_mean(values: Sequence[Decimal]) -> Decimal | None:
    """
    Arithmetic mean in pure Decimal.

    Returns:
        Mean, or None for an empty sequence
    """
    if not values:
        return None

    return sum(values, ZERO) / Decimal(len(values))


def _decimal_variance(values: Sequence[Decimal]) -> Decimal | None:
    """
    Population variance: Σ(x - μ)² / n.

    Returns:
        Variance, or None for an empty sequence
    """
    mean_val = _decimal_mean(values)
    if mean_val is None:
        return None

    squared_diffs = sum(((x - mean_val) ** 2 for x in values), ZERO)
    return squared_diffs / Decimal(len(values))


def _decimal_stdev(values: Sequence[Decimal]) -> Decimal | None:
    """Population standard deviation, or None for an empty sequence."""
    variance = _decimal_variance(values)
    if variance is None:
        return None

    return variance.sqrt()


def annualization_factor(trading_days: int = TRADING_DAYS_PER_YEAR) -> Decimal:
    """√trading_days as Decimal."""
    return Decimal(trading_days).sqrt()


# =============================================================================
# VOLATILITY
# =============================================================================

def calculate_standard_deviation(daily_returns: Sequence[Decimal | ReturnPoint]) -> Decimal:
    """
    Daily (un-annualized) standard deviation of returns.

    Returns:
        Standard deviation, 0 for an empty series
    """
    stdev = _decimal_stdev(_values(daily_returns))
    return stdev if stdev is not None else ZERO


def calculate_volatility(
        daily_returns: Sequence[Decimal | ReturnPoint],
        trading_days: int = TRADING_DAYS_PER_YEAR,
) -> Decimal:
    """
    Annualized volatility.

    Formula: σ_daily * √trading_days

    Args:
        daily_returns: Daily returns (fractions)
        trading_days: Annualization basis (default 252)

    Returns:
        Annualized volatility (e.g. 0.20 = 20%), 0 for an empty series
    """
    return calculate_standard_deviation(daily_returns) * annualization_factor(trading_days)


def calculate_downside_deviation(
        daily_returns: Sequence[Decimal | ReturnPoint],
        trading_days: int = TRADING_DAYS_PER_YEAR,
) -> Decimal:
    """
    Annualized downside deviation (semi-deviation below zero).

    Only negative returns contribute, measured against a target of 0.

    Formula: sqrt(Σ r² / k) * √trading_days for the k returns r < 0

    Returns:
        Downside deviation, 0 when there are no negative returns
    """
    negative_returns = [r for r in _values(daily_returns) if r < ZERO]
    if not negative_returns:
        return ZERO

    mean_square = sum((r ** 2 for r in negative_returns), ZERO) / Decimal(len(negative_returns))
    return mean_square.sqrt() * annualization_factor(trading_days)


# =============================================================================
# DRAWDOWN
# =============================================================================

def calculate_max_drawdown(
        daily_returns: Sequence[Decimal | ReturnPoint],
) -> tuple[Decimal, int]:
    """
    Maximum drawdown of the compounded return series and its duration.

    The cumulative value starts at 1.0 and is compounded with each daily
    return. A new high resets the peak and the run counter; every other day
    extends the current run and may deepen the drawdown.

    Example:
        Returns: +10%, -20%, +5%
        Cumulative: 1.10, 0.88, 0.924 (peak 1.10)
        Max drawdown = -(1.10 - 0.88) / 1.10 = -20%, duration 2 days

    Returns:
        Tuple of:
        - max_drawdown: Worst drawdown as a non-positive decimal
        - duration: Longest run (in trading days) below a prior peak
    """
    peak = ONE
    cumulative = ONE
    max_drawdown = ZERO
    current_duration = 0
    max_duration = 0

    for r in _values(daily_returns):
        cumulative *= (ONE + r)

        if cumulative > peak:
            peak = cumulative
            current_duration = 0
            continue

        current_duration += 1
        if peak > ZERO:
            drawdown = (peak - cumulative) / peak
            if drawdown > max_drawdown:
                max_drawdown = drawdown
        if current_duration > max_duration:
            max_duration = current_duration

    return -max_drawdown, max_duration


# =============================================================================
# COMBINED RISK CALCULATOR
# =============================================================================

class RiskMetricsCalculator:
    """
    Calculator for all risk metrics of one window.

    Usage:
        metrics = RiskMetricsCalculator.calculate_all(daily_returns)
        metrics.volatility, metrics.max_drawdown
    """

    @staticmethod
    def calculate_all(
            daily_returns: Sequence[Decimal | ReturnPoint],
            trading_days: int = TRADING_DAYS_PER_YEAR,
    ) -> RiskMetrics:
        """
        Calculate all risk metrics.

        An empty series yields an all-zero RiskMetrics with a warning;
        it never raises.

        Args:
            daily_returns: Daily returns of the window
            trading_days: Annualization basis

        Returns:
            RiskMetrics
        """
        values = _values(daily_returns)

        if not values:
            return RiskMetrics(
                warnings=("No daily returns available: risk metrics set to 0",),
            )

        standard_deviation = calculate_standard_deviation(values)
        volatility = standard_deviation * annualization_factor(trading_days)
        downside_deviation = calculate_downside_deviation(values, trading_days)
        max_drawdown, duration = calculate_max_drawdown(values)

        logger.debug(
            f"Risk metrics over {len(values)} returns: vol={volatility}, "
            f"max_dd={max_drawdown} ({duration} days)"
        )

        return RiskMetrics(
            volatility=volatility,
            standard_deviation=standard_deviation,
            downside_deviation=downside_deviation,
            max_drawdown=max_drawdown,
            max_drawdown_duration_days=duration,
            observations=len(values),
        )
