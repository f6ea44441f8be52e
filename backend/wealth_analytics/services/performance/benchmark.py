# backend/wealth_analytics/services/performance/benchmark.py
"""
Benchmark comparison functions for the performance engine.

This module compares a portfolio's daily returns against a benchmark's
daily returns over the same window:
- Excess return: portfolio return minus benchmark return
- Tracking Error: annualized std dev of daily return differences
- Information Ratio: excess return per unit of tracking error
- Correlation / Beta / R²: co-movement with the benchmark
- Alpha: return above the CAPM expectation
- Capture Ratios: behaviour on benchmark up days and down days
- Hit Rate: share of days the portfolio kept up with the benchmark

The two series are aligned by date first; only days present in both count.

Formulas:
    Beta = Cov(R_p, R_b) / Var(R_b)

    Alpha = R_p - [R_f + β(R_b - R_f)]

    Correlation = Cov(R_p, R_b) / (σ_p * σ_b)

    Tracking Error = std(R_p - R_b) * √TradingDays

    Information Ratio = (R_p - R_b) / Tracking Error

    Up Capture = mean(R_p | R_b > 0) / mean(R_b | R_b > 0)

Statistics are population moments in Decimal. With fewer than two
overlapping observations every series-derived field is 0.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal

from wealth_analytics.services.constants import (
    DEFAULT_RISK_FREE_RATE,
    MIN_BENCHMARK_OBSERVATIONS,
    TRADING_DAYS_PER_YEAR,
    ZERO,
)
from wealth_analytics.services.performance.risk import calculate_volatility
from wealth_analytics.services.performance.types import BenchmarkComparison, ReturnPoint

logger = logging.getLogger(__name__)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def align_returns(
        portfolio_returns: Sequence[ReturnPoint],
        benchmark_returns: Sequence[ReturnPoint],
) -> tuple[list[Decimal], list[Decimal]]:
    """
    Pair portfolio and benchmark returns by date.

    Returns:
        Two equally long lists in date order, one entry per shared date
    """
    benchmark_by_date = {r.date: r.value for r in benchmark_returns}
    shared = sorted(
        (r for r in portfolio_returns if r.date in benchmark_by_date),
        key=lambda r: r.date,
    )
    return (
        [r.value for r in shared],
        [benchmark_by_date[r.date] for r in shared],
    )


def _mean(x: Sequence[Decimal]) -> Decimal:
    return sum(x, ZERO) / Decimal(len(x))


def _covariance(x: Sequence[Decimal], y: Sequence[Decimal]) -> Decimal:
    """Population covariance between two series."""
    if len(x) != len(y) or len(x) < MIN_BENCHMARK_OBSERVATIONS:
        return ZERO

    mean_x = _mean(x)
    mean_y = _mean(y)

    cov = sum(((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y)), ZERO)
    return cov / Decimal(len(x))


def _variance(x: Sequence[Decimal]) -> Decimal:
    """Population variance of a series."""
    return _covariance(x, x)


def _correlation(x: Sequence[Decimal], y: Sequence[Decimal]) -> Decimal:
    """Pearson correlation coefficient (0 when either series is flat)."""
    var_x = _variance(x)
    var_y = _variance(y)

    if var_x <= ZERO or var_y <= ZERO:
        return ZERO

    return _covariance(x, y) / (var_x.sqrt() * var_y.sqrt())


# =============================================================================
# SERIES METRICS
# =============================================================================

def calculate_beta(
        portfolio_returns: Sequence[Decimal],
        benchmark_returns: Sequence[Decimal],
) -> Decimal:
    """
    Calculate Beta (OLS slope of portfolio on benchmark).

    Interpretation:
        β > 1: More volatile than the benchmark
        β < 1: Less volatile than the benchmark
        β < 0: Moves opposite to the benchmark (rare)

    Returns:
        Beta, 0 if the benchmark series is flat or too short
    """
    var_benchmark = _variance(benchmark_returns)
    if var_benchmark <= ZERO:
        return ZERO

    return _covariance(portfolio_returns, benchmark_returns) / var_benchmark


def calculate_alpha(
        portfolio_return: Decimal,
        benchmark_return: Decimal,
        beta: Decimal,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
) -> Decimal:
    """
    Calculate Alpha against the benchmark.

    Formula: α = R_p - [R_f + β(R_b - R_f)]

    Example:
        R_p = 12%, R_b = 10%, R_f = 2%, β = 1.1
        α = 0.12 - (0.02 + 1.1 * 0.08) = 1.2%
    """
    expected_return = risk_free_rate + beta * (benchmark_return - risk_free_rate)
    return portfolio_return - expected_return


def calculate_tracking_error(
        portfolio_returns: Sequence[Decimal],
        benchmark_returns: Sequence[Decimal],
        trading_days: int = TRADING_DAYS_PER_YEAR,
) -> Decimal:
    """
    Annualized standard deviation of daily return differences.

    Returns:
        Tracking error, 0 with fewer than two paired observations
    """
    if len(portfolio_returns) != len(benchmark_returns):
        logger.warning("Portfolio and benchmark return series must be same length")
        return ZERO

    if len(portfolio_returns) < MIN_BENCHMARK_OBSERVATIONS:
        return ZERO

    differences = [p - b for p, b in zip(portfolio_returns, benchmark_returns)]
    return calculate_volatility(differences, trading_days)


def calculate_information_ratio(excess_return: Decimal, tracking_error: Decimal) -> Decimal | None:
    """Information Ratio, or None if tracking_error <= 0."""
    if tracking_error <= ZERO:
        return None

    return excess_return / tracking_error


def calculate_capture_ratios(
        portfolio_returns: Sequence[Decimal],
        benchmark_returns: Sequence[Decimal],
) -> tuple[Decimal, Decimal]:
    """
    Calculate Up Capture and Down Capture ratios.

    Ideal: high up capture, low down capture.

    Formula:
        Up Capture = mean(R_p on days R_b > 0) / mean(R_b on days R_b > 0)
        Down Capture = mean(R_p on days R_b < 0) / mean(R_b on days R_b < 0)

    Returns:
        Tuple of (up_capture, down_capture); a side with no days is 0
    """
    up_portfolio = []
    up_benchmark = []
    down_portfolio = []
    down_benchmark = []

    for p, b in zip(portfolio_returns, benchmark_returns):
        if b > ZERO:
            up_portfolio.append(p)
            up_benchmark.append(b)
        elif b < ZERO:
            down_portfolio.append(p)
            down_benchmark.append(b)

    up_capture = _mean(up_portfolio) / _mean(up_benchmark) if up_benchmark else ZERO
    down_capture = _mean(down_portfolio) / _mean(down_benchmark) if down_benchmark else ZERO

    return up_capture, down_capture


def calculate_hit_rate(
        portfolio_returns: Sequence[Decimal],
        benchmark_returns: Sequence[Decimal],
) -> Decimal:
    """Fraction of paired days where the portfolio return >= the benchmark return."""
    if not portfolio_returns:
        return ZERO

    hits = sum(1 for p, b in zip(portfolio_returns, benchmark_returns) if p >= b)
    return Decimal(hits) / Decimal(len(portfolio_returns))


def _sharpe(total_return: Decimal, volatility: Decimal, risk_free_rate: Decimal) -> Decimal:
    if volatility <= ZERO:
        return ZERO
    return (total_return - risk_free_rate) / volatility


# =============================================================================
# COMBINED BENCHMARK COMPARATOR
# =============================================================================

class BenchmarkComparator:
    """
    Calculator for benchmark comparison metrics.

    The benchmark's data is fetched by the caller (see
    BenchmarkProvider); this class only does the arithmetic.
    """

    @staticmethod
    def compare(
            benchmark_id: str,
            portfolio_return: Decimal,
            benchmark_return: Decimal,
            portfolio_returns: Sequence[ReturnPoint],
            benchmark_returns: Sequence[ReturnPoint],
            portfolio_volatility: Decimal | None = None,
            benchmark_volatility: Decimal | None = None,
            risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
            trading_days: int = TRADING_DAYS_PER_YEAR,
    ) -> BenchmarkComparison:
        """
        Calculate all benchmark comparison metrics.

        Args:
            benchmark_id: Benchmark identifier
            portfolio_return: Portfolio return for the window
            benchmark_return: Benchmark return for the window
            portfolio_returns: Portfolio daily returns
            benchmark_returns: Benchmark daily returns
            portfolio_volatility: Annualized portfolio volatility
                (computed from the daily series when None)
            benchmark_volatility: Annualized benchmark volatility
                (computed from the daily series when None)
            risk_free_rate: Risk-free rate for alpha and Sharpe
            trading_days: Annualization basis

        Returns:
            BenchmarkComparison
        """
        warnings: list[str] = []
        excess_return = portfolio_return - benchmark_return

        if portfolio_volatility is None:
            portfolio_volatility = calculate_volatility(portfolio_returns, trading_days)
        if benchmark_volatility is None:
            benchmark_volatility = calculate_volatility(benchmark_returns, trading_days)

        portfolio_series, benchmark_series = align_returns(portfolio_returns, benchmark_returns)
        observations = len(portfolio_series)

        base = BenchmarkComparison(
            benchmark_id=benchmark_id,
            portfolio_return=portfolio_return,
            benchmark_return=benchmark_return,
            excess_return=excess_return,
            portfolio_volatility=portfolio_volatility,
            benchmark_volatility=benchmark_volatility,
            portfolio_sharpe_ratio=_sharpe(portfolio_return, portfolio_volatility, risk_free_rate),
            benchmark_sharpe_ratio=_sharpe(benchmark_return, benchmark_volatility, risk_free_rate),
            observations=observations,
        )

        if observations < MIN_BENCHMARK_OBSERVATIONS:
            logger.warning(
                f"Benchmark {benchmark_id}: only {observations} overlapping observations"
            )
            warnings.append(
                f"Insufficient overlapping data with benchmark {benchmark_id}: "
                f"need at least {MIN_BENCHMARK_OBSERVATIONS} observations, got {observations}"
            )
            return replace(base, warnings=tuple(warnings))

        if _variance(benchmark_series) <= ZERO:
            warnings.append(
                f"Benchmark {benchmark_id} returns have zero variance: "
                "beta, correlation and R² set to 0"
            )
        elif _variance(portfolio_series) <= ZERO:
            warnings.append("Portfolio returns have zero variance: correlation and R² set to 0")

        beta = calculate_beta(portfolio_series, benchmark_series)
        correlation = _correlation(portfolio_series, benchmark_series)
        tracking_error = calculate_tracking_error(portfolio_series, benchmark_series, trading_days)

        information_ratio = calculate_information_ratio(excess_return, tracking_error)
        if information_ratio is None:
            warnings.append("Tracking error is zero: information ratio set to 0")
            information_ratio = ZERO

        up_capture, down_capture = calculate_capture_ratios(portfolio_series, benchmark_series)
        if not any(b > ZERO for b in benchmark_series):
            warnings.append(f"Benchmark {benchmark_id} has no up days: up capture ratio set to 0")
        if not any(b < ZERO for b in benchmark_series):
            warnings.append(f"Benchmark {benchmark_id} has no down days: down capture ratio set to 0")

        return replace(
            base,
            tracking_error=tracking_error,
            information_ratio=information_ratio,
            correlation=correlation,
            beta=beta,
            alpha=calculate_alpha(portfolio_return, benchmark_return, beta, risk_free_rate),
            r_squared=correlation ** 2,
            up_capture_ratio=up_capture,
            down_capture_ratio=down_capture,
            hit_rate=calculate_hit_rate(portfolio_series, benchmark_series),
            warnings=tuple(warnings),
        )
