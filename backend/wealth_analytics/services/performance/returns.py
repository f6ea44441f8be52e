# backend/wealth_analytics/services/performance/returns.py
"""
Return calculation functions for the performance engine.

This module contains pure functions for the five return measures:
- Simple Return: cash-flow adjusted holding period return
- Logarithmic Return: ln(1 + TWR)
- Time-Weighted Return (TWR): daily sub-period returns, chained
- Money-Weighted Return (MWR): periodic IRR via Newton-Raphson
- Modified Dietz: gain over time-weighted average capital

Plus the net-of-fees return and the daily return series used by the risk
and benchmark calculators.

Formulas:
    Simple = (End - Begin - NetFlows) / Begin

    TWR sub-period (gain over timing-adjusted capital):
        r_t = (V[t+1] - V[t] - CF) / (V[t] + w * CF)
        w = 1 (BEGINNING_OF_DAY), 0 (END_OF_DAY), 0.5 (ACTUAL_TIME)
        TWR = prod(1 + r_t) - 1

    MWR solves: sum CF_j / (1 + r)^j = 0
        with CF = [-Begin, -flow_1, ..., -flow_n, +End]

    Modified Dietz = (End - Begin - NetFlows) / (Begin + sum(flow_i * W_i))
        W_i = (TotalDays - DaysFromStart_i) / TotalDays

Sign convention:
    Cash flows arrive signed from the portfolio's side (+in / -out). The IRR
    vector takes the investor's side, so every intermediate flow is negated
    exactly once: a contribution is capital deployed (negative), a withdrawal
    is capital returned (positive). Modified Dietz and TWR use the flows
    as-is. No other sign flips happen anywhere.

Precision:
    Everything runs in Decimal, including the IRR iterations (integer
    exponents only), so chained products keep the full context precision
    (28 significant digits by default).

Functions return None when a measure is undefined (zero denominator,
missing series). ReturnCalculator turns None into 0 plus a warning.
"""

import logging
from bisect import bisect_left
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import Decimal, InvalidOperation

from wealth_analytics.services.constants import (
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_MIN_RATE,
    IRR_TOLERANCE,
    ONE,
    ZERO,
)
from wealth_analytics.services.performance.types import (
    CalculationMethod,
    CashFlow,
    CashFlowSummary,
    CashFlowTiming,
    FeeBreakdown,
    IRRSolution,
    PeriodWindow,
    ReturnPoint,
    ReturnSet,
    ValuationPoint,
)
from wealth_analytics.utils.date_utils import days_between

logger = logging.getLogger(__name__)

# Upper bound for the IRR iterate (1000% per period)
IRR_MAX_RATE: Decimal = Decimal("10")

# Share of a same-day flow that is invested for that day's sub-period
TIMING_WEIGHTS: dict[CashFlowTiming, Decimal] = {
    CashFlowTiming.BEGINNING_OF_DAY: ONE,
    CashFlowTiming.END_OF_DAY: ZERO,
    CashFlowTiming.ACTUAL_TIME: Decimal("0.5"),
}


# =============================================================================
# SIMPLE & LOGARITHMIC RETURN
# =============================================================================

def calculate_simple_return(
        beginning_value: Decimal,
        ending_value: Decimal,
        net_cash_flows: Decimal = ZERO,
) -> Decimal | None:
    """
    Calculate the cash-flow adjusted simple return.

    Formula: (End - Begin - NetFlows) / Begin

    Returns:
        Return as decimal, or None if beginning_value <= 0
    """
    if beginning_value <= ZERO:
        return None

    return (ending_value - beginning_value - net_cash_flows) / beginning_value


def calculate_logarithmic_return(time_weighted_return: Decimal) -> Decimal | None:
    """
    Continuously compounded equivalent of a TWR: ln(1 + TWR).

    Returns:
        Log return, or None when 1 + TWR <= 0 (total loss or worse)
    """
    growth = ONE + time_weighted_return
    if growth <= ZERO:
        return None

    return growth.ln()


# =============================================================================
# DAILY SERIES
# =============================================================================

def _flow_list(cash_flows: CashFlowSummary | Iterable[CashFlow] | None) -> list[CashFlow]:
    if cash_flows is None:
        return []
    return list(cash_flows.flows if isinstance(cash_flows, CashFlowSummary) else cash_flows)


def allocate_flows(
        valuation_dates: Sequence[date],
        cash_flows: CashFlowSummary | Iterable[CashFlow] | None,
) -> tuple[dict[date, Decimal], list[CashFlow]]:
    """
    Assign each flow to the sub-period that contains it.

    A flow dated in (dates[i-1], dates[i]] belongs to the sub-period closing
    on dates[i], so weekend and holiday flows land on the next valued day.
    A flow on the first date is already part of the opening value.

    Args:
        valuation_dates: Sorted valuation dates
        cash_flows: Signed flows

    Returns:
        Tuple of (net flow per closing date, flows outside the series)
    """
    allocated: dict[date, Decimal] = {}
    unallocated: list[CashFlow] = []

    for cf in _flow_list(cash_flows):
        index = bisect_left(valuation_dates, cf.date)
        if index == 0:
            if not valuation_dates or cf.date < valuation_dates[0]:
                unallocated.append(cf)
            continue
        if index == len(valuation_dates):
            unallocated.append(cf)
            continue
        closing = valuation_dates[index]
        allocated[closing] = allocated.get(closing, ZERO) + cf.amount

    return allocated, unallocated


def calculate_sub_period_return(
        previous_value: Decimal,
        current_value: Decimal,
        cash_flow: Decimal = ZERO,
        timing: CashFlowTiming = CashFlowTiming.END_OF_DAY,
) -> Decimal | None:
    """
    Return for one day, with that day's flow placed per `timing`.

    Formula: (V_end - V_start - CF) / (V_start + w * CF)

    Under END_OF_DAY (w = 0) this is the daily linking method
    (V_end - CF) / V_start - 1.

    Returns:
        Sub-period return, or None if the adjusted starting capital <= 0
    """
    adjusted_start = previous_value + TIMING_WEIGHTS[timing] * cash_flow
    if adjusted_start <= ZERO:
        return None

    return (current_value - previous_value - cash_flow) / adjusted_start


def calculate_daily_returns(
        daily_series: Sequence[ValuationPoint],
        cash_flows: CashFlowSummary | Iterable[CashFlow] | None = None,
        timing: CashFlowTiming = CashFlowTiming.END_OF_DAY,
) -> list[ReturnPoint]:
    """
    Convert a valuation series into daily returns.

    Each return is keyed by the later date of its day pair. Days whose
    starting capital is not positive are skipped.

    Args:
        daily_series: Valuation points (any order)
        cash_flows: Signed flows; each one affects the first valuation
            day on or after its date (see allocate_flows)
        timing: Same-day flow convention

    Returns:
        List of ReturnPoint (at most one fewer than the input)
    """
    if len(daily_series) < 2:
        return []

    ordered = sorted(daily_series, key=lambda p: p.date)
    flows, unallocated = allocate_flows([p.date for p in ordered], cash_flows)
    if unallocated:
        logger.debug(f"{len(unallocated)} cash flows fall outside the valuation series")

    returns = []
    for previous, current in zip(ordered, ordered[1:]):
        r = calculate_sub_period_return(
            previous.market_value,
            current.market_value,
            flows.get(current.date, ZERO),
            timing,
        )
        if r is None:
            logger.debug(f"Skipping sub-period ending {current.date}: non-positive starting capital")
            continue
        returns.append(ReturnPoint(date=current.date, value=r))

    return returns


# =============================================================================
# TIME-WEIGHTED RETURN (TWR)
# =============================================================================

def chain_returns(sub_period_returns: Iterable[Decimal]) -> Decimal:
    """
    Geometrically link sub-period returns.

    Formula: prod(1 + r_i) - 1
    """
    cumulative = ONE

    for r in sub_period_returns:
        cumulative *= (ONE + r)

    return cumulative - ONE


def calculate_twr(
        daily_series: Sequence[ValuationPoint],
        cash_flows: CashFlowSummary | Iterable[CashFlow] | None = None,
        timing: CashFlowTiming = CashFlowTiming.END_OF_DAY,
) -> Decimal | None:
    """
    Calculate the Time-Weighted Return over a daily valuation series.

    One sub-period per consecutive day pair, chained geometrically. Flows
    dated after the earlier day and up to the later day of each pair are
    removed from that sub-period's gain and, depending on `timing`, added
    to the starting capital.

    Example:
        Day 1: 1000, Day 2: 1100, Day 3: 1650 with a 500 deposit on day 3
        END_OF_DAY: r1 = 10%, r2 = (1650 - 1100 - 500) / 1100 = 4.545%
        TWR = 1.1 * 1.04545 - 1 = 15%

    Returns:
        TWR as decimal, or None if fewer than 2 valuation points
    """
    if len(daily_series) < 2:
        return None

    daily_returns = calculate_daily_returns(daily_series, cash_flows, timing)

    return chain_returns(r.value for r in daily_returns)


# =============================================================================
# MONEY-WEIGHTED RETURN (IRR)
# =============================================================================

def build_irr_cash_flows(
        beginning_value: Decimal,
        ending_value: Decimal,
        flows: Iterable[CashFlow],
) -> list[Decimal]:
    """
    Build the investor-side flow vector for the IRR solver.

    Layout: [-Begin, -flow_1, ..., -flow_n, +End], flows in date order.
    """
    vector = [-beginning_value]
    vector.extend(-cf.amount for cf in sorted(flows, key=lambda cf: cf.date))
    vector.append(ending_value)
    return vector


def solve_irr(
        cash_flows: Sequence[Decimal],
        max_iterations: int = IRR_MAX_ITERATIONS,
        tolerance: Decimal = IRR_TOLERANCE,
        initial_guess: Decimal = IRR_INITIAL_GUESS,
) -> IRRSolution | None:
    """
    Solve for the periodic rate r with NPV(r) = 0 using Newton-Raphson.

    Formula:
        NPV(r)  = sum CF_j / (1 + r)^j
        NPV'(r) = -sum j * CF_j / (1 + r)^(j + 1)
        r_next  = r - NPV(r) / NPV'(r)

    Stops when |NPV| < tolerance, when |NPV'| < tolerance (derivative
    underflow), or after max_iterations. The iterate is kept inside
    [-0.99, 10] so (1 + r) stays positive.

    Args:
        cash_flows: Equally spaced flows, first one at period 0
        max_iterations: Iteration budget
        tolerance: Convergence threshold for |NPV|
        initial_guess: Starting rate

    Returns:
        IRRSolution (converged flag set accordingly), or None when the
        flows do not contain both a negative and a positive amount
    """
    if len(cash_flows) < 2:
        return None

    has_positive = any(cf > ZERO for cf in cash_flows)
    has_negative = any(cf < ZERO for cf in cash_flows)
    if not (has_positive and has_negative):
        logger.debug("IRR requires both positive and negative cash flows")
        return None

    rate = initial_guess
    iterations = 0

    for iteration in range(1, max_iterations + 1):
        iterations = iteration
        base = ONE + rate
        npv = ZERO
        npv_derivative = ZERO
        discount = ONE  # (1 + r)^j

        for j, amount in enumerate(cash_flows):
            npv += amount / discount
            npv_derivative -= j * amount / (discount * base)
            discount *= base

        if abs(npv) < tolerance:
            return IRRSolution(rate=rate, iterations=iteration, converged=True)

        if abs(npv_derivative) < tolerance:
            logger.debug(f"IRR derivative underflow at iteration {iteration}, rate={rate}")
            break

        rate = rate - npv / npv_derivative

        if rate < IRR_MIN_RATE:
            rate = IRR_MIN_RATE
        elif rate > IRR_MAX_RATE:
            rate = IRR_MAX_RATE

    logger.warning(f"IRR did not converge after {iterations} iterations (last rate {rate})")
    return IRRSolution(rate=rate, iterations=iterations, converged=False)


def calculate_money_weighted_return(
        beginning_value: Decimal,
        ending_value: Decimal,
        flows: Iterable[CashFlow],
        max_iterations: int = IRR_MAX_ITERATIONS,
        tolerance: Decimal = IRR_TOLERANCE,
        initial_guess: Decimal = IRR_INITIAL_GUESS,
) -> IRRSolution | None:
    """
    Money-weighted return: the periodic IRR of the window's flows.

    With no intermediate flows this reduces to End / Begin - 1, i.e. the
    simple return.
    """
    vector = build_irr_cash_flows(beginning_value, ending_value, flows)
    return solve_irr(vector, max_iterations, tolerance, initial_guess)


# =============================================================================
# MODIFIED DIETZ
# =============================================================================

def calculate_modified_dietz(
        beginning_value: Decimal,
        ending_value: Decimal,
        cash_flows: CashFlowSummary,
        window: PeriodWindow,
) -> Decimal | None:
    """
    Calculate the Modified Dietz return.

    Each flow is weighted by the share of the window remaining after it:
        weight = (TotalDays - DaysFromStart) / TotalDays

    Example:
        Begin 100,000, End 110,000, withdrawal of 5,000 on day 15 of 30
        weight = 0.5, average capital = 100,000 - 2,500 = 97,500
        return = (110,000 - 100,000 + 5,000) / 97,500 = 15.38%

    Returns:
        Return as decimal, or None if average capital <= 0
    """
    total_days = Decimal(window.total_days)
    if total_days <= ZERO:
        return None

    weighted_flows = ZERO
    for cf in cash_flows.flows:
        days_from_start = Decimal(days_between(window.start_date, cf.date))
        weight = (total_days - days_from_start) / total_days
        weighted_flows += cf.amount * weight

    average_capital = beginning_value + weighted_flows
    if average_capital <= ZERO:
        return None

    return (ending_value - beginning_value - cash_flows.net_cash_flows) / average_capital


# =============================================================================
# NET RETURN
# =============================================================================

def calculate_net_return(
        gross_return: Decimal,
        fees: FeeBreakdown | Decimal,
        beginning_value: Decimal,
) -> Decimal:
    """
    Deduct fees from a gross return.

    Formula: Gross - TotalFees / Begin (no deduction when Begin <= 0)
    """
    total_fees = fees.total_fees if isinstance(fees, FeeBreakdown) else fees
    if beginning_value <= ZERO:
        return gross_return

    return gross_return - total_fees / beginning_value


# =============================================================================
# METHOD DISPATCH
# =============================================================================

GROSS_RETURN_SELECTORS: dict[CalculationMethod, Callable[[ReturnSet], Decimal]] = {
    CalculationMethod.TIME_WEIGHTED: lambda returns: returns.time_weighted,
    CalculationMethod.MONEY_WEIGHTED: lambda returns: returns.money_weighted,
    CalculationMethod.MODIFIED_DIETZ: lambda returns: returns.modified_dietz,
}


def select_gross_return(method: CalculationMethod, returns: ReturnSet) -> Decimal:
    """Pick the headline return for the requested calculation method."""
    return GROSS_RETURN_SELECTORS[method](returns)


# =============================================================================
# COMBINED RETURN CALCULATOR
# =============================================================================

class ReturnCalculator:
    """
    Calculator for all return measures of one window.

    Holds only the IRR solver limits; every call is independent.
    """

    def __init__(
            self,
            irr_max_iterations: int = IRR_MAX_ITERATIONS,
            irr_tolerance: Decimal = IRR_TOLERANCE,
            irr_initial_guess: Decimal = IRR_INITIAL_GUESS,
    ) -> None:
        self._irr_max_iterations = irr_max_iterations
        self._irr_tolerance = irr_tolerance
        self._irr_initial_guess = irr_initial_guess

    def calculate_all(
            self,
            beginning_value: Decimal,
            ending_value: Decimal,
            cash_flows: CashFlowSummary,
            window: PeriodWindow,
            daily_series: Sequence[ValuationPoint] = (),
            timing: CashFlowTiming = CashFlowTiming.END_OF_DAY,
    ) -> ReturnSet:
        """
        Calculate every return measure.

        Undefined measures come back as 0 with an explanatory warning;
        nothing here raises for degenerate inputs.

        Args:
            beginning_value: Market value at window start
            ending_value: Market value at window end
            cash_flows: Classified flows of the window
            window: Measurement window (for Modified Dietz weights)
            daily_series: Daily valuations (may be empty)
            timing: TWR same-day flow convention

        Returns:
            ReturnSet with all five returns
        """
        warnings: list[str] = []

        simple = calculate_simple_return(beginning_value, ending_value, cash_flows.net_cash_flows)
        if simple is None:
            warnings.append("Beginning value is zero or negative: simple return set to 0")
            simple = ZERO

        twr = calculate_twr(daily_series, cash_flows, timing)
        if twr is None:
            warnings.append(
                "No daily valuation series: time-weighted return falls back to simple return"
            )
            twr = simple
        else:
            series_dates = sorted(p.date for p in daily_series)
            _, unallocated = allocate_flows(series_dates, cash_flows)
            if unallocated:
                warnings.append(
                    f"{len(unallocated)} cash flows fall outside the valuation series "
                    f"({series_dates[0]} to {series_dates[-1]}): excluded from time-weighted return"
                )

        try:
            logarithmic = calculate_logarithmic_return(twr)
        except InvalidOperation:
            logarithmic = None
        if logarithmic is None:
            warnings.append("Time-weighted return is -100% or worse: logarithmic return set to 0")
            logarithmic = ZERO

        solution = calculate_money_weighted_return(
            beginning_value,
            ending_value,
            cash_flows.flows,
            self._irr_max_iterations,
            self._irr_tolerance,
            self._irr_initial_guess,
        )
        if solution is None:
            warnings.append(
                "Money-weighted return needs capital both deployed and returned: set to 0"
            )
            money_weighted = ZERO
        else:
            money_weighted = solution.rate
            if not solution.converged:
                warnings.append(
                    f"IRR did not converge after {solution.iterations} iterations: "
                    f"money-weighted return {solution.rate} may be unreliable"
                )

        modified_dietz = calculate_modified_dietz(beginning_value, ending_value, cash_flows, window)
        if modified_dietz is None:
            warnings.append("Average capital is zero or negative: Modified Dietz return set to 0")
            modified_dietz = ZERO

        return ReturnSet(
            simple=simple,
            logarithmic=logarithmic,
            time_weighted=twr,
            money_weighted=money_weighted,
            modified_dietz=modified_dietz,
            warnings=tuple(warnings),
        )
