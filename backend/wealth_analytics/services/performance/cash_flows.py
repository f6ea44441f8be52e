# backend/wealth_analytics/services/performance/cash_flows.py
"""
Cash flow classification for the performance engine.

Turns raw transaction records into:
- Signed external cash flows (contributions positive, withdrawals negative)
- A fee breakdown (management / performance / other)
- A count of rebalancing transactions

Sign convention (used consistently by every return method):
    CashFlow.amount is signed from the PORTFOLIO's point of view.
    +amount = money entering the portfolio (deposit, dividend, interest)
    -amount = money leaving the portfolio (withdrawal)

Only DEPOSIT, WITHDRAWAL, DIVIDEND and INTEREST are external cash flows.
Trades (BUY/SELL) move value inside the portfolio; TAX is ignored; FEE is
routed to the fee aggregator instead.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from wealth_analytics.services.constants import ZERO
from wealth_analytics.services.performance.types import (
    CashFlow,
    CashFlowSummary,
    ClassifiedTransactions,
    FeeBreakdown,
    FeeCategory,
    PeriodWindow,
    TransactionRecord,
    TransactionType,
)

logger = logging.getLogger(__name__)

CASH_FLOW_TYPES: frozenset[TransactionType] = frozenset({
    TransactionType.DEPOSIT,
    TransactionType.WITHDRAWAL,
    TransactionType.DIVIDEND,
    TransactionType.INTEREST,
})

# Metadata key a caller can set to bypass description matching
FEE_CATEGORY_TAG = "fee_category"


def signed_amount(record: TransactionRecord) -> Decimal:
    """
    Sign a cash-flow transaction amount.

    Withdrawals always come out negative, whatever sign they were stored
    with. Every other type keeps its stored sign.
    """
    if record.transaction_type == TransactionType.WITHDRAWAL:
        return -abs(record.amount)
    return record.amount


def summarize_cash_flows(flows: Iterable[CashFlow]) -> CashFlowSummary:
    """
    Aggregate signed flows.

    Returns:
        CashFlowSummary with flows sorted by date and
        total (sum of |amount|), net (signed sum), contributions, withdrawals
    """
    ordered = tuple(sorted(flows, key=lambda cf: cf.date))

    return CashFlowSummary(
        flows=ordered,
        total_cash_flows=sum((abs(cf.amount) for cf in ordered), ZERO),
        net_cash_flows=sum((cf.amount for cf in ordered), ZERO),
        contributions=sum((cf.amount for cf in ordered if cf.amount > 0), ZERO),
        withdrawals=sum((abs(cf.amount) for cf in ordered if cf.amount < 0), ZERO),
    )


def classify_fee(record: TransactionRecord) -> FeeCategory:
    """
    Decide which fee bucket a FEE transaction belongs to.

    A "fee_category" metadata tag wins when it names a known category.
    Otherwise the description is searched (case-insensitive) for
    "management", then "performance"; anything else is "other".
    """
    tag = record.metadata.get(FEE_CATEGORY_TAG) if record.metadata else None
    if tag:
        try:
            return FeeCategory(str(tag).lower())
        except ValueError:
            logger.debug(f"Ignoring unknown fee_category tag '{tag}'")

    description = (record.description or "").lower()
    if FeeCategory.MANAGEMENT.value in description:
        return FeeCategory.MANAGEMENT
    if FeeCategory.PERFORMANCE.value in description:
        return FeeCategory.PERFORMANCE
    return FeeCategory.OTHER


def aggregate_fees(records: Iterable[TransactionRecord]) -> FeeBreakdown:
    """
    Sum FEE transactions per category.

    Fees are reported as positive amounts regardless of stored sign.
    Non-FEE records are ignored.
    """
    totals = {category: ZERO for category in FeeCategory}

    for record in records:
        if record.transaction_type != TransactionType.FEE:
            continue
        totals[classify_fee(record)] += abs(record.amount)

    return FeeBreakdown(
        management_fees=totals[FeeCategory.MANAGEMENT],
        performance_fees=totals[FeeCategory.PERFORMANCE],
        other_fees=totals[FeeCategory.OTHER],
    )


class CashFlowClassifier:
    """
    Classifier for one measurement window.

    Usage:
        classified = CashFlowClassifier.classify(records, window)
        classified.cash_flows.net_cash_flows
        classified.fees.total_fees
    """

    @staticmethod
    def classify(
            records: Iterable[TransactionRecord] | None,
            window: PeriodWindow,
    ) -> ClassifiedTransactions:
        """
        Classify all transactions that fall inside the window.

        Args:
            records: Raw transactions (None is treated as empty)
            window: Half-open window; records outside it are dropped

        Returns:
            ClassifiedTransactions with cash flows, fees and rebalance count
        """
        in_window = [r for r in (records or ()) if window.contains(r.date)]

        flows = [
            CashFlow(date=r.date, amount=signed_amount(r), kind=r.transaction_type)
            for r in in_window
            if r.transaction_type in CASH_FLOW_TYPES
        ]
        rebalance_count = sum(
            1 for r in in_window if r.transaction_type == TransactionType.REBALANCE
        )

        summary = summarize_cash_flows(flows)
        fees = aggregate_fees(in_window)

        logger.debug(
            f"Classified {len(in_window)} transactions: {len(flows)} cash flows, "
            f"net={summary.net_cash_flows}, fees={fees.total_fees}"
        )

        return ClassifiedTransactions(
            cash_flows=summary,
            fees=fees,
            rebalance_count=rebalance_count,
        )
