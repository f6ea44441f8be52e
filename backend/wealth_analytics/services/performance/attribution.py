# backend/wealth_analytics/services/performance/attribution.py
"""
Brinson-Hood-Beebower performance attribution.

Decomposes the excess return of a portfolio over its benchmark into three
effects per group (sector, asset class, region, security):

    Allocation_g  = (w_p,g - w_b,g) * r_b,g
    Selection_g   = w_b,g * (r_p,g - r_b,g)
    Interaction_g = (w_p,g - w_b,g) * (r_p,g - r_b,g)

With R_p = Σ w_p,g r_p,g and R_b = Σ w_b,g r_b,g, the three totals add up to
R_p - R_b exactly; the engine checks this and reports any residual.

Currency effect is always 0 (single-currency attribution).
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from wealth_analytics.services.constants import ATTRIBUTION_TOLERANCE, ONE, ZERO
from wealth_analytics.services.performance.types import (
    AttributionDimension,
    AttributionEntry,
    AttributionResult,
    AttributionSegment,
)

logger = logging.getLogger(__name__)


def attribute_segment(segment: AttributionSegment) -> AttributionEntry:
    """Allocation, selection and interaction effects for one group."""
    weight_diff = segment.portfolio_weight - segment.benchmark_weight
    return_diff = segment.portfolio_return - segment.benchmark_return

    return AttributionEntry(
        group_key=segment.group_key,
        allocation_effect=weight_diff * segment.benchmark_return,
        selection_effect=segment.benchmark_weight * return_diff,
        interaction_effect=weight_diff * return_diff,
        portfolio_weight=segment.portfolio_weight,
        benchmark_weight=segment.benchmark_weight,
        portfolio_return=segment.portfolio_return,
        benchmark_return=segment.benchmark_return,
    )


class AttributionEngine:
    """
    Brinson-Hood-Beebower attribution over one grouping dimension.

    Usage:
        engine = AttributionEngine()
        result = engine.attribute(segments, AttributionDimension.SECTOR)
        result.is_reconciled
    """

    def __init__(self, tolerance: Decimal = ATTRIBUTION_TOLERANCE) -> None:
        self._tolerance = tolerance

    def attribute(
            self,
            segments: Sequence[AttributionSegment],
            dimension: AttributionDimension = AttributionDimension.SECTOR,
    ) -> AttributionResult:
        """
        Decompose excess return across the given groups.

        Args:
            segments: One entry per group with portfolio/benchmark weights
                and returns
            dimension: Grouping the segments were built on

        Returns:
            AttributionResult; warnings flag weight sets that do not sum
            to 1 and a failed reconciliation
        """
        warnings: list[str] = []

        if not segments:
            warnings.append(f"No {dimension.value.lower()} segments supplied: attribution is empty")
            return AttributionResult(
                dimension=dimension,
                entries=(),
                portfolio_return=ZERO,
                benchmark_return=ZERO,
                excess_return=ZERO,
                allocation_effect=ZERO,
                selection_effect=ZERO,
                interaction_effect=ZERO,
                warnings=tuple(warnings),
            )

        portfolio_weight_total = sum((s.portfolio_weight for s in segments), ZERO)
        benchmark_weight_total = sum((s.benchmark_weight for s in segments), ZERO)
        if abs(portfolio_weight_total - ONE) > self._tolerance:
            warnings.append(f"Portfolio weights sum to {portfolio_weight_total}, not 1")
        if abs(benchmark_weight_total - ONE) > self._tolerance:
            warnings.append(f"Benchmark weights sum to {benchmark_weight_total}, not 1")

        entries = tuple(attribute_segment(s) for s in segments)

        portfolio_return = sum((s.portfolio_weight * s.portfolio_return for s in segments), ZERO)
        benchmark_return = sum((s.benchmark_weight * s.benchmark_return for s in segments), ZERO)
        excess_return = portfolio_return - benchmark_return

        allocation = sum((e.allocation_effect for e in entries), ZERO)
        selection = sum((e.selection_effect for e in entries), ZERO)
        interaction = sum((e.interaction_effect for e in entries), ZERO)
        currency = ZERO

        residual = excess_return - (allocation + selection + interaction + currency)
        is_reconciled = abs(residual) <= self._tolerance
        if not is_reconciled:
            logger.warning(f"Attribution does not reconcile: residual={residual}")
            warnings.append(
                f"Attribution effects do not reconcile to excess return (residual {residual})"
            )

        logger.debug(
            f"Attribution over {len(entries)} {dimension.value} groups: "
            f"allocation={allocation}, selection={selection}, interaction={interaction}"
        )

        return AttributionResult(
            dimension=dimension,
            entries=entries,
            portfolio_return=portfolio_return,
            benchmark_return=benchmark_return,
            excess_return=excess_return,
            allocation_effect=allocation,
            selection_effect=selection,
            interaction_effect=interaction,
            currency_effect=currency,
            residual=residual,
            is_reconciled=is_reconciled,
            warnings=tuple(warnings),
        )
