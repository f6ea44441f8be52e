# backend/wealth_analytics/services/performance/batch.py
"""
Concurrent batch runner for performance calculations.

Each calculation is self-contained and shares no mutable state, so a batch
is simply fanned out over a thread pool. The caller's context variables
(correlation id) are copied into every worker so log lines from a batch
stay correlated.

A batch-level deadline bounds the total wall time. Calculations still
running at the deadline are reported as timed out and their results are
discarded; the engine has no internal cancellation.

Usage:
    from wealth_analytics.services.performance import calculate_batch

    items = calculate_batch(service, requests, tenant_id="acme", timeout=30)
    for item in items:
        if item.ok:
            print(item.result.performance_period.gross_return)
"""

import contextvars
import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

from wealth_analytics.config import settings
from wealth_analytics.services.constants import DEFAULT_BATCH_MAX_WORKERS
from wealth_analytics.services.exceptions import ServiceError
from wealth_analytics.services.performance.service import PerformanceService
from wealth_analytics.services.performance.types import (
    PerformanceCalculationResult,
    PerformanceRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItemResult:
    """
    Outcome of one request in a batch.

    Exactly one of result / error is set.

    Attributes:
        request: The request this item belongs to
        result: Calculation result on success
        error: Exception raised by the calculation, or TimeoutError
        timed_out: True when the batch deadline passed first
    """
    request: PerformanceRequest
    result: PerformanceCalculationResult | None = None
    error: BaseException | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


def calculate_batch(
        service: PerformanceService,
        requests: Sequence[PerformanceRequest],
        tenant_id: str,
        max_workers: int | None = None,
        timeout: float | None = None,
) -> list[BatchItemResult]:
    """
    Run many calculations concurrently.

    Args:
        service: Engine to run every request on
        requests: Requests to calculate
        tenant_id: Tenant owning all portfolios in the batch
        max_workers: Thread pool size (defaults to settings.batch_max_workers)
        timeout: Seconds for the whole batch; None waits indefinitely

    Returns:
        One BatchItemResult per request, in request order
    """
    if not requests:
        return []

    if max_workers is None:
        max_workers = settings.batch_max_workers
    max_workers = max(1, min(max_workers or DEFAULT_BATCH_MAX_WORKERS, len(requests)))

    logger.info(
        f"Starting batch of {len(requests)} calculations "
        f"(workers={max_workers}, timeout={timeout})"
    )

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="performance")
    try:
        futures: list[Future] = [
            executor.submit(
                contextvars.copy_context().run,
                service.calculate_performance,
                request,
                tenant_id,
            )
            for request in requests
        ]
        _, not_done = wait(futures, timeout=timeout)
    finally:
        # Running calculations finish in the background; queued ones are dropped
        executor.shutdown(wait=False, cancel_futures=True)

    items = [
        _collect(request, future, future in not_done)
        for request, future in zip(requests, futures)
    ]

    failed = sum(1 for item in items if not item.ok)
    logger.info(f"Batch finished: {len(items) - failed} succeeded, {failed} failed or timed out")

    return items


def _collect(request: PerformanceRequest, future: Future, timed_out: bool) -> BatchItemResult:
    """Turn a finished (or abandoned) future into a BatchItemResult."""
    if timed_out:
        future.cancel()
        logger.warning(f"Calculation for portfolio {request.portfolio_id} timed out")
        return BatchItemResult(
            request=request,
            error=TimeoutError(f"Calculation for portfolio {request.portfolio_id} timed out"),
            timed_out=True,
        )

    error = future.exception()
    if error is None:
        return BatchItemResult(request=request, result=future.result())

    if isinstance(error, ServiceError):
        logger.warning(f"Calculation for portfolio {request.portfolio_id} failed: {error}")
    else:
        logger.error(
            f"Unexpected error calculating portfolio {request.portfolio_id}: {error}",
            exc_info=error,
        )
    return BatchItemResult(request=request, error=error)
