# backend/wealth_analytics/services/__init__.py
"""
Service layer of the analytics engine.

Services:
- Have NO knowledge of transport (no HTTP status codes, no persistence)
- Raise domain-specific exceptions
- Receive their data collaborators via constructor injection
- Are easily testable with in-memory fakes

This module only re-exports the exceptions and collaborator protocols.
The engine itself lives in the performance package, which imports
configuration; import it from there explicitly.

Usage:
    from wealth_analytics.services import (
        InvalidRequestError,
        BenchmarkUnavailableError,
        MissingBenchmarkForAttributionError,
    )
    from wealth_analytics.services.performance import PerformanceService

Architecture:
    services/
    ├── __init__.py                  # This file - exceptions & protocols
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Financial constants and defaults
    ├── protocols.py                 # Collaborator interfaces (Protocol classes)
    └── performance/                 # Performance engine
        ├── service.py               # PerformanceService orchestrator
        ├── batch.py                 # Concurrent batch runner
        ├── types.py                 # Data types
        ├── cash_flows.py            # Cash flow & fee classification
        ├── returns.py               # Simple, Log, TWR, MWR, Modified Dietz
        ├── risk.py                  # Volatility, downside deviation, drawdown
        ├── risk_adjusted.py         # Sharpe, Sortino, Calmar, Treynor, Jensen
        ├── benchmark.py             # Tracking error, beta, capture ratios
        └── attribution.py           # Brinson-Hood-Beebower attribution
"""

from wealth_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidRequestError,
    AnalyticsError,
    BenchmarkUnavailableError,
    MissingBenchmarkForAttributionError,
)
from wealth_analytics.services.protocols import (
    PortfolioValuationProvider,
    TransactionProvider,
    BenchmarkProvider,
    RiskFreeRateProvider,
    AttributionDataProvider,
)

__all__ = [
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidRequestError",
    "AnalyticsError",
    "BenchmarkUnavailableError",
    "MissingBenchmarkForAttributionError",
    # Protocols
    "PortfolioValuationProvider",
    "TransactionProvider",
    "BenchmarkProvider",
    "RiskFreeRateProvider",
    "AttributionDataProvider",
]
