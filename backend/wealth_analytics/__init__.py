# backend/wealth_analytics/__init__.py
"""
Portfolio performance and risk analytics engine.

Packages:
- services.performance: Calculators and the PerformanceService orchestrator
- schemas: Pydantic request/response schemas
- utils: Logging, correlation ids, date helpers
"""

__version__ = "1.0.0"
