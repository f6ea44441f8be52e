# backend/wealth_analytics/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging setup (see utils/logging.py)
- DEFAULT_RISK_FREE_RATE: Fallback risk-free rate when a tenant has none
- MARKET_RETURN: Broad-market proxy used by Jensen's alpha
- TRADING_DAYS_PER_YEAR: Annualization factor for volatility metrics
- IRR_*: Newton-Raphson solver limits

Configuration is validated on import. Invalid configuration raises a
ValueError with a descriptive message.

The calculators never read `settings` directly. The service layer turns it
into an immutable EngineConfig once, at construction time, so a running
engine cannot observe configuration changes mid-calculation.

Usage:
    from wealth_analytics.config import settings

    if settings.is_production:
        ...
"""
from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wealth_analytics.services.constants import (
    ATTRIBUTION_TOLERANCE,
    DEFAULT_BATCH_MAX_WORKERS,
    DEFAULT_MARKET_RETURN,
    DEFAULT_RISK_FREE_RATE,
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_TOLERANCE,
    SIGNIFICANT_CASH_FLOW_THRESHOLD,
    TRADING_DAYS_PER_YEAR,
)


# Find the .env file in project root (parent of backend/)
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name used in log output
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Calculation defaults (all optional):
        - DEFAULT_RISK_FREE_RATE: Annual risk-free rate (default: 0.02)
        - MARKET_RETURN: Broad-market return for Jensen's alpha (default: 0.08)
        - TRADING_DAYS_PER_YEAR: Annualization factor (default: 252)
        - IRR_MAX_ITERATIONS: Solver iteration budget (default: 100)
        - IRR_TOLERANCE: Solver convergence threshold (default: 0.000001)
        - IRR_INITIAL_GUESS: Solver starting rate (default: 0.1)
        - SIGNIFICANT_CASH_FLOW_THRESHOLD: Net flow ratio flag (default: 0.10)
        - ATTRIBUTION_TOLERANCE: Reconciliation tolerance (default: 0.000001)
        - BATCH_MAX_WORKERS: Worker threads for batch runs (default: 4)
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    app_name: str = "Wealth Analytics Engine"

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # RATES
    # =========================================================================
    default_risk_free_rate: Decimal = Field(
        default=DEFAULT_RISK_FREE_RATE,
        ge=Decimal("-0.1"),
        le=Decimal("1"),
        description="Annual risk-free rate used when a tenant has no override"
    )
    market_return: Decimal = Field(
        default=DEFAULT_MARKET_RETURN,
        description="Broad-market proxy return for Jensen's alpha"
    )

    # =========================================================================
    # ANNUALIZATION
    # =========================================================================
    trading_days_per_year: int = Field(
        default=TRADING_DAYS_PER_YEAR,
        ge=1,
        le=366,
        description="Trading days used to annualize daily volatility"
    )

    # =========================================================================
    # IRR SOLVER
    # =========================================================================
    irr_max_iterations: int = Field(
        default=IRR_MAX_ITERATIONS,
        ge=1,
        le=10_000,
        description="Maximum Newton-Raphson iterations"
    )
    irr_tolerance: Decimal = Field(
        default=IRR_TOLERANCE,
        gt=Decimal("0"),
        description="Convergence threshold for |NPV|"
    )
    irr_initial_guess: Decimal = Field(
        default=IRR_INITIAL_GUESS,
        gt=Decimal("-1"),
        description="Starting periodic rate for the solver"
    )

    # =========================================================================
    # THRESHOLDS
    # =========================================================================
    significant_cash_flow_threshold: Decimal = Field(
        default=SIGNIFICANT_CASH_FLOW_THRESHOLD,
        ge=Decimal("0"),
        description="|net cash flows| / beginning value above which flows are significant"
    )
    attribution_tolerance: Decimal = Field(
        default=ATTRIBUTION_TOLERANCE,
        gt=Decimal("0"),
        description="Allowed attribution reconciliation residual"
    )

    # =========================================================================
    # BATCH
    # =========================================================================
    batch_max_workers: int = Field(
        default=DEFAULT_BATCH_MAX_WORKERS,
        ge=1,
        le=64,
        description="Worker threads used by calculate_batch"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_production_config(self) -> "Settings":
        """
        Reject debug logging in production.

        DEBUG output includes per-day return series, which is noisy and
        may expose client portfolio values in shared log sinks.
        """
        if self.environment == "production" and self.log_level.upper() == "DEBUG":
            raise ValueError(
                "LOG_LEVEL=DEBUG is not allowed in production environment. "
                "Use INFO or WARNING."
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
