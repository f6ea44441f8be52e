# tests/schemas/test_performance.py
"""
Tests for the performance request/response schemas.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tests.conftest import make_transaction
from wealth_analytics.schemas import (
    PerformanceCalculationRequest,
    PerformanceCalculationResponse,
    ReturnSetResponse,
)
from wealth_analytics.services.performance import (
    CalculationMethod,
    CashFlowTiming,
    ReturnSet,
    TransactionType,
)


class TestPerformanceCalculationRequest:
    """Tests for PerformanceCalculationRequest validation."""

    def test_defaults(self):
        """Should apply defaults for optional fields."""
        request = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
        )

        assert request.calculation_method == CalculationMethod.TIME_WEIGHTED
        assert request.include_attribution is False
        assert request.benchmark_id is None
        assert request.cash_flow_timing is None

    def test_parses_strings(self):
        """Should accept ISO dates and enum values as strings."""
        request = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start="2024-01-01",
            period_end="2024-03-31",
            calculation_method="MODIFIED_DIETZ",
            cash_flow_timing="BEGINNING_OF_DAY",
        )

        assert request.period_start == date(2024, 1, 1)
        assert request.calculation_method == CalculationMethod.MODIFIED_DIETZ
        assert request.cash_flow_timing == CashFlowTiming.BEGINNING_OF_DAY

    def test_strips_portfolio_id(self):
        """Should trim whitespace around the portfolio id."""
        request = PerformanceCalculationRequest(
            portfolio_id="  P1 ",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
        )
        assert request.portfolio_id == "P1"

    def test_rejects_blank_portfolio_id(self):
        """Should reject a whitespace-only portfolio id."""
        with pytest.raises(ValidationError):
            PerformanceCalculationRequest(
                portfolio_id="   ",
                period_start=date(2024, 1, 1),
                period_end=date(2024, 1, 31),
            )

    def test_rejects_inverted_period(self):
        """Should reject period_start on or after period_end."""
        with pytest.raises(ValidationError):
            PerformanceCalculationRequest(
                portfolio_id="P1",
                period_start=date(2024, 1, 31),
                period_end=date(2024, 1, 31),
            )

    def test_rejects_unknown_method(self):
        """Should reject calculation methods outside the enum."""
        with pytest.raises(ValidationError):
            PerformanceCalculationRequest(
                portfolio_id="P1",
                period_start=date(2024, 1, 1),
                period_end=date(2024, 1, 31),
                calculation_method="GEOMETRIC",
            )

    def test_blank_benchmark_becomes_none(self):
        """Should treat an empty benchmark id as no benchmark."""
        request = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
            benchmark_id="  ",
        )
        assert request.benchmark_id is None

    def test_to_request(self):
        """Should convert to the engine request value object."""
        schema = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
            benchmark_id="SPY",
            include_attribution=True,
        )

        request = schema.to_request()

        assert request.portfolio_id == "P1"
        assert request.benchmark_id == "SPY"
        assert request.include_attribution is True
        assert request.validate().total_days == 30


class TestResponses:
    """Tests for building responses from engine results."""

    def test_return_set_decimals_become_strings(self):
        """Should serialize Decimal values as strings."""
        response = ReturnSetResponse.model_validate(
            ReturnSet(simple=Decimal("0.15"), warnings=("fallback",))
        )

        assert response.simple == "0.15"
        assert response.time_weighted == "0"
        assert response.warnings == ["fallback"]

    def test_from_result(self, service, valuation_provider, transaction_provider):
        """Should mirror the full calculation result."""
        valuation_provider.set_value("P1", date(2024, 1, 1), Decimal("100000"))
        valuation_provider.set_value("P1", date(2024, 1, 31), Decimal("110000"))
        transaction_provider.add(
            "P1",
            make_transaction(date(2024, 1, 16), TransactionType.WITHDRAWAL, "5000"),
            make_transaction(date(2024, 1, 20), TransactionType.FEE, "100", "management fee"),
        )
        request = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
            calculation_method="MODIFIED_DIETZ",
        ).to_request()
        result = service.calculate_performance(request, "tenant-a")

        response = PerformanceCalculationResponse.from_result(result)
        period = response.performance_period

        assert period.portfolio_id == "P1"
        assert period.window.total_days == 30
        assert period.gross_return == str(result.performance_period.gross_return)
        assert period.beginning_value == "100000"
        assert period.fees.total_fees == "100"
        assert period.cash_flows.net_cash_flows == "-5000"
        assert period.cash_flows.flows[0].amount == "-5000"
        assert response.benchmark_comparison is None
        assert response.attribution is None
        assert response.warnings == list(result.warnings)

    def test_json_dump(self, service):
        """Should produce a JSON-safe payload."""
        request = PerformanceCalculationRequest(
            portfolio_id="P1",
            period_start=date(2024, 1, 1),
            period_end=date(2024, 1, 31),
        ).to_request()

        payload = PerformanceCalculationResponse.from_result(
            service.calculate_performance(request, "tenant-a")
        ).model_dump(mode="json")

        assert payload["performance_period"]["returns"]["simple"] == "0"
        assert payload["performance_period"]["calculation_method"] == "TIME_WEIGHTED"
        assert payload["performance_period"]["window"]["start_date"] == "2024-01-01"
