"""Unit tests for API schema serialization."""

import json
from decimal import Decimal

import pytest
from pydantic import ValidationError

from vatpricing.engine.types import FilingFrequency, ServiceType
from vatpricing.schemas.admin import ValidateExpressionRequest
from vatpricing.schemas.pricing import CalculateResponse


def _response(total):
    return CalculateResponse(
        service_type=ServiceType.STANDARD_FILING,
        transaction_volume=100,
        frequency=FilingFrequency.MONTHLY,
        total_cost=Decimal(total),
        currency_code="EUR",
        discounts={"Volume": Decimal("0.10")},
    )


@pytest.mark.parametrize("total", ["19.99", "0.30", "1234567.89", "0.00"])
def test_money_round_trips_exact_cents(total):
    """Money is a JSON number whose text form is the exact cent amount."""
    body = json.loads(_response(total).model_dump_json(by_alias=True))
    assert isinstance(body["totalCost"], float)
    assert Decimal(str(body["totalCost"])).quantize(Decimal("0.01")) == Decimal(total)
    assert Decimal(str(body["discounts"]["Volume"])) == Decimal("0.1")


def test_validate_expression_request_length_limit():
    """Expressions longer than the rule limit are rejected before parsing."""
    ValidateExpressionRequest(expression="1" * 2000)
    with pytest.raises(ValidationError):
        ValidateExpressionRequest(expression="1" * 2001)
