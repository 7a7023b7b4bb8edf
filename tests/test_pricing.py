"""Unit tests for request validation and full multi-country pricing."""

from datetime import date
from decimal import Decimal

import pytest

from vatpricing.engine.errors import InvalidRequestError
from vatpricing.engine.pricing import calculate_pricing, validate_request
from vatpricing.engine.types import (
    CalculationRequest,
    FilingFrequency,
    Rule,
    RuleCondition,
    RuleType,
    ServiceType,
)

REF = date(2024, 6, 1)


def _request(codes=("GB",), **kwargs):
    kwargs.setdefault("service_type", ServiceType.STANDARD_FILING)
    kwargs.setdefault("transaction_volume", 100)
    kwargs.setdefault("frequency", FilingFrequency.QUARTERLY)
    kwargs.setdefault("reference_date", REF)
    return CalculationRequest(country_codes=tuple(codes), **kwargs)


def _rule(rule_id, country, expression, rule_type=RuleType.VAT_RATE, **kwargs):
    return Rule(
        rule_id=rule_id,
        country_code=country,
        rule_type=rule_type,
        name=kwargs.pop("name", rule_id),
        expression=expression,
        effective_from=date(2024, 1, 1),
        **kwargs,
    )


RULES = [
    _rule("GB-VAT", "GB", "basePrice * 0.20"),
    _rule("DE-VAT", "DE", "basePrice * 0.19"),
    _rule("FR-VAT", "FR", "basePrice * 0.20"),
    _rule(
        "TAX-CONSULT",
        "GB",
        "500 / countriesCount",
        RuleType.SPECIAL_REQUIREMENT,
        conditions=(RuleCondition("additionalServices", "contains", "TaxConsultancy"),),
    ),
    _rule(
        "MULTI",
        None,
        "grossTotal * 0.10",
        RuleType.DISCOUNT,
        name="Multi-country discount",
        conditions=(RuleCondition("countriesCount", "greaterThanOrEqual", "3"),),
    ),
]


def test_empty_countries_rejected():
    """At least one country is required."""
    with pytest.raises(InvalidRequestError) as exc_info:
        validate_request(_request(codes=()))
    assert exc_info.value.code == "PRICING-002"


def test_zero_volume_rejected():
    """Transaction volume must be positive."""
    with pytest.raises(InvalidRequestError) as exc_info:
        validate_request(_request(transaction_volume=0))
    assert "Transaction volume must be greater than zero. Provided value: 0" in exc_info.value.details


def test_collects_every_problem():
    """All request problems are reported together."""
    request = _request(codes=("GB", "GB", "gbr"), transaction_volume=-1, additional_services=("Foo",))
    with pytest.raises(InvalidRequestError) as exc_info:
        validate_request(request)
    assert len(exc_info.value.details) == 4


def test_limits():
    """Configured limits on volume and country count."""
    with pytest.raises(InvalidRequestError):
        validate_request(_request(transaction_volume=200), max_transaction_volume=100)
    with pytest.raises(InvalidRequestError):
        validate_request(_request(codes=("GB", "DE")), max_countries=1)
    validate_request(_request(transaction_volume=100), max_transaction_volume=100, max_countries=1)


def test_single_country():
    """GB only: total equals the country total."""
    result = calculate_pricing(_request(), RULES)
    assert result.total_cost == Decimal("20.00")
    assert len(result.country_breakdowns) == 1
    assert result.discounts == {}


def test_breakdown_order_matches_request():
    """Breakdowns follow the requested country order."""
    result = calculate_pricing(_request(codes=("FR", "GB", "DE")), RULES)
    assert [b.country_code for b in result.country_breakdowns] == ["FR", "GB", "DE"]
    # 20 + 20 + 19 = 59, less 10% multi-country
    assert result.discounts == {"Multi-country discount": Decimal("5.90")}
    assert result.total_cost == Decimal("53.10")


def test_unsupported_country_omitted():
    """Countries without rules are reported and left out of the total."""
    result = calculate_pricing(_request(codes=("GB", "XX")), RULES)
    assert [b.country_code for b in result.country_breakdowns] == ["GB"]
    assert [f.country_code for f in result.country_failures] == ["XX"]
    assert result.country_failures[0].error_code == "PRICING-003"
    assert result.total_cost == Decimal("20.00")


def test_additional_services():
    """Additional services are listed and priced through rules."""
    result = calculate_pricing(_request(codes=("GB", "DE"), additional_services=("TaxConsultancy",)), RULES)
    gb = result.country_breakdowns[0]
    assert gb.additional_cost == Decimal("250.00")
    assert result.additional_services == ("TaxConsultancy",)
    assert result.total_cost == Decimal("289.00")


def test_rule_failure_surfaces_in_result():
    """Per-rule failures are collected across countries."""
    rules = RULES + [_rule("DE-BAD", "DE", "basePrice / 0", RuleType.COMPLEXITY)]
    result = calculate_pricing(_request(codes=("GB", "DE")), rules)
    assert [f.rule_id for f in result.rule_failures] == ["DE-BAD"]
    assert result.total_cost == Decimal("39.00")


def test_deterministic():
    """Same request and rules give the same result."""
    request = _request(codes=("GB", "DE", "FR"), transaction_volume=750)
    assert calculate_pricing(request, RULES) == calculate_pricing(request, list(reversed(RULES)))
