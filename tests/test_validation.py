"""Unit tests for rule definition validation."""

from datetime import date

import pytest

from vatpricing.engine.errors import RuleValidationError
from vatpricing.engine.types import Rule, RuleCondition, RuleParameter, RuleType
from vatpricing.engine.validation import validate_rule


def _rule(**kwargs):
    kwargs.setdefault("rule_id", "GB-VAT-001")
    kwargs.setdefault("country_code", "GB")
    kwargs.setdefault("rule_type", RuleType.VAT_RATE)
    kwargs.setdefault("name", "UK VAT")
    kwargs.setdefault("expression", "basePrice * 0.20")
    kwargs.setdefault("effective_from", date(2024, 1, 1))
    return Rule(**kwargs)


def test_valid_rule():
    """A well-formed rule passes."""
    validate_rule(_rule())
    validate_rule(
        _rule(
            expression="basePrice * rate",
            parameters=(RuleParameter("rate", "number", "0.2"),),
            conditions=(RuleCondition("transactionVolume", "greaterThan", "100"),),
        )
    )


def test_global_discount_allowed():
    """Discount rules may omit the country."""
    validate_rule(_rule(country_code=None, rule_type=RuleType.DISCOUNT, expression="grossTotal * 0.1"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"country_code": None},
        {"country_code": "gbr"},
        {"priority": 0},
        {"priority": 1001},
        {"effective_to": date(2023, 12, 31)},
        {"expression": "basePrice ** 0.2"},
        {"expression": "basePrice * 2²"},
        {"expression": "-" * 1990 + "1"},
        {"expression": "(" * 400 + "1" + ")" * 400},
        {"expression": "basePrice * rate"},
        {"expression": "1 + " * 600 + "1"},
        {"conditions": (RuleCondition("transactionVolume", "between", "1"),)},
        {"parameters": (RuleParameter("1rate"),)},
        {"parameters": (RuleParameter("rate", "money"),)},
        {"parameters": (RuleParameter("rate", "number", "abc"),)},
        {"parameters": (RuleParameter("rate"), RuleParameter("RATE"))},
    ],
)
def test_invalid_rules(kwargs):
    """Each malformed definition is rejected."""
    with pytest.raises(RuleValidationError) as exc_info:
        validate_rule(_rule(**kwargs))
    assert exc_info.value.details


def test_reports_every_problem():
    """All problems are listed in details."""
    with pytest.raises(RuleValidationError) as exc_info:
        validate_rule(_rule(priority=0, expression="(basePrice", effective_to=date(2020, 1, 1)))
    assert len(exc_info.value.details) == 3
