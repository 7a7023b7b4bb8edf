"""Unit tests for rule selection and condition checks."""

from datetime import date
from decimal import Decimal

import pytest

from vatpricing.engine.errors import InvalidConditionError
from vatpricing.engine.selector import (
    bind_rule,
    check_condition,
    select_applicable_rules,
    select_global_rules,
)
from vatpricing.engine.types import Rule, RuleCondition, RuleParameter, RuleType


def _rule(rule_id, country="GB", priority=100, **kwargs):
    kwargs.setdefault("rule_type", RuleType.VAT_RATE)
    kwargs.setdefault("name", rule_id)
    kwargs.setdefault("expression", "basePrice * 0.20")
    kwargs.setdefault("effective_from", date(2024, 1, 1))
    return Rule(rule_id=rule_id, country_code=country, priority=priority, **kwargs)


BINDINGS = {
    "basePrice": Decimal("100"),
    "transactionVolume": Decimal("600"),
    "filingFrequency": "Monthly",
    "additionalServices": "TaxConsultancy,ReconciliationServices",
}


def test_effective_window():
    """Rule with a closed window is selected inside it and excluded after it."""
    rules = [_rule("R1", effective_to=date(2024, 12, 31))]
    assert select_applicable_rules("GB", BINDINGS, date(2024, 6, 1), rules) == rules
    assert select_applicable_rules("GB", BINDINGS, date(2025, 1, 1), rules) == []
    assert select_applicable_rules("GB", BINDINGS, date(2023, 12, 31), rules) == []


def test_window_bounds_inclusive():
    """Both effective_from and effective_to are inclusive."""
    rules = [_rule("R1", effective_to=date(2024, 12, 31))]
    assert select_applicable_rules("GB", BINDINGS, date(2024, 1, 1), rules) == rules
    assert select_applicable_rules("GB", BINDINGS, date(2024, 12, 31), rules) == rules


def test_priority_order_with_tie_break():
    """Priority DESC, then rule_id ASC."""
    rules = [
        _rule("B", priority=10),
        _rule("C", priority=90),
        _rule("A", priority=10),
    ]
    selected = select_applicable_rules("GB", BINDINGS, date(2024, 6, 1), rules)
    assert [r.rule_id for r in selected] == ["C", "A", "B"]


def test_country_and_active_filter():
    """Other countries and inactive rules are excluded."""
    rules = [_rule("R1"), _rule("R2", country="DE"), _rule("R3", is_active=False)]
    selected = select_applicable_rules("GB", BINDINGS, date(2024, 6, 1), rules)
    assert [r.rule_id for r in selected] == ["R1"]


def test_conditions_must_all_hold():
    """A rule applies only when every condition holds."""
    rules = [
        _rule(
            "R1",
            conditions=(
                RuleCondition("transactionVolume", "greaterThan", "500"),
                RuleCondition("filingFrequency", "equals", "monthly"),
            ),
        ),
        _rule("R2", conditions=(RuleCondition("transactionVolume", "lessThan", "500"),)),
    ]
    selected = select_applicable_rules("GB", BINDINGS, date(2024, 6, 1), rules)
    assert [r.rule_id for r in selected] == ["R1"]


def test_invalid_operator_excludes_rule():
    """A rule with an unknown operator is excluded, not fatal."""
    rules = [_rule("R1", conditions=(RuleCondition("transactionVolume", "between", "1"),))]
    assert select_applicable_rules("GB", BINDINGS, date(2024, 6, 1), rules) == []


@pytest.mark.parametrize(
    "operator,value,expected",
    [
        ("equals", "600", True),
        ("EQUALS", "600.00", True),
        ("notEquals", "600", False),
        ("greaterThanOrEqual", "600", True),
        ("lessThanOrEqual", "599", False),
    ],
)
def test_numeric_operators(operator, value, expected):
    """Numeric comparisons, operator names case-insensitive."""
    condition = RuleCondition("transactionVolume", operator, value)
    assert check_condition(condition, BINDINGS) is expected


def test_string_operators():
    """Text operators compare case-insensitively."""
    assert check_condition(RuleCondition("additionalServices", "contains", "taxconsultancy"), BINDINGS)
    assert check_condition(RuleCondition("filingFrequency", "startsWith", "Mon"), BINDINGS)
    assert check_condition(RuleCondition("filingFrequency", "endsWith", "LY"), BINDINGS)
    assert not check_condition(
        RuleCondition("additionalServices", "contains", "HistoricalDataProcessing"), BINDINGS
    )


def test_missing_parameter_fails_condition():
    """Conditions on unbound parameters do not hold."""
    assert not check_condition(RuleCondition("unknown", "equals", "x"), BINDINGS)


def test_unknown_operator_raises():
    """check_condition rejects unsupported operators."""
    with pytest.raises(InvalidConditionError):
        check_condition(RuleCondition("transactionVolume", "like", "6%"), BINDINGS)


def test_bind_rule_defaults():
    """Declared defaults fill gaps; supplied values win."""
    rule = _rule(
        "R1",
        parameters=(
            RuleParameter("rate", "number", "0.15"),
            RuleParameter("basePrice", "number", "1"),
        ),
    )
    bound = bind_rule(rule, BINDINGS)
    assert bound["rate"] == Decimal("0.15")
    assert bound["basePrice"] == Decimal("100")


def test_global_rules_only_discounts():
    """Only country-less Discount rules are global."""
    rules = [
        _rule("D1", country=None, rule_type=RuleType.DISCOUNT, expression="grossTotal * 0.1"),
        _rule("V1", country=None),
        _rule("D2", rule_type=RuleType.DISCOUNT),
    ]
    selected = select_global_rules(BINDINGS, date(2024, 6, 1), rules)
    assert [r.rule_id for r in selected] == ["D1"]
