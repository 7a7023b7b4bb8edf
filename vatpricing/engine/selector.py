"""Rule selector - filters rules by country, activity, date window and conditions."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from vatpricing.engine.errors import InvalidConditionError, RuleValidationError
from vatpricing.engine.types import ParameterBinding, Rule, RuleCondition, RuleParameter, RuleType

logger = logging.getLogger(__name__)

CONDITION_OPERATORS = {
    "equals",
    "notequals",
    "greaterthan",
    "lessthan",
    "greaterthanorequal",
    "lessthanorequal",
    "contains",
    "startswith",
    "endswith",
}

_ORDERING_OPS = {"greaterthan", "lessthan", "greaterthanorequal", "lessthanorequal"}
_STRING_OPS = {"contains", "startswith", "endswith"}


def _comparable(value: Any) -> Any:
    """Coerce a value to Decimal, date, bool or str for comparison."""
    if value is None or isinstance(value, (bool, Decimal, date)):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value).strip()
    try:
        number = Decimal(text)
        if number.is_finite():
            return number
    except InvalidOperation:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    return text


def _compare(left: Any, right: Any, op: str) -> bool:
    if left is None or right is None:
        if op == "equals":
            return left is None and right is None
        return op == "notequals" and not (left is None and right is None)

    same_kind = (
        (isinstance(left, Decimal) and isinstance(right, Decimal))
        or (isinstance(left, date) and isinstance(right, date))
        or (isinstance(left, bool) and isinstance(right, bool))
    )
    if same_kind:
        if op == "equals":
            return left == right
        if op == "notequals":
            return left != right
        if op in _ORDERING_OPS and not isinstance(left, bool):
            if op == "greaterthan":
                return left > right
            if op == "lessthan":
                return left < right
            if op == "greaterthanorequal":
                return left >= right
            return left <= right
        return False

    # Strings and mixed types compare case-insensitively as text
    a = str(left).lower()
    b = str(right).lower()
    if op == "equals":
        return a == b
    if op == "notequals":
        return a != b
    if op == "contains":
        return b in a
    if op == "startswith":
        return a.startswith(b)
    if op == "endswith":
        return a.endswith(b)
    return False


def validate_operator(operator: str) -> str:
    """Return the normalized operator name or raise InvalidConditionError."""
    op = (operator or "").lower()
    if op not in CONDITION_OPERATORS:
        raise InvalidConditionError(operator)
    return op


def check_condition(condition: RuleCondition, bindings: ParameterBinding) -> bool:
    """Evaluate one condition. A parameter with no binding fails the condition."""
    op = validate_operator(condition.operator)
    if condition.parameter not in bindings:
        return False
    left = _comparable(bindings[condition.parameter])
    if op in _STRING_OPS:
        # String containment always compares the raw condition text
        right = condition.value
    else:
        right = _comparable(condition.value)
    return _compare(left, right, op)


def check_conditions(rule: Rule, bindings: ParameterBinding) -> bool:
    """All conditions must hold; an empty condition list always holds."""
    return all(check_condition(c, bindings) for c in rule.conditions)


def parse_default(parameter: RuleParameter) -> Any:
    """Typed default value of a declared rule parameter."""
    raw = parameter.default_value
    if raw is None or raw == "":
        return None
    data_type = parameter.data_type.lower()
    try:
        if data_type == "number":
            value = Decimal(raw)
            if not value.is_finite():
                raise InvalidOperation
            return value
        if data_type == "boolean":
            if raw.lower() not in ("true", "false"):
                raise ValueError(raw)
            return raw.lower() == "true"
        if data_type == "date":
            return date.fromisoformat(raw)
    except (InvalidOperation, ValueError):
        raise RuleValidationError(
            f"Invalid default for parameter '{parameter.name}': {raw!r}"
        ) from None
    return raw


def bind_rule(rule: Rule, bindings: ParameterBinding) -> ParameterBinding:
    """Bindings for one rule: declared defaults overridden by supplied values."""
    if not rule.parameters:
        return bindings
    merged: ParameterBinding = {}
    for parameter in rule.parameters:
        default = parse_default(parameter)
        if default is not None:
            merged[parameter.name] = default
    merged.update(bindings)
    return merged


def _sort_key(rule: Rule) -> tuple[int, str]:
    return (-rule.priority, rule.rule_id)


def _passes_conditions(rule: Rule, bindings: ParameterBinding) -> bool:
    try:
        return check_conditions(rule, bind_rule(rule, bindings))
    except RuleValidationError as exc:
        logger.warning("Excluding rule %s (%s): %s", rule.rule_id, rule.name, exc.message)
        return False


def select_applicable_rules(
    country_code: str,
    bindings: ParameterBinding,
    reference_date: date,
    rules: Iterable[Rule],
) -> list[Rule]:
    """
    Rules for the country that are active, effective at reference_date and
    whose conditions hold. Ordered by priority DESC, then rule_id ASC.
    """
    selected = [
        rule
        for rule in rules
        if rule.country_code == country_code
        and rule.is_active
        and rule.is_effective_at(reference_date)
        and _passes_conditions(rule, bindings)
    ]
    return sorted(selected, key=_sort_key)


def select_global_rules(
    bindings: ParameterBinding,
    reference_date: date,
    rules: Iterable[Rule],
) -> list[Rule]:
    """Applicable Discount rules not tied to a country, in priority order."""
    selected = [
        rule
        for rule in rules
        if rule.country_code is None
        and rule.rule_type == RuleType.DISCOUNT
        and rule.is_active
        and rule.is_effective_at(reference_date)
        and _passes_conditions(rule, bindings)
    ]
    return sorted(selected, key=_sort_key)
