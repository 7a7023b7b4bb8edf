"""Rule definition checks for the admin workflow."""

import re

from vatpricing.engine import catalog
from vatpricing.engine.errors import (
    ExpressionSyntaxError,
    InvalidConditionError,
    RuleValidationError,
)
from vatpricing.engine.expression import referenced_parameters
from vatpricing.engine.selector import parse_default, validate_operator
from vatpricing.engine.types import Rule, RuleType

PARAMETER_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
DATA_TYPES = {"string", "number", "boolean", "date"}


def validate_rule(rule: Rule) -> None:
    """Raise RuleValidationError (or a subclass) describing every problem found."""
    errors: list[str] = []

    if rule.country_code is None and rule.rule_type != RuleType.DISCOUNT:
        errors.append("Only Discount rules may omit the country code")
    if rule.country_code is not None and not re.match(r"^[A-Z]{2}$", rule.country_code):
        errors.append(f"Invalid country code: {rule.country_code}")
    if not (catalog.MIN_RULE_PRIORITY <= rule.priority <= catalog.MAX_RULE_PRIORITY):
        errors.append(
            f"Priority must be between {catalog.MIN_RULE_PRIORITY} and {catalog.MAX_RULE_PRIORITY}"
        )
    if rule.effective_to is not None and rule.effective_to < rule.effective_from:
        errors.append("effective_to must not be before effective_from")

    declared: set[str] = set()
    for parameter in rule.parameters:
        if not PARAMETER_NAME.match(parameter.name):
            errors.append(f"Invalid parameter name: {parameter.name}")
        if parameter.name.lower() in {d.lower() for d in declared}:
            errors.append(f"Duplicate parameter name: {parameter.name}")
        declared.add(parameter.name)
        if parameter.data_type.lower() not in DATA_TYPES:
            errors.append(f"Unsupported data type for {parameter.name}: {parameter.data_type}")
            continue
        try:
            parse_default(parameter)
        except RuleValidationError as exc:
            errors.append(exc.message)

    for condition in rule.conditions:
        try:
            validate_operator(condition.operator)
        except InvalidConditionError as exc:
            errors.append(exc.message)
        if not condition.parameter:
            errors.append("Condition parameter is required")

    if len(rule.expression or "") > catalog.MAX_EXPRESSION_LENGTH:
        errors.append(f"Expression cannot exceed {catalog.MAX_EXPRESSION_LENGTH} characters")
    else:
        try:
            names = referenced_parameters(rule.expression)
        except ExpressionSyntaxError as exc:
            errors.append(f"Invalid expression: {exc.message}")
        else:
            unknown = sorted(names - declared - catalog.CALCULATION_INPUTS)
            if unknown:
                errors.append(f"Expression references undeclared parameters: {unknown}")

    if errors:
        raise RuleValidationError(f"Invalid rule {rule.rule_id}", details=errors)
