"""Pricing engine errors - each kind carries the API error code it maps to."""


class PricingError(Exception):
    """Base class for pricing engine failures."""

    code = "PRICING-001"

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class InvalidRequestError(PricingError):
    """Top-level request shape is invalid (empty countries, bad volume...)."""

    code = "PRICING-002"


class CountryNotSupportedError(PricingError):
    """No active rules exist for the country."""

    code = "PRICING-003"

    def __init__(self, country_code: str):
        super().__init__(f"Country not supported: {country_code}")
        self.country_code = country_code


class CurrencyMismatchError(PricingError):
    """Country breakdowns are in different currencies."""

    code = "PRICING-001"


class ExpressionError(PricingError):
    """Expression could not be evaluated."""

    code = "PRICING-006"


class ExpressionSyntaxError(ExpressionError):
    """Malformed expression."""

    def __init__(self, position: int, message: str):
        super().__init__(f"Syntax error at position {position}: {message}")
        self.position = position
        self.reason = message


class UnknownParameterError(ExpressionError):
    """Expression references a name with no binding."""

    def __init__(self, name: str):
        super().__init__(f"Unknown parameter: {name}")
        self.name = name


class DivisionByZeroError(ExpressionError):
    """Division by zero during evaluation."""

    def __init__(self):
        super().__init__("Division by zero")


class InvalidParameterValueError(ExpressionError):
    """Bound value cannot be used as a number."""

    def __init__(self, name: str, value: object):
        super().__init__(f"Parameter '{name}' is not numeric: {value!r}")
        self.name = name
        self.value = value


class RuleValidationError(PricingError):
    """Rule definition is invalid."""

    code = "RULE-008"


class InvalidConditionError(RuleValidationError):
    """Condition uses an unsupported operator."""

    code = "RULE-012"

    def __init__(self, operator: str):
        super().__init__(f"Invalid condition operator: {operator}")
        self.operator = operator
