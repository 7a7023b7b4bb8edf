"""Immutable records consumed and produced by the pricing engine."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class RuleType(str, Enum):
    VAT_RATE = "VatRate"
    THRESHOLD = "Threshold"
    COMPLEXITY = "Complexity"
    SPECIAL_REQUIREMENT = "SpecialRequirement"
    DISCOUNT = "Discount"


class ServiceType(str, Enum):
    STANDARD_FILING = "StandardFiling"
    COMPLEX_FILING = "ComplexFiling"
    PRIORITY_SERVICE = "PriorityService"


class FilingFrequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"


# name -> typed value (Decimal, str, bool, date)
ParameterBinding = dict[str, Any]


@dataclass(frozen=True)
class RuleParameter:
    name: str
    data_type: str = "number"
    default_value: str | None = None


@dataclass(frozen=True)
class RuleCondition:
    parameter: str
    operator: str
    value: str


@dataclass(frozen=True)
class Rule:
    """A stored pricing adjustment. country_code None marks a global rule."""

    rule_id: str
    country_code: str | None
    rule_type: RuleType
    name: str
    expression: str
    effective_from: date
    effective_to: date | None = None
    priority: int = 100
    is_active: bool = True
    parameters: tuple[RuleParameter, ...] = ()
    conditions: tuple[RuleCondition, ...] = ()
    description: str = ""

    def is_effective_at(self, reference_date: date) -> bool:
        if self.effective_from > reference_date:
            return False
        return self.effective_to is None or self.effective_to >= reference_date


@dataclass(frozen=True)
class CalculationRequest:
    country_codes: tuple[str, ...]
    service_type: ServiceType
    transaction_volume: int
    frequency: FilingFrequency
    additional_services: tuple[str, ...] = ()
    reference_date: date | None = None
    currency_code: str = "EUR"


@dataclass(frozen=True)
class RuleFailure:
    """A rule skipped because its expression failed."""

    rule_id: str
    rule_name: str
    error_code: str
    message: str


@dataclass(frozen=True)
class CountryCostBreakdown:
    country_code: str
    country_name: str
    base_cost: Decimal
    additional_cost: Decimal
    total_cost: Decimal
    currency_code: str
    applied_rules: tuple[str, ...] = ()
    rule_failures: tuple[RuleFailure, ...] = ()


@dataclass(frozen=True)
class CountryFailure:
    """A country omitted from the aggregate."""

    country_code: str
    error_code: str
    message: str


@dataclass(frozen=True)
class CalculationResult:
    total_cost: Decimal
    currency_code: str
    country_breakdowns: tuple[CountryCostBreakdown, ...]
    discounts: dict[str, Decimal] = field(default_factory=dict)
    additional_services: tuple[str, ...] = ()
    country_failures: tuple[CountryFailure, ...] = ()
    rule_failures: tuple[RuleFailure, ...] = ()
