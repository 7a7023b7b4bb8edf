"""Pricing calculator - per-country cost breakdown from applicable rules."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from vatpricing.engine import catalog
from vatpricing.engine.errors import CountryNotSupportedError, ExpressionError
from vatpricing.engine.expression import EvaluationCache
from vatpricing.engine.selector import bind_rule, select_applicable_rules
from vatpricing.engine.types import (
    CalculationRequest,
    CountryCostBreakdown,
    ParameterBinding,
    Rule,
    RuleFailure,
    RuleType,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class RuleEffect:
    """Which accumulator a rule type adjusts, and in which direction."""

    target: str  # "base" | "additional"
    sign: int


RULE_EFFECTS: dict[RuleType, RuleEffect] = {
    RuleType.VAT_RATE: RuleEffect("base", 1),
    RuleType.THRESHOLD: RuleEffect("base", 1),
    RuleType.COMPLEXITY: RuleEffect("base", 1),
    RuleType.SPECIAL_REQUIREMENT: RuleEffect("additional", 1),
    RuleType.DISCOUNT: RuleEffect("additional", -1),
}


def quantize(amount: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def build_bindings(request: CalculationRequest) -> ParameterBinding:
    """Parameters every rule can reference, derived from the request."""
    return {
        catalog.BASE_PRICE: catalog.BASE_PRICES[request.service_type],
        catalog.TRANSACTION_VOLUME: Decimal(request.transaction_volume),
        catalog.SERVICE_TYPE: request.service_type.value,
        catalog.FILING_FREQUENCY: request.frequency.value,
        catalog.COUNTRIES_COUNT: Decimal(len(request.country_codes)),
        catalog.ADDITIONAL_SERVICES_COUNT: Decimal(len(request.additional_services)),
        catalog.ADDITIONAL_SERVICES_LIST: ",".join(request.additional_services),
        catalog.CURRENCY_CODE: request.currency_code,
    }


def calculate_country_cost(
    country_code: str,
    request: CalculationRequest,
    rules: Iterable[Rule],
    *,
    reference_date: date | None = None,
    cache: EvaluationCache | None = None,
) -> CountryCostBreakdown:
    """
    Price one country.

    Applicable rules are evaluated in priority order. A rule whose expression
    fails is skipped and recorded in rule_failures. Raises
    CountryNotSupportedError if the country has no active rules at all.
    """
    rules = list(rules)
    if not any(r.country_code == country_code and r.is_active for r in rules):
        raise CountryNotSupportedError(country_code)

    reference_date = reference_date or request.reference_date or date.today()
    if cache is None:
        cache = EvaluationCache()
    bindings = build_bindings(request)
    bindings[catalog.COUNTRY_CODE] = country_code

    totals = {"base": ZERO, "additional": ZERO}
    applied: list[str] = []
    failures: list[RuleFailure] = []

    for rule in select_applicable_rules(country_code, bindings, reference_date, rules):
        try:
            value = cache.evaluate(rule.expression, bind_rule(rule, bindings))
        except ExpressionError as exc:
            logger.warning(
                "Skipping rule %s (%s) for %s: %s",
                rule.rule_id,
                rule.name,
                country_code,
                exc.message,
            )
            failures.append(
                RuleFailure(
                    rule_id=rule.rule_id,
                    rule_name=rule.name,
                    error_code=exc.code,
                    message=exc.message,
                )
            )
            continue

        effect = RULE_EFFECTS[rule.rule_type]
        contribution = max(value, ZERO)
        totals[effect.target] += effect.sign * contribution
        applied.append(rule.name)

    base = quantize(max(totals["base"], ZERO))
    additional = quantize(max(totals["additional"], ZERO))
    return CountryCostBreakdown(
        country_code=country_code,
        country_name=catalog.country_name(country_code),
        base_cost=base,
        additional_cost=additional,
        total_cost=base + additional,
        currency_code=request.currency_code,
        applied_rules=tuple(applied),
        rule_failures=tuple(failures),
    )
