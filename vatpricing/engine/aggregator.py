"""Calculation aggregator - combines country breakdowns and global discounts."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from vatpricing.engine import catalog
from vatpricing.engine.calculator import ZERO, build_bindings, quantize
from vatpricing.engine.errors import CurrencyMismatchError, ExpressionError
from vatpricing.engine.expression import EvaluationCache
from vatpricing.engine.selector import bind_rule, select_global_rules
from vatpricing.engine.types import (
    CalculationRequest,
    CalculationResult,
    CountryCostBreakdown,
    CountryFailure,
    Rule,
    RuleFailure,
)

logger = logging.getLogger(__name__)


def aggregate(
    request: CalculationRequest,
    per_country: Sequence[CountryCostBreakdown],
    discount_rules: Iterable[Rule],
    *,
    reference_date: date | None = None,
    cache: EvaluationCache | None = None,
    country_failures: Sequence[CountryFailure] = (),
) -> CalculationResult:
    """
    Sum country totals and subtract applicable global discounts.

    Every discount is evaluated against the same grossTotal. The final total
    is clamped at zero. Raises CurrencyMismatchError if breakdowns disagree
    on currency.
    """
    currencies = {b.currency_code for b in per_country}
    if len(currencies) > 1:
        raise CurrencyMismatchError(
            "Country breakdowns use different currencies",
            details=sorted(currencies),
        )
    currency = per_country[0].currency_code if per_country else request.currency_code

    reference_date = reference_date or request.reference_date or date.today()
    if cache is None:
        cache = EvaluationCache()

    gross = sum((b.total_cost for b in per_country), ZERO)
    bindings = build_bindings(request)
    bindings[catalog.GROSS_TOTAL] = gross

    discounts: dict[str, Decimal] = {}
    failures: list[RuleFailure] = [f for b in per_country for f in b.rule_failures]
    for rule in select_global_rules(bindings, reference_date, discount_rules):
        try:
            value = cache.evaluate(rule.expression, bind_rule(rule, bindings))
        except ExpressionError as exc:
            logger.warning("Skipping discount rule %s (%s): %s", rule.rule_id, rule.name, exc.message)
            failures.append(
                RuleFailure(
                    rule_id=rule.rule_id,
                    rule_name=rule.name,
                    error_code=exc.code,
                    message=exc.message,
                )
            )
            continue
        amount = quantize(max(value, ZERO))
        discounts[rule.name] = discounts.get(rule.name, ZERO) + amount

    total = max(gross - sum(discounts.values(), ZERO), ZERO)
    return CalculationResult(
        total_cost=quantize(total),
        currency_code=currency,
        country_breakdowns=tuple(per_country),
        discounts=discounts,
        additional_services=tuple(request.additional_services),
        country_failures=tuple(country_failures),
        rule_failures=tuple(failures),
    )
