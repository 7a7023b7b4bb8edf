"""Request-level pricing: validate, price each country, aggregate."""

import logging
import re
from datetime import date
from typing import Iterable

from vatpricing.engine import catalog
from vatpricing.engine.aggregator import aggregate
from vatpricing.engine.calculator import calculate_country_cost
from vatpricing.engine.errors import CountryNotSupportedError, InvalidRequestError
from vatpricing.engine.expression import EvaluationCache
from vatpricing.engine.types import CalculationRequest, CalculationResult, CountryFailure, Rule

logger = logging.getLogger(__name__)

_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")


def validate_request(
    request: CalculationRequest,
    *,
    max_transaction_volume: int | None = None,
    max_countries: int | None = None,
) -> None:
    """Raise InvalidRequestError listing every problem with the request."""
    errors: list[str] = []
    if not request.country_codes:
        errors.append("At least one country must be selected")
    bad_codes = [c for c in request.country_codes if not _COUNTRY_CODE.match(c or "")]
    if bad_codes:
        errors.append(f"Invalid country codes: {bad_codes}")
    if len(set(request.country_codes)) != len(request.country_codes):
        errors.append("Duplicate country codes")
    if max_countries is not None and len(request.country_codes) > max_countries:
        errors.append(f"At most {max_countries} countries per request")
    if request.transaction_volume < catalog.MIN_TRANSACTION_VOLUME:
        errors.append(
            f"Transaction volume must be greater than zero. Provided value: {request.transaction_volume}"
        )
    if max_transaction_volume is not None and request.transaction_volume > max_transaction_volume:
        errors.append(f"Transaction volume cannot exceed {max_transaction_volume}")
    unknown = [s for s in request.additional_services if s not in catalog.ADDITIONAL_SERVICES]
    if unknown:
        errors.append(f"Unknown additional services: {unknown}")
    if errors:
        raise InvalidRequestError("Invalid calculation parameters", details=errors)


def calculate_pricing(
    request: CalculationRequest,
    rules: Iterable[Rule],
    *,
    max_transaction_volume: int | None = None,
    max_countries: int | None = None,
) -> CalculationResult:
    """
    Full multi-country calculation.

    Countries without rules are omitted and reported in country_failures;
    they never abort the request. Only request validation and currency
    mismatch raise.
    """
    validate_request(
        request,
        max_transaction_volume=max_transaction_volume,
        max_countries=max_countries,
    )
    rules = list(rules)
    reference_date = request.reference_date or date.today()
    cache = EvaluationCache()

    breakdowns = []
    failures = []
    for country_code in request.country_codes:
        try:
            breakdowns.append(
                calculate_country_cost(
                    country_code,
                    request,
                    rules,
                    reference_date=reference_date,
                    cache=cache,
                )
            )
        except CountryNotSupportedError as exc:
            logger.warning("Omitting %s from calculation: %s", country_code, exc.message)
            failures.append(CountryFailure(country_code, exc.code, exc.message))

    global_rules = [r for r in rules if r.country_code is None]
    result = aggregate(
        request,
        breakdowns,
        global_rules,
        reference_date=reference_date,
        cache=cache,
        country_failures=failures,
    )
    logger.info(
        "Calculated %d countries (%d omitted): total %s %s",
        len(breakdowns),
        len(failures),
        result.total_cost,
        result.currency_code,
    )
    return result
