#!/usr/bin/env python3
"""
Seed script: creates the country directory, per-country pricing rules and
the global volume / multi-country discounts.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vatpricing.database import async_session_maker
from vatpricing.engine import catalog
from vatpricing.engine.types import Rule, RuleCondition, RuleType
from vatpricing.engine.validation import validate_rule
from vatpricing.storage.repositories import upsert_country, upsert_rule

EFFECTIVE_FROM = date(2024, 1, 1)

# Share of the base price charged as the VAT filing fee
VAT_RATES = {
    "GB": "0.20",
    "DE": "0.19",
    "FR": "0.20",
    "IT": "0.22",
    "ES": "0.21",
    "NL": "0.21",
    "BE": "0.21",
    "SE": "0.25",
    "DK": "0.25",
    "PL": "0.23",
    "IE": "0.23",
    "AT": "0.20",
    "FI": "0.24",
}

# Charged once per calculation, spread across the requested countries
SERVICE_FEES = {
    "TaxConsultancy": "500",
    "HistoricalDataProcessing": "1000",
    "ReconciliationServices": "750",
}

# (name, lower-bound operator, lower, upper inclusive, rate)
VOLUME_DISCOUNTS = [
    ("Volume discount (over 1000)", "greaterThan", "1000", None, "0.15"),
    ("Volume discount (501-1000)", "greaterThan", "500", "1000", "0.10"),
    ("Volume discount (101-500)", "greaterThan", "100", "500", "0.05"),
]
MULTI_COUNTRY_DISCOUNTS = [
    ("Multi-country discount (10+)", "greaterThanOrEqual", "10", None, "0.20"),
    ("Multi-country discount (5-9)", "greaterThanOrEqual", "5", "9", "0.15"),
    ("Multi-country discount (3-4)", "greaterThanOrEqual", "3", "4", "0.10"),
]


def country_rules(code: str) -> list[Rule]:
    rules = []
    if code in VAT_RATES:
        rules.append(
            Rule(
                rule_id=f"{code}-VAT-001",
                country_code=code,
                rule_type=RuleType.VAT_RATE,
                name=f"{catalog.country_name(code)} VAT filing",
                expression=f"basePrice * {VAT_RATES[code]}",
                effective_from=EFFECTIVE_FROM,
                priority=200,
            )
        )
    else:
        rules.append(
            Rule(
                rule_id=f"{code}-CPX-001",
                country_code=code,
                rule_type=RuleType.COMPLEXITY,
                name=f"{catalog.country_name(code)} sales tax filing",
                expression="basePrice * 0.10",
                effective_from=EFFECTIVE_FROM,
                priority=200,
            )
        )
    rules.append(
        Rule(
            rule_id=f"{code}-THR-001",
            country_code=code,
            rule_type=RuleType.THRESHOLD,
            name="High transaction volume surcharge",
            expression="basePrice * 0.10",
            effective_from=EFFECTIVE_FROM,
            priority=150,
            conditions=(RuleCondition("transactionVolume", "greaterThan", "500"),),
        )
    )
    rules.append(
        Rule(
            rule_id=f"{code}-CPX-002",
            country_code=code,
            rule_type=RuleType.COMPLEXITY,
            name="Monthly filing",
            expression="basePrice * 0.05",
            effective_from=EFFECTIVE_FROM,
            priority=100,
            conditions=(RuleCondition("filingFrequency", "equals", "Monthly"),),
        )
    )
    for i, (service, fee) in enumerate(SERVICE_FEES.items(), start=1):
        rules.append(
            Rule(
                rule_id=f"{code}-SRV-{i:03d}",
                country_code=code,
                rule_type=RuleType.SPECIAL_REQUIREMENT,
                name=catalog.ADDITIONAL_SERVICES[service],
                expression=f"{fee} / countriesCount",
                effective_from=EFFECTIVE_FROM,
                priority=50,
                conditions=(RuleCondition("additionalServices", "contains", service),),
            )
        )
    return rules


def discount_rules() -> list[Rule]:
    rules = []
    tiers = [("VOL", "transactionVolume", t) for t in VOLUME_DISCOUNTS] + [
        ("MC", "countriesCount", t) for t in MULTI_COUNTRY_DISCOUNTS
    ]
    for i, (prefix, parameter, (name, lower_op, lower, upper, rate)) in enumerate(tiers, start=1):
        conditions = [RuleCondition(parameter, lower_op, lower)]
        if upper is not None:
            conditions.append(RuleCondition(parameter, "lessThanOrEqual", upper))
        rules.append(
            Rule(
                rule_id=f"GLOBAL-{prefix}-{i:03d}",
                country_code=None,
                rule_type=RuleType.DISCOUNT,
                name=name,
                expression=f"grossTotal * {rate}",
                effective_from=EFFECTIVE_FROM,
                priority=100,
                conditions=tuple(conditions),
            )
        )
    return rules


async def seed():
    async with async_session_maker() as session:
        for code, (name, currency) in catalog.COUNTRIES.items():
            _, created = await upsert_country(session, code, name, currency, True)
            print(f"Country {code}: {'created' if created else 'updated'}")

        rules = [r for code in catalog.COUNTRIES for r in country_rules(code)] + discount_rules()
        for rule in rules:
            validate_rule(rule)
            await upsert_rule(session, rule)
        await session.commit()

    print(f"Seed complete! {len(rules)} rules loaded.")
    print("Example: curl -X POST http://localhost:8000/v1/pricing/calculate \\")
    print('  -H "Content-Type: application/json" \\')
    print('  -d \'{"countryCodes":["GB","DE"],"serviceType":"StandardFiling","transactionVolume":250,"frequency":"Quarterly"}\'')


if __name__ == "__main__":
    asyncio.run(seed())
