"""Unit tests for canonical JSON and hashing."""

from datetime import date
from decimal import Decimal

from vatpricing.engine.types import CalculationRequest, FilingFrequency, Rule, RuleType, ServiceType
from vatpricing.utils.canonical import canonical_json, request_hash, rules_hash


def test_canonical_json_sorts_keys():
    """Canonical JSON sorts keys."""
    obj = {"b": 1, "a": 2}
    assert canonical_json(obj) == '{"a":2,"b":1}'


def test_canonical_json_domain_values():
    """Decimals, dates and enums have stable text forms."""
    obj = {"amount": Decimal("20.00"), "on": date(2024, 6, 1), "type": RuleType.DISCOUNT}
    assert canonical_json(obj) == '{"amount":"20","on":"2024-06-01","type":"Discount"}'


def test_request_hash_deterministic():
    """Request hash is deterministic."""
    request = CalculationRequest(
        country_codes=("GB", "DE"),
        service_type=ServiceType.STANDARD_FILING,
        transaction_volume=100,
        frequency=FilingFrequency.MONTHLY,
        reference_date=date(2024, 6, 1),
    )
    h1 = request_hash(request)
    h2 = request_hash(request)
    assert h1 == h2
    assert len(h1) == 64  # SHA256 hex


def test_rules_hash_ignores_order():
    """Rules hash does not depend on input order."""
    rules = [
        Rule("R1", "GB", RuleType.VAT_RATE, "UK VAT", "basePrice * 0.2", date(2024, 1, 1)),
        Rule("R2", "DE", RuleType.VAT_RATE, "DE VAT", "basePrice * 0.19", date(2024, 1, 1)),
    ]
    assert rules_hash(rules) == rules_hash(list(reversed(rules)))
    assert rules_hash(rules) != rules_hash(rules[:1])
