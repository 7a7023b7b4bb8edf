"""Repository functions for countries, rules and calculations."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from vatpricing.engine.types import Rule as RuleRecord
from vatpricing.engine.types import RuleCondition, RuleParameter, RuleType
from vatpricing.models import Calculation, Country, Rule


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_record(rule: Rule) -> RuleRecord:
    """Convert a stored rule into the engine's immutable record."""
    return RuleRecord(
        rule_id=rule.rule_id,
        country_code=rule.country_code,
        rule_type=RuleType(rule.rule_type),
        name=rule.name,
        expression=rule.expression,
        effective_from=rule.effective_from,
        effective_to=rule.effective_to,
        priority=rule.priority,
        is_active=rule.is_active,
        parameters=tuple(
            RuleParameter(p["name"], p.get("data_type", "number"), p.get("default_value"))
            for p in rule.parameters or []
        ),
        conditions=tuple(
            RuleCondition(c["parameter"], c["operator"], str(c["value"]))
            for c in rule.conditions or []
        ),
        description=rule.description or "",
    )


# -----------------------
# Countries
# -----------------------


async def list_countries(db: AsyncSession, active_only: bool = True) -> list[Country]:
    """All countries ordered by code."""
    stmt = select(Country).order_by(Country.country_code)
    if active_only:
        stmt = stmt.where(Country.is_active.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_countries_by_codes(db: AsyncSession, codes: list[str]) -> dict[str, Country]:
    """Countries keyed by code; unknown codes are absent."""
    result = await db.execute(select(Country).where(Country.country_code.in_(codes)))
    return {c.country_code: c for c in result.scalars().all()}


async def upsert_country(
    db: AsyncSession, country_code: str, name: str, currency_code: str, is_active: bool
) -> tuple[Country, bool]:
    """Create or update a country. Returns (country, created)."""
    country = await db.get(Country, country_code)
    created = country is None
    if created:
        country = Country(country_code=country_code)
        db.add(country)
    country.name = name
    country.currency_code = currency_code
    country.is_active = is_active
    await db.flush()
    return country, created


# -----------------------
# Rules
# -----------------------


async def get_rules_for_countries(db: AsyncSession, codes: list[str]) -> list[RuleRecord]:
    """Rules for the given countries plus global (country-less) rules."""
    result = await db.execute(
        select(Rule).where(or_(Rule.country_code.in_(codes), Rule.country_code.is_(None)))
    )
    return [to_record(r) for r in result.scalars().all()]


async def list_rules(db: AsyncSession, country_code: str | None = None) -> list[Rule]:
    """Rules ordered by priority DESC, optionally for one country."""
    stmt = select(Rule).order_by(Rule.priority.desc(), Rule.rule_id)
    if country_code:
        stmt = stmt.where(Rule.country_code == country_code)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def upsert_rule(db: AsyncSession, record: RuleRecord) -> tuple[Rule, bool]:
    """Create or update a rule by rule_id. Returns (rule, created)."""
    rule = await db.get(Rule, record.rule_id)
    created = rule is None
    if created:
        rule = Rule(rule_id=record.rule_id)
        db.add(rule)
    rule.country_code = record.country_code
    rule.rule_type = record.rule_type.value
    rule.name = record.name
    rule.description = record.description
    rule.expression = record.expression
    rule.parameters = [
        {"name": p.name, "data_type": p.data_type, "default_value": p.default_value}
        for p in record.parameters
    ]
    rule.conditions = [
        {"parameter": c.parameter, "operator": c.operator, "value": c.value}
        for c in record.conditions
    ]
    rule.effective_from = record.effective_from
    rule.effective_to = record.effective_to
    rule.priority = record.priority
    rule.is_active = record.is_active
    rule.updated_at = _now_iso()
    await db.flush()
    return rule, created


# -----------------------
# Calculations
# -----------------------


async def get_calculation_by_idempotency(
    db: AsyncSession, idempotency_key: str
) -> Calculation | None:
    """Find existing calculation for idempotency."""
    result = await db.execute(
        select(Calculation).where(Calculation.idempotency_key == idempotency_key)
    )
    return result.scalar_one_or_none()


async def get_calculation_by_id(db: AsyncSession, calculation_id: str) -> Calculation | None:
    """Get calculation by ID."""
    return await db.get(Calculation, calculation_id)


async def list_calculations(
    db: AsyncSession, page: int, page_size: int
) -> tuple[list[Calculation], int]:
    """One page of calculations, newest first, and the total count."""
    total = await db.scalar(select(func.count()).select_from(Calculation))
    result = await db.execute(
        select(Calculation)
        .order_by(Calculation.created_at.desc(), Calculation.calculation_id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total or 0


async def create_calculation(
    db: AsyncSession,
    input_json: dict,
    output_json: dict,
    total_cost: Decimal,
    currency_code: str,
    request_hash: str,
    rules_hash: str,
    idempotency_key: str | None = None,
) -> Calculation:
    """Create a saved calculation record."""
    calc = Calculation(
        calculation_id=str(uuid4()),
        idempotency_key=idempotency_key,
        request_hash=request_hash,
        rules_hash=rules_hash,
        input_json=input_json,
        output_json=output_json,
        total_cost=total_cost,
        currency_code=currency_code,
        created_at=_now_iso(),
    )
    db.add(calc)
    await db.flush()
    return calc


async def table_counts(db: AsyncSession) -> dict[str, int]:
    """Row counts used by the metrics endpoint."""
    counts = {}
    for key, model in (("countries", Country), ("rules", Rule), ("calculations", Calculation)):
        counts[key] = await db.scalar(select(func.count()).select_from(model)) or 0
    return counts
