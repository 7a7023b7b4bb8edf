"""Admin endpoints - rules and countries."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vatpricing.database import get_db
from vatpricing.engine import catalog
from vatpricing.engine.errors import ExpressionSyntaxError
from vatpricing.engine.expression import referenced_parameters
from vatpricing.engine.validation import validate_rule
from vatpricing.schemas.admin import (
    CountryRequest,
    CountryResponse,
    RuleRequest,
    RuleResponse,
    ValidateExpressionRequest,
    ValidateExpressionResponse,
)
from vatpricing.storage.repositories import list_rules, to_record, upsert_country, upsert_rule

router = APIRouter()


def _rule_response(rule) -> RuleResponse:
    record = to_record(rule)
    return RuleResponse(
        rule_id=record.rule_id,
        country_code=record.country_code,
        rule_type=record.rule_type,
        name=record.name,
        description=record.description,
        expression=record.expression,
        parameters=[
            {"name": p.name, "data_type": p.data_type, "default_value": p.default_value}
            for p in record.parameters
        ],
        conditions=[
            {"parameter": c.parameter, "operator": c.operator, "value": c.value}
            for c in record.conditions
        ],
        effective_from=record.effective_from,
        effective_to=record.effective_to,
        priority=record.priority,
        is_active=record.is_active,
        updated_at=rule.updated_at,
    )


@router.get("/rules", response_model=list[RuleResponse])
async def get_rules(
    db: Annotated[AsyncSession, Depends(get_db)],
    country_code: Annotated[str | None, Query(alias="countryCode")] = None,
):
    """List rules, optionally for one country."""
    rules = await list_rules(db, country_code.upper() if country_code else None)
    return [_rule_response(r) for r in rules]


@router.post("/rules")
async def create_or_update_rule(
    body: RuleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create or update a rule. The rule is validated before it is stored."""
    record = body.to_domain()
    validate_rule(record)
    rule, created = await upsert_rule(db, record)
    return {"ruleId": rule.rule_id, "state": "created" if created else "updated"}


@router.post("/rules/validate-expression", response_model=ValidateExpressionResponse)
async def validate_expression(body: ValidateExpressionRequest):
    """Check expression syntax and report parameters it references."""
    try:
        names = referenced_parameters(body.expression)
    except ExpressionSyntaxError as exc:
        return ValidateExpressionResponse(
            is_valid=False,
            error_code="RULE-003",
            message=exc.message,
            position=exc.position,
        )
    undeclared = sorted(names - set(body.parameters) - catalog.CALCULATION_INPUTS)
    return ValidateExpressionResponse(
        is_valid=not undeclared,
        referenced_parameters=sorted(names),
        undeclared_parameters=undeclared,
        error_code="RULE-008" if undeclared else None,
        message=f"Undeclared parameters: {undeclared}" if undeclared else None,
    )


@router.post("/countries", response_model=CountryResponse)
async def create_or_update_country(
    body: CountryRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create or update a country in the directory."""
    country, _ = await upsert_country(
        db, body.country_code, body.name, body.currency_code, body.is_active
    )
    return CountryResponse(
        country_code=country.country_code,
        name=country.name,
        currency_code=country.currency_code,
        is_active=country.is_active,
    )
