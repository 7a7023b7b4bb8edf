"""Pricing endpoints."""

import dataclasses
import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from vatpricing.config import settings
from vatpricing.database import get_db
from vatpricing.engine.pricing import calculate_pricing
from vatpricing.engine.types import CalculationRequest
from vatpricing.schemas.pricing import (
    CalculateRequest,
    CalculateResponse,
    CalculationHistoryResponse,
    CalculationSummary,
    SaveCalculationRequest,
    SavedCalculationResponse,
)
from vatpricing.storage.repositories import (
    create_calculation,
    get_calculation_by_id,
    get_calculation_by_idempotency,
    get_countries_by_codes,
    get_rules_for_countries,
    list_calculations,
)
from vatpricing.utils.canonical import request_hash, rules_hash

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_calculation(
    body: CalculateRequest, db: AsyncSession
) -> tuple[CalculationRequest, CalculateResponse, str]:
    """Price the request against stored rules. Returns (request, response, rules_hash)."""
    request = body.to_domain(settings.default_currency_code)
    # Pin the reference date so a saved calculation can be replayed
    request = dataclasses.replace(request, reference_date=request.reference_date or date.today())

    rules = await get_rules_for_countries(db, list(request.country_codes))
    result = calculate_pricing(
        request,
        rules,
        max_transaction_volume=settings.max_transaction_volume,
        max_countries=settings.max_countries_per_request,
    )
    if not result.country_breakdowns:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "errorCode": "PRICING-003",
                "message": "None of the requested countries are supported",
                "details": [f.message for f in result.country_failures],
            },
        )

    response = CalculateResponse.from_result(request, result)
    countries = await get_countries_by_codes(db, list(request.country_codes))
    for breakdown in response.country_breakdowns:
        if breakdown.country_code in countries:
            breakdown.country_name = countries[breakdown.country_code].name
    return request, response, rules_hash(rules)


@router.post("/pricing/calculate", response_model=CalculateResponse)
async def calculate(
    body: CalculateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Estimate VAT filing cost for the requested countries.
    Rules that fail to evaluate are reported as warnings; unsupported
    countries are reported as errors and excluded from the total.
    """
    _, response, _ = await _run_calculation(body, db)
    return response


@router.post("/pricing/calculations", response_model=SavedCalculationResponse)
async def save_calculation(
    body: SaveCalculationRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Calculate and store. Idempotent when idempotencyKey is provided."""
    if body.idempotency_key:
        existing = await get_calculation_by_idempotency(db, body.idempotency_key)
        if existing:
            return _saved_response(existing)

    request, response, rh = await _run_calculation(body, db)
    calc = await create_calculation(
        db=db,
        input_json=body.model_dump(mode="json", by_alias=True),
        output_json=response.model_dump(mode="json", by_alias=True),
        total_cost=response.total_cost,
        currency_code=response.currency_code,
        request_hash=request_hash(request),
        rules_hash=rh,
        idempotency_key=body.idempotency_key,
    )
    logger.info("Saved calculation %s (%s %s)", calc.calculation_id, calc.total_cost, calc.currency_code)
    return _saved_response(calc)


@router.get("/pricing/calculations/{calculation_id}", response_model=SavedCalculationResponse)
async def get_calculation(
    calculation_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get a saved calculation by ID."""
    calc = await get_calculation_by_id(db, calculation_id)
    if not calc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"errorCode": "PRICING-009", "message": "Calculation not found"},
        )
    return _saved_response(calc)


@router.get("/pricing/calculations", response_model=CalculationHistoryResponse)
async def calculation_history(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, alias="pageSize")] = 10,
):
    """Saved calculations, newest first."""
    items, total = await list_calculations(db, page, page_size)
    return CalculationHistoryResponse(
        items=[
            CalculationSummary(
                calculation_id=c.calculation_id,
                calculation_date=c.created_at,
                total_cost=c.total_cost,
                currency_code=c.currency_code,
                country_codes=c.input_json.get("countryCodes", []),
            )
            for c in items
        ],
        page=page,
        page_size=page_size,
        total_count=total,
    )


def _saved_response(calc) -> SavedCalculationResponse:
    return SavedCalculationResponse(
        calculation_id=calc.calculation_id,
        calculation_date=calc.created_at,
        request_hash=calc.request_hash,
        rules_hash=calc.rules_hash,
        calculation=CalculateResponse.model_validate(calc.output_json),
    )
