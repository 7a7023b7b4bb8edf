"""Country directory endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vatpricing.database import get_db
from vatpricing.schemas.admin import CountryResponse
from vatpricing.storage.repositories import list_countries

router = APIRouter()


@router.get("/countries", response_model=list[CountryResponse])
async def get_countries(db: Annotated[AsyncSession, Depends(get_db)]):
    """Active countries available for pricing."""
    countries = await list_countries(db)
    return [
        CountryResponse(
            country_code=c.country_code,
            name=c.name,
            currency_code=c.currency_code,
            is_active=c.is_active,
        )
        for c in countries
    ]
