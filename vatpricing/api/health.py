"""Health and metrics endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from vatpricing.database import get_db
from vatpricing.storage.repositories import table_counts

router = APIRouter()


@router.get("/health")
async def health(db: Annotated[AsyncSession, Depends(get_db)]):
    """Liveness plus a database round trip."""
    await db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}


@router.get("/metrics")
async def metrics(db: Annotated[AsyncSession, Depends(get_db)]):
    """Row counts for the pricing tables."""
    return {"service": "vatpricing", "version": "0.1.0", **await table_counts(db)}
