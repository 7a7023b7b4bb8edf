"""VAT filing pricing FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vatpricing.api.admin import router as admin_router
from vatpricing.api.countries import router as countries_router
from vatpricing.api.health import router as health_router
from vatpricing.api.pricing import router as pricing_router
from vatpricing.config import settings
from vatpricing.engine.errors import (
    CountryNotSupportedError,
    CurrencyMismatchError,
    PricingError,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="VAT Filing Pricing",
    description="Estimates multi-country VAT filing cost from configurable pricing rules",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(pricing_router, prefix="/v1", tags=["Pricing"])
app.include_router(countries_router, prefix="/v1", tags=["Countries"])
app.include_router(admin_router, prefix="/v1/admin", tags=["Admin"])


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError):
    """Engine errors become {errorCode, message, details} bodies."""
    if isinstance(exc, CountryNotSupportedError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, CurrencyMismatchError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    logger.warning("%s %s failed: %s %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"errorCode": exc.code, "message": exc.message, "details": exc.details},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "VAT Filing Pricing", "version": "0.1.0", "docs": "/docs"}
