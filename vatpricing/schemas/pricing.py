"""Pricing request/response schemas."""

from datetime import date, datetime

from pydantic import Field, field_validator

from vatpricing.engine.types import (
    CalculationRequest,
    CalculationResult,
    CountryCostBreakdown,
    FilingFrequency,
    ServiceType,
)
from vatpricing.schemas.common import CamelModel, Money


class CalculateRequest(CamelModel):
    """POST /v1/pricing/calculate request."""

    country_codes: list[str]
    service_type: ServiceType = ServiceType.STANDARD_FILING
    transaction_volume: int
    frequency: FilingFrequency = FilingFrequency.MONTHLY
    additional_services: list[str] = Field(default_factory=list)
    reference_date: date | None = None
    currency_code: str | None = None

    @field_validator("country_codes", mode="after")
    @classmethod
    def normalize_country_codes(cls, v: list[str]) -> list[str]:
        return [c.strip().upper() for c in v]

    def to_domain(self, default_currency: str) -> CalculationRequest:
        return CalculationRequest(
            country_codes=tuple(self.country_codes),
            service_type=self.service_type,
            transaction_volume=self.transaction_volume,
            frequency=self.frequency,
            additional_services=tuple(self.additional_services),
            reference_date=self.reference_date,
            currency_code=(self.currency_code or default_currency).upper(),
        )


class SaveCalculationRequest(CalculateRequest):
    """POST /v1/pricing/calculations request."""

    idempotency_key: str | None = None


class CountryCalculationResponse(CamelModel):
    """Per-country cost breakdown."""

    country_code: str
    country_name: str
    base_cost: Money
    additional_cost: Money
    total_cost: Money
    applied_rules: list[str] = Field(default_factory=list)

    @classmethod
    def from_breakdown(cls, b: CountryCostBreakdown) -> "CountryCalculationResponse":
        return cls(
            country_code=b.country_code,
            country_name=b.country_name,
            base_cost=b.base_cost,
            additional_cost=b.additional_cost,
            total_cost=b.total_cost,
            applied_rules=list(b.applied_rules),
        )


class RuleWarning(CamelModel):
    """Rule skipped because its expression could not be evaluated."""

    rule_id: str
    rule_name: str
    error_code: str
    message: str


class CountryError(CamelModel):
    """Country omitted from the total."""

    country_code: str
    error_code: str
    message: str


class CalculateResponse(CamelModel):
    """Calculation result in the external contract shape."""

    service_type: ServiceType
    transaction_volume: int
    frequency: FilingFrequency
    total_cost: Money
    currency_code: str
    country_breakdowns: list[CountryCalculationResponse] = Field(default_factory=list)
    additional_services: list[str] = Field(default_factory=list)
    discounts: dict[str, Money] = Field(default_factory=dict)
    warnings: list[RuleWarning] = Field(default_factory=list)
    errors: list[CountryError] = Field(default_factory=list)

    @classmethod
    def from_result(
        cls, request: CalculationRequest, result: CalculationResult
    ) -> "CalculateResponse":
        return cls(
            service_type=request.service_type,
            transaction_volume=request.transaction_volume,
            frequency=request.frequency,
            total_cost=result.total_cost,
            currency_code=result.currency_code,
            country_breakdowns=[
                CountryCalculationResponse.from_breakdown(b) for b in result.country_breakdowns
            ],
            additional_services=list(result.additional_services),
            discounts=dict(result.discounts),
            warnings=[
                RuleWarning(
                    rule_id=f.rule_id,
                    rule_name=f.rule_name,
                    error_code=f.error_code,
                    message=f.message,
                )
                for f in result.rule_failures
            ],
            errors=[
                CountryError(country_code=f.country_code, error_code=f.error_code, message=f.message)
                for f in result.country_failures
            ],
        )


class SavedCalculationResponse(CamelModel):
    """Saved calculation with its identifier."""

    calculation_id: str
    calculation_date: datetime
    request_hash: str
    rules_hash: str
    calculation: CalculateResponse


class CalculationSummary(CamelModel):
    """History list item."""

    calculation_id: str
    calculation_date: datetime
    total_cost: Money
    currency_code: str
    country_codes: list[str]


class CalculationHistoryResponse(CamelModel):
    """GET /v1/pricing/calculations response."""

    items: list[CalculationSummary]
    page: int
    page_size: int
    total_count: int
