"""Admin API schemas."""

from datetime import date

from pydantic import Field, field_validator

from vatpricing.engine import catalog
from vatpricing.engine.types import Rule, RuleCondition, RuleParameter, RuleType
from vatpricing.schemas.common import CamelModel


class RuleParameterPayload(CamelModel):
    """Declared rule parameter."""

    name: str
    data_type: str = "number"
    default_value: str | None = None


class RuleConditionPayload(CamelModel):
    """Rule activation condition."""

    parameter: str
    operator: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v):
        """Conditions store their comparison value as text."""
        if isinstance(v, bool):
            return "true" if v else "false"
        return v if isinstance(v, str) else str(v)


class RuleRequest(CamelModel):
    """POST /v1/admin/rules - create or update by rule_id."""

    rule_id: str
    country_code: str | None = None
    rule_type: RuleType
    name: str
    description: str = ""
    expression: str
    parameters: list[RuleParameterPayload] = Field(default_factory=list)
    conditions: list[RuleConditionPayload] = Field(default_factory=list)
    effective_from: date
    effective_to: date | None = None
    priority: int = catalog.DEFAULT_RULE_PRIORITY
    is_active: bool = True

    def to_domain(self) -> Rule:
        return Rule(
            rule_id=self.rule_id,
            country_code=self.country_code.upper() if self.country_code else None,
            rule_type=self.rule_type,
            name=self.name,
            expression=self.expression,
            effective_from=self.effective_from,
            effective_to=self.effective_to,
            priority=self.priority,
            is_active=self.is_active,
            parameters=tuple(
                RuleParameter(p.name, p.data_type, p.default_value) for p in self.parameters
            ),
            conditions=tuple(
                RuleCondition(c.parameter, c.operator, c.value) for c in self.conditions
            ),
            description=self.description,
        )


class RuleResponse(RuleRequest):
    """Stored rule."""

    updated_at: str


class ValidateExpressionRequest(CamelModel):
    """POST /v1/admin/rules/validate-expression request."""

    expression: str = Field(max_length=catalog.MAX_EXPRESSION_LENGTH)
    parameters: list[str] = Field(default_factory=list)


class ValidateExpressionResponse(CamelModel):
    """Expression check result."""

    is_valid: bool
    referenced_parameters: list[str] = Field(default_factory=list)
    undeclared_parameters: list[str] = Field(default_factory=list)
    error_code: str | None = None
    message: str | None = None
    position: int | None = None


class CountryRequest(CamelModel):
    """POST /v1/admin/countries - create or update a country."""

    country_code: str = Field(pattern=r"^[A-Z]{2}$")
    name: str
    currency_code: str = Field(pattern=r"^[A-Z]{3}$")
    is_active: bool = True


class CountryResponse(CountryRequest):
    """Country in the directory."""

    pass
