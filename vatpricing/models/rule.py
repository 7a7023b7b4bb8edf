"""Pricing rule model."""

from datetime import date

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vatpricing.database import Base
from vatpricing.models.types import JSONType


class Rule(Base):
    """Pricing rules - country_code NULL marks a global discount rule."""

    __tablename__ = "rules"

    rule_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    country_code: Mapped[str | None] = mapped_column(String(2), nullable=True, index=True)
    rule_type: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    expression: Mapped[str] = mapped_column(Text, nullable=False)
    parameters: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)  # [{name, data_type, default_value}]
    conditions: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)  # [{parameter, operator, value}]
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[str] = mapped_column(String(50), nullable=False)
