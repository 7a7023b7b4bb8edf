"""Saved calculation model."""

from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vatpricing.database import Base
from vatpricing.models.types import JSONType


class Calculation(Base):
    """Saved calculations - append-only, replayable from input_json."""

    __tablename__ = "calculations"

    calculation_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    idempotency_key: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
    request_hash: Mapped[str] = mapped_column(Text, nullable=False)
    rules_hash: Mapped[str] = mapped_column(Text, nullable=False)
    input_json: Mapped[dict] = mapped_column(JSONType, nullable=False)
    output_json: Mapped[dict] = mapped_column(JSONType, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    created_at: Mapped[str] = mapped_column(String(50), nullable=False)
