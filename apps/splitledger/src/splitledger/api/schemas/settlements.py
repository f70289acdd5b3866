"""Schemas for settlement endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from splitledger.api.schemas.common import MONEY_PATTERN
from splitledger.db.models.settlement import Settlement
from splitledger.domain.money import format_money


class CreateSettlementRequest(BaseModel):
    """Payload recording that the caller paid ``payee_id``."""

    payee_id: UUID
    amount: str = Field(pattern=MONEY_PATTERN)
    payment_method: str = "cash"
    notes: str = Field(default="", max_length=1000)
    group_id: UUID | None = None


class UpdateSettlementRequest(BaseModel):
    """Partial update of a pending settlement; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    amount: str | None = Field(default=None, pattern=MONEY_PATTERN)
    payment_method: str | None = None
    notes: str | None = Field(default=None, max_length=1000)


class SettlementResponse(BaseModel):
    """Serialized settlement returned by API."""

    id: UUID
    payer_id: UUID
    payee_id: UUID
    amount: str = Field(pattern=MONEY_PATTERN)
    payment_method: str
    notes: str
    group_id: UUID | None
    status: str
    is_confirmed: bool
    confirmed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, settlement: Settlement) -> SettlementResponse:
        return cls(
            id=settlement.id,
            payer_id=settlement.payer_id,
            payee_id=settlement.payee_id,
            amount=format_money(settlement.amount),
            payment_method=settlement.payment_method.value,
            notes=settlement.notes,
            group_id=settlement.group_id,
            status=settlement.state.value,
            is_confirmed=settlement.is_confirmed,
            confirmed_at=settlement.confirmed_at,
            created_at=settlement.created_at,
            updated_at=settlement.updated_at,
        )


class SettlementListResponse(BaseModel):
    """List of settlements."""

    items: list[SettlementResponse]

    @classmethod
    def from_models(cls, items: list[Settlement]) -> SettlementListResponse:
        return cls(items=[SettlementResponse.from_model(item) for item in items])
