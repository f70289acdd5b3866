"""Schemas for expense endpoints."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from splitledger.api.schemas.common import (
    MONEY_PATTERN,
    PERCENTAGE_PATTERN,
    SIGNED_MONEY_PATTERN,
)
from splitledger.db.models.expense import Expense, ExpenseParticipant
from splitledger.domain.money import format_money, parse_money
from splitledger.domain.split_calculator import ParticipantInput


def _strip_required(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Description cannot be blank.")
    return trimmed


class ExpenseParticipantRequest(BaseModel):
    """One participant line; only the field for the split method is read."""

    user_id: UUID
    paid_amount: str = Field(default="0.00", pattern=MONEY_PATTERN)
    owed_amount: str | None = Field(default=None, pattern=MONEY_PATTERN)
    percentage: str | None = Field(default=None, pattern=PERCENTAGE_PATTERN)
    shares: int | None = None

    def to_input(self) -> ParticipantInput:
        return ParticipantInput(
            user_id=self.user_id,
            paid_amount=parse_money(self.paid_amount),
            owed_amount=parse_money(self.owed_amount) if self.owed_amount else None,
            percentage=Decimal(self.percentage) if self.percentage else None,
            shares=self.shares,
        )


class CreateExpenseRequest(BaseModel):
    """Payload for creating a shared expense."""

    description: str = Field(min_length=1, max_length=500)
    amount: str = Field(pattern=MONEY_PATTERN)
    category: str = "general"
    split_method: str
    expense_date: date_type | None = Field(default=None, validation_alias="date")
    group_id: UUID | None = None
    receipt_url: str | None = Field(default=None, max_length=2048)
    participants: list[ExpenseParticipantRequest]

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str) -> str:
        return _strip_required(value)


class UpdateExpenseRequest(BaseModel):
    """Partial update payload; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    description: str | None = Field(default=None, min_length=1, max_length=500)
    category: str | None = None
    expense_date: date_type | None = Field(default=None, validation_alias="date")
    receipt_url: str | None = Field(default=None, max_length=2048)
    amount: str | None = Field(default=None, pattern=MONEY_PATTERN)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _strip_required(value)


class ExpenseParticipantResponse(BaseModel):
    """Serialized participant line."""

    user_id: UUID
    paid_amount: str = Field(pattern=MONEY_PATTERN)
    owed_amount: str = Field(pattern=MONEY_PATTERN)
    net_amount: str = Field(pattern=SIGNED_MONEY_PATTERN)
    is_settled: bool
    settled_at: datetime | None

    @classmethod
    def from_model(cls, participant: ExpenseParticipant) -> ExpenseParticipantResponse:
        return cls(
            user_id=participant.user_id,
            paid_amount=format_money(participant.paid_amount),
            owed_amount=format_money(participant.owed_amount),
            net_amount=format_money(participant.net_amount),
            is_settled=participant.is_settled,
            settled_at=participant.settled_at,
        )


class ExpenseResponse(BaseModel):
    """Serialized expense returned by API."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    description: str
    amount: str = Field(pattern=MONEY_PATTERN)
    category: str
    expense_date: date_type = Field(alias="date")
    created_by: UUID
    group_id: UUID | None
    receipt_url: str | None
    created_at: datetime
    updated_at: datetime
    participants: list[ExpenseParticipantResponse]

    @classmethod
    def from_model(cls, expense: Expense) -> ExpenseResponse:
        return cls(
            id=expense.id,
            description=expense.description,
            amount=format_money(expense.amount),
            category=expense.category.value,
            expense_date=expense.expense_date,
            created_by=expense.created_by,
            group_id=expense.group_id,
            receipt_url=expense.receipt_url,
            created_at=expense.created_at,
            updated_at=expense.updated_at,
            participants=[
                ExpenseParticipantResponse.from_model(participant)
                for participant in expense.participants
            ],
        )


class ExpenseListResponse(BaseModel):
    """Page of expenses."""

    items: list[ExpenseResponse]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_models(
        cls,
        *,
        items: list[Expense],
        total: int,
        limit: int,
        offset: int,
    ) -> ExpenseListResponse:
        return cls(
            items=[ExpenseResponse.from_model(item) for item in items],
            total=total,
            limit=limit,
            offset=offset,
        )
