"""Settlement lifecycle: Pending -> Confirmed | Deleted."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from splitledger.domain.errors import (
    AuthorizationError,
    StateError,
    ValidationError,
    compose_error_message,
)


class SettlementState(enum.StrEnum):
    """Lifecycle states of a settlement record."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELETED = "deleted"


class PaymentMethod(enum.StrEnum):
    """Closed set of attested payment methods."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    PAYPAL = "paypal"
    VENMO = "venmo"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    OTHER = "other"


class SettlementRecord(Protocol):
    """Fields of a settlement the lifecycle rules read."""

    id: UUID
    payer_id: UUID
    payee_id: UUID
    is_confirmed: bool
    deleted_at: datetime | None


@dataclass(frozen=True, slots=True)
class SettlementPatch:
    """Mutable settlement fields; ``None`` leaves a field unchanged."""

    amount: Decimal | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        return (
            self.amount is None and self.payment_method is None and self.notes is None
        )


def settlement_state(settlement: SettlementRecord) -> SettlementState:
    """Derive the lifecycle state from the persisted markers."""

    if settlement.deleted_at is not None:
        return SettlementState.DELETED
    if settlement.is_confirmed:
        return SettlementState.CONFIRMED
    return SettlementState.PENDING


def parse_payment_method(value: PaymentMethod | str) -> PaymentMethod:
    """Resolve a payment method or raise a validation error."""

    try:
        return PaymentMethod(value)
    except ValueError as exc:
        raise ValidationError(
            message=compose_error_message(
                cause=f"Payment method '{value}' is not supported.",
                action="Use one of: "
                + ", ".join(method.value for method in PaymentMethod)
                + ".",
            ),
            rule="invalid_payment_method",
        ) from exc


def validate_new_settlement(
    *,
    payer_id: UUID,
    payee_id: UUID,
    amount: Decimal,
) -> None:
    """Check creation rules that do not depend on group membership."""

    if payer_id == payee_id:
        raise ValidationError(
            message=compose_error_message(
                cause="Cannot create a settlement with yourself.",
                action="Choose a different payee.",
            ),
            rule="self_settlement",
        )
    _validate_amount(amount)


def ensure_can_update(
    settlement: SettlementRecord,
    actor_id: UUID,
    patch: SettlementPatch,
) -> None:
    """Only the payer may edit, and only while the settlement is pending."""

    if settlement.payer_id != actor_id:
        raise AuthorizationError(
            message=compose_error_message(
                cause="Only the payer can update this settlement.",
                action="Ask the payer to make the change.",
            ),
            details={"settlement_id": str(settlement.id)},
        )
    _ensure_pending(settlement, target="updated")
    if patch.amount is not None:
        _validate_amount(patch.amount)


def ensure_can_confirm(settlement: SettlementRecord, actor_id: UUID) -> None:
    """Only the payee may confirm a pending settlement.

    State is checked before the actor, so confirming a non-pending settlement
    is a state error for everyone.
    """

    _ensure_pending(settlement, target="confirmed")
    if settlement.payee_id != actor_id:
        raise AuthorizationError(
            message=compose_error_message(
                cause="Only the payee can confirm this settlement.",
                action="Ask the payee to confirm the payment.",
            ),
            details={"settlement_id": str(settlement.id)},
        )


def ensure_can_delete(settlement: SettlementRecord, actor_id: UUID) -> None:
    """Only the payer may delete, and only while the settlement is pending."""

    if settlement.payer_id != actor_id:
        raise AuthorizationError(
            message=compose_error_message(
                cause="Only the payer can delete this settlement.",
                action="Ask the payer to remove it.",
            ),
            details={"settlement_id": str(settlement.id)},
        )
    _ensure_pending(settlement, target="deleted")


def _ensure_pending(settlement: SettlementRecord, *, target: str) -> None:
    state = settlement_state(settlement)
    if state != SettlementState.PENDING:
        raise StateError(
            message=compose_error_message(
                cause=f"Settlement is {state.value} and cannot be {target}.",
                action="Only pending settlements can change.",
            ),
            details={
                "settlement_id": str(settlement.id),
                "from_state": state.value,
                "operation": target,
            },
        )


def _validate_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise ValidationError(
            message=compose_error_message(
                cause="Settlement amount must be greater than zero.",
                action="Provide a positive amount.",
            ),
            rule="amount_not_positive",
        )
