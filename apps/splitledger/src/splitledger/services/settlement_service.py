"""Business service for settlement records and their lifecycle."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from splitledger.db.models.settlement import Settlement
from splitledger.db.transaction import TransactionalSession, atomic
from splitledger.domain.errors import (
    AuthorizationError,
    DomainError,
    SettlementNotFoundError,
    StateError,
    UserNotFoundError,
    ValidationError,
    compose_error_message,
)
from splitledger.domain.money import quantize_money
from splitledger.domain.settlement_ledger import (
    PaymentMethod,
    SettlementPatch,
    ensure_can_confirm,
    ensure_can_delete,
    ensure_can_update,
    parse_payment_method,
    validate_new_settlement,
)
from splitledger.services.expense_service import GroupRepositoryProtocol

logger = logging.getLogger(__name__)


class SettlementRepositoryProtocol(Protocol):
    """Settlement repository contract consumed by service."""

    def add(self, settlement: Settlement) -> Settlement: ...

    def get(self, settlement_id: UUID) -> Settlement | None: ...

    def get_for_update(self, settlement_id: UUID) -> Settlement | None: ...

    def list_by_user(
        self, user_id: UUID, *, limit: int, offset: int
    ) -> list[Settlement]: ...

    def list_between(
        self, user_id: UUID, other_user_id: UUID
    ) -> list[Settlement]: ...

    def list_by_group(
        self, group_id: UUID, *, limit: int, offset: int
    ) -> list[Settlement]: ...

    def confirm_pending(
        self, settlement_id: UUID, *, payee_id: UUID, confirmed_at: datetime
    ) -> bool: ...

    def soft_delete_pending(
        self, settlement_id: UUID, *, payer_id: UUID, deleted_at: datetime
    ) -> bool: ...


class UserLookupProtocol(Protocol):
    """User repository contract consumed by service."""

    def get(self, user_id: UUID) -> object | None: ...


@dataclass(slots=True, frozen=True)
class CreateSettlementInput:
    """Input model for recording a payment between two users."""

    payer_id: UUID
    payee_id: UUID
    amount: Decimal
    payment_method: PaymentMethod | str = PaymentMethod.CASH
    notes: str = ""
    group_id: UUID | None = None


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SettlementService:
    """Applies the settlement lifecycle with check-and-set writes."""

    def __init__(
        self,
        *,
        settlement_repository: SettlementRepositoryProtocol,
        user_repository: UserLookupProtocol,
        group_repository: GroupRepositoryProtocol,
        session: TransactionalSession,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settlement_repository = settlement_repository
        self._user_repository = user_repository
        self._group_repository = group_repository
        self._session = session
        self._clock = clock

    def create_settlement(self, payload: CreateSettlementInput) -> Settlement:
        validate_new_settlement(
            payer_id=payload.payer_id,
            payee_id=payload.payee_id,
            amount=payload.amount,
        )
        payment_method = parse_payment_method(payload.payment_method)
        amount = quantize_money(payload.amount)
        if amount <= 0:
            raise ValidationError(
                message=compose_error_message(
                    cause="Settlement amount rounds to zero.",
                    action="Provide an amount of at least 0.01.",
                ),
                rule="amount_not_positive",
            )

        if self._user_repository.get(payload.payee_id) is None:
            raise UserNotFoundError(details={"user_id": str(payload.payee_id)})

        if payload.group_id is not None:
            for user_id in (payload.payer_id, payload.payee_id):
                if not self._group_repository.is_active_member(
                    payload.group_id, user_id
                ):
                    raise ValidationError(
                        message=compose_error_message(
                            cause="Both payer and payee must be group members.",
                            action="Record the settlement without a group or "
                            "between active members.",
                        ),
                        rule="settlement_user_not_in_group",
                        details={
                            "group_id": str(payload.group_id),
                            "user_id": str(user_id),
                        },
                    )

        settlement = Settlement(
            payer_id=payload.payer_id,
            payee_id=payload.payee_id,
            amount=amount,
            payment_method=payment_method,
            notes=payload.notes.strip(),
            group_id=payload.group_id,
            is_confirmed=False,
        )
        with atomic(self._session):
            created = self._settlement_repository.add(settlement)

        logger.info(
            "settlement_created",
            extra={
                "settlement_id": str(created.id),
                "payer_id": str(payload.payer_id),
                "payee_id": str(payload.payee_id),
                "amount": str(amount),
            },
        )
        return created

    def get_settlement(self, settlement_id: UUID, *, user_id: UUID) -> Settlement:
        settlement = self._settlement_repository.get(settlement_id)
        if settlement is None:
            raise SettlementNotFoundError(
                details={"settlement_id": str(settlement_id)}
            )
        if user_id not in (settlement.payer_id, settlement.payee_id):
            raise AuthorizationError(
                message=compose_error_message(
                    cause="You are not a party to this settlement.",
                    action="Open settlements you paid or received.",
                ),
                details={"settlement_id": str(settlement_id)},
            )
        return settlement

    def list_user_settlements(
        self,
        user_id: UUID,
        *,
        limit: int,
        offset: int,
    ) -> list[Settlement]:
        return self._settlement_repository.list_by_user(
            user_id, limit=limit, offset=offset
        )

    def list_settlements_between(
        self,
        user_id: UUID,
        other_user_id: UUID,
    ) -> list[Settlement]:
        return self._settlement_repository.list_between(user_id, other_user_id)

    def list_group_settlements(
        self,
        group_id: UUID,
        *,
        user_id: UUID,
        limit: int,
        offset: int,
    ) -> list[Settlement]:
        if not self._group_repository.is_active_member(group_id, user_id):
            raise AuthorizationError(
                message=compose_error_message(
                    cause="You are not a member of this group.",
                    action="Join the group before viewing its settlements.",
                ),
                details={"group_id": str(group_id)},
            )
        return self._settlement_repository.list_by_group(
            group_id, limit=limit, offset=offset
        )

    def update_settlement(
        self,
        settlement_id: UUID,
        patch: SettlementPatch,
        *,
        user_id: UUID,
    ) -> Settlement:
        if patch.is_empty():
            raise ValidationError(
                message=compose_error_message(
                    cause="No settlement fields were sent for update.",
                    action="Send amount, payment_method or notes.",
                ),
                rule="empty_patch",
            )

        with atomic(self._session):
            settlement = self._load_for_transition(settlement_id)
            self._guard(
                lambda: ensure_can_update(settlement, user_id, patch),
                settlement_id=settlement_id,
                user_id=user_id,
                operation="update",
            )
            if patch.amount is not None:
                settlement.amount = quantize_money(patch.amount)
            if patch.payment_method is not None:
                settlement.payment_method = parse_payment_method(patch.payment_method)
            if patch.notes is not None:
                settlement.notes = patch.notes.strip()
            settlement.updated_at = self._clock()

        logger.info(
            "settlement_updated",
            extra={"settlement_id": str(settlement_id), "user_id": str(user_id)},
        )
        return settlement

    def confirm_settlement(self, settlement_id: UUID, *, user_id: UUID) -> Settlement:
        confirmed_at = self._clock()
        with atomic(self._session):
            settlement = self._load_for_transition(settlement_id)
            self._guard(
                lambda: ensure_can_confirm(settlement, user_id),
                settlement_id=settlement_id,
                user_id=user_id,
                operation="confirm",
            )
            changed = self._settlement_repository.confirm_pending(
                settlement_id,
                payee_id=user_id,
                confirmed_at=confirmed_at,
            )
            if not changed:
                raise self._lost_race(settlement_id, user_id, operation="confirm")
            settlement.is_confirmed = True
            settlement.confirmed_at = confirmed_at

        logger.info(
            "settlement_confirmed",
            extra={"settlement_id": str(settlement_id), "payee_id": str(user_id)},
        )
        return settlement

    def delete_settlement(self, settlement_id: UUID, *, user_id: UUID) -> None:
        deleted_at = self._clock()
        with atomic(self._session):
            settlement = self._load_for_transition(settlement_id)
            self._guard(
                lambda: ensure_can_delete(settlement, user_id),
                settlement_id=settlement_id,
                user_id=user_id,
                operation="delete",
            )
            changed = self._settlement_repository.soft_delete_pending(
                settlement_id,
                payer_id=user_id,
                deleted_at=deleted_at,
            )
            if not changed:
                raise self._lost_race(settlement_id, user_id, operation="delete")

        logger.info(
            "settlement_deleted",
            extra={"settlement_id": str(settlement_id), "payer_id": str(user_id)},
        )

    def _load_for_transition(self, settlement_id: UUID) -> Settlement:
        settlement = self._settlement_repository.get_for_update(settlement_id)
        if settlement is None:
            raise SettlementNotFoundError(
                details={"settlement_id": str(settlement_id)}
            )
        return settlement

    @staticmethod
    def _guard(
        check: Callable[[], None],
        *,
        settlement_id: UUID,
        user_id: UUID,
        operation: str,
    ) -> None:
        try:
            check()
        except DomainError as exc:
            logger.warning(
                "settlement_transition_rejected",
                extra={
                    "settlement_id": str(settlement_id),
                    "user_id": str(user_id),
                    "operation": operation,
                    "code": exc.code,
                },
            )
            raise

    @staticmethod
    def _lost_race(settlement_id: UUID, user_id: UUID, *, operation: str) -> StateError:
        logger.warning(
            "settlement_transition_conflict",
            extra={
                "settlement_id": str(settlement_id),
                "user_id": str(user_id),
                "operation": operation,
            },
        )
        return StateError(
            message=compose_error_message(
                cause="Settlement changed state while this request was running.",
                action="Reload the settlement and check its current state.",
            ),
            details={"settlement_id": str(settlement_id), "operation": operation},
        )
