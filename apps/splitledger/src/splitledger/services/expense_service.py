"""Business service for shared expenses."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from splitledger.db.models.expense import Expense, ExpenseParticipant
from splitledger.db.models.group import Group
from splitledger.db.transaction import TransactionalSession, atomic
from splitledger.domain.errors import (
    AuthorizationError,
    ExpenseNotFoundError,
    GroupNotFoundError,
    StateError,
    UserNotFoundError,
    ValidationError,
    compose_error_message,
)
from splitledger.domain.expense_rules import (
    ExpenseCategory,
    parse_category,
    resolve_expense_date,
)
from splitledger.domain.money import quantize_money
from splitledger.domain.split_calculator import (
    ParticipantInput,
    SplitMethod,
    compute_splits,
)
from splitledger.repositories.expense_repository import ExpenseQueryFilters

logger = logging.getLogger(__name__)


class ExpenseRepositoryProtocol(Protocol):
    """Expense repository contract consumed by service."""

    def add(self, expense: Expense) -> Expense: ...

    def get(self, expense_id: UUID) -> Expense | None: ...

    def list_by_user(
        self,
        user_id: UUID,
        filters: ExpenseQueryFilters,
    ) -> tuple[list[Expense], int]: ...

    def list_by_group(
        self,
        group_id: UUID,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[Expense], int]: ...

    def delete(self, expense: Expense) -> None: ...


class UserRepositoryProtocol(Protocol):
    """User repository contract consumed by service."""

    def list_existing_ids(self, user_ids: Sequence[UUID]) -> set[UUID]: ...


class GroupRepositoryProtocol(Protocol):
    """Group repository contract consumed by service."""

    def get(self, group_id: UUID) -> Group | None: ...

    def is_active_member(self, group_id: UUID, user_id: UUID) -> bool: ...


@dataclass(slots=True, frozen=True)
class CreateExpenseInput:
    """Input model for expense creation."""

    description: str
    amount: Decimal
    split_method: SplitMethod | str
    participants: Sequence[ParticipantInput]
    created_by: UUID
    category: ExpenseCategory | str = ExpenseCategory.GENERAL
    expense_date: date | None = None
    group_id: UUID | None = None
    receipt_url: str | None = None


@dataclass(slots=True, frozen=True)
class ExpensePatch:
    """Editable expense fields; ``None`` leaves a field unchanged.

    ``amount`` is accepted only so an attempt to change it can be rejected
    with a validation error instead of being silently dropped.
    """

    description: str | None = None
    category: ExpenseCategory | str | None = None
    expense_date: date | None = None
    receipt_url: str | None = None
    amount: Decimal | None = None


class ExpenseService:
    """Handles expense creation, visibility and edit rules."""

    def __init__(
        self,
        *,
        expense_repository: ExpenseRepositoryProtocol,
        user_repository: UserRepositoryProtocol,
        group_repository: GroupRepositoryProtocol,
        session: TransactionalSession,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._expense_repository = expense_repository
        self._user_repository = user_repository
        self._group_repository = group_repository
        self._session = session
        self._today = today

    def create_expense(self, payload: CreateExpenseInput) -> Expense:
        category = parse_category(payload.category)
        expense_date = resolve_expense_date(payload.expense_date, today=self._today())
        amount = quantize_money(payload.amount)
        participant_ids = [participant.user_id for participant in payload.participants]

        if payload.group_id is not None:
            self._ensure_group_member(payload.group_id, payload.created_by)
            for user_id in participant_ids:
                if not self._group_repository.is_active_member(
                    payload.group_id, user_id
                ):
                    raise ValidationError(
                        message=compose_error_message(
                            cause=f"User {user_id} is not a member of the group.",
                            action="Only add active group members as participants.",
                        ),
                        rule="participant_not_in_group",
                        details={"user_id": str(user_id)},
                    )

        existing_ids = self._user_repository.list_existing_ids(participant_ids)
        missing_ids = [uid for uid in participant_ids if uid not in existing_ids]
        if missing_ids:
            raise UserNotFoundError(
                message=compose_error_message(
                    cause=f"User not found: {missing_ids[0]}.",
                    action="Check participant user IDs and retry.",
                ),
                details={"user_ids": [str(uid) for uid in missing_ids]},
            )

        try:
            splits = compute_splits(amount, payload.split_method, payload.participants)
        except ValidationError as exc:
            logger.warning(
                "expense_split_rejected",
                extra={
                    "created_by": str(payload.created_by),
                    "split_method": str(payload.split_method),
                    "rule": exc.rule,
                },
            )
            raise

        expense = Expense(
            description=payload.description.strip(),
            amount=amount,
            category=category,
            expense_date=expense_date,
            created_by=payload.created_by,
            group_id=payload.group_id,
            receipt_url=payload.receipt_url,
            participants=[
                ExpenseParticipant(
                    user_id=split.user_id,
                    paid_amount=split.paid_amount,
                    owed_amount=split.owed_amount,
                    is_settled=False,
                )
                for split in splits
            ],
        )
        with atomic(self._session):
            created = self._expense_repository.add(expense)

        logger.info(
            "expense_created",
            extra={
                "expense_id": str(created.id),
                "created_by": str(payload.created_by),
                "group_id": str(payload.group_id) if payload.group_id else None,
                "split_method": str(payload.split_method),
                "participants": len(splits),
            },
        )
        return created

    def get_expense(self, expense_id: UUID, *, user_id: UUID) -> Expense:
        expense = self._require_expense(expense_id)
        if expense.participant_for(user_id) is None:
            raise AuthorizationError(
                message=compose_error_message(
                    cause="You are not a participant in this expense.",
                    action="Open expenses you take part in.",
                ),
                details={"expense_id": str(expense_id)},
            )
        return expense

    def list_user_expenses(
        self,
        user_id: UUID,
        filters: ExpenseQueryFilters,
    ) -> tuple[list[Expense], int]:
        if (
            filters.start_date is not None
            and filters.end_date is not None
            and filters.start_date > filters.end_date
        ):
            raise ValidationError(
                message=compose_error_message(
                    cause="start_date must not be after end_date.",
                    action="Send a valid date range.",
                ),
                rule="invalid_date_range",
            )
        return self._expense_repository.list_by_user(user_id, filters)

    def list_group_expenses(
        self,
        group_id: UUID,
        *,
        user_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[Expense], int]:
        self._ensure_group_member(group_id, user_id)
        return self._expense_repository.list_by_group(
            group_id, limit=limit, offset=offset
        )

    def update_expense(
        self,
        expense_id: UUID,
        patch: ExpensePatch,
        *,
        user_id: UUID,
    ) -> Expense:
        expense = self._require_expense(expense_id)
        self._ensure_creator(expense, user_id, operation="update")

        if patch.amount is not None:
            raise ValidationError(
                message=compose_error_message(
                    cause="Expense amount cannot change after creation.",
                    action="Delete the expense and create a new one instead.",
                ),
                rule="amount_immutable",
            )

        category = parse_category(patch.category) if patch.category else None
        expense_date = (
            resolve_expense_date(patch.expense_date, today=self._today())
            if patch.expense_date is not None
            else None
        )

        with atomic(self._session):
            if patch.description is not None:
                expense.description = patch.description.strip()
            if category is not None:
                expense.category = category
            if expense_date is not None:
                expense.expense_date = expense_date
            if patch.receipt_url is not None:
                expense.receipt_url = patch.receipt_url

        logger.info(
            "expense_updated",
            extra={"expense_id": str(expense_id), "user_id": str(user_id)},
        )
        return expense

    def delete_expense(self, expense_id: UUID, *, user_id: UUID) -> None:
        expense = self._require_expense(expense_id)
        self._ensure_creator(expense, user_id, operation="delete")

        if expense.has_settled_participant():
            logger.warning(
                "expense_delete_rejected",
                extra={"expense_id": str(expense_id), "reason": "settled_participant"},
            )
            raise StateError(
                message=compose_error_message(
                    cause="Cannot delete an expense with settled participants.",
                    action="Keep the expense or record a settlement instead.",
                ),
                details={"expense_id": str(expense_id)},
            )

        with atomic(self._session):
            self._expense_repository.delete(expense)

        logger.info(
            "expense_deleted",
            extra={"expense_id": str(expense_id), "user_id": str(user_id)},
        )

    def _require_expense(self, expense_id: UUID) -> Expense:
        expense = self._expense_repository.get(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(details={"expense_id": str(expense_id)})
        return expense

    def _ensure_creator(self, expense: Expense, user_id: UUID, *, operation: str) -> None:
        if expense.created_by != user_id:
            raise AuthorizationError(
                message=compose_error_message(
                    cause=f"Only the creator can {operation} this expense.",
                    action="Ask the expense creator to make the change.",
                ),
                details={"expense_id": str(expense.id)},
            )

    def _ensure_group_member(self, group_id: UUID, user_id: UUID) -> None:
        if self._group_repository.get(group_id) is None:
            raise GroupNotFoundError(details={"group_id": str(group_id)})
        if not self._group_repository.is_active_member(group_id, user_id):
            raise AuthorizationError(
                message=compose_error_message(
                    cause="You are not a member of this group.",
                    action="Join the group before using its expenses.",
                ),
                details={"group_id": str(group_id)},
            )
