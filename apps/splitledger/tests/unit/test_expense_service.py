from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from splitledger.db.models.expense import Expense
from splitledger.db.models.group import Group
from splitledger.domain.errors import (
    AuthorizationError,
    ExpenseNotFoundError,
    StateError,
    UserNotFoundError,
    ValidationError,
)
from splitledger.domain.expense_rules import ExpenseCategory
from splitledger.domain.split_calculator import ParticipantInput
from splitledger.repositories.expense_repository import ExpenseQueryFilters
from splitledger.services.expense_service import (
    CreateExpenseInput,
    ExpensePatch,
    ExpenseService,
)

TODAY = date(2026, 3, 15)


class FakeSession:
    def __init__(self) -> None:
        self.commits = 0
        self.rolled_back = False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rolled_back = True


@dataclass
class FakeExpenseRepository:
    expenses: dict[UUID, Expense] = field(default_factory=dict)

    def add(self, expense: Expense) -> Expense:
        expense.id = expense.id or uuid4()
        self.expenses[expense.id] = expense
        return expense

    def get(self, expense_id: UUID) -> Expense | None:
        return self.expenses.get(expense_id)

    def list_by_user(
        self, user_id: UUID, filters: ExpenseQueryFilters
    ) -> tuple[list[Expense], int]:
        items = [e for e in self.expenses.values() if e.participant_for(user_id)]
        return items[filters.offset : filters.offset + filters.limit], len(items)

    def list_by_group(
        self, group_id: UUID, *, limit: int, offset: int
    ) -> tuple[list[Expense], int]:
        items = [e for e in self.expenses.values() if e.group_id == group_id]
        return items[offset : offset + limit], len(items)

    def delete(self, expense: Expense) -> None:
        del self.expenses[expense.id]


@dataclass
class FakeUserRepository:
    user_ids: set[UUID]

    def list_existing_ids(self, user_ids) -> set[UUID]:
        return {uid for uid in user_ids if uid in self.user_ids}


@dataclass
class FakeGroupRepository:
    members: dict[UUID, set[UUID]] = field(default_factory=dict)

    def get(self, group_id: UUID) -> Group | None:
        if group_id not in self.members:
            return None
        return Group(id=group_id, name="Trip", created_by=uuid4())

    def is_active_member(self, group_id: UUID, user_id: UUID) -> bool:
        return user_id in self.members.get(group_id, set())


ANA, BIA, CAIO = uuid4(), uuid4(), uuid4()


def _service(
    groups: dict[UUID, set[UUID]] | None = None,
) -> tuple[ExpenseService, FakeExpenseRepository, FakeSession]:
    repository = FakeExpenseRepository()
    session = FakeSession()
    service = ExpenseService(
        expense_repository=repository,
        user_repository=FakeUserRepository({ANA, BIA, CAIO}),
        group_repository=FakeGroupRepository(groups or {}),
        session=session,
        today=lambda: TODAY,
    )
    return service, repository, session


def _dinner(**overrides) -> CreateExpenseInput:
    values = {
        "description": " Dinner ",
        "amount": Decimal("90.00"),
        "split_method": "equal",
        "participants": [
            ParticipantInput(user_id=ANA, paid_amount=Decimal("90.00")),
            ParticipantInput(user_id=BIA),
            ParticipantInput(user_id=CAIO),
        ],
        "created_by": ANA,
        "category": "food",
    }
    values.update(overrides)
    return CreateExpenseInput(**values)


def test_create_expense_persists_split_in_one_commit() -> None:
    service, repository, session = _service()

    expense = service.create_expense(_dinner())

    assert expense.description == "Dinner"
    assert expense.category == ExpenseCategory.FOOD
    assert expense.expense_date == TODAY
    assert [p.owed_amount for p in expense.participants] == [Decimal("30.0000")] * 3
    assert expense.participant_for(ANA).paid_amount == Decimal("90.00")
    assert session.commits == 1
    assert list(repository.expenses) == [expense.id]


def test_create_expense_rejects_future_date() -> None:
    service, repository, session = _service()

    with pytest.raises(ValidationError) as exc_info:
        service.create_expense(_dinner(expense_date=date(2026, 3, 16)))

    assert exc_info.value.rule == "date_in_future"
    assert session.commits == 0
    assert repository.expenses == {}


def test_create_expense_rejects_unknown_category() -> None:
    service, _, _ = _service()

    with pytest.raises(ValidationError) as exc_info:
        service.create_expense(_dinner(category="pets"))

    assert exc_info.value.rule == "invalid_category"


def test_create_expense_requires_existing_participants() -> None:
    service, repository, _ = _service()
    stranger = uuid4()

    with pytest.raises(UserNotFoundError) as exc_info:
        service.create_expense(
            _dinner(
                participants=[
                    ParticipantInput(user_id=ANA, paid_amount=Decimal("90.00")),
                    ParticipantInput(user_id=stranger),
                ]
            )
        )

    assert exc_info.value.details["user_ids"] == [str(stranger)]
    assert repository.expenses == {}


def test_create_expense_does_not_write_on_split_error() -> None:
    service, repository, session = _service()

    with pytest.raises(ValidationError) as exc_info:
        service.create_expense(
            _dinner(
                participants=[
                    ParticipantInput(user_id=ANA, paid_amount=Decimal("80.00")),
                    ParticipantInput(user_id=BIA),
                ]
            )
        )

    assert exc_info.value.rule == "paid_total_mismatch"
    assert session.commits == 0
    assert repository.expenses == {}


def test_group_expense_requires_membership() -> None:
    group_id = uuid4()
    service, _, _ = _service({group_id: {BIA, CAIO}})

    with pytest.raises(AuthorizationError):
        service.create_expense(_dinner(group_id=group_id))


def test_group_expense_participants_must_be_members() -> None:
    group_id = uuid4()
    service, _, _ = _service({group_id: {ANA, BIA}})

    with pytest.raises(ValidationError) as exc_info:
        service.create_expense(_dinner(group_id=group_id))

    assert exc_info.value.rule == "participant_not_in_group"
    assert exc_info.value.details["user_id"] == str(CAIO)


def test_get_expense_is_limited_to_participants() -> None:
    service, _, _ = _service()
    expense = service.create_expense(
        _dinner(
            participants=[
                ParticipantInput(user_id=ANA, paid_amount=Decimal("90.00")),
                ParticipantInput(user_id=BIA),
            ]
        )
    )

    assert service.get_expense(expense.id, user_id=BIA) is expense
    with pytest.raises(AuthorizationError):
        service.get_expense(expense.id, user_id=CAIO)
    with pytest.raises(ExpenseNotFoundError):
        service.get_expense(uuid4(), user_id=ANA)


def test_list_user_expenses_rejects_inverted_range() -> None:
    service, _, _ = _service()

    with pytest.raises(ValidationError) as exc_info:
        service.list_user_expenses(
            ANA,
            ExpenseQueryFilters(start_date=date(2026, 3, 2), end_date=date(2026, 3, 1)),
        )

    assert exc_info.value.rule == "invalid_date_range"


def test_update_expense_edits_fields_but_not_amount() -> None:
    service, _, session = _service()
    expense = service.create_expense(_dinner())

    updated = service.update_expense(
        expense.id,
        ExpensePatch(description="Team dinner", category="entertainment"),
        user_id=ANA,
    )

    assert updated.description == "Team dinner"
    assert updated.category == ExpenseCategory.ENTERTAINMENT
    assert session.commits == 2
    with pytest.raises(ValidationError) as exc_info:
        service.update_expense(
            expense.id, ExpensePatch(amount=Decimal("10.00")), user_id=ANA
        )
    assert exc_info.value.rule == "amount_immutable"


def test_only_creator_updates_or_deletes() -> None:
    service, _, _ = _service()
    expense = service.create_expense(_dinner())

    with pytest.raises(AuthorizationError):
        service.update_expense(expense.id, ExpensePatch(description="x"), user_id=BIA)
    with pytest.raises(AuthorizationError):
        service.delete_expense(expense.id, user_id=BIA)


def test_delete_expense_refuses_settled_participants() -> None:
    service, repository, _ = _service()
    expense = service.create_expense(_dinner())
    expense.participant_for(BIA).mark_settled()

    with pytest.raises(StateError):
        service.delete_expense(expense.id, user_id=ANA)
    assert expense.id in repository.expenses


def test_delete_expense_removes_it() -> None:
    service, repository, _ = _service()
    expense = service.create_expense(_dinner())

    service.delete_expense(expense.id, user_id=ANA)

    assert repository.expenses == {}
