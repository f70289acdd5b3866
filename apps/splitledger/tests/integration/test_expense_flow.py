from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from conftest import seed_group, seed_users
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from splitledger.db.models.expense import ExpenseParticipant
from splitledger.domain.errors import AuthorizationError, ValidationError
from splitledger.domain.expense_rules import ExpenseCategory
from splitledger.domain.split_calculator import ParticipantInput
from splitledger.repositories.expense_repository import (
    ExpenseQueryFilters,
    ExpenseRepository,
)
from splitledger.repositories.group_repository import GroupRepository
from splitledger.repositories.user_repository import UserRepository
from splitledger.services.expense_service import CreateExpenseInput, ExpenseService

TODAY = date(2026, 5, 20)


def _service(session: Session) -> ExpenseService:
    return ExpenseService(
        expense_repository=ExpenseRepository(session),
        user_repository=UserRepository(session),
        group_repository=GroupRepository(session),
        session=session,
        today=lambda: TODAY,
    )


def _create(session: Session, creator, participants, **overrides):
    values = {
        "description": "Groceries",
        "amount": Decimal("100.00"),
        "split_method": "shares",
        "participants": participants,
        "created_by": creator,
    }
    values.update(overrides)
    return _service(session).create_expense(CreateExpenseInput(**values))


def test_expense_and_participants_are_stored_together(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia, caio = seed_users(session, "ana", "bia", "caio")
        expense = _create(
            session,
            ana,
            [
                ParticipantInput(user_id=ana, paid_amount=Decimal("100.00"), shares=1),
                ParticipantInput(user_id=bia, shares=1),
                ParticipantInput(user_id=caio, shares=2),
            ],
        )

    with sqlite_session_factory() as session:
        stored = ExpenseRepository(session).get(expense.id)

        assert stored is not None
        assert stored.amount == Decimal("100.00")
        assert stored.expense_date == TODAY
        assert sorted(p.owed_amount for p in stored.participants) == [
            Decimal("25.00"),
            Decimal("25.00"),
            Decimal("50.00"),
        ]
        assert stored.total_owed == Decimal("100.00")
        assert stored.total_paid == Decimal("100.00")


def test_rejected_split_leaves_no_rows(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia = seed_users(session, "ana", "bia")
        with pytest.raises(ValidationError):
            _create(
                session,
                ana,
                [
                    ParticipantInput(
                        user_id=ana,
                        paid_amount=Decimal("100.00"),
                        owed_amount=Decimal("50.00"),
                    ),
                    ParticipantInput(user_id=bia, owed_amount=Decimal("45.00")),
                ],
                split_method="exact",
            )

        count = session.scalar(select(func.count()).select_from(ExpenseParticipant))
        assert count == 0


def test_user_listing_filters(sqlite_session_factory: sessionmaker[Session]) -> None:
    with sqlite_session_factory() as session:
        ana, bia, caio = seed_users(session, "ana", "bia", "caio")
        pair = [
            ParticipantInput(user_id=ana, paid_amount=Decimal("100.00"), shares=1),
            ParticipantInput(user_id=bia, shares=1),
        ]
        _create(session, ana, pair, category="food", expense_date=date(2026, 5, 1))
        _create(session, ana, pair, category="travel", expense_date=date(2026, 5, 10))
        _create(
            session,
            caio,
            [ParticipantInput(user_id=caio, paid_amount=Decimal("100.00"), shares=1)],
        )

        repository = ExpenseRepository(session)
        all_items, total = repository.list_by_user(bia, ExpenseQueryFilters())
        food, food_total = repository.list_by_user(
            bia, ExpenseQueryFilters(category=ExpenseCategory.FOOD)
        )
        recent, _ = repository.list_by_user(
            ana, ExpenseQueryFilters(start_date=date(2026, 5, 5))
        )

        assert total == 2
        assert [item.expense_date for item in all_items] == [
            date(2026, 5, 10),
            date(2026, 5, 1),
        ]
        assert food_total == 1
        assert food[0].category == ExpenseCategory.FOOD
        assert [item.category for item in recent] == [ExpenseCategory.TRAVEL]


def test_group_expense_flow(sqlite_session_factory: sessionmaker[Session]) -> None:
    with sqlite_session_factory() as session:
        ana, bia, caio = seed_users(session, "ana", "bia", "caio")
        group_id = seed_group(
            session, name="Flat", created_by=ana, member_ids=[ana, bia]
        )
        service = _service(session)
        _create(
            session,
            ana,
            [
                ParticipantInput(user_id=ana, paid_amount=Decimal("100.00"), shares=1),
                ParticipantInput(user_id=bia, shares=1),
            ],
            group_id=group_id,
        )

        items, total = service.list_group_expenses(
            group_id, user_id=bia, limit=10, offset=0
        )
        assert total == 1
        assert items[0].group_id == group_id
        with pytest.raises(AuthorizationError):
            service.list_group_expenses(group_id, user_id=caio, limit=10, offset=0)
        with pytest.raises(ValidationError):
            _create(
                session,
                ana,
                [
                    ParticipantInput(
                        user_id=ana, paid_amount=Decimal("100.00"), shares=1
                    ),
                    ParticipantInput(user_id=caio, shares=1),
                ],
                group_id=group_id,
            )


def test_delete_removes_participants(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia = seed_users(session, "ana", "bia")
        expense = _create(
            session,
            ana,
            [
                ParticipantInput(user_id=ana, paid_amount=Decimal("100.00"), shares=1),
                ParticipantInput(user_id=bia, shares=1),
            ],
        )

        _service(session).delete_expense(expense.id, user_id=ana)

        count = session.scalar(select(func.count()).select_from(ExpenseParticipant))
        assert count == 0
        assert ExpenseRepository(session).get(expense.id) is None


def test_unknown_group_id_is_not_found(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    from splitledger.domain.errors import GroupNotFoundError

    with sqlite_session_factory() as session:
        (ana,) = seed_users(session, "ana")
        with pytest.raises(GroupNotFoundError):
            _create(
                session,
                ana,
                [ParticipantInput(user_id=ana, paid_amount=Decimal("100.00"), shares=1)],
                group_id=uuid4(),
            )
