"""Expense persistence and lookup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from splitledger.db.models.expense import Expense, ExpenseParticipant
from splitledger.domain.expense_rules import ExpenseCategory


@dataclass(frozen=True, slots=True)
class ExpenseQueryFilters:
    """Supported filters for the user expense listing."""

    group_id: UUID | None = None
    category: ExpenseCategory | None = None
    start_date: date | None = None
    end_date: date | None = None
    limit: int = 20
    offset: int = 0


class ExpenseRepository:
    """Repository for expenses and their participant lines."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, expense: Expense) -> Expense:
        """Stage the expense and its participants in a single flush."""

        self._session.add(expense)
        self._session.flush()
        return expense

    def get(self, expense_id: UUID) -> Expense | None:
        return self._session.get(Expense, expense_id)

    def list_by_user(
        self,
        user_id: UUID,
        filters: ExpenseQueryFilters,
    ) -> tuple[list[Expense], int]:
        participant_expenses = select(ExpenseParticipant.expense_id).where(
            ExpenseParticipant.user_id == user_id
        )
        statement = self._apply_filters(
            select(Expense).where(Expense.id.in_(participant_expenses)),
            filters,
        )
        return self._page(statement, limit=filters.limit, offset=filters.offset)

    def list_by_group(
        self,
        group_id: UUID,
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[Expense], int]:
        statement = select(Expense).where(Expense.group_id == group_id)
        return self._page(statement, limit=limit, offset=offset)

    def delete(self, expense: Expense) -> None:
        self._session.delete(expense)
        self._session.flush()

    def _page(
        self,
        statement: Select[tuple[Expense]],
        *,
        limit: int,
        offset: int,
    ) -> tuple[list[Expense], int]:
        total_statement = select(func.count()).select_from(statement.subquery())
        total = int(self._session.scalar(total_statement) or 0)

        page_statement = (
            statement.order_by(Expense.expense_date.desc(), Expense.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._session.scalars(page_statement).all()), total

    @staticmethod
    def _apply_filters(
        statement: Select[tuple[Expense]],
        filters: ExpenseQueryFilters,
    ) -> Select[tuple[Expense]]:
        if filters.group_id is not None:
            statement = statement.where(Expense.group_id == filters.group_id)
        if filters.category is not None:
            statement = statement.where(Expense.category == filters.category)
        if filters.start_date is not None:
            statement = statement.where(Expense.expense_date >= filters.start_date)
        if filters.end_date is not None:
            statement = statement.where(Expense.expense_date <= filters.end_date)
        return statement
