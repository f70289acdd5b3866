"""Read-only queries feeding balance aggregation."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.orm import Session

from splitledger.db.models.expense import Expense, ExpenseParticipant
from splitledger.db.models.settlement import Settlement
from splitledger.domain.balance_rules import ParticipationRow, SettlementRow


class BalanceQueryRepository:
    """Loads participant lines and confirmed settlements as plain rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def participations_shared_with(self, user_id: UUID) -> list[ParticipationRow]:
        """All participant lines of every expense ``user_id`` takes part in."""

        user_expenses = select(ExpenseParticipant.expense_id).where(
            ExpenseParticipant.user_id == user_id
        )
        return self._participations(
            ExpenseParticipant.expense_id.in_(user_expenses)
        )

    def participations_between(
        self,
        user_id: UUID,
        other_user_id: UUID,
    ) -> list[ParticipationRow]:
        """Participant lines of expenses both users take part in."""

        user_expenses = select(ExpenseParticipant.expense_id).where(
            ExpenseParticipant.user_id == user_id
        )
        other_expenses = select(ExpenseParticipant.expense_id).where(
            ExpenseParticipant.user_id == other_user_id
        )
        return self._participations(
            and_(
                ExpenseParticipant.expense_id.in_(user_expenses),
                ExpenseParticipant.expense_id.in_(other_expenses),
            )
        )

    def group_participations(self, group_id: UUID) -> list[ParticipationRow]:
        group_expenses = select(Expense.id).where(Expense.group_id == group_id)
        return self._participations(
            ExpenseParticipant.expense_id.in_(group_expenses)
        )

    def confirmed_settlements_for(self, user_id: UUID) -> list[SettlementRow]:
        return self._settlements(
            or_(Settlement.payer_id == user_id, Settlement.payee_id == user_id)
        )

    def confirmed_settlements_between(
        self,
        user_id: UUID,
        other_user_id: UUID,
    ) -> list[SettlementRow]:
        return self._settlements(
            or_(
                and_(
                    Settlement.payer_id == user_id,
                    Settlement.payee_id == other_user_id,
                ),
                and_(
                    Settlement.payer_id == other_user_id,
                    Settlement.payee_id == user_id,
                ),
            )
        )

    def confirmed_settlements_for_group(self, group_id: UUID) -> list[SettlementRow]:
        return self._settlements(Settlement.group_id == group_id)

    def _participations(self, condition) -> list[ParticipationRow]:
        statement = (
            select(
                ExpenseParticipant.expense_id,
                ExpenseParticipant.user_id,
                ExpenseParticipant.paid_amount,
                ExpenseParticipant.owed_amount,
            )
            .where(condition)
            .order_by(ExpenseParticipant.expense_id, ExpenseParticipant.created_at)
        )
        return [
            ParticipationRow(
                expense_id=expense_id,
                user_id=user_id,
                paid_amount=Decimal(paid_amount),
                owed_amount=Decimal(owed_amount),
            )
            for expense_id, user_id, paid_amount, owed_amount in self._session.execute(
                statement
            ).all()
        ]

    def _settlements(self, condition) -> list[SettlementRow]:
        statement: Select = (
            select(Settlement.payer_id, Settlement.payee_id, Settlement.amount)
            .where(
                condition,
                Settlement.is_confirmed.is_(True),
                Settlement.deleted_at.is_(None),
            )
            .order_by(Settlement.created_at)
        )
        return [
            SettlementRow(payer_id=payer_id, payee_id=payee_id, amount=Decimal(amount))
            for payer_id, payee_id, amount in self._session.execute(statement).all()
        ]
