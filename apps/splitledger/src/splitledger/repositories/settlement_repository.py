"""Settlement persistence with conditional state transitions."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session

from splitledger.db.models.settlement import Settlement


class SettlementRepository:
    """Repository for settlements; deleted rows are hidden from reads."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, settlement: Settlement) -> Settlement:
        self._session.add(settlement)
        self._session.flush()
        return settlement

    def get(self, settlement_id: UUID) -> Settlement | None:
        statement = select(Settlement).where(
            Settlement.id == settlement_id,
            Settlement.deleted_at.is_(None),
        )
        return self._session.scalar(statement)

    def get_for_update(self, settlement_id: UUID) -> Settlement | None:
        """Lock the row, including soft-deleted ones, for a transition."""

        statement = (
            select(Settlement)
            .where(Settlement.id == settlement_id)
            .with_for_update()
        )
        return self._session.scalar(statement)

    def list_by_user(
        self,
        user_id: UUID,
        *,
        limit: int,
        offset: int,
    ) -> list[Settlement]:
        statement = (
            select(Settlement)
            .where(
                or_(Settlement.payer_id == user_id, Settlement.payee_id == user_id),
                Settlement.deleted_at.is_(None),
            )
            .order_by(Settlement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._session.scalars(statement).all())

    def list_between(self, user_id: UUID, other_user_id: UUID) -> list[Settlement]:
        statement = (
            select(Settlement)
            .where(
                or_(
                    and_(
                        Settlement.payer_id == user_id,
                        Settlement.payee_id == other_user_id,
                    ),
                    and_(
                        Settlement.payer_id == other_user_id,
                        Settlement.payee_id == user_id,
                    ),
                ),
                Settlement.deleted_at.is_(None),
            )
            .order_by(Settlement.created_at.desc())
        )
        return list(self._session.scalars(statement).all())

    def list_by_group(
        self,
        group_id: UUID,
        *,
        limit: int,
        offset: int,
    ) -> list[Settlement]:
        statement = (
            select(Settlement)
            .where(
                Settlement.group_id == group_id,
                Settlement.deleted_at.is_(None),
            )
            .order_by(Settlement.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self._session.scalars(statement).all())

    def confirm_pending(
        self,
        settlement_id: UUID,
        *,
        payee_id: UUID,
        confirmed_at: datetime,
    ) -> bool:
        """Confirm only if still pending and owned by ``payee_id``.

        Returns ``True`` when exactly one row changed.
        """

        statement = (
            update(Settlement)
            .where(
                Settlement.id == settlement_id,
                Settlement.payee_id == payee_id,
                Settlement.is_confirmed.is_(False),
                Settlement.deleted_at.is_(None),
            )
            .values(is_confirmed=True, confirmed_at=confirmed_at, updated_at=confirmed_at)
            .execution_options(synchronize_session="fetch")
        )
        return self._session.execute(statement).rowcount == 1

    def soft_delete_pending(
        self,
        settlement_id: UUID,
        *,
        payer_id: UUID,
        deleted_at: datetime,
    ) -> bool:
        """Mark deleted only if still pending and owned by ``payer_id``."""

        statement = (
            update(Settlement)
            .where(
                Settlement.id == settlement_id,
                Settlement.payer_id == payer_id,
                Settlement.is_confirmed.is_(False),
                Settlement.deleted_at.is_(None),
            )
            .values(deleted_at=deleted_at, updated_at=deleted_at)
            .execution_options(synchronize_session="fetch")
        )
        return self._session.execute(statement).rowcount == 1
