"""User lookups."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitledger.db.models.user import User


class UserRepository:
    """Read access to user accounts."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: UUID) -> User | None:
        return self._session.get(User, user_id)

    def list_existing_ids(self, user_ids: Iterable[UUID]) -> set[UUID]:
        requested = set(user_ids)
        if not requested:
            return set()
        statement = select(User.id).where(User.id.in_(requested))
        return set(self._session.scalars(statement).all())

    def display_names(self, user_ids: Iterable[UUID]) -> dict[UUID, str]:
        requested = set(user_ids)
        if not requested:
            return {}
        statement = select(User.id, User.display_name).where(User.id.in_(requested))
        return {
            user_id: display_name
            for user_id, display_name in self._session.execute(statement).all()
        }
