"""Group and membership lookups."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from splitledger.db.models.group import Group, GroupMember


class GroupRepository:
    """Read access to groups and their active members."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, group_id: UUID) -> Group | None:
        return self._session.get(Group, group_id)

    def is_active_member(self, group_id: UUID, user_id: UUID) -> bool:
        statement = select(GroupMember.id).where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
            GroupMember.left_at.is_(None),
        )
        return self._session.scalar(statement) is not None

    def list_active_member_ids(self, group_id: UUID) -> list[UUID]:
        statement = (
            select(GroupMember.user_id)
            .where(
                GroupMember.group_id == group_id,
                GroupMember.left_at.is_(None),
            )
            .order_by(GroupMember.joined_at.asc())
        )
        return list(self._session.scalars(statement).all())
