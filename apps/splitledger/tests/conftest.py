from __future__ import annotations

from collections.abc import Generator
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from splitledger.api.app import create_app
from splitledger.core.settings import Settings
from splitledger.db.base import Base, import_orm_models
from splitledger.db.models.group import Group, GroupMember, MemberRole
from splitledger.db.models.user import User
from splitledger.db.session import get_db_session

SQLITE_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = create_engine(
        SQLITE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)


def seed_users(session: Session, *names: str) -> list[UUID]:
    users = [
        User(display_name=name.title(), email=f"{name}@example.com")
        for name in names
    ]
    session.add_all(users)
    session.commit()
    return [user.id for user in users]


def seed_group(
    session: Session,
    *,
    name: str,
    created_by: UUID,
    member_ids: list[UUID],
) -> UUID:
    group = Group(name=name, created_by=created_by)
    group.members = [
        GroupMember(
            user_id=member_id,
            role=MemberRole.ADMIN if member_id == created_by else MemberRole.MEMBER,
        )
        for member_id in member_ids
    ]
    session.add(group)
    session.commit()
    return group.id


@pytest.fixture
def users(sqlite_session_factory: sessionmaker[Session]) -> list[UUID]:
    with sqlite_session_factory() as session:
        return seed_users(session, "ana", "bia", "caio")


@pytest.fixture
def client(
    sqlite_session_factory: sessionmaker[Session],
) -> Generator[TestClient, None, None]:
    app = create_app(Settings(DATABASE_URL=SQLITE_URL, LOG_LEVEL="WARNING"))

    def override_get_db_session() -> Generator[Session, None, None]:
        with sqlite_session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    with TestClient(app) as test_client:
        yield test_client


def auth(user_id: UUID) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}
