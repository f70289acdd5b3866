from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from conftest import seed_users
from sqlalchemy.orm import Session, sessionmaker

from splitledger.domain.errors import StateError
from splitledger.repositories.group_repository import GroupRepository
from splitledger.repositories.settlement_repository import SettlementRepository
from splitledger.repositories.user_repository import UserRepository
from splitledger.services.settlement_service import (
    CreateSettlementInput,
    SettlementService,
)


def _service(session: Session) -> SettlementService:
    return SettlementService(
        settlement_repository=SettlementRepository(session),
        user_repository=UserRepository(session),
        group_repository=GroupRepository(session),
        session=session,
    )


def _pending(session: Session, payer, payee, amount: str = "40.00"):
    return _service(session).create_settlement(
        CreateSettlementInput(payer_id=payer, payee_id=payee, amount=Decimal(amount))
    )


def test_confirm_pending_is_check_and_set(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia = seed_users(session, "ana", "bia")
        settlement = _pending(session, bia, ana)
        repository = SettlementRepository(session)
        now = datetime.now(tz=UTC)

        assert not repository.confirm_pending(
            settlement.id, payee_id=bia, confirmed_at=now
        )
        assert repository.confirm_pending(settlement.id, payee_id=ana, confirmed_at=now)
        assert not repository.confirm_pending(
            settlement.id, payee_id=ana, confirmed_at=now
        )
        assert not repository.soft_delete_pending(
            settlement.id, payer_id=bia, deleted_at=now
        )


def test_stale_confirm_loses_the_race(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia = seed_users(session, "ana", "bia")
        settlement_id = _pending(session, bia, ana).id

    with sqlite_session_factory() as first, sqlite_session_factory() as second:
        stale = SettlementRepository(second).get(settlement_id)
        assert stale is not None and not stale.is_confirmed

        _service(first).confirm_settlement(settlement_id, user_id=ana)

        with pytest.raises(StateError) as exc_info:
            _service(second).confirm_settlement(settlement_id, user_id=ana)

        assert exc_info.value.details["operation"] == "confirm"

    with sqlite_session_factory() as session:
        stored = SettlementRepository(session).get(settlement_id)
        assert stored is not None
        assert stored.is_confirmed
        assert stored.confirmed_at is not None


def test_deleted_settlement_is_hidden_from_reads(
    sqlite_session_factory: sessionmaker[Session],
) -> None:
    with sqlite_session_factory() as session:
        ana, bia = seed_users(session, "ana", "bia")
        kept = _pending(session, bia, ana, "10.00")
        removed = _pending(session, bia, ana, "20.00")
        _service(session).delete_settlement(removed.id, user_id=bia)

    with sqlite_session_factory() as session:
        repository = SettlementRepository(session)

        assert repository.get(removed.id) is None
        assert repository.get_for_update(removed.id) is not None
        assert [s.id for s in repository.list_by_user(ana, limit=10, offset=0)] == [
            kept.id
        ]
        assert [s.id for s in repository.list_between(ana, bia)] == [kept.id]
