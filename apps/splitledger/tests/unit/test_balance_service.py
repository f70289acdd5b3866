from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from splitledger.db.models.group import Group
from splitledger.domain.balance_rules import ParticipationRow, SettlementRow
from splitledger.domain.errors import (
    AuthorizationError,
    GroupNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from splitledger.services.balance_service import BalanceService

ANA, BIA, CAIO = uuid4(), uuid4(), uuid4()
NAMES = {ANA: "Ana", BIA: "Bia", CAIO: "Caio"}
GROUP_ID = uuid4()


def _row(expense_id: UUID, user_id: UUID, paid: str, owed: str) -> ParticipationRow:
    return ParticipationRow(
        expense_id=expense_id,
        user_id=user_id,
        paid_amount=Decimal(paid),
        owed_amount=Decimal(owed),
    )


@dataclass
class FakeBalanceQueryRepository:
    rows: list[ParticipationRow] = field(default_factory=list)
    group_rows: list[ParticipationRow] = field(default_factory=list)
    settlements: list[SettlementRow] = field(default_factory=list)
    group_settlements: list[SettlementRow] = field(default_factory=list)

    def _expenses_of(self, user_id: UUID) -> set[UUID]:
        return {row.expense_id for row in self.rows if row.user_id == user_id}

    def participations_shared_with(self, user_id: UUID) -> list[ParticipationRow]:
        expense_ids = self._expenses_of(user_id)
        return [row for row in self.rows if row.expense_id in expense_ids]

    def participations_between(self, user_id: UUID, other_user_id: UUID):
        expense_ids = self._expenses_of(user_id) & self._expenses_of(other_user_id)
        return [row for row in self.rows if row.expense_id in expense_ids]

    def group_participations(self, group_id: UUID) -> list[ParticipationRow]:
        return list(self.group_rows)

    def confirmed_settlements_for(self, user_id: UUID) -> list[SettlementRow]:
        return [
            s for s in self.settlements if user_id in (s.payer_id, s.payee_id)
        ]

    def confirmed_settlements_between(self, user_id: UUID, other_user_id: UUID):
        return [
            s
            for s in self.settlements
            if {s.payer_id, s.payee_id} == {user_id, other_user_id}
        ]

    def confirmed_settlements_for_group(self, group_id: UUID) -> list[SettlementRow]:
        return list(self.group_settlements)


class FakeUserRepository:
    def get(self, user_id: UUID) -> object | None:
        return object() if user_id in NAMES else None

    def display_names(self, user_ids) -> dict[UUID, str]:
        return {uid: NAMES[uid] for uid in user_ids if uid in NAMES}


class FakeGroupRepository:
    def get(self, group_id: UUID) -> Group | None:
        if group_id != GROUP_ID:
            return None
        return Group(id=GROUP_ID, name="Beach house", created_by=ANA)

    def is_active_member(self, group_id: UUID, user_id: UUID) -> bool:
        return group_id == GROUP_ID and user_id in (ANA, BIA, CAIO)

    def list_active_member_ids(self, group_id: UUID) -> list[UUID]:
        return [ANA, BIA, CAIO]


def _service(queries: FakeBalanceQueryRepository) -> BalanceService:
    return BalanceService(
        balance_query_repository=queries,
        user_repository=FakeUserRepository(),
        group_repository=FakeGroupRepository(),
    )


def _two_dinners() -> FakeBalanceQueryRepository:
    first, second = uuid4(), uuid4()
    return FakeBalanceQueryRepository(
        rows=[
            _row(first, ANA, "60", "30"),
            _row(first, BIA, "0", "30"),
            _row(second, CAIO, "40", "20"),
            _row(second, ANA, "0", "20"),
        ],
        settlements=[
            SettlementRow(payer_id=BIA, payee_id=ANA, amount=Decimal("10.00"))
        ],
    )


def test_user_balances_summary() -> None:
    summary = _service(_two_dinners()).get_user_balances(ANA)

    assert {(e.counterparty_id, e.amount) for e in summary.balances} == {
        (BIA, Decimal("20.00")),
        (CAIO, Decimal("-20.00")),
    }
    assert summary.total_owed == Decimal("20.00")
    assert summary.total_owing == Decimal("20.00")
    assert summary.net_balance == Decimal("0.00")
    assert summary.user_names == {BIA: "Bia", CAIO: "Caio"}


def test_pairwise_balance() -> None:
    service = _service(_two_dinners())

    assert service.get_pairwise_balance(ANA, BIA).amount == Decimal("20.00")
    assert service.get_pairwise_balance(BIA, ANA).amount == Decimal("-20.00")
    assert service.get_pairwise_balance(BIA, CAIO).amount == Decimal("0.00")


def test_pairwise_balance_rejects_self_and_unknown_user() -> None:
    service = _service(_two_dinners())

    with pytest.raises(ValidationError) as exc_info:
        service.get_pairwise_balance(ANA, ANA)
    with pytest.raises(UserNotFoundError):
        service.get_pairwise_balance(ANA, uuid4())

    assert exc_info.value.rule == "self_balance"


def test_user_suggestions_follow_each_edge() -> None:
    result = _service(_two_dinners()).get_settlement_suggestions(ANA)

    pairs = {(s.from_user, s.to_user, s.amount) for s in result.suggestions}
    assert pairs == {
        (BIA, ANA, Decimal("20.00")),
        (ANA, CAIO, Decimal("20.00")),
    }
    assert result.total_amount == Decimal("40.00")
    assert result.message == "Here are suggested settlements to simplify your balances"


def test_user_suggestions_when_settled() -> None:
    result = _service(FakeBalanceQueryRepository()).get_settlement_suggestions(ANA)

    assert result.suggestions == []
    assert result.total_amount == Decimal("0.00")
    assert result.message == "You're all settled up!"


def _group_trip() -> FakeBalanceQueryRepository:
    taxi, hotel = uuid4(), uuid4()
    return FakeBalanceQueryRepository(
        group_rows=[
            _row(taxi, ANA, "30", "10"),
            _row(taxi, BIA, "0", "10"),
            _row(taxi, CAIO, "0", "10"),
            _row(hotel, BIA, "60", "20"),
            _row(hotel, ANA, "0", "20"),
            _row(hotel, CAIO, "0", "20"),
        ],
    )


def test_group_balances() -> None:
    result = _service(_group_trip()).get_group_balances(GROUP_ID, user_id=CAIO)

    assert result.group_name == "Beach house"
    assert result.total_expense == Decimal("90.00")
    assert [(b.user_id, b.net_balance) for b in result.balances] == [
        (BIA, Decimal("30.00")),
        (ANA, Decimal("0.00")),
        (CAIO, Decimal("-30.00")),
    ]


def test_group_suggestions_use_debt_simplification() -> None:
    result = _service(_group_trip()).get_group_settlement_suggestions(
        GROUP_ID, user_id=ANA
    )

    assert [(s.from_user, s.to_user, s.amount) for s in result.suggestions] == [
        (CAIO, BIA, Decimal("30.00"))
    ]
    assert result.message == "Here are suggested settlements for the group"
    assert result.user_names == {BIA: "Bia", CAIO: "Caio"}


def test_group_suggestions_when_group_is_settled() -> None:
    result = _service(FakeBalanceQueryRepository()).get_group_settlement_suggestions(
        GROUP_ID, user_id=ANA
    )

    assert result.message == "Group is all settled up!"


def test_group_views_check_group_and_membership() -> None:
    service = _service(_group_trip())

    with pytest.raises(GroupNotFoundError):
        service.get_group_balances(uuid4(), user_id=ANA)
    with pytest.raises(AuthorizationError):
        service.get_group_settlement_suggestions(GROUP_ID, user_id=uuid4())
