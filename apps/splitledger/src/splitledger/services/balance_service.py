"""Balance views and settle-up suggestions built from stored history."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from splitledger.db.models.group import Group
from splitledger.domain.balance_rules import (
    BalanceEdge,
    GroupMemberBalance,
    ParticipationRow,
    SettlementRow,
    balances_for_user,
    group_member_balances,
    pairwise_balance,
)
from splitledger.domain.debt_simplifier import (
    NetBalance,
    SuggestedTransfer,
    simplify_debts,
    total_transferred,
)
from splitledger.domain.errors import (
    AuthorizationError,
    GroupNotFoundError,
    UserNotFoundError,
    ValidationError,
    compose_error_message,
)
from splitledger.domain.money import ZERO, is_negligible, quantize_money

USER_SUGGESTIONS_MESSAGE = "Here are suggested settlements to simplify your balances"
GROUP_SUGGESTIONS_MESSAGE = "Here are suggested settlements for the group"
USER_SETTLED_MESSAGE = "You're all settled up!"
GROUP_SETTLED_MESSAGE = "Group is all settled up!"


class BalanceQueryRepositoryProtocol(Protocol):
    """Balance query contract consumed by service."""

    def participations_shared_with(self, user_id: UUID) -> list[ParticipationRow]: ...

    def participations_between(
        self, user_id: UUID, other_user_id: UUID
    ) -> list[ParticipationRow]: ...

    def group_participations(self, group_id: UUID) -> list[ParticipationRow]: ...

    def confirmed_settlements_for(self, user_id: UUID) -> list[SettlementRow]: ...

    def confirmed_settlements_between(
        self, user_id: UUID, other_user_id: UUID
    ) -> list[SettlementRow]: ...

    def confirmed_settlements_for_group(
        self, group_id: UUID
    ) -> list[SettlementRow]: ...


class UserDirectoryProtocol(Protocol):
    """User repository contract consumed by service."""

    def get(self, user_id: UUID) -> object | None: ...

    def display_names(self, user_ids: Iterable[UUID]) -> dict[UUID, str]: ...


class GroupDirectoryProtocol(Protocol):
    """Group repository contract consumed by service."""

    def get(self, group_id: UUID) -> Group | None: ...

    def is_active_member(self, group_id: UUID, user_id: UUID) -> bool: ...

    def list_active_member_ids(self, group_id: UUID) -> list[UUID]: ...


@dataclass(frozen=True, slots=True)
class PairwiseBalance:
    """Net amount ``other_user_id`` owes ``user_id``; negative is the reverse."""

    user_id: UUID
    other_user_id: UUID
    amount: Decimal


@dataclass(frozen=True, slots=True)
class BalanceSummary:
    """All non-zero edges of a user plus their totals."""

    user_id: UUID
    total_owed: Decimal
    total_owing: Decimal
    net_balance: Decimal
    balances: list[BalanceEdge]
    user_names: dict[UUID, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class GroupBalances:
    """Member balances of one group."""

    group_id: UUID
    group_name: str
    total_expense: Decimal
    balances: list[GroupMemberBalance]
    user_names: dict[UUID, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SettlementSuggestions:
    """Suggested transfers with their total and a display message."""

    suggestions: list[SuggestedTransfer]
    total_amount: Decimal
    message: str
    user_names: dict[UUID, str] = field(default_factory=dict)


class BalanceService:
    """Read-only balance aggregation over stored expenses and settlements."""

    def __init__(
        self,
        *,
        balance_query_repository: BalanceQueryRepositoryProtocol,
        user_repository: UserDirectoryProtocol,
        group_repository: GroupDirectoryProtocol,
    ) -> None:
        self._balance_query_repository = balance_query_repository
        self._user_repository = user_repository
        self._group_repository = group_repository

    def get_pairwise_balance(
        self,
        user_id: UUID,
        other_user_id: UUID,
    ) -> PairwiseBalance:
        if user_id == other_user_id:
            raise ValidationError(
                message=compose_error_message(
                    cause="Cannot compute a balance with yourself.",
                    action="Choose a different user.",
                ),
                rule="self_balance",
            )
        if self._user_repository.get(other_user_id) is None:
            raise UserNotFoundError(details={"user_id": str(other_user_id)})

        amount = pairwise_balance(
            user_id,
            other_user_id,
            self._balance_query_repository.participations_between(
                user_id, other_user_id
            ),
            self._balance_query_repository.confirmed_settlements_between(
                user_id, other_user_id
            ),
        )
        return PairwiseBalance(
            user_id=user_id,
            other_user_id=other_user_id,
            amount=amount,
        )

    def get_user_balances(self, user_id: UUID) -> BalanceSummary:
        edges = self._edges_for(user_id)
        total_owed = sum((e.amount for e in edges if e.amount > 0), ZERO)
        total_owing = sum((-e.amount for e in edges if e.amount < 0), ZERO)
        return BalanceSummary(
            user_id=user_id,
            total_owed=quantize_money(total_owed),
            total_owing=quantize_money(total_owing),
            net_balance=quantize_money(total_owed - total_owing),
            balances=edges,
            user_names=self._user_repository.display_names(
                edge.counterparty_id for edge in edges
            ),
        )

    def get_group_balances(self, group_id: UUID, *, user_id: UUID) -> GroupBalances:
        group = self._require_group_member(group_id, user_id)
        balances = self._group_member_balances(group_id)
        return GroupBalances(
            group_id=group_id,
            group_name=group.name,
            total_expense=quantize_money(
                sum((balance.total_paid for balance in balances), ZERO)
            ),
            balances=balances,
            user_names=self._user_repository.display_names(
                balance.user_id for balance in balances
            ),
        )

    def get_settlement_suggestions(self, user_id: UUID) -> SettlementSuggestions:
        """One transfer per open edge of ``user_id``; no cross-user netting."""

        suggestions: list[SuggestedTransfer] = []
        for edge in self._edges_for(user_id):
            if is_negligible(edge.amount):
                continue
            if edge.amount > 0:
                from_user, to_user = edge.counterparty_id, user_id
            else:
                from_user, to_user = user_id, edge.counterparty_id
            suggestions.append(
                SuggestedTransfer(
                    from_user=from_user,
                    to_user=to_user,
                    amount=quantize_money(abs(edge.amount)),
                )
            )
        return self._suggestions(
            suggestions,
            message=USER_SUGGESTIONS_MESSAGE,
            settled_message=USER_SETTLED_MESSAGE,
        )

    def get_group_settlement_suggestions(
        self,
        group_id: UUID,
        *,
        user_id: UUID,
    ) -> SettlementSuggestions:
        self._require_group_member(group_id, user_id)
        balances = [
            NetBalance(user=balance.user_id, net_amount=balance.net_balance)
            for balance in self._group_member_balances(group_id)
        ]
        return self._suggestions(
            simplify_debts(balances),
            message=GROUP_SUGGESTIONS_MESSAGE,
            settled_message=GROUP_SETTLED_MESSAGE,
        )

    def _edges_for(self, user_id: UUID) -> list[BalanceEdge]:
        return balances_for_user(
            user_id,
            self._balance_query_repository.participations_shared_with(user_id),
            self._balance_query_repository.confirmed_settlements_for(user_id),
        )

    def _group_member_balances(self, group_id: UUID) -> list[GroupMemberBalance]:
        return group_member_balances(
            self._group_repository.list_active_member_ids(group_id),
            self._balance_query_repository.group_participations(group_id),
            self._balance_query_repository.confirmed_settlements_for_group(group_id),
        )

    def _suggestions(
        self,
        suggestions: list[SuggestedTransfer],
        *,
        message: str,
        settled_message: str,
    ) -> SettlementSuggestions:
        user_ids = {s.from_user for s in suggestions} | {s.to_user for s in suggestions}
        return SettlementSuggestions(
            suggestions=suggestions,
            total_amount=quantize_money(total_transferred(suggestions)),
            message=message if suggestions else settled_message,
            user_names=self._user_repository.display_names(user_ids),
        )

    def _require_group_member(self, group_id: UUID, user_id: UUID) -> Group:
        group = self._group_repository.get(group_id)
        if group is None:
            raise GroupNotFoundError(details={"group_id": str(group_id)})
        if not self._group_repository.is_active_member(group_id, user_id):
            raise AuthorizationError(
                message=compose_error_message(
                    cause="You are not a member of this group.",
                    action="Join the group before viewing its balances.",
                ),
                details={"group_id": str(group_id)},
            )
        return group
