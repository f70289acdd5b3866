"""Net balance folding over expense participations and settlements.

Signs are always read from the perspective of the first user: a positive
amount means the counterparty owes that user.

Expense attribution is bilateral: on every expense two users share, the
viewing user's net (paid - owed) on that expense is attributed in full to
each other participant. With two participants this is exact; with three or
more it is not divided among the others, so pairwise amounts add up to more
than the user's overall net.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from splitledger.domain.money import ZERO, is_negligible, quantize_money


@dataclass(frozen=True, slots=True)
class ParticipationRow:
    """One participant line of an expense."""

    expense_id: UUID
    user_id: UUID
    paid_amount: Decimal
    owed_amount: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.paid_amount - self.owed_amount


@dataclass(frozen=True, slots=True)
class SettlementRow:
    """Confirmed, non-deleted settlement amount between two users."""

    payer_id: UUID
    payee_id: UUID
    amount: Decimal


@dataclass(frozen=True, slots=True)
class BalanceEdge:
    """Derived net position against one counterparty."""

    counterparty_id: UUID
    amount: Decimal


@dataclass(frozen=True, slots=True)
class GroupMemberBalance:
    """Totals of one active member across a group's expenses."""

    user_id: UUID
    total_paid: Decimal
    total_owed: Decimal
    net_balance: Decimal


def _group_by_expense(
    participations: Iterable[ParticipationRow],
) -> dict[UUID, list[ParticipationRow]]:
    grouped: dict[UUID, list[ParticipationRow]] = defaultdict(list)
    for row in participations:
        grouped[row.expense_id].append(row)
    return grouped


def settlement_effect(settlement: SettlementRow, user_id: UUID) -> Decimal:
    """Signed effect of a settlement on ``user_id``'s side of the balance.

    Paying moves the payer towards creditor; receiving moves the payee
    towards debtor.
    """

    if settlement.payer_id == user_id:
        return settlement.amount
    if settlement.payee_id == user_id:
        return -settlement.amount
    return ZERO


def expense_balances_for(
    user_id: UUID,
    participations: Iterable[ParticipationRow],
) -> dict[UUID, Decimal]:
    """Fold shared expenses into per-counterparty amounts for ``user_id``."""

    balances: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for rows in _group_by_expense(participations).values():
        own = next((row for row in rows if row.user_id == user_id), None)
        if own is None:
            continue
        for other in rows:
            if other.user_id == user_id:
                continue
            balances[other.user_id] += own.net_amount
    return balances


def pairwise_balance(
    user_id: UUID,
    other_user_id: UUID,
    participations: Iterable[ParticipationRow],
    settlements: Iterable[SettlementRow],
) -> Decimal:
    """Return how much ``other_user_id`` owes ``user_id`` (negative: the reverse)."""

    total = expense_balances_for(user_id, participations).get(other_user_id, ZERO)
    for settlement in settlements:
        if {settlement.payer_id, settlement.payee_id} == {user_id, other_user_id}:
            total += settlement_effect(settlement, user_id)
    return quantize_money(total)


def balances_for_user(
    user_id: UUID,
    participations: Iterable[ParticipationRow],
    settlements: Iterable[SettlementRow],
) -> list[BalanceEdge]:
    """Net position against every counterparty, largest magnitude first.

    Counterparties whose balance rounds to zero are left out. Ties on
    magnitude are ordered by counterparty id so repeated calls agree.
    """

    totals = expense_balances_for(user_id, participations)
    for settlement in settlements:
        if settlement.payer_id == user_id:
            counterparty = settlement.payee_id
        elif settlement.payee_id == user_id:
            counterparty = settlement.payer_id
        else:
            continue
        totals[counterparty] += settlement_effect(settlement, user_id)

    edges = [
        BalanceEdge(counterparty_id=counterparty, amount=quantize_money(amount))
        for counterparty, amount in totals.items()
        if not is_negligible(amount)
    ]
    edges.sort(key=lambda edge: (-abs(edge.amount), str(edge.counterparty_id)))
    return edges


def group_member_balances(
    member_ids: Sequence[UUID],
    participations: Iterable[ParticipationRow],
    settlements: Iterable[SettlementRow],
) -> list[GroupMemberBalance]:
    """Per-member paid/owed totals adjusted by group settlements.

    Only ``member_ids`` appear in the result, ordered by net balance
    descending.
    """

    paid: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    owed: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for row in participations:
        paid[row.user_id] += row.paid_amount
        owed[row.user_id] += row.owed_amount

    adjustments: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for settlement in settlements:
        adjustments[settlement.payer_id] += settlement.amount
        adjustments[settlement.payee_id] -= settlement.amount

    balances = [
        GroupMemberBalance(
            user_id=member_id,
            total_paid=quantize_money(paid[member_id]),
            total_owed=quantize_money(owed[member_id]),
            net_balance=quantize_money(
                paid[member_id] - owed[member_id] + adjustments[member_id]
            ),
        )
        for member_id in member_ids
    ]
    balances.sort(key=lambda balance: balance.net_balance, reverse=True)
    return balances
