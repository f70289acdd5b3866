"""Greedy debt simplification over net balances."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from splitledger.domain.money import MONEY_TOLERANCE, ZERO, quantize_money

UserKey = UUID | str


@dataclass(frozen=True, slots=True)
class NetBalance:
    """Net position of one user; positive means the user is owed money."""

    user: UserKey
    net_amount: Decimal


@dataclass(frozen=True, slots=True)
class SuggestedTransfer:
    """One transfer that moves money from a debtor to a creditor."""

    from_user: UserKey
    to_user: UserKey
    amount: Decimal


@dataclass(slots=True)
class _Position:
    user: UserKey
    remaining: Decimal


def simplify_debts(
    balances: Sequence[NetBalance],
) -> list[SuggestedTransfer]:
    """Match the largest creditor with the largest debtor until one side runs out.

    Balances within one cent of zero are ignored. Sorting is stable, so equal
    magnitudes keep input order. Emits at most ``creditors + debtors - 1``
    transfers, each rounded to cents.
    """

    creditors: list[_Position] = []
    debtors: list[_Position] = []
    for balance in balances:
        if balance.net_amount > MONEY_TOLERANCE:
            creditors.append(_Position(balance.user, balance.net_amount))
        elif balance.net_amount < -MONEY_TOLERANCE:
            debtors.append(_Position(balance.user, -balance.net_amount))

    creditors.sort(key=lambda position: position.remaining, reverse=True)
    debtors.sort(key=lambda position: position.remaining, reverse=True)

    transfers: list[SuggestedTransfer] = []
    creditor_index, debtor_index = 0, 0
    while creditor_index < len(creditors) and debtor_index < len(debtors):
        creditor = creditors[creditor_index]
        debtor = debtors[debtor_index]

        amount = min(creditor.remaining, debtor.remaining)
        if amount > MONEY_TOLERANCE:
            transfers.append(
                SuggestedTransfer(
                    from_user=debtor.user,
                    to_user=creditor.user,
                    amount=quantize_money(amount),
                )
            )

        creditor.remaining -= amount
        debtor.remaining -= amount

        if creditor.remaining <= MONEY_TOLERANCE:
            creditor_index += 1
        if debtor.remaining <= MONEY_TOLERANCE:
            debtor_index += 1

    return transfers


def total_transferred(transfers: Sequence[SuggestedTransfer]) -> Decimal:
    """Return the sum of all transfer amounts."""

    return sum((transfer.amount for transfer in transfers), ZERO)
