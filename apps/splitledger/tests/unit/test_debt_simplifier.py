from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

import pytest

from splitledger.domain.debt_simplifier import (
    NetBalance,
    simplify_debts,
    total_transferred,
)


def _balances(**amounts: str) -> list[NetBalance]:
    return [NetBalance(user=user, net_amount=Decimal(a)) for user, a in amounts.items()]


def test_two_creditors_one_debtor_needs_two_transfers() -> None:
    transfers = simplify_debts(_balances(A="30", B="20", C="-50"))

    assert [(t.from_user, t.to_user, t.amount) for t in transfers] == [
        ("C", "A", Decimal("30.00")),
        ("C", "B", Decimal("20.00")),
    ]


def test_negligible_balances_are_ignored() -> None:
    assert simplify_debts(_balances(A="0.01", B="-0.01", C="0")) == []


def test_ties_keep_input_order() -> None:
    transfers = simplify_debts(_balances(A="10", B="10", C="-20"))

    assert [t.to_user for t in transfers] == ["A", "B"]


@pytest.mark.parametrize(
    "amounts",
    [
        {"A": "45.50", "B": "-20.25", "C": "-25.25"},
        {"A": "100", "B": "-33.33", "C": "-33.33", "D": "-33.34"},
        {"A": "12.34", "B": "56.78", "C": "-40.00", "D": "-29.12"},
        {"A": "70", "B": "-10", "C": "-10", "D": "-10", "E": "-40"},
    ],
)
def test_transfers_zero_out_every_balance(amounts: dict[str, str]) -> None:
    balances = _balances(**amounts)
    transfers = simplify_debts(balances)

    remaining: dict[str, Decimal] = defaultdict(Decimal)
    for balance in balances:
        remaining[balance.user] = balance.net_amount
    for transfer in transfers:
        remaining[transfer.from_user] += transfer.amount
        remaining[transfer.to_user] -= transfer.amount

    creditor_total = sum(b.net_amount for b in balances if b.net_amount > 0)
    non_zero = [b for b in balances if b.net_amount != 0]
    assert all(abs(value) <= Decimal("0.01") for value in remaining.values())
    assert total_transferred(transfers) == creditor_total
    assert len(transfers) <= len(non_zero) - 1


def test_amounts_are_rounded_to_cents() -> None:
    transfers = simplify_debts(_balances(A="10.005", B="-10.005"))

    assert transfers[0].amount == Decimal("10.01")
