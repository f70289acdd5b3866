"""Owed-amount derivation for the four expense split methods."""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from splitledger.domain.errors import ValidationError, compose_error_message
from splitledger.domain.money import (
    format_money,
    quantize_share,
    within_tolerance,
)

ONE_HUNDRED = Decimal("100")


class SplitMethod(enum.StrEnum):
    """Supported split methods."""

    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"
    SHARES = "shares"


@dataclass(frozen=True, slots=True)
class ParticipantInput:
    """Raw participant line as supplied by the caller.

    Only the field matching the split method is read: ``owed_amount`` for
    exact, ``percentage`` for percentage and ``shares`` for shares.
    """

    user_id: UUID
    paid_amount: Decimal = Decimal("0")
    owed_amount: Decimal | None = None
    percentage: Decimal | None = None
    shares: int | None = None


@dataclass(frozen=True, slots=True)
class ParticipantSplit:
    """Validated (paid, owed) pair for one participant."""

    user_id: UUID
    paid_amount: Decimal
    owed_amount: Decimal

    @property
    def net_amount(self) -> Decimal:
        return self.paid_amount - self.owed_amount


def compute_splits(
    total_amount: Decimal,
    split_method: SplitMethod | str,
    participants: Sequence[ParticipantInput],
) -> list[ParticipantSplit]:
    """Validate participant inputs and derive each owed amount.

    Raises ``ValidationError`` naming the failed rule; nothing is returned
    unless every check passes.
    """

    method = _resolve_method(split_method)
    if total_amount <= 0:
        raise ValidationError(
            message=compose_error_message(
                cause="Expense amount must be greater than zero.",
                action="Provide a positive amount.",
            ),
            rule="amount_not_positive",
        )
    _validate_participant_list(participants)

    if method == SplitMethod.EQUAL:
        splits = _equal_split(total_amount, participants)
    elif method == SplitMethod.EXACT:
        splits = _exact_split(total_amount, participants)
    elif method == SplitMethod.PERCENTAGE:
        splits = _percentage_split(total_amount, participants)
    else:
        splits = _shares_split(total_amount, participants)
    _require_owed_total(total_amount, splits)
    return splits


def _resolve_method(split_method: SplitMethod | str) -> SplitMethod:
    try:
        return SplitMethod(split_method)
    except ValueError as exc:
        raise ValidationError(
            message=compose_error_message(
                cause=f"Split method '{split_method}' is not supported.",
                action="Use one of: equal, exact, percentage, shares.",
            ),
            rule="invalid_split_method",
        ) from exc


def _validate_participant_list(participants: Sequence[ParticipantInput]) -> None:
    if not participants:
        raise ValidationError(
            message=compose_error_message(
                cause="At least one participant is required.",
                action="Add the people sharing this expense.",
            ),
            rule="participants_required",
        )

    seen: set[UUID] = set()
    for participant in participants:
        if participant.user_id in seen:
            raise ValidationError(
                message=compose_error_message(
                    cause=f"User {participant.user_id} is listed more than once.",
                    action="List each participant a single time.",
                ),
                rule="duplicate_participant",
                details={"user_id": str(participant.user_id)},
            )
        seen.add(participant.user_id)
        if participant.paid_amount < 0:
            raise ValidationError(
                message=compose_error_message(
                    cause="paid_amount cannot be negative.",
                    action="Send zero or a positive paid_amount.",
                ),
                rule="paid_amount_negative",
                details={"user_id": str(participant.user_id)},
            )


def _total_paid(participants: Sequence[ParticipantInput]) -> Decimal:
    return sum((p.paid_amount for p in participants), Decimal("0"))


def _require_paid_total(
    total_amount: Decimal,
    participants: Sequence[ParticipantInput],
    *,
    exact: bool = False,
) -> None:
    total_paid = _total_paid(participants)
    matches = (
        total_paid == total_amount
        if exact
        else within_tolerance(total_paid, total_amount)
    )
    if not matches:
        raise ValidationError(
            message=compose_error_message(
                cause=(
                    f"Total paid amount ({format_money(total_paid)}) must equal "
                    f"expense amount ({format_money(total_amount)})."
                ),
                action="Adjust paid_amount values so they add up to the expense.",
            ),
            rule="paid_total_mismatch",
            details={
                "total_paid": str(total_paid),
                "amount": str(total_amount),
            },
        )


def _require_owed_total(
    total_amount: Decimal,
    splits: Sequence[ParticipantSplit],
) -> None:
    # Derived shares can drift from the amount when the inputs sit at the
    # edge of their own tolerance, e.g. percentages summing to 99.99.
    total_owed = sum((split.owed_amount for split in splits), Decimal("0"))
    if not within_tolerance(total_owed, total_amount):
        raise ValidationError(
            message=compose_error_message(
                cause=(
                    f"Derived owed amounts ({format_money(total_owed)}) do not add "
                    f"up to expense amount ({format_money(total_amount)})."
                ),
                action="Adjust the split so the shares cover the whole expense.",
            ),
            rule="owed_total_mismatch",
            details={"total_owed": str(total_owed), "amount": str(total_amount)},
        )


def _missing_field(field_name: str, method: SplitMethod) -> ValidationError:
    return ValidationError(
        message=compose_error_message(
            cause=f"{field_name} is required for {method.value} split method.",
            action=f"Send {field_name} for every participant.",
        ),
        rule=f"{field_name}_required",
    )


def _equal_split(
    total_amount: Decimal,
    participants: Sequence[ParticipantInput],
) -> list[ParticipantSplit]:
    _require_paid_total(total_amount, participants, exact=True)
    per_person = quantize_share(total_amount / len(participants))
    return [
        ParticipantSplit(
            user_id=p.user_id,
            paid_amount=p.paid_amount,
            owed_amount=per_person,
        )
        for p in participants
    ]


def _exact_split(
    total_amount: Decimal,
    participants: Sequence[ParticipantInput],
) -> list[ParticipantSplit]:
    total_owed = Decimal("0")
    for participant in participants:
        if participant.owed_amount is None:
            raise _missing_field("owed_amount", SplitMethod.EXACT)
        if participant.owed_amount < 0:
            raise ValidationError(
                message=compose_error_message(
                    cause="owed_amount cannot be negative.",
                    action="Send zero or a positive owed_amount.",
                ),
                rule="owed_amount_negative",
                details={"user_id": str(participant.user_id)},
            )
        total_owed += participant.owed_amount

    if not within_tolerance(total_owed, total_amount):
        raise ValidationError(
            message=compose_error_message(
                cause=(
                    f"Total owed amount ({format_money(total_owed)}) must equal "
                    f"expense amount ({format_money(total_amount)})."
                ),
                action="Adjust owed_amount values so they add up to the expense.",
            ),
            rule="owed_total_mismatch",
            details={"total_owed": str(total_owed), "amount": str(total_amount)},
        )
    _require_paid_total(total_amount, participants)

    return [
        ParticipantSplit(
            user_id=p.user_id,
            paid_amount=p.paid_amount,
            owed_amount=p.owed_amount,
        )
        for p in participants
        if p.owed_amount is not None
    ]


def _percentage_split(
    total_amount: Decimal,
    participants: Sequence[ParticipantInput],
) -> list[ParticipantSplit]:
    total_percentage = Decimal("0")
    for participant in participants:
        if participant.percentage is None:
            raise _missing_field("percentage", SplitMethod.PERCENTAGE)
        if not Decimal("0") < participant.percentage <= ONE_HUNDRED:
            raise ValidationError(
                message=compose_error_message(
                    cause="percentage must be greater than 0 and at most 100.",
                    action="Send a percentage in the (0, 100] range.",
                ),
                rule="percentage_out_of_range",
                details={"user_id": str(participant.user_id)},
            )
        total_percentage += participant.percentage

    if not within_tolerance(total_percentage, ONE_HUNDRED):
        raise ValidationError(
            message=compose_error_message(
                cause=f"Total percentage ({total_percentage}) must equal 100.",
                action="Adjust percentages so they add up to 100.",
            ),
            rule="percentage_total_mismatch",
            details={"total_percentage": str(total_percentage)},
        )
    _require_paid_total(total_amount, participants)

    return [
        ParticipantSplit(
            user_id=p.user_id,
            paid_amount=p.paid_amount,
            owed_amount=quantize_share(total_amount * p.percentage / ONE_HUNDRED),
        )
        for p in participants
        if p.percentage is not None
    ]


def _shares_split(
    total_amount: Decimal,
    participants: Sequence[ParticipantInput],
) -> list[ParticipantSplit]:
    total_shares = 0
    for participant in participants:
        if participant.shares is None:
            raise _missing_field("shares", SplitMethod.SHARES)
        if participant.shares <= 0:
            raise ValidationError(
                message=compose_error_message(
                    cause="shares must be a positive integer.",
                    action="Send at least one share per participant.",
                ),
                rule="shares_not_positive",
                details={"user_id": str(participant.user_id)},
            )
        total_shares += participant.shares

    if total_shares <= 0:
        raise ValidationError(
            message=compose_error_message(
                cause="Total shares must be greater than 0.",
                action="Assign shares to the participants.",
            ),
            rule="shares_total_not_positive",
        )
    _require_paid_total(total_amount, participants)

    return [
        ParticipantSplit(
            user_id=p.user_id,
            paid_amount=p.paid_amount,
            owed_amount=quantize_share(total_amount * p.shares / total_shares),
        )
        for p in participants
        if p.shares is not None
    ]
