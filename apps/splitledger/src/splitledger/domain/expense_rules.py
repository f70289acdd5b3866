"""Expense-level rules: closed categories and date bounds."""

from __future__ import annotations

import enum
from datetime import date, datetime
from zoneinfo import ZoneInfo

from splitledger.domain.errors import ValidationError, compose_error_message


class ExpenseCategory(enum.StrEnum):
    """Supported expense categories."""

    GENERAL = "general"
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TRAVEL = "travel"
    OTHER = "other"


def today_in(timezone_name: str) -> date:
    """Return the current calendar date in the given timezone."""

    return datetime.now(tz=ZoneInfo(timezone_name)).date()


def parse_category(value: ExpenseCategory | str) -> ExpenseCategory:
    try:
        return ExpenseCategory(value)
    except ValueError as exc:
        raise ValidationError(
            message=compose_error_message(
                cause=f"Expense category '{value}' is not supported.",
                action="Use one of: "
                + ", ".join(category.value for category in ExpenseCategory)
                + ".",
            ),
            rule="invalid_category",
        ) from exc


def resolve_expense_date(expense_date: date | None, *, today: date) -> date:
    """Default to today and reject dates after today."""

    if expense_date is None:
        return today
    if expense_date > today:
        raise ValidationError(
            message=compose_error_message(
                cause="Expense date cannot be in the future.",
                action="Use today's date or an earlier one.",
            ),
            rule="date_in_future",
            details={"date": expense_date.isoformat(), "today": today.isoformat()},
        )
    return expense_date
