"""Domain exceptions used across API and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable domain failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    """Raised when input violates a business rule such as a split sum."""

    def __init__(
        self,
        message: str | None = None,
        *,
        rule: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged_details = dict(details or {})
        if rule is not None:
            merged_details["rule"] = rule
        super().__init__(
            code="VALIDATION_ERROR",
            message=message
            or compose_error_message(
                cause="Request data violates business rules.",
                action="Adjust the input fields and try again.",
            ),
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            details=merged_details,
        )

    @property
    def rule(self) -> str | None:
        return self.details.get("rule")


class AuthorizationError(DomainError):
    """Raised when the acting user may not perform the operation."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="FORBIDDEN",
            message=message
            or compose_error_message(
                cause="You are not allowed to perform this operation.",
                action="Use an account that owns or takes part in the resource.",
            ),
            status_code=HTTPStatus.FORBIDDEN,
            details=details or {},
        )


class StateError(DomainError):
    """Raised when a transition is attempted from a terminal or wrong state."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_STATE_TRANSITION",
            message=message
            or compose_error_message(
                cause="The resource is not in a state that allows this change.",
                action="Reload the resource and check its current state.",
            ),
            status_code=HTTPStatus.CONFLICT,
            details=details or {},
        )


class NotFoundError(DomainError):
    """Base class for missing references."""

    default_code = "NOT_FOUND"
    default_cause = "The referenced resource does not exist."

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=self.default_code,
            message=message
            or compose_error_message(
                cause=self.default_cause,
                action="Check the identifier and retry.",
            ),
            status_code=HTTPStatus.NOT_FOUND,
            details=details or {},
        )


class ExpenseNotFoundError(NotFoundError):
    """Raised when an expense reference cannot be resolved."""

    default_code = "EXPENSE_NOT_FOUND"
    default_cause = "Expense was not found."


class SettlementNotFoundError(NotFoundError):
    """Raised when a settlement reference cannot be resolved."""

    default_code = "SETTLEMENT_NOT_FOUND"
    default_cause = "Settlement was not found."


class GroupNotFoundError(NotFoundError):
    """Raised when a group reference cannot be resolved."""

    default_code = "GROUP_NOT_FOUND"
    default_cause = "Group was not found."


class UserNotFoundError(NotFoundError):
    """Raised when a user reference cannot be resolved."""

    default_code = "USER_NOT_FOUND"
    default_cause = "User was not found."
