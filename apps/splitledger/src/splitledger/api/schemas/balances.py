"""Schemas for balance and suggestion endpoints."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from splitledger.api.schemas.common import MONEY_PATTERN, SIGNED_MONEY_PATTERN
from splitledger.domain.money import format_money
from splitledger.services.balance_service import (
    BalanceSummary,
    GroupBalances,
    PairwiseBalance,
    SettlementSuggestions,
)


class BalanceEdgeResponse(BaseModel):
    """Positive amount: the user owes the caller."""

    user_id: UUID
    user_name: str | None
    amount: str = Field(pattern=SIGNED_MONEY_PATTERN)


class BalanceSummaryResponse(BaseModel):
    user_id: UUID
    total_owed: str = Field(pattern=MONEY_PATTERN)
    total_owing: str = Field(pattern=MONEY_PATTERN)
    net_balance: str = Field(pattern=SIGNED_MONEY_PATTERN)
    balances: list[BalanceEdgeResponse]

    @classmethod
    def from_summary(cls, summary: BalanceSummary) -> BalanceSummaryResponse:
        return cls(
            user_id=summary.user_id,
            total_owed=format_money(summary.total_owed),
            total_owing=format_money(summary.total_owing),
            net_balance=format_money(summary.net_balance),
            balances=[
                BalanceEdgeResponse(
                    user_id=edge.counterparty_id,
                    user_name=summary.user_names.get(edge.counterparty_id),
                    amount=format_money(edge.amount),
                )
                for edge in summary.balances
            ],
        )


class PairwiseBalanceResponse(BaseModel):
    user_id: UUID
    other_user_id: UUID
    amount: str = Field(pattern=SIGNED_MONEY_PATTERN)

    @classmethod
    def from_balance(cls, balance: PairwiseBalance) -> PairwiseBalanceResponse:
        return cls(
            user_id=balance.user_id,
            other_user_id=balance.other_user_id,
            amount=format_money(balance.amount),
        )


class GroupMemberBalanceResponse(BaseModel):
    user_id: UUID
    user_name: str | None
    total_paid: str = Field(pattern=MONEY_PATTERN)
    total_owed: str = Field(pattern=MONEY_PATTERN)
    net_balance: str = Field(pattern=SIGNED_MONEY_PATTERN)


class GroupBalancesResponse(BaseModel):
    group_id: UUID
    group_name: str
    total_expense: str = Field(pattern=MONEY_PATTERN)
    balances: list[GroupMemberBalanceResponse]

    @classmethod
    def from_balances(cls, result: GroupBalances) -> GroupBalancesResponse:
        return cls(
            group_id=result.group_id,
            group_name=result.group_name,
            total_expense=format_money(result.total_expense),
            balances=[
                GroupMemberBalanceResponse(
                    user_id=balance.user_id,
                    user_name=result.user_names.get(balance.user_id),
                    total_paid=format_money(balance.total_paid),
                    total_owed=format_money(balance.total_owed),
                    net_balance=format_money(balance.net_balance),
                )
                for balance in result.balances
            ],
        )


class SuggestionResponse(BaseModel):
    from_user_id: UUID
    from_user_name: str | None
    to_user_id: UUID
    to_user_name: str | None
    amount: str = Field(pattern=MONEY_PATTERN)


class SettlementSuggestionsResponse(BaseModel):
    suggestions: list[SuggestionResponse]
    total_amount: str = Field(pattern=MONEY_PATTERN)
    message: str

    @classmethod
    def from_suggestions(
        cls, result: SettlementSuggestions
    ) -> SettlementSuggestionsResponse:
        return cls(
            suggestions=[
                SuggestionResponse(
                    from_user_id=suggestion.from_user,
                    from_user_name=result.user_names.get(suggestion.from_user),
                    to_user_id=suggestion.to_user,
                    to_user_name=result.user_names.get(suggestion.to_user),
                    amount=format_money(suggestion.amount),
                )
                for suggestion in result.suggestions
            ],
            total_amount=format_money(result.total_amount),
            message=result.message,
        )
