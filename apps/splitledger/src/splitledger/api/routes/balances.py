"""Balance routes for the calling user."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from splitledger.api.dependencies import get_balance_service, get_current_user_id
from splitledger.api.schemas.balances import (
    BalanceSummaryResponse,
    PairwiseBalanceResponse,
    SettlementSuggestionsResponse,
)
from splitledger.services.balance_service import BalanceService

router = APIRouter(prefix="/balances", tags=["Balances"])


@router.get("", response_model=BalanceSummaryResponse)
def get_balances(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[BalanceService, Depends(get_balance_service)],
) -> BalanceSummaryResponse:
    """Net position of the caller against every counterparty."""

    return BalanceSummaryResponse.from_summary(service.get_user_balances(user_id))


# Declared before the pairwise route so "suggestions" is not parsed as a user id.
@router.get("/suggestions", response_model=SettlementSuggestionsResponse)
def get_suggestions(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[BalanceService, Depends(get_balance_service)],
) -> SettlementSuggestionsResponse:
    return SettlementSuggestionsResponse.from_suggestions(
        service.get_settlement_suggestions(user_id)
    )


@router.get("/{other_user_id}", response_model=PairwiseBalanceResponse)
def get_pairwise_balance(
    other_user_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[BalanceService, Depends(get_balance_service)],
) -> PairwiseBalanceResponse:
    """Positive amount: the other user owes the caller."""

    return PairwiseBalanceResponse.from_balance(
        service.get_pairwise_balance(user_id, other_user_id)
    )
