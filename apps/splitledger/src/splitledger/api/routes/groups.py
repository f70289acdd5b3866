"""Group-scoped expense, settlement and balance routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from splitledger.api.dependencies import (
    Page,
    get_balance_service,
    get_current_user_id,
    get_expense_service,
    get_page,
    get_settlement_service,
)
from splitledger.api.schemas.balances import (
    GroupBalancesResponse,
    SettlementSuggestionsResponse,
)
from splitledger.api.schemas.expenses import ExpenseListResponse
from splitledger.api.schemas.settlements import SettlementListResponse
from splitledger.services.balance_service import BalanceService
from splitledger.services.expense_service import ExpenseService
from splitledger.services.settlement_service import SettlementService

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.get("/{group_id}/expenses", response_model=ExpenseListResponse)
def list_group_expenses(
    group_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
    page: Annotated[Page, Depends(get_page)],
) -> ExpenseListResponse:
    items, total = service.list_group_expenses(
        group_id,
        user_id=user_id,
        limit=page.limit,
        offset=page.offset,
    )
    return ExpenseListResponse.from_models(
        items=items,
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{group_id}/settlements", response_model=SettlementListResponse)
def list_group_settlements(
    group_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    page: Annotated[Page, Depends(get_page)],
) -> SettlementListResponse:
    return SettlementListResponse.from_models(
        service.list_group_settlements(
            group_id,
            user_id=user_id,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.get("/{group_id}/balances", response_model=GroupBalancesResponse)
def get_group_balances(
    group_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[BalanceService, Depends(get_balance_service)],
) -> GroupBalancesResponse:
    """Paid, owed and net totals for every active member."""

    return GroupBalancesResponse.from_balances(
        service.get_group_balances(group_id, user_id=user_id)
    )


@router.get(
    "/{group_id}/balances/suggestions",
    response_model=SettlementSuggestionsResponse,
)
def get_group_suggestions(
    group_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[BalanceService, Depends(get_balance_service)],
) -> SettlementSuggestionsResponse:
    """Fewest transfers that would settle the whole group."""

    return SettlementSuggestionsResponse.from_suggestions(
        service.get_group_settlement_suggestions(group_id, user_id=user_id)
    )
