"""Settlement routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from splitledger.api.dependencies import (
    Page,
    get_current_user_id,
    get_page,
    get_settlement_service,
)
from splitledger.api.schemas.settlements import (
    CreateSettlementRequest,
    SettlementListResponse,
    SettlementResponse,
    UpdateSettlementRequest,
)
from splitledger.domain.money import parse_money
from splitledger.domain.settlement_ledger import SettlementPatch, parse_payment_method
from splitledger.services.settlement_service import (
    CreateSettlementInput,
    SettlementService,
)

router = APIRouter(prefix="/settlements", tags=["Settlements"])


@router.post(
    "",
    response_model=SettlementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid payload"},
        404: {"description": "Unknown payee"},
        422: {"description": "Business rule violated"},
    },
)
def create_settlement(
    payload: CreateSettlementRequest,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> SettlementResponse:
    """Record a pending payment from the caller to the payee."""

    settlement = service.create_settlement(
        CreateSettlementInput(
            payer_id=user_id,
            payee_id=payload.payee_id,
            amount=parse_money(payload.amount),
            payment_method=payload.payment_method,
            notes=payload.notes,
            group_id=payload.group_id,
        )
    )
    return SettlementResponse.from_model(settlement)


@router.get("", response_model=SettlementListResponse)
def list_settlements(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    page: Annotated[Page, Depends(get_page)],
) -> SettlementListResponse:
    items = service.list_user_settlements(
        user_id, limit=page.limit, offset=page.offset
    )
    return SettlementListResponse.from_models(items)


@router.get("/with/{other_user_id}", response_model=SettlementListResponse)
def list_settlements_with_user(
    other_user_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> SettlementListResponse:
    """List settlements exchanged with one other user."""

    return SettlementListResponse.from_models(
        service.list_settlements_between(user_id, other_user_id)
    )


@router.get("/{settlement_id}", response_model=SettlementResponse)
def get_settlement(
    settlement_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> SettlementResponse:
    return SettlementResponse.from_model(
        service.get_settlement(settlement_id, user_id=user_id)
    )


@router.patch(
    "/{settlement_id}",
    response_model=SettlementResponse,
    responses={
        403: {"description": "Caller is not the payer"},
        409: {"description": "Settlement is no longer pending"},
    },
)
def update_settlement(
    settlement_id: UUID,
    payload: UpdateSettlementRequest,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> SettlementResponse:
    patch = SettlementPatch(
        amount=parse_money(payload.amount) if payload.amount else None,
        payment_method=(
            parse_payment_method(payload.payment_method)
            if payload.payment_method
            else None
        ),
        notes=payload.notes,
    )
    settlement = service.update_settlement(settlement_id, patch, user_id=user_id)
    return SettlementResponse.from_model(settlement)


@router.post(
    "/{settlement_id}/confirm",
    response_model=SettlementResponse,
    responses={
        403: {"description": "Caller is not the payee"},
        409: {"description": "Settlement is no longer pending"},
    },
)
def confirm_settlement(
    settlement_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> SettlementResponse:
    """Payee confirms the payment was received."""

    return SettlementResponse.from_model(
        service.confirm_settlement(settlement_id, user_id=user_id)
    )


@router.delete(
    "/{settlement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"description": "Caller is not the payer"},
        409: {"description": "Settlement is no longer pending"},
    },
)
def delete_settlement(
    settlement_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> Response:
    service.delete_settlement(settlement_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
