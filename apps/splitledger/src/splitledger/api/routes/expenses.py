"""Expense routes."""

from __future__ import annotations

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from splitledger.api.dependencies import (
    Page,
    get_current_user_id,
    get_expense_service,
    get_page,
)
from splitledger.api.schemas.expenses import (
    CreateExpenseRequest,
    ExpenseListResponse,
    ExpenseResponse,
    UpdateExpenseRequest,
)
from splitledger.domain.expense_rules import parse_category
from splitledger.domain.money import parse_money
from splitledger.repositories.expense_repository import ExpenseQueryFilters
from splitledger.services.expense_service import (
    CreateExpenseInput,
    ExpensePatch,
    ExpenseService,
)

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.post(
    "",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid payload"},
        403: {"description": "Not a member of the group"},
        404: {"description": "Unknown participant or group"},
        422: {"description": "Split or business rule violated"},
    },
)
def create_expense(
    payload: CreateExpenseRequest,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
) -> ExpenseResponse:
    """Create an expense and its participant split atomically."""

    expense = service.create_expense(
        CreateExpenseInput(
            description=payload.description,
            amount=parse_money(payload.amount),
            split_method=payload.split_method,
            participants=[p.to_input() for p in payload.participants],
            created_by=user_id,
            category=payload.category,
            expense_date=payload.expense_date,
            group_id=payload.group_id,
            receipt_url=payload.receipt_url,
        )
    )
    return ExpenseResponse.from_model(expense)


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
    page: Annotated[Page, Depends(get_page)],
    group_id: UUID | None = None,
    category: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> ExpenseListResponse:
    """List expenses the caller takes part in."""

    filters = ExpenseQueryFilters(
        group_id=group_id,
        category=parse_category(category) if category else None,
        start_date=start_date,
        end_date=end_date,
        limit=page.limit,
        offset=page.offset,
    )
    items, total = service.list_user_expenses(user_id, filters)
    return ExpenseListResponse.from_models(
        items=items,
        total=total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
) -> ExpenseResponse:
    return ExpenseResponse.from_model(service.get_expense(expense_id, user_id=user_id))


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: UUID,
    payload: UpdateExpenseRequest,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
) -> ExpenseResponse:
    """Edit description, category, date or receipt; the amount is fixed."""

    expense = service.update_expense(
        expense_id,
        ExpensePatch(
            description=payload.description,
            category=payload.category,
            expense_date=payload.expense_date,
            receipt_url=payload.receipt_url,
            amount=parse_money(payload.amount) if payload.amount else None,
        ),
        user_id=user_id,
    )
    return ExpenseResponse.from_model(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: UUID,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    service: Annotated[ExpenseService, Depends(get_expense_service)],
) -> Response:
    service.delete_expense(expense_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
