"""API dependency providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from splitledger.core.settings import Settings
from splitledger.db.session import get_db_session
from splitledger.domain.expense_rules import today_in
from splitledger.repositories.balance_query_repository import BalanceQueryRepository
from splitledger.repositories.expense_repository import ExpenseRepository
from splitledger.repositories.group_repository import GroupRepository
from splitledger.repositories.settlement_repository import SettlementRepository
from splitledger.repositories.user_repository import UserRepository
from splitledger.services.balance_service import BalanceService
from splitledger.services.expense_service import ExpenseService
from splitledger.services.settlement_service import SettlementService


@dataclass(frozen=True, slots=True)
class Page:
    """Resolved pagination window."""

    limit: int
    offset: int


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running app was created with."""

    return request.app.state.settings


def get_current_user_id(
    x_user_id: Annotated[UUID, Header(alias="X-User-Id")],
) -> UUID:
    """Resolve the acting user set by the upstream authentication layer."""

    return x_user_id


def get_page(
    settings: Annotated[Settings, Depends(get_app_settings)],
    limit: Annotated[int | None, Query(ge=1)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> Page:
    """Apply the default page size and cap it at the configured maximum."""

    resolved = settings.default_page_limit if limit is None else limit
    return Page(limit=min(resolved, settings.max_page_limit), offset=offset)


def get_expense_service(
    session: Annotated[Session, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ExpenseService:
    """Build expense service with per-request session."""

    return ExpenseService(
        expense_repository=ExpenseRepository(session),
        user_repository=UserRepository(session),
        group_repository=GroupRepository(session),
        session=session,
        today=lambda: today_in(settings.app_timezone),
    )


def get_settlement_service(
    session: Annotated[Session, Depends(get_db_session)],
) -> SettlementService:
    """Build settlement service with per-request session."""

    return SettlementService(
        settlement_repository=SettlementRepository(session),
        user_repository=UserRepository(session),
        group_repository=GroupRepository(session),
        session=session,
    )


def get_balance_service(
    session: Annotated[Session, Depends(get_db_session)],
) -> BalanceService:
    """Build balance service over read-only queries."""

    return BalanceService(
        balance_query_repository=BalanceQueryRepository(session),
        user_repository=UserRepository(session),
        group_repository=GroupRepository(session),
    )
