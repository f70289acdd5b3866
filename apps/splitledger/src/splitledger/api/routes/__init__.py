"""API v1 router registration."""

from fastapi import APIRouter

from splitledger.api.routes import balances, expenses, groups, settlements

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(expenses.router)
v1_router.include_router(settlements.router)
v1_router.include_router(balances.router)
v1_router.include_router(groups.router)
