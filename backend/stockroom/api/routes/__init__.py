"""API routes."""

from fastapi import APIRouter

from stockroom.api.routes import (
    auth,
    billing,
    items,
    locations,
    me,
    reports,
    stock_transactions,
    teams,
    transactions,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(me.router, prefix="/users/me", tags=["users"])
api_router.include_router(billing.webhook_router, prefix="/billing", tags=["billing"])
api_router.include_router(teams.router, prefix="/teams", tags=["teams"])
api_router.include_router(items.router, prefix="/teams/{team_id}/items", tags=["items"])
api_router.include_router(locations.router, prefix="/teams/{team_id}/locations", tags=["locations"])
api_router.include_router(
    stock_transactions.router, prefix="/teams/{team_id}/stock-transactions", tags=["stock"]
)
api_router.include_router(
    transactions.router, prefix="/teams/{team_id}/transactions", tags=["transactions"]
)
api_router.include_router(users.router, prefix="/teams/{team_id}/users", tags=["team users"])
api_router.include_router(reports.router, prefix="/teams/{team_id}/reports", tags=["reports"])
api_router.include_router(billing.router, prefix="/teams/{team_id}/billing", tags=["billing"])
