"""Billing routes: provider sync, manual trials and the provider webhook."""

from fastapi import APIRouter, Request

from stockroom.api.deps import BillingClient, JsonBody, RequestUserId, to_response
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services.billing import (
    grant_team_manual_trial,
    process_billing_webhook,
    sync_team_subscription,
)

router = APIRouter()
webhook_router = APIRouter()


@router.post("/sync")
async def sync_subscription(
    request: Request, team_id: int, db: DbSession, user_id: RequestUserId, billing: BillingClient
):
    """Refresh the team's subscription snapshot from the provider."""
    return to_response(await sync_team_subscription(db, billing, team_id, user_id))


@router.post("/trial")
@limiter.limit("10/minute")
def grant_trial(request: Request, team_id: int, db: DbSession, user_id: RequestUserId, body: JsonBody):
    return to_response(grant_team_manual_trial(db, team_id, user_id, body))


@webhook_router.post("/webhook")
async def billing_webhook(request: Request, db: DbSession, billing: BillingClient):
    payload = await request.body()
    signature = request.headers.get("Stripe-Signature")
    return to_response(await process_billing_webhook(db, billing, payload, signature))
