"""Team billing: subscription snapshots, provider sync, webhooks and manual trials.

The provider is the source of truth; the team row keeps a snapshot
(customer, subscription, status, price, period end) that the rest of the
app reads. A subscription Stripe still reports as active or trialing but
with a cancellation scheduled is stored as ``canceling``.

No database transaction stays open across a provider request: reads are
committed before the await and writes reload the team in their own unit of
work.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.permissions import Permission, authorize, authorize_team_access
from stockroom.db.session import atomic
from stockroom.models.team import Team
from stockroom.schemas.common import parse_payload, to_iso
from stockroom.schemas.team import ManualTrialGrant
from stockroom.services.billing_client import BillingProviderError, StripeClient
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    async_service_boundary,
    auth_service_error,
    conflict_service_error,
    make_service_error,
    not_found_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store.members import lock_team
from stockroom.store.teams import (
    get_team,
    get_team_by_stripe_customer,
    update_team,
)

logger = logging.getLogger(__name__)

ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing", "canceling"})
PROVIDER_ACTIVE_STATUSES = frozenset({"active", "trialing", "past_due", "canceling"})
PREFERRED_SYNC_STATUSES = ("active", "trialing", "past_due")
MAX_MANUAL_TRIAL_GRANTS = 3


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def has_active_team_subscription(team: Team, now: Optional[datetime] = None) -> bool:
    """Paid up, trialing, canceling at period end, or inside a manual trial."""
    if (team.stripe_subscription_status or "") in ACTIVE_SUBSCRIPTION_STATUSES:
        return True
    if team.manual_trial_ends_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _aware(team.manual_trial_ends_at) > now


def effective_subscription_status(subscription: Dict[str, Any]) -> Optional[str]:
    status = subscription.get("status")
    if status not in ("active", "trialing"):
        return status
    cancellation = subscription.get("cancellation_details") or {}
    if (
        subscription.get("cancel_at")
        or subscription.get("cancel_at_period_end")
        or cancellation.get("reason") == "cancellation_requested"
    ):
        return "canceling"
    return status


def _first_subscription_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    data = (subscription.get("items") or {}).get("data") or []
    return data[0] if data else {}


def _customer_id(value: Any) -> Optional[str]:
    # Expanded objects arrive as dicts
    if isinstance(value, dict):
        return value.get("id")
    return value


def subscription_snapshot(subscription: Dict[str, Any], effective: bool = True) -> Dict[str, Any]:
    """Team column values for a provider subscription object."""
    item = _first_subscription_item(subscription)
    period_end = item.get("current_period_end")
    return {
        "stripe_subscription_id": subscription.get("id"),
        "stripe_subscription_status": (
            effective_subscription_status(subscription) if effective else subscription.get("status")
        ),
        "stripe_price_id": (item.get("price") or {}).get("id"),
        "stripe_current_period_end": (
            datetime.fromtimestamp(int(period_end), tz=timezone.utc) if period_end else None
        ),
    }


EMPTY_SNAPSHOT = {
    "stripe_subscription_id": None,
    "stripe_subscription_status": None,
    "stripe_price_id": None,
    "stripe_current_period_end": None,
}


@service_boundary("Failed to resolve team access context")
def ensure_team_has_active_subscription(
    db: Session, team_id: int, request_user_id: Optional[int]
) -> ServiceResult:
    access = authorize_team_access(db, team_id, request_user_id)
    if not access.ok:
        return Err(auth_service_error(access))
    if not has_active_team_subscription(access.team):
        return Err(make_service_error(403, ErrorCode.FORBIDDEN, "Active subscription required"))
    return Ok({"request_user_id": access.user.id})


@service_boundary("Failed to grant team manual trial")
def grant_team_manual_trial(
    db: Session,
    team_id: int,
    request_user_id: Optional[int],
    payload: Any,
    now: Optional[datetime] = None,
) -> ServiceResult:
    """Give a team without a live subscription some free days.

    A running trial is extended from its current end. Each team gets at most
    ``MAX_MANUAL_TRIAL_GRANTS`` grants.
    """
    parsed = parse_payload(ManualTrialGrant, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    if not auth.ok:
        return Err(auth_service_error(auth))

    now = now or datetime.now(timezone.utc)
    with atomic(db):
        # Concurrent grants for one team must see each other's count
        team = lock_team(db, team_id)
        if team is None:
            return Err(not_found_service_error(ErrorCode.TEAM_NOT_FOUND))
        if (team.stripe_subscription_status or "") in PROVIDER_ACTIVE_STATUSES:
            return Err(conflict_service_error("Team already has an active subscription"))
        if team.manual_trial_grants_count >= MAX_MANUAL_TRIAL_GRANTS:
            return Err(conflict_service_error("Manual trial grant limit reached for this team"))

        start = now
        if team.manual_trial_ends_at is not None and _aware(team.manual_trial_ends_at) > now:
            start = _aware(team.manual_trial_ends_at)
        ends_at = start + timedelta(days=body.duration_days)
        grants = team.manual_trial_grants_count + 1
        update_team(
            db,
            team,
            manual_trial_ends_at=ends_at,
            manual_trial_grants_count=grants,
            manual_trial_last_granted_at=now,
        )

    logger.info(
        f"Manual trial for team {team_id} granted by user {auth.user.id}: "
        f"{body.duration_days} days until {ends_at.isoformat()} (grant {grants}, reason: {body.reason})"
    )
    return Ok({"manual_trial_ends_at": to_iso(ends_at), "manual_trial_grants_count": grants})


def _read_sync_target(db: Session, team_id: int, request_user_id: Optional[int]) -> ServiceResult:
    auth = authorize(db, Permission.TEAM_UPDATE, team_id, request_user_id)
    customer_id = auth.team.stripe_customer_id if auth.ok else None
    # End the read transaction so no lock is held while the provider answers
    db.commit()
    if not auth.ok:
        return Err(auth_service_error(auth))
    return Ok(customer_id)


def _store_snapshot(db: Session, team_id: int, fields: Dict[str, Any]) -> bool:
    """Write provider fields onto the team, reloaded inside the unit of work."""
    with atomic(db):
        team = get_team(db, team_id)
        if team is None:
            return False
        if "stripe_customer_id" in fields and team.stripe_customer_id:
            fields = {key: value for key, value in fields.items() if key != "stripe_customer_id"}
        update_team(db, team, **fields)
    return True


@async_service_boundary("Failed to sync subscription")
async def sync_team_subscription(
    db: Session,
    billing: Optional[StripeClient],
    team_id: int,
    request_user_id: Optional[int],
) -> ServiceResult:
    """Pull the team's subscriptions from the provider and store the best one.

    Database work runs in worker threads and is committed before each
    provider request.
    """
    if billing is None:
        return Err(make_service_error(500, ErrorCode.BILLING_NOT_CONFIGURED))

    target = await asyncio.to_thread(_read_sync_target, db, team_id, request_user_id)
    if not target.ok:
        return target
    customer_id = target.data
    if not customer_id:
        return Ok({"synced": False, "subscription_status": None})

    try:
        subscriptions = await billing.list_subscriptions(customer_id)
    except BillingProviderError as e:
        logger.error(f"Subscription sync for team {team_id} failed: {e}")
        return Err(
            make_service_error(502, ErrorCode.BILLING_PROVIDER_ERROR, "Failed to sync subscription")
        )

    chosen = next(
        (s for s in subscriptions if s.get("status") in PREFERRED_SYNC_STATUSES),
        subscriptions[0] if subscriptions else None,
    )
    snapshot = subscription_snapshot(chosen) if chosen else dict(EMPTY_SNAPSHOT)
    if not await asyncio.to_thread(_store_snapshot, db, team_id, snapshot):
        return Err(not_found_service_error(ErrorCode.TEAM_NOT_FOUND))

    logger.info(f"Team {team_id} subscription synced: {snapshot['stripe_subscription_status']}")
    return Ok({"synced": True, "subscription_status": snapshot["stripe_subscription_status"]})


def _find_checkout_team(db: Session, session_obj: Dict[str, Any], customer_id: str) -> Optional[int]:
    team = None
    team_id_raw = (session_obj.get("metadata") or {}).get("teamId")
    try:
        team = get_team(db, int(team_id_raw)) if team_id_raw is not None else None
    except (TypeError, ValueError):
        team = None
    if team is None:
        team = get_team_by_stripe_customer(db, customer_id)
    team_id = team.id if team is not None else None
    db.commit()
    return team_id


async def _handle_checkout_completed(db: Session, billing: StripeClient, session_obj: Dict[str, Any]):
    customer_id = _customer_id(session_obj.get("customer"))
    subscription_id = _customer_id(session_obj.get("subscription"))
    if not customer_id or not subscription_id:
        return

    team_id = await asyncio.to_thread(_find_checkout_team, db, session_obj, customer_id)
    if team_id is None:
        logger.warning(f"Checkout completed for unknown team (customer {customer_id})")
        return

    subscription = await billing.retrieve_subscription(subscription_id)
    fields = subscription_snapshot(subscription)
    fields["stripe_customer_id"] = customer_id
    await asyncio.to_thread(_store_snapshot, db, team_id, fields)


def _handle_subscription_event(db: Session, subscription: Dict[str, Any], deleted: bool):
    customer_id = _customer_id(subscription.get("customer"))
    if not customer_id:
        return
    with atomic(db):
        team = get_team_by_stripe_customer(db, customer_id)
        if team is None:
            logger.warning(f"Subscription event for unknown customer {customer_id}")
            return
        # A deleted subscription keeps the provider's raw status
        update_team(db, team, **subscription_snapshot(subscription, effective=not deleted))


@async_service_boundary("Failed to process billing webhook")
async def process_billing_webhook(
    db: Session,
    billing: Optional[StripeClient],
    payload: bytes,
    signature: Optional[str],
) -> ServiceResult:
    if billing is None or not billing.webhook_secret:
        return Err(make_service_error(500, ErrorCode.BILLING_NOT_CONFIGURED))
    if not signature:
        return Err(validation_service_error("Missing Stripe-Signature header"))
    if not billing.verify_webhook_signature(payload, signature):
        return Err(validation_service_error("Invalid webhook signature"))

    try:
        event = json.loads(payload)
    except ValueError:
        return Err(validation_service_error("Invalid webhook payload"))

    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    logger.info(f"Billing webhook received: {event_type}")

    if event_type == "checkout.session.completed":
        await _handle_checkout_completed(db, billing, obj)
    elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
        await asyncio.to_thread(_handle_subscription_event, db, obj, False)
    elif event_type == "customer.subscription.deleted":
        await asyncio.to_thread(_handle_subscription_event, db, obj, True)

    return Ok({"received": True})
