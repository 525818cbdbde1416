"""Team report routes."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from stockroom.api.deps import RequestUserId, to_response
from stockroom.core.config import settings
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services.reports import get_team_report_stats_for_user

router = APIRouter()


@router.get("/")
@limiter.limit("30/minute")
def get_report_stats(
    request: Request,
    team_id: int,
    db: DbSession,
    user_id: RequestUserId,
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
):
    """Stock and transaction figures; the date range narrows transaction counts."""
    result = get_team_report_stats_for_user(
        db,
        team_id,
        user_id,
        {"start_date": start_date, "end_date": end_date},
        enforce_subscription=settings.billing_enforce_subscription,
    )
    return to_response(result)
