"""Request-scoped dependencies and the result-to-response bridge."""

import logging
from typing import Annotated, Any, Optional

from fastapi import Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from stockroom.core.config import settings
from stockroom.core.security import user_id_from_token
from stockroom.services.billing_client import StripeClient
from stockroom.services.result import ServiceResult

logger = logging.getLogger(__name__)


def get_request_user_id(request: Request) -> Optional[int]:
    """Resolve the caller from a Bearer token, falling back to the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        user_id = user_id_from_token(auth_header.split(" ", 1)[1].strip())
        if user_id is not None:
            return user_id
    return user_id_from_token(request.cookies.get(settings.session_cookie_name))


async def read_json_body(request: Request) -> Any:
    """Raw JSON body, or None when missing or malformed; services validate it."""
    try:
        return await request.json()
    except ValueError:
        return None


def get_billing_client(request: Request) -> Optional[StripeClient]:
    return getattr(request.app.state, "billing", None)


RequestUserId = Annotated[Optional[int], Depends(get_request_user_id)]
JsonBody = Annotated[Any, Depends(read_json_body)]
BillingClient = Annotated[Optional[StripeClient], Depends(get_billing_client)]


def to_response(result: ServiceResult, status_code: int = 200) -> JSONResponse:
    """Render a service result: data as JSON, errors as {error_code, error}."""
    if not result.ok:
        return JSONResponse(status_code=result.error.status, content=result.error.to_payload())
    content = {"success": True} if result.data is None else jsonable_encoder(result.data)
    return JSONResponse(status_code=status_code, content=content)
