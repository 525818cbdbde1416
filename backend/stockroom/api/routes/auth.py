"""Authentication routes."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from stockroom.api.deps import JsonBody, to_response
from stockroom.core.config import settings
from stockroom.core.rate_limit import limiter
from stockroom.db.session import DbSession
from stockroom.services.auth import login_user, signup_user

router = APIRouter()


def _with_session_cookie(response: JSONResponse, token: str) -> JSONResponse:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return response


@router.post("/login")
@limiter.limit("10/minute")
def login(request: Request, db: DbSession, body: JsonBody):
    """Exchange email and password for a session token."""
    result = login_user(db, body)
    response = to_response(result)
    if result.ok:
        _with_session_cookie(response, result.data["access_token"])
    return response


@router.post("/signup")
@limiter.limit("5/minute")
def signup(request: Request, db: DbSession, body: JsonBody):
    """Create a user together with their company."""
    result = signup_user(db, body)
    response = to_response(result, status_code=201)
    if result.ok:
        _with_session_cookie(response, result.data["access_token"])
    return response


@router.post("/logout")
def logout():
    response = JSONResponse({"success": True})
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response
