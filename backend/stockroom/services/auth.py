"""Login and signup."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockroom.core.errors import ErrorCode
from stockroom.core.security import create_access_token, get_password_hash, verify_password
from stockroom.db.session import atomic
from stockroom.models.company import CompanyRole
from stockroom.models.user import UserRole
from stockroom.schemas.auth import LoginRequest, SignupRequest
from stockroom.schemas.common import parse_payload
from stockroom.services.result import (
    Err,
    Ok,
    ServiceResult,
    conflict_service_error,
    make_service_error,
    service_boundary,
    validation_service_error,
)
from stockroom.store import companies as company_store
from stockroom.store import users as user_store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def _session_payload(user) -> dict:
    return {
        "user": {"id": user.id, "email": user.email, "role": user.role.value},
        "access_token": create_access_token(user.id),
        "token_type": "bearer",
    }


@service_boundary("An error occurred during login")
def login_user(db: Session, payload: Any) -> ServiceResult:
    parsed = parse_payload(LoginRequest, payload)
    if not parsed.ok:
        return Err(validation_service_error("Email and password are required"))

    user = user_store.get_user_by_email(db, parsed.data.email)
    if user is None or not verify_password(parsed.data.password, user.password_hash):
        logger.info(f"Failed login for {parsed.data.email}")
        return Err(make_service_error(401, ErrorCode.USER_NOT_AUTHENTICATED, INVALID_CREDENTIALS))

    return Ok(_session_payload(user))


@service_boundary("An error occurred during signup")
def signup_user(db: Session, payload: Any) -> ServiceResult:
    """Create the user, their company and the owner membership together."""
    parsed = parse_payload(SignupRequest, payload)
    if not parsed.ok:
        return Err(validation_service_error(parsed.error))
    body = parsed.data

    if user_store.get_user_by_email(db, body.email) is not None:
        return Err(conflict_service_error("Email already in use", ErrorCode.EMAIL_ALREADY_IN_USE))

    try:
        with atomic(db):
            user = user_store.create_user(
                db, body.email, get_password_hash(body.password), role=UserRole.ADMIN
            )
            company = company_store.create_company(db, body.company_name)
            company_store.ensure_company_member(db, company.id, user.id, role=CompanyRole.OWNER)
    except IntegrityError:
        return Err(conflict_service_error("Email already in use", ErrorCode.EMAIL_ALREADY_IN_USE))

    logger.info(f"User {user.id} signed up with company {company.id}")
    data = _session_payload(user)
    data["company"] = {"id": company.id, "name": company.name, "slug": company.slug}
    return Ok(data)
