"""Error codes returned to API callers."""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    USER_NOT_AUTHENTICATED = "USER_NOT_AUTHENTICATED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    EMAIL_ALREADY_IN_USE = "EMAIL_ALREADY_IN_USE"
    TEAM_MEMBER_NOT_FOUND = "TEAM_MEMBER_NOT_FOUND"
    LAST_ADMIN_CANNOT_BE_REMOVED = "LAST_ADMIN_CANNOT_BE_REMOVED"
    TEAM_MEMBER_UPDATE_FAILED = "TEAM_MEMBER_UPDATE_FAILED"
    TEAM_MEMBER_REMOVE_FAILED = "TEAM_MEMBER_REMOVE_FAILED"
    CURRENT_PASSWORD_INCORRECT = "CURRENT_PASSWORD_INCORRECT"
    PASSWORD_FIELDS_REQUIRED = "PASSWORD_FIELDS_REQUIRED"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    PASSWORD_CONFIRMATION_MISMATCH = "PASSWORD_CONFIRMATION_MISMATCH"
    PASSWORD_MUST_DIFFER = "PASSWORD_MUST_DIFFER"
    BILLING_NOT_CONFIGURED = "BILLING_NOT_CONFIGURED"
    BILLING_PROVIDER_ERROR = "BILLING_PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "Invalid request data",
    ErrorCode.USER_NOT_AUTHENTICATED: "User not authenticated",
    ErrorCode.USER_NOT_FOUND: "User not found",
    ErrorCode.FORBIDDEN: "Forbidden",
    ErrorCode.INSUFFICIENT_PERMISSIONS: "Insufficient permissions",
    ErrorCode.TEAM_NOT_FOUND: "Team not found",
    ErrorCode.ITEM_NOT_FOUND: "Item not found",
    ErrorCode.LOCATION_NOT_FOUND: "Location not found",
    ErrorCode.TRANSACTION_NOT_FOUND: "Transaction not found",
    ErrorCode.INSUFFICIENT_STOCK: "Insufficient stock",
    ErrorCode.EMAIL_ALREADY_IN_USE: "Email already in use",
    ErrorCode.TEAM_MEMBER_NOT_FOUND: "Team member not found",
    ErrorCode.LAST_ADMIN_CANNOT_BE_REMOVED: "Last admin cannot be removed",
    ErrorCode.TEAM_MEMBER_UPDATE_FAILED: "Team member update failed",
    ErrorCode.TEAM_MEMBER_REMOVE_FAILED: "Team member remove failed",
    ErrorCode.CURRENT_PASSWORD_INCORRECT: "Current password is incorrect",
    ErrorCode.PASSWORD_FIELDS_REQUIRED: "Password fields are required",
    ErrorCode.PASSWORD_TOO_SHORT: "Password is too short",
    ErrorCode.PASSWORD_CONFIRMATION_MISMATCH: "Password confirmation mismatch",
    ErrorCode.PASSWORD_MUST_DIFFER: "New password must differ from current password",
    ErrorCode.BILLING_NOT_CONFIGURED: "Billing is not configured",
    ErrorCode.BILLING_PROVIDER_ERROR: "Billing provider error",
    ErrorCode.INTERNAL_ERROR: "An internal error occurred",
}


def error_payload(error_code: ErrorCode, error: Optional[str] = None) -> dict:
    """Body shape shared by every error response."""
    return {
        "error_code": error_code.value,
        "error": error or ERROR_MESSAGES[error_code],
    }
