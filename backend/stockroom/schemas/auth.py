"""Authentication schemas."""

from pydantic import EmailStr, Field, field_validator

from stockroom.schemas.common import PayloadModel

MIN_PASSWORD_LENGTH = 6


class LoginRequest(PayloadModel):
    """Login request body."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class SignupRequest(PayloadModel):
    """Signup request body: the first user of a new company."""

    email: EmailStr
    password: str = Field(..., max_length=128)
    company_name: str = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Company name is required")
        return v


class PasswordChangeRequest(PayloadModel):
    """Change-password body. Checks beyond presence live in the service."""

    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""
