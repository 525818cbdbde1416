"""Team schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas.common import PayloadModel


class TeamCreate(PayloadModel):
    """Team creation body."""

    name: str = Field(..., max_length=255)
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Team name is required")
        return v

    @field_validator("notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TeamUpdate(PayloadModel):
    """Team update body. Only keys present in the request are applied."""

    name: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None
    label_company_info: Optional[str] = None
    company_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("Team name is required")
        return v

    @field_validator("company_name")
    @classmethod
    def validate_company_name(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("Company name is required")
        return v

    @field_validator("notes", "label_company_info")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class TeamDto(BaseModel):
    """Team as returned to callers."""

    id: int
    name: str
    notes: Optional[str] = None
    user_id: int
    company_id: Optional[int] = None
    label_company_info: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_subscription_status: Optional[str] = None
    stripe_price_id: Optional[str] = None
    stripe_current_period_end: Optional[str] = None
    manual_trial_ends_at: Optional[str] = None
    manual_trial_grants_count: int = 0
    item_count: int = 0
    transaction_count: int = 0
    member_count: int = 0
    team_role: Optional[str] = None
    can_delete_team: bool = False
    created_at: str
    updated_at: str


MANUAL_TRIAL_DURATION_ERROR = "Duration must be an integer between 1 and 30 days"


class ManualTrialGrant(PayloadModel):
    """Manual trial body: how many days to grant and an optional note."""

    duration_days: int
    reason: Optional[str] = None

    @field_validator("duration_days", mode="before")
    @classmethod
    def validate_duration(cls, v):
        if isinstance(v, bool) or not isinstance(v, int) or not 1 <= v <= 30:
            raise ValueError(MANUAL_TRIAL_DURATION_ERROR)
        return v

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) > 200:
            raise ValueError("Reason must have at most 200 characters")
        return v or None
