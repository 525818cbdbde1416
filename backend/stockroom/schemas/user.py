"""Team member management schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from stockroom.models.team import TeamRole
from stockroom.schemas.common import PayloadModel


class TeamMemberCreate(PayloadModel):
    """Attach an existing user (by id or email) or create one by email."""

    user_id: Optional[int] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, max_length=128)
    role: TeamRole
    team_ids: Optional[List[int]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else None

    @model_validator(mode="after")
    def check_identity(self) -> "TeamMemberCreate":
        if self.user_id is None and not self.email:
            raise ValueError("User ID or email is required")
        return self


class TeamMemberUpdate(PayloadModel):
    role: Optional[TeamRole] = None
    email: Optional[EmailStr] = None
    new_password: Optional[str] = Field(default=None, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else None


class ManagedUserDto(BaseModel):
    user_id: int
    email: str
    role: str
    status: str


class AvailableUserDto(BaseModel):
    id: int
    email: str
