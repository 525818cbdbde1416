"""Location schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from stockroom.schemas.common import PayloadModel


class LocationWrite(PayloadModel):
    """Location create/update body."""

    name: str = Field(..., max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("Location name is required")
        return v

    @field_validator("description")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class LocationDto(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    team_id: int
    created_at: str
    updated_at: str
