"""Shared schema helpers: payload parsing and serialized field types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, PlainSerializer, ValidationError
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

P = TypeVar("P", bound=BaseModel)

# Decimal inside Python, plain number on the wire
Quantity = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PayloadModel(BaseModel):
    """Base for request payloads: accepts snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


@dataclass(frozen=True)
class Valid(Generic[P]):
    data: P
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    error: str
    ok: bool = False


ValidationResult = Union[Valid[P], Invalid]


def _first_error_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    message = first.get("msg", "Invalid request payload")
    if first.get("type") == "missing":
        field = ".".join(str(part) for part in first.get("loc", ()))
        return f"{field} is required" if field else "Invalid request payload"
    # ValueError raised inside validators comes back prefixed
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return message


def parse_payload(model: Type[P], body: Any) -> ValidationResult:
    """Validate an untrusted request body into ``model``."""
    if not isinstance(body, dict):
        return Invalid("Invalid request payload")
    try:
        return Valid(model.model_validate(body))
    except ValidationError as e:
        return Invalid(_first_error_message(e))


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 string, treating naive datetimes as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
