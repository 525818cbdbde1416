"""Service result union and error constructors.

Every service operation returns ``Ok(data)`` or ``Err(ServiceError)``.
Expected failures (validation, authorization, not found, business conflicts)
travel as ``Err`` values; only faults nobody anticipated are raised, and
``service_boundary`` turns those into a logged 500.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from stockroom.core.errors import ERROR_MESSAGES, ErrorCode, error_payload

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceError:
    status: int
    error_code: ErrorCode
    error: str

    def to_payload(self) -> dict:
        return error_payload(self.error_code, self.error)


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: ServiceError
    ok: bool = False


ServiceResult = Union[Ok[T], Err]


def make_service_error(status: int, error_code: ErrorCode, error: Optional[str] = None) -> ServiceError:
    return ServiceError(status=status, error_code=error_code, error=error or ERROR_MESSAGES[error_code])


def auth_service_error(denied: Any) -> ServiceError:
    """Convert an ``AuthDenied`` from the permission gate."""
    return ServiceError(status=denied.status, error_code=denied.error_code, error=denied.error)


def validation_service_error(error: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR) -> ServiceError:
    return make_service_error(400, error_code, error)


def conflict_service_error(error: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR) -> ServiceError:
    return make_service_error(409, error_code, error)


def not_found_service_error(error_code: ErrorCode, error: Optional[str] = None) -> ServiceError:
    return make_service_error(404, error_code, error)


def internal_service_error(error: Optional[str] = None) -> ServiceError:
    return make_service_error(500, ErrorCode.INTERNAL_ERROR, error)


def service_boundary(message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
    """Decorator converting unexpected exceptions into a 500 ``Err``.

    ``message`` is what the caller sees; the exception itself only goes to
    the log.
    """

    def decorator(func: Callable[..., ServiceResult]) -> Callable[..., ServiceResult]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception:
                logger.exception(f"Unexpected error in {func.__name__}")
                return Err(make_service_error(500, error_code, message))

        return wrapper

    return decorator


def async_service_boundary(message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
    """``service_boundary`` for coroutine functions."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception:
                logger.exception(f"Unexpected error in {func.__name__}")
                return Err(make_service_error(500, error_code, message))

        return wrapper

    return decorator
