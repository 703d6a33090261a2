"""Application-level exceptions."""

import logging
import math
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class PermissionDeniedError(AppError):
    """Raised when a user acts on a resource they do not own."""

    def __init__(self, message: str):
        super().__init__(message, code="PERMISSION_DENIED")


class StoreError(AppError):
    """Raised when the entry/grant store rejects an operation.

    The store's own message is kept verbatim.
    """

    def __init__(self, message: str):
        super().__init__(message, code="STORE_ERROR")


class GrantRequestFailure(str, Enum):
    """Which check rejected an access request."""

    INVALID_INPUT = "INVALID_INPUT"
    SELF_TARGET = "SELF_TARGET"
    UNKNOWN_USER = "UNKNOWN_USER"
    DUPLICATE = "DUPLICATE"
    PERSISTENCE = "PERSISTENCE"


class GrantRequestError(AppError):
    """Raised when an access request cannot be created."""

    def __init__(self, reason: GrantRequestFailure, message: str):
        self.reason = reason
        super().__init__(message, code=f"GRANT_{reason.value}")


class RateLimitedError(AppError):
    """Raised when a manual reload is attempted before the limiter allows it."""

    def __init__(self, provider: str, retry_after_seconds: float, message: Optional[str] = None):
        self.provider = provider
        self.retry_after_seconds = retry_after_seconds
        wait = max(1, math.ceil(retry_after_seconds))
        super().__init__(
            message or f"Rate limit exceeded for {provider}. Please wait {wait} seconds before next reload.",
            code="RATE_LIMITED",
        )


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise database failures as StoreError, keeping the original message."""
    try:
        yield
    except SQLAlchemyError as e:
        message = str(getattr(e, "orig", None) or e)
        logger.error("Store error during %s: %s", operation, message)
        raise StoreError(message) from e
