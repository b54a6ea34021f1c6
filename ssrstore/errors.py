# ssrstore/errors.py
from enum import Enum
from http import HTTPStatus
from typing import Optional

from fastapi import HTTPException

# Errors raised by the service layer. Each one is an HTTPException with its
# status preset, so the app's handlers can render a single envelope.


class StoreError(HTTPException):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)


class ValidationError(StoreError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Invalid request"


class NotFound(StoreError):
    status_code = HTTPStatus.NOT_FOUND
    message = "Not found"


class Conflict(StoreError):
    status_code = HTTPStatus.CONFLICT
    message = "Email is already registered!"


class BadCredentials(StoreError):
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Incorrect password"


class ItemNotInCart(StoreError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Item not found in cart"


class InternalError(StoreError):
    pass


class AuthReason(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"
    EXPIRED = "expired"


class AuthError(StoreError):
    """Token missing, invalid or expired. All three look the same to callers."""

    status_code = HTTPStatus.UNAUTHORIZED
    message = "Please authenticate using a valid token"

    def __init__(self, reason: AuthReason = AuthReason.INVALID):
        super().__init__()
        self.reason = reason
