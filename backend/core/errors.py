# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Error taxonomy for the auth core.

Components never raise for expected failures.  They return an
:class:`Outcome` carrying either a value or an :class:`AuthError`; only the
HTTP layer turns an error outcome into an :class:`ApiError` exception, which
``core.error_handling`` renders as a JSON envelope.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from fastapi import status

T = TypeVar("T")


class AuthErrorKind(Enum):
    """
    Each member is ``(tag, public code, HTTP status, default message)``.

    The token/session kinds share the public code ``UNAUTHORIZED`` so a
    client cannot tell a revoked session from a forged token.
    """

    BAD_REQUEST = ("bad_request", "BAD_REQUEST", status.HTTP_400_BAD_REQUEST, "Malformed request")
    INVALID_CREDENTIALS = (
        "invalid_credentials",
        "INVALID_CREDENTIALS",
        status.HTTP_401_UNAUTHORIZED,
        "Invalid login code or password",
    )
    ACCOUNT_BLOCKED = (
        "account_blocked",
        "ACCOUNT_BLOCKED",
        status.HTTP_401_UNAUTHORIZED,
        "Account blocked after too many failed login attempts",
    )
    TOKEN_MISSING = (
        "token_missing",
        "UNAUTHORIZED",
        status.HTTP_401_UNAUTHORIZED,
        "Authentication required",
    )
    INVALID_TOKEN = (
        "invalid_token",
        "UNAUTHORIZED",
        status.HTTP_401_UNAUTHORIZED,
        "Invalid or expired token",
    )
    EXPIRED_TOKEN = (
        "expired_token",
        "UNAUTHORIZED",
        status.HTTP_401_UNAUTHORIZED,
        "Invalid or expired token",
    )
    SESSION_REVOKED = (
        "session_revoked",
        "UNAUTHORIZED",
        status.HTTP_401_UNAUTHORIZED,
        "Invalid or expired token",
    )
    FORBIDDEN = ("forbidden", "FORBIDDEN", status.HTTP_403_FORBIDDEN, "Insufficient permissions")
    INTERNAL = (
        "internal",
        "INTERNAL_ERROR",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
    )

    def __init__(self, tag: str, code: str, http_status: int, default_message: str):
        self.tag = tag
        self.code = code
        self.http_status = http_status
        self.default_message = default_message


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str = ""

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    @property
    def public_message(self) -> str:
        return self.message or self.kind.default_message


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either ``value`` (success) or ``error`` (failure), never both."""

    value: Optional[T] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[AuthErrorKind]:
        return self.error.kind if self.error else None

    @classmethod
    def success(cls, value: T = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: AuthErrorKind, message: str = "") -> "Outcome[T]":
        return cls(error=AuthError(kind, message))


class ApiError(Exception):
    """Raised at the HTTP boundary only; carries the typed error outward."""

    def __init__(self, error: AuthError):
        super().__init__(error.public_message)
        self.error = error

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "ApiError":
        return cls(outcome.error)
