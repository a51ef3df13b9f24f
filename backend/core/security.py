# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Token signing / verification             (PyJWT / HS256)
3. Client address extraction                (X-Forwarded-For aware)
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional

import jwt as _jwt        # PyJWT
from passlib.context import CryptContext  # pbkdf2_sha256 is pure Python
from fastapi import Request

from core.errors import AuthErrorKind, Outcome

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing  (pure Python, no glibc constraint)
# ---------------------------------------------------------------------------
# passlib embeds algorithm, rounds and salt inside the hash string, so
# verification needs nothing but the stored hash.  One CryptContext per
# rounds setting; its dummy_verify() burns the same PBKDF2 work as a real
# check, which keeps unknown login codes indistinguishable by timing.
# ---------------------------------------------------------------------------

DEFAULT_HASH_ROUNDS = 600_000


@lru_cache(maxsize=8)
def password_context(rounds: int = DEFAULT_HASH_ROUNDS) -> CryptContext:
    return CryptContext(schemes=["pbkdf2_sha256"], pbkdf2_sha256__default_rounds=rounds)


def hash_password(plain: str, rounds: int = DEFAULT_HASH_ROUNDS) -> tuple[str, str]:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    Returns
    -------
    password_hash : str   Full passlib hash string  e.g. "$pbkdf2-sha256$..."
    salt          : str   Placeholder kept for DB schema compat; actual salt is
                          embedded inside the hash string (passlib convention).
    """
    password_hash = password_context(rounds).hash(plain)
    return password_hash, "pbkdf2-embedded"


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.

    A stored value that is not a pbkdf2_sha256 hash never verifies.
    """
    try:
        return password_context().verify(plain, stored_hash)
    except (ValueError, TypeError):
        return False


def dummy_verify(rounds: int = DEFAULT_HASH_ROUNDS) -> bool:
    """Spend one verification's worth of hashing; always False."""
    return password_context(rounds).dummy_verify()


# ---------------------------------------------------------------------------
# 2.  JWT – bearer tokens
# ---------------------------------------------------------------------------

_REQUIRED_CLAIMS = ["id", "loginCode", "roleId", "permissionBitmask", "iat", "exp"]


@dataclass(frozen=True)
class TokenClaims:
    """
    Identity and permission claims embedded in a bearer token.

    Equality compares identity claims only; ``issued_at``, ``expires_at`` and
    ``token_id`` are stamped by :meth:`TokenIssuer.sign`.
    """

    id: int
    login_code: str
    role_id: int
    permission_bitmask: int
    issued_at: Optional[datetime] = field(default=None, compare=False)
    expires_at: Optional[datetime] = field(default=None, compare=False)
    token_id: Optional[str] = field(default=None, compare=False)

    def seconds_left(self, now: Optional[datetime] = None) -> int:
        if self.expires_at is None:
            return 0
        now = now or datetime.now(timezone.utc)
        return max(0, int((self.expires_at - now).total_seconds()))


class TokenIssuer:
    """
    Signs and verifies HS256 bearer tokens.

    ``clock`` returns the "now" used for ``iat``/``exp`` when signing; the
    expiry check on verification always uses the real wall clock.
    """

    def __init__(
        self,
        secret_key: str,
        default_ttl: timedelta = timedelta(hours=24),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        logger: Optional[logging.Logger] = None,
    ):
        self._secret = secret_key
        self._algorithm = algorithm
        self._clock = clock
        self.default_ttl = default_ttl
        self._log = logger or logging.getLogger(__name__)

    def sign(self, claims: TokenClaims, ttl: Optional[timedelta] = None) -> str:
        issued = self._clock()
        payload = {
            "id": claims.id,
            "loginCode": claims.login_code,
            "roleId": claims.role_id,
            "permissionBitmask": int(claims.permission_bitmask),
            "iat": issued,
            "exp": issued + (ttl if ttl is not None else self.default_ttl),
            "jti": uuid.uuid4().hex,
        }
        return _jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Outcome[TokenClaims]:
        """Decode *token*; fails only with INVALID_TOKEN or EXPIRED_TOKEN."""
        try:
            payload = _jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except _jwt.ExpiredSignatureError:
            return Outcome.failure(AuthErrorKind.EXPIRED_TOKEN)
        except _jwt.InvalidTokenError as exc:
            self._log.debug("Token rejected: %s", exc)
            return Outcome.failure(AuthErrorKind.INVALID_TOKEN)

        try:
            claims = TokenClaims(
                id=int(payload["id"]),
                login_code=str(payload["loginCode"]),
                role_id=int(payload["roleId"]),
                permission_bitmask=int(payload["permissionBitmask"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                token_id=payload.get("jti"),
            )
        except (TypeError, ValueError):
            return Outcome.failure(AuthErrorKind.INVALID_TOKEN)
        return Outcome.success(claims)


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    Returns the IP address as a string (supports both IPv4 and IPv6).
    """
    # X-Forwarded-For can contain multiple IPs, take the first (original client)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
