# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
RequestAuthorizer – the per-request gate, free of any FastAPI types.

Order of checks (first failure wins):

1. a bearer token was presented          → TOKEN_MISSING
2. signature and expiry                  → INVALID_TOKEN / EXPIRED_TOKEN
3. the session row is still live         → SESSION_REVOKED  (logged out)
4. the account is not blocked            → ACCOUNT_BLOCKED  (blocked later)
5. (caller attaches the claims)
6. the required capability bit is held   → FORBIDDEN
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from auth.credentials import CredentialStore
from auth.sessions import SessionRegistry
from core.errors import AuthErrorKind, Outcome
from core.permissions import Capability, has_permission
from core.security import TokenClaims, TokenIssuer


class RequestAuthorizer:
    def __init__(
        self,
        issuer: TokenIssuer,
        sessions: SessionRegistry,
        store: CredentialStore,
        logger: Optional[logging.Logger] = None,
    ):
        self._issuer = issuer
        self._sessions = sessions
        self._store = store
        self._log = logger or logging.getLogger(__name__)

    def authenticate(self, token: Optional[str]) -> Outcome[TokenClaims]:
        """Steps 1–4: resolve *token* to live, unblocked claims."""
        if not token:
            return Outcome.failure(AuthErrorKind.TOKEN_MISSING)

        verified = self._issuer.verify(token)
        if not verified.ok:
            return verified
        claims = verified.value

        try:
            if not self._sessions.exists(token):
                return Outcome.failure(AuthErrorKind.SESSION_REVOKED)
            if self._store.is_blocked(claims.id):
                return Outcome.failure(AuthErrorKind.ACCOUNT_BLOCKED)
        except SQLAlchemyError:
            self._log.exception("Storage failure while authorizing user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)

        return Outcome.success(claims)

    def authorize(self, claims: TokenClaims, required: Optional[Capability]) -> Outcome[TokenClaims]:
        """Step 6: capability check against the bitmask frozen in the token."""
        if required is not None and not has_permission(claims.permission_bitmask, required):
            return Outcome.failure(AuthErrorKind.FORBIDDEN)
        return Outcome.success(claims)

    def check(self, token: Optional[str], required: Optional[Capability] = None) -> Outcome[TokenClaims]:
        """Steps 1–6 in one call, for callers outside the HTTP layer."""
        outcome = self.authenticate(token)
        if not outcome.ok:
            return outcome
        return self.authorize(outcome.value, required)
