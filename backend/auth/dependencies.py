# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI dependency guards.

Business routers protect themselves with::

    @router.post("/documents")
    def create_document(claims: TokenClaims = Depends(require_permission(Capability.CREATE))):
        ...

The guard runs :class:`auth.authorizer.RequestAuthorizer`, stores the decoded
claims on ``request.state.claims`` and turns any failure outcome into an
:class:`core.errors.ApiError` (401 or 403).
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from auth.authorizer import RequestAuthorizer
from auth.credentials import CredentialStore
from auth.service import AuthenticationService
from auth.sessions import SessionRegistry
from core.errors import ApiError
from core.permissions import Capability
from core.security import TokenClaims
from database import get_db

# The tokenUrl here is only used by the auto-generated OpenAPI docs;
# the actual login endpoint is POST /auth/login (JSON body).
# auto_error=False: a missing header must reach the authorizer as None.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthenticationService:
    state = request.app.state
    return AuthenticationService.build(
        db,
        state.token_issuer,
        state.settings.max_login_attempts,
        state.logger.getChild("auth"),
        hash_rounds=state.settings.password_hash_rounds,
        password_min_length=state.settings.password_min_length,
    )


def get_authorizer(request: Request, db: Session = Depends(get_db)) -> RequestAuthorizer:
    state = request.app.state
    return RequestAuthorizer(
        state.token_issuer,
        SessionRegistry(db),
        CredentialStore(db),
        state.logger.getChild("authz"),
    )


def require_permission(capability: Optional[Capability] = None):
    """
    Build a dependency that authenticates the bearer token and, when
    *capability* is given, asserts the token's bitmask holds it.
    Resolves to the request's :class:`TokenClaims`.
    """

    def _guard(
        request: Request,
        token: Optional[str] = Depends(oauth2_scheme),
        authorizer: RequestAuthorizer = Depends(get_authorizer),
    ) -> TokenClaims:
        log = request.app.state.logger.getChild("authz")

        outcome = authorizer.authenticate(token)
        if not outcome.ok:
            log.info(
                "Rejected %s %s: %s", request.method, request.url.path, outcome.error.kind.tag
            )
            raise ApiError.from_outcome(outcome)

        claims = outcome.value
        request.state.claims = claims

        allowed = authorizer.authorize(claims, capability)
        if not allowed.ok:
            log.warning(
                "Permission denied for user_id=%s on %s %s (required=%s, bitmask=%d)",
                claims.id,
                request.method,
                request.url.path,
                capability.name,
                claims.permission_bitmask,
            )
            raise ApiError.from_outcome(allowed)
        return claims

    return _guard


# Authentication only – any live, unblocked token passes.
get_current_claims = require_permission()
