# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – login, logout, token check and renewal, plus the
authenticated user's own sessions and password.

Security notes
--------------
* Login returns the *same* error whether the login code doesn't exist or
  the password is wrong.  This prevents user-enumeration attacks.
* A blocked account gets its own code (ACCOUNT_BLOCKED) with the same 401
  status, even when the password is correct.
* Logout always answers 200: an absent, expired or garbage token simply has
  nothing to close.
* Changing the password closes every other session of the account.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from auth.dependencies import get_auth_service, get_current_claims, oauth2_scheme
from auth.schemas import (
    ChangePasswordRequest,
    CheckResponse,
    LoginRequest,
    LoginResponse,
    SessionInfo,
    SessionsClosedResponse,
    SessionsResponse,
    SuccessResponse,
    UserInfo,
)
from auth.service import AuthenticationService, LoginResult
from auth.sessions import token_digest
from core.errors import ApiError
from core.security import TokenClaims, get_client_ip

router = APIRouter(prefix="/auth", tags=["auth"])

# Tokens with less than this left are flagged for renewal by /auth/check
_RENEWAL_WINDOW_SECONDS = 3600


def _login_response(result: LoginResult) -> LoginResponse:
    return LoginResponse(
        token=result.token,
        expires_in=result.expires_in,
        user=UserInfo.model_validate(result.user),
    )


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    request: Request,
    service: AuthenticationService = Depends(get_auth_service),
):
    """Authenticate and return a signed bearer token."""
    outcome = service.login(body.login_code, body.password, get_client_ip(request))
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)
    return _login_response(outcome.value)


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=SuccessResponse)
def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Close the session bound to the presented token, if any."""
    # Storage failures are already logged by the service
    service.logout(token)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# GET /auth/check
# ---------------------------------------------------------------------------


@router.get("/check", response_model=CheckResponse)
def check(
    claims: TokenClaims = Depends(get_current_claims),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Return the authenticated user's profile and the token's remaining life."""
    outcome = service.profile(claims)
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)

    seconds_left = claims.seconds_left()
    return CheckResponse(
        user=UserInfo.model_validate(outcome.value),
        expires_in=seconds_left,
        needs_renewal=seconds_left < _RENEWAL_WINDOW_SECONDS,
    )


# ---------------------------------------------------------------------------
# POST /auth/renew-token
# ---------------------------------------------------------------------------


@router.post("/renew-token", response_model=LoginResponse)
def renew_token(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Swap a still-valid token for a freshly signed one with the same claims."""
    outcome = service.renew(token, get_client_ip(request))
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)
    return _login_response(outcome.value)


# ---------------------------------------------------------------------------
# GET /auth/sessions
# ---------------------------------------------------------------------------


@router.get("/sessions", response_model=SessionsResponse)
def list_sessions(
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Live sessions of the caller; the one making this request is flagged."""
    outcome = service.active_sessions(claims, get_client_ip(request))
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)

    current = token_digest(token)
    return SessionsResponse(
        sessions=[
            SessionInfo(
                id=row.id,
                origin_address=row.origin_address,
                created_at=row.created_at,
                current=row.token_digest == current,
            )
            for row in outcome.value
        ]
    )


# ---------------------------------------------------------------------------
# POST /auth/logout-all
# ---------------------------------------------------------------------------


@router.post("/logout-all", response_model=SessionsClosedResponse)
def logout_all(
    request: Request,
    include_current: bool = Query(False, alias="includeCurrent"),
    claims: TokenClaims = Depends(get_current_claims),
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Close the caller's other sessions (all of them with ?includeCurrent=true)."""
    outcome = service.logout_all(claims, token, include_current, get_client_ip(request))
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)
    return SessionsClosedResponse(closed=outcome.value)


# ---------------------------------------------------------------------------
# POST /auth/change-password
# ---------------------------------------------------------------------------


@router.post("/change-password", response_model=SessionsClosedResponse)
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
    token: Optional[str] = Depends(oauth2_scheme),
    service: AuthenticationService = Depends(get_auth_service),
):
    """Verify the current password, store the new one, close other sessions."""
    outcome = service.change_password(
        claims, body.current_password, body.new_password, token, get_client_ip(request)
    )
    if not outcome.ok:
        raise ApiError.from_outcome(outcome)
    return SessionsClosedResponse(closed=outcome.value)
