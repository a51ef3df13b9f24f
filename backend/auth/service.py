# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
AuthenticationService – login, logout, token renewal, password change and
the user's own session list.

Security notes
--------------
* An unknown login code and a wrong password produce the *same* error, so
  the endpoint cannot be used to enumerate accounts.
* A blocked account is refused before the password is even checked; the
  correct password does not get it back in.
* Storage failures are rolled back, logged with detail and returned as an
  INTERNAL outcome; nothing in here raises for an expected failure.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import audit
from auth.audit import SecurityAuditTrail
from auth.authorizer import RequestAuthorizer
from auth.credentials import CredentialStore
from auth.lockout import LockoutPolicy, LockoutState
from auth.sessions import SessionRegistry
from core.errors import AuthErrorKind, Outcome
from core.security import (
    DEFAULT_HASH_ROUNDS,
    TokenClaims,
    TokenIssuer,
    dummy_verify,
    hash_password,
    verify_password,
)
from models.session import AuthSession
from models.user import User


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User
    expires_in: int  # seconds


class AuthenticationService:
    def __init__(
        self,
        db: Session,
        issuer: TokenIssuer,
        store: CredentialStore,
        sessions: SessionRegistry,
        lockout: LockoutPolicy,
        audit_trail: SecurityAuditTrail,
        logger: Optional[logging.Logger] = None,
        hash_rounds: int = DEFAULT_HASH_ROUNDS,
        password_min_length: int = 8,
    ):
        self._db = db
        self._issuer = issuer
        self._store = store
        self._sessions = sessions
        self._lockout = lockout
        self._audit = audit_trail
        self._log = logger or logging.getLogger(__name__)
        self._hash_rounds = hash_rounds
        self._password_min_length = password_min_length
        self._authorizer = RequestAuthorizer(issuer, sessions, store, self._log)

    @classmethod
    def build(
        cls,
        db: Session,
        issuer: TokenIssuer,
        max_login_attempts: int,
        logger: Optional[logging.Logger] = None,
        hash_rounds: int = DEFAULT_HASH_ROUNDS,
        password_min_length: int = 8,
    ) -> "AuthenticationService":
        """Wire the default components around one DB session."""
        logger = logger or logging.getLogger(__name__)
        store = CredentialStore(db)
        return cls(
            db=db,
            issuer=issuer,
            store=store,
            sessions=SessionRegistry(db),
            lockout=LockoutPolicy(store, max_login_attempts, logger.getChild("lockout")),
            audit_trail=SecurityAuditTrail(db),
            logger=logger,
            hash_rounds=hash_rounds,
            password_min_length=password_min_length,
        )

    # -- login -----------------------------------------------------------------

    def login(
        self, login_code: str, password: str, origin_address: Optional[str] = None
    ) -> Outcome[LoginResult]:
        if not login_code or not password:
            return Outcome.failure(AuthErrorKind.BAD_REQUEST, "loginCode and password are required")
        try:
            return self._login(login_code, password, origin_address)
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure during login for login_code=%s", login_code)
            return Outcome.failure(AuthErrorKind.INTERNAL)

    def _login(self, login_code: str, password: str, origin_address: Optional[str]) -> Outcome[LoginResult]:
        user = self._store.find_by_login_code(login_code)

        # Unified failure path – no information leaks about whether the code
        # exists, neither in the response nor in how long it takes
        if user is None:
            dummy_verify(self._hash_rounds)
            self._log.info("Login failed: unknown login_code=%s from %s", login_code, origin_address)
            self._audit.record(audit.LOGIN_FAILURE, detail="unknown login code", request_ip=origin_address)
            return Outcome.failure(AuthErrorKind.INVALID_CREDENTIALS)

        user_id = user.id
        if self._lockout.state_of(user) is LockoutState.BLOCKED:
            self._log.warning("Login refused: user_id=%s is blocked", user_id)
            self._audit.record(audit.LOGIN_BLOCKED_ACCOUNT, user_id=user_id, request_ip=origin_address)
            return Outcome.failure(AuthErrorKind.ACCOUNT_BLOCKED)

        if not verify_password(password, user.password_hash):
            self._register_wrong_password(user_id, audit.LOGIN_FAILURE, origin_address)
            return Outcome.failure(AuthErrorKind.INVALID_CREDENTIALS)

        self._store.reset_failed_attempts(user_id)
        token = self._open_session(self._claims_for(user), origin_address, audit.LOGIN_SUCCESS)
        self._log.info("User user_id=%s logged in from %s", user_id, origin_address)

        return Outcome.success(
            LoginResult(token=token, user=self._store.find_by_id(user_id), expires_in=self._ttl_seconds)
        )

    # -- logout ----------------------------------------------------------------

    def logout(self, token: Optional[str]) -> Outcome[None]:
        """Close the session for *token*.  Absent or dead tokens are a no-op."""
        if not token:
            return Outcome.success()
        try:
            if self._sessions.invalidate(token):
                verified = self._issuer.verify(token)
                user_id = verified.value.id if verified.ok else None
                self._audit.record(audit.LOGOUT, user_id=user_id)
                self._log.info("Session closed for user_id=%s", user_id)
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure during logout")
            return Outcome.failure(AuthErrorKind.INTERNAL)
        return Outcome.success()

    def logout_all(
        self,
        claims: TokenClaims,
        token: Optional[str] = None,
        include_current: bool = False,
        origin_address: Optional[str] = None,
    ) -> Outcome[int]:
        """
        Close the user's other sessions (every session when *include_current*
        is set).  Resolves to the number of sessions closed.
        """
        keep = None if include_current else token
        try:
            closed = self._sessions.invalidate_all(claims.id, keep_token=keep)
            self._audit.record(
                audit.SESSIONS_CLOSED,
                user_id=claims.id,
                detail=f"closed={closed} include_current={include_current}",
                request_ip=origin_address,
            )
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure closing sessions for user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)
        self._log.info("Closed %d session(s) for user_id=%s", closed, claims.id)
        return Outcome.success(closed)

    # -- renewal ---------------------------------------------------------------

    def renew(self, token: Optional[str], origin_address: Optional[str] = None) -> Outcome[LoginResult]:
        """
        Exchange a token that still passes authorization for a fresh one with
        the same identity claims.  The old session is closed.
        """
        checked = self._authorizer.authenticate(token)
        if not checked.ok:
            return Outcome(error=checked.error)
        claims = checked.value

        try:
            new_token = self._open_session(
                TokenClaims(
                    id=claims.id,
                    login_code=claims.login_code,
                    role_id=claims.role_id,
                    permission_bitmask=claims.permission_bitmask,
                ),
                origin_address,
                audit.TOKEN_RENEWED,
            )
            self._sessions.invalidate(token)
            user = self._store.find_by_id(claims.id)
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure during token renewal for user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)

        if user is None:
            return Outcome.failure(AuthErrorKind.SESSION_REVOKED)
        return Outcome.success(LoginResult(token=new_token, user=user, expires_in=self._ttl_seconds))

    # -- password --------------------------------------------------------------

    def change_password(
        self,
        claims: TokenClaims,
        current_password: str,
        new_password: str,
        token: Optional[str] = None,
        origin_address: Optional[str] = None,
    ) -> Outcome[int]:
        """
        Replace the password of an authenticated user after checking the
        current one.  A wrong current password counts toward the lockout.
        Every session except the one bound to *token* is closed; resolves to
        how many were.
        """
        if not current_password or not new_password:
            return Outcome.failure(
                AuthErrorKind.BAD_REQUEST, "currentPassword and newPassword are required"
            )
        if len(new_password) < self._password_min_length:
            return Outcome.failure(
                AuthErrorKind.BAD_REQUEST,
                f"newPassword must be at least {self._password_min_length} characters",
            )
        if new_password == current_password:
            return Outcome.failure(
                AuthErrorKind.BAD_REQUEST, "newPassword must differ from currentPassword"
            )
        try:
            return self._change_password(claims, current_password, new_password, token, origin_address)
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure changing password for user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)

    def _change_password(
        self,
        claims: TokenClaims,
        current_password: str,
        new_password: str,
        token: Optional[str],
        origin_address: Optional[str],
    ) -> Outcome[int]:
        user = self._store.find_by_id(claims.id)
        if user is None:
            return Outcome.failure(AuthErrorKind.SESSION_REVOKED)
        if self._lockout.state_of(user) is LockoutState.BLOCKED:
            return Outcome.failure(AuthErrorKind.ACCOUNT_BLOCKED)

        if not verify_password(current_password, user.password_hash):
            self._register_wrong_password(user.id, audit.PASSWORD_CHANGE_FAILURE, origin_address)
            return Outcome.failure(AuthErrorKind.INVALID_CREDENTIALS, "Current password is incorrect")

        password_hash, salt = hash_password(new_password, self._hash_rounds)
        self._store.set_password_hash(user.id, password_hash, salt)
        closed = self._sessions.invalidate_all(user.id, keep_token=token)
        self._audit.record(
            audit.PASSWORD_CHANGED,
            user_id=user.id,
            detail=f"closed_sessions={closed}",
            request_ip=origin_address,
        )
        self._log.info("Password changed for user_id=%s, %d other session(s) closed", user.id, closed)
        return Outcome.success(closed)

    # -- profile / sessions ----------------------------------------------------

    def profile(self, claims: TokenClaims) -> Outcome[User]:
        """Current user row for already-authorized *claims*."""
        try:
            user = self._store.find_by_id(claims.id)
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure loading user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)
        if user is None:
            return Outcome.failure(AuthErrorKind.SESSION_REVOKED)
        return Outcome.success(user)

    def active_sessions(
        self, claims: TokenClaims, origin_address: Optional[str] = None
    ) -> Outcome[list[AuthSession]]:
        try:
            rows = self._sessions.list_active(claims.id)
            self._audit.record(
                audit.SESSIONS_LISTED,
                user_id=claims.id,
                detail=f"live={len(rows)}",
                request_ip=origin_address,
            )
        except SQLAlchemyError:
            self._db.rollback()
            self._log.exception("Storage failure listing sessions for user_id=%s", claims.id)
            return Outcome.failure(AuthErrorKind.INTERNAL)
        return Outcome.success(rows)

    # -- helpers ---------------------------------------------------------------

    @property
    def _ttl_seconds(self) -> int:
        return int(self._issuer.default_ttl.total_seconds())

    @staticmethod
    def _claims_for(user: User) -> TokenClaims:
        return TokenClaims(
            id=user.id,
            login_code=user.login_code,
            role_id=user.role_id,
            permission_bitmask=user.permission_bitmask,
        )

    def _register_wrong_password(self, user_id: int, action: str, origin_address: Optional[str]) -> None:
        state = self._lockout.register_failure(user_id)
        self._audit.record(action, user_id=user_id, detail="wrong password", request_ip=origin_address)
        if state is LockoutState.BLOCKED:
            self._audit.record(
                audit.ACCOUNT_BLOCKED,
                user_id=user_id,
                detail=f"max_attempts={self._lockout.max_attempts}",
                request_ip=origin_address,
            )

    def _open_session(self, claims: TokenClaims, origin_address: Optional[str], action: str) -> str:
        """Sign a token, store its session and audit *action*, all or nothing."""
        token = self._issuer.sign(claims)
        self._sessions.create(claims.id, token, origin_address)
        try:
            self._audit.record(action, user_id=claims.id, request_ip=origin_address)
        except SQLAlchemyError:
            # The caller never hands this token out, so its session must not stay live
            self._db.rollback()
            self._sessions.invalidate(token)
            raise
        return token
