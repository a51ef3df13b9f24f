# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SessionRegistry – one ``sessions`` row per issued token.

A token is live while its row exists with ``expires_at IS NULL``.  Logout
does not delete the row; it stamps ``expires_at``.
"""

import hashlib
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.session import AuthSession


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionRegistry:
    def __init__(self, db: Session):
        self._db = db

    def create(self, user_id: int, token: str, origin_address: Optional[str] = None) -> AuthSession:
        row = AuthSession(
            user_id=user_id,
            token=token,
            token_digest=token_digest(token),
            origin_address=origin_address,
        )
        self._db.add(row)
        self._db.commit()
        return row

    def exists(self, token: str) -> bool:
        """True iff a live (not yet expired) row exists for *token*."""
        found = self._db.execute(
            select(AuthSession.id).where(
                AuthSession.token_digest == token_digest(token),
                AuthSession.expires_at.is_(None),
            )
        ).first()
        return found is not None

    def invalidate(self, token: str) -> bool:
        """
        Close the live row for *token*.  Returns False when there was nothing
        to close (unknown or already expired); calling twice is harmless.
        """
        result = self._db.execute(
            update(AuthSession)
            .where(
                AuthSession.token_digest == token_digest(token),
                AuthSession.expires_at.is_(None),
            )
            .values(expires_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self._db.commit()
        return result.rowcount > 0

    def list_active(self, user_id: int) -> list[AuthSession]:
        """Live sessions of *user_id*, newest first."""
        return list(
            self._db.execute(
                select(AuthSession)
                .where(AuthSession.user_id == user_id, AuthSession.expires_at.is_(None))
                .order_by(AuthSession.created_at.desc(), AuthSession.id.desc())
            ).scalars()
        )

    def invalidate_all(self, user_id: int, keep_token: Optional[str] = None) -> int:
        """
        Close every live session of *user_id* except the one bound to
        *keep_token*.  Returns how many rows were closed.
        """
        stmt = update(AuthSession).where(
            AuthSession.user_id == user_id,
            AuthSession.expires_at.is_(None),
        )
        if keep_token:
            stmt = stmt.where(AuthSession.token_digest != token_digest(keep_token))
        result = self._db.execute(
            stmt.values(expires_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self._db.commit()
        return result.rowcount
