# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
CredentialStore – reads and writes the authentication columns of ``users``.

Every mutation is a single UPDATE statement committed on its own.  The
failed-attempt counter in particular is incremented by the database
(``failed_attempts = failed_attempts + 1``), never read, bumped and written
back from Python: two concurrent wrong passwords for the same account must
both count.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models.user import User


class CredentialStore:
    def __init__(self, db: Session):
        self._db = db

    def find_by_login_code(self, login_code: str) -> Optional[User]:
        """User row with its role (permission bitmask) and area eagerly joined."""
        return self._db.execute(
            select(User).where(User.login_code == login_code)
        ).unique().scalar_one_or_none()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self._db.execute(
            select(User).where(User.id == user_id)
        ).unique().scalar_one_or_none()

    def increment_failed_attempts(self, user_id: int) -> int:
        """Atomically add one to the counter and return the stored value."""
        self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(failed_attempts=User.failed_attempts + 1)
            .execution_options(synchronize_session=False)
        )
        self._db.commit()
        return self._db.execute(
            select(User.failed_attempts).where(User.id == user_id)
        ).scalar_one()

    def reset_failed_attempts(self, user_id: int) -> None:
        """Zero the counter and stamp the successful access."""
        self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(failed_attempts=0, last_access_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        self._db.commit()

    def set_blocked(self, user_id: int, blocked: bool) -> None:
        values = {"blocked": blocked}
        if blocked:
            values["last_block_at"] = datetime.now(timezone.utc)
        self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self._db.commit()

    def is_blocked(self, user_id: int) -> bool:
        """
        Current blocked flag straight from the database.  An account that no
        longer exists is reported as blocked.
        """
        blocked = self._db.execute(
            select(User.blocked).where(User.id == user_id)
        ).scalar_one_or_none()
        return True if blocked is None else bool(blocked)

    def set_password_hash(self, user_id: int, password_hash: str, salt: str) -> None:
        self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash, salt=salt)
            .execution_options(synchronize_session=False)
        )
        self._db.commit()
