# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
LockoutPolicy – the per-account ACTIVE → BLOCKED state machine.

BLOCKED is terminal as far as this service is concerned: clearing it is an
administrative action performed elsewhere.
"""

import logging
from enum import Enum
from typing import Optional

from auth.credentials import CredentialStore
from models.user import User


class LockoutState(Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class LockoutPolicy:
    def __init__(
        self,
        store: CredentialStore,
        max_attempts: int = 3,
        logger: Optional[logging.Logger] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self.max_attempts = max_attempts
        self._log = logger or logging.getLogger(__name__)

    def state_of(self, user: User) -> LockoutState:
        return LockoutState.BLOCKED if user.blocked else LockoutState.ACTIVE

    def should_block(self, failed_attempts: int) -> bool:
        return failed_attempts >= self.max_attempts

    def attempts_left(self, failed_attempts: int) -> int:
        return max(0, self.max_attempts - failed_attempts)

    def register_failure(self, user_id: int) -> LockoutState:
        """
        Count one wrong password.  Blocks the account (and stamps the block
        time) when the stored counter reaches the threshold.
        """
        count = self._store.increment_failed_attempts(user_id)
        if not self.should_block(count):
            self._log.info(
                "Failed login for user_id=%s (%d attempt(s) left)",
                user_id,
                self.attempts_left(count),
            )
            return LockoutState.ACTIVE

        self._store.set_blocked(user_id, True)
        self._log.warning(
            "Account user_id=%s blocked after %d failed attempts", user_id, count
        )
        return LockoutState.BLOCKED
