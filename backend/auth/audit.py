# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Security audit trail – one ``audit_logs`` row per authentication event."""

from typing import Optional

from sqlalchemy.orm import Session

from models.audit_log import AuditLog

LOGIN_SUCCESS = "login_success"
LOGIN_FAILURE = "login_failure"
LOGIN_BLOCKED_ACCOUNT = "login_blocked_account"
ACCOUNT_BLOCKED = "account_blocked"
LOGOUT = "logout"
TOKEN_RENEWED = "token_renewed"
SESSIONS_LISTED = "sessions_listed"
SESSIONS_CLOSED = "sessions_closed"
PASSWORD_CHANGED = "password_changed"
PASSWORD_CHANGE_FAILURE = "password_change_failure"


class SecurityAuditTrail:
    def __init__(self, db: Session):
        self._db = db

    def record(
        self,
        action: str,
        user_id: Optional[int] = None,
        detail: Optional[str] = None,
        request_ip: Optional[str] = None,
    ) -> None:
        self._db.add(AuditLog(user_id=user_id, action=action, detail=detail, request_ip=request_ip))
        self._db.commit()
