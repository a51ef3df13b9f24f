# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""AuthSession ORM model – one row per issued bearer token."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class AuthSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False)
    # SHA-256 of the token; Text columns cannot carry a unique index on MySQL
    token_digest = Column(String(64), unique=True, nullable=False, index=True)
    origin_address = Column(String(45), nullable=True)  # supports IPv6
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    # NULL while the session is live; set on logout / renewal
    expires_at = Column(DateTime(timezone=True), nullable=True)
