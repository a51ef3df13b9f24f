# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""User ORM model – identity plus credential and lockout state."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.permissions import capability_names
from database import Base
from models.area import Area
from models.role import Role


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    login_code = Column(String(32), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    # passlib embeds the salt in the hash string; we store it separately
    # as an explicit column so the scheme marker travels with the row.
    salt = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    area_id = Column(Integer, ForeignKey("areas.id", ondelete="SET NULL"), nullable=True, index=True)
    # Only ever changed with single-statement UPDATEs (see auth.credentials)
    failed_attempts = Column(Integer, nullable=False, default=0, server_default="0")
    blocked = Column(Boolean, nullable=False, default=False, server_default="0")
    last_block_at = Column(DateTime(timezone=True), nullable=True)
    last_access_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    role = relationship(Role, lazy="joined")
    area = relationship(Area, lazy="joined")

    @property
    def permission_bitmask(self) -> int:
        return self.role.permission_bitmask if self.role else 0

    @property
    def role_name(self):
        return self.role.name if self.role else None

    @property
    def area_name(self):
        return self.area.name if self.area else None

    @property
    def capabilities(self) -> list[str]:
        return capability_names(self.permission_bitmask)
