# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the administrator role, area and first account.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_LOGIN_CODE and FIRST_ADMIN_PASSWORD from
etc/app.conf.  After the row is inserted those values are no longer used by
the application.  The administrator role carries every capability bit (255).
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from sqlalchemy import select                    # noqa: E402
from sqlalchemy.orm import Session               # noqa: E402

from core.config import Settings, get_settings   # noqa: E402
from core.permissions import ALL_CAPABILITIES    # noqa: E402
from core.security import hash_password          # noqa: E402
from database import build_engine, make_session_factory  # noqa: E402
from models.area import Area                     # noqa: E402
from models.role import Role                     # noqa: E402
from models.user import User                     # noqa: E402

ADMIN_ROLE_NAME = "Administrador"
ADMIN_AREA_NAME = "Administración"


def _get_or_create(db: Session, model, name: str, **values):
    row = db.execute(select(model).where(model.name == name)).scalar_one_or_none()
    if row is None:
        row = model(name=name, **values)
        db.add(row)
        db.flush()
    return row


def seed(db: Session, settings: Settings) -> bool:
    """Insert the first administrator.  Returns True when a row was created."""
    if not settings.first_admin_login_code or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_LOGIN_CODE or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return False

    existing = db.execute(
        select(User).where(User.login_code == settings.first_admin_login_code)
    ).unique().scalar_one_or_none()
    if existing:
        print(f"[seed_admin] Admin '{settings.first_admin_login_code}' already exists – skipping.")
        return False

    role = _get_or_create(db, Role, ADMIN_ROLE_NAME, permission_bitmask=int(ALL_CAPABILITIES))
    area = _get_or_create(db, Area, ADMIN_AREA_NAME)

    password_hash, salt = hash_password(
        settings.first_admin_password, rounds=settings.password_hash_rounds
    )
    db.add(
        User(
            login_code=settings.first_admin_login_code,
            password_hash=password_hash,
            salt=salt,
            role_id=role.id,
            area_id=area.id,
        )
    )
    db.commit()
    print(f"[seed_admin] Admin '{settings.first_admin_login_code}' created successfully.")
    return True


def main():
    settings = get_settings()
    engine = build_engine(settings.database_url)
    db = make_session_factory(engine)()
    try:
        seed(db, settings)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
