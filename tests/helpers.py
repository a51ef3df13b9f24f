"""Shared test data and helpers."""

from sqlalchemy import select

from core.security import hash_password
from models.area import Area
from models.role import Role
from models.user import User

TEST_SECRET = "Test-Secret-Key_for-Automation-Only-987654321!"
PASSWORD = "Correct-Horse-42"
# Keeps pbkdf2 fast in tests; production uses 600 000 rounds
FAST_ROUNDS = 1000


def add_user(
    db,
    login_code="CIP0001",
    password=PASSWORD,
    bitmask=255,
    failed_attempts=0,
    blocked=False,
    area_name="Mesa de Partes",
):
    """Insert a user (and its role/area if needed) and return the row."""
    bitmask = int(bitmask)
    role_name = f"role-{bitmask}"
    role = db.execute(select(Role).where(Role.name == role_name)).scalar_one_or_none()
    if role is None:
        role = Role(name=role_name, permission_bitmask=bitmask)
        db.add(role)
    area = db.execute(select(Area).where(Area.name == area_name)).scalar_one_or_none()
    if area is None:
        area = Area(name=area_name)
        db.add(area)
    db.flush()

    password_hash, salt = hash_password(password, rounds=FAST_ROUNDS)
    user = User(
        login_code=login_code,
        password_hash=password_hash,
        salt=salt,
        role_id=role.id,
        area_id=area.id,
        failed_attempts=failed_attempts,
        blocked=blocked,
    )
    db.add(user)
    db.commit()
    return user


def login(client, login_code="CIP0001", password=PASSWORD):
    return client.post("/auth/login", json={"loginCode": login_code, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
