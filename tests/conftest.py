import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from core.security import TokenIssuer
from database import Base, build_engine, make_session_factory
from main import create_app
import models.area        # noqa: F401
import models.role        # noqa: F401
import models.user        # noqa: F401
import models.session     # noqa: F401
import models.audit_log   # noqa: F401

from helpers import FAST_ROUNDS, TEST_SECRET


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        secret_key=TEST_SECRET,
        max_login_attempts=3,
        password_hash_rounds=FAST_ROUNDS,
        log_dir=tmp_path / "log",
        log_config=tmp_path / "no-logging.conf",
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def issuer():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
