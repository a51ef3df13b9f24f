"""HTTP-level tests for the auth endpoints, the guard and the error envelope."""

import logging

import pytest
from fastapi import APIRouter, Depends
from fastapi.testclient import TestClient

from auth.credentials import CredentialStore
from auth.dependencies import require_permission
from core.permissions import Capability
from core.security import TokenClaims

from helpers import PASSWORD, add_user, bearer, login


@pytest.fixture
def guarded_app(app):
    """The app plus two business routes guarded by the authorization dependency."""
    documents = APIRouter(prefix="/documents")

    @documents.post("/derive")
    def derive(claims: TokenClaims = Depends(require_permission(Capability.DERIVE))):
        return {"userId": claims.id}

    @documents.get("/whoami")
    def whoami(request_claims: TokenClaims = Depends(require_permission())):
        return {"loginCode": request_claims.login_code}

    app.include_router(documents)
    return app


@pytest.fixture
def guarded_client(guarded_app):
    with TestClient(guarded_app) as c:
        yield c


class TestLogin:
    def test_login_success(self, client, db):
        add_user(db, bitmask=255, area_name="Mesa de Partes")

        resp = login(client)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["token"]
        assert body["tokenType"] == "bearer"
        assert body["expiresIn"] == 86400
        user = body["user"]
        assert user["loginCode"] == "CIP0001"
        assert user["permissionBitmask"] == 255
        assert user["areaName"] == "Mesa de Partes"
        assert len(user["capabilities"]) == 8
        assert user["lastAccessAt"] is not None
        assert not {"passwordHash", "salt", "password_hash"} & user.keys()

    def test_snake_case_login_code_is_accepted(self, client, db):
        add_user(db)
        resp = client.post("/auth/login", json={"login_code": "CIP0001", "password": PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password(self, client, db):
        add_user(db)
        resp = login(client, password="nope")
        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid login code or password"},
        }

    def test_unknown_code_looks_like_wrong_password(self, client, db):
        add_user(db)
        unknown = login(client, login_code="GHOST")
        wrong = login(client, password="nope")
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()

    def test_lockout_scenario(self, client, db):
        add_user(db)

        codes = [login(client, password="nope").json()["error"]["code"] for _ in range(3)]
        assert codes == ["INVALID_CREDENTIALS"] * 3

        resp = login(client)
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "ACCOUNT_BLOCKED"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"loginCode": "CIP0001"}, {"password": PASSWORD}, {"loginCode": "", "password": "x"},
         {"loginCode": "CIP0001", "password": ""}],
    )
    def test_malformed_payload_is_bad_request(self, client, payload):
        resp = client.post("/auth/login", json=payload)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "BAD_REQUEST"

    def test_bad_request_never_echoes_the_password(self, client):
        resp = client.post("/auth/login", json={"loginCode": "", "password": "TopSecret99"})
        assert "TopSecret99" not in resp.text


class TestCheckLogoutRenew:
    def test_check_returns_profile(self, client, db):
        add_user(db, bitmask=Capability.VIEW | Capability.EXPORT)
        token = login(client).json()["token"]

        resp = client.get("/auth/check", headers=bearer(token))

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["user"]["capabilities"] == ["view", "export"]
        assert 0 < body["expiresIn"] <= 86400
        assert body["needsRenewal"] is False

    def test_check_without_token(self, client):
        resp = client.get("/auth/check")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_check_with_garbage_token(self, client):
        resp = client.get("/auth/check", headers=bearer("not-a-token"))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    def test_logout_then_check_is_unauthorized(self, client, db, app):
        add_user(db)
        token = login(client).json()["token"]

        resp = client.post("/auth/logout", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        assert app.state.token_issuer.verify(token).ok
        resp = client.get("/auth/check", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer junk"}, {"Authorization": "Basic abc"}])
    def test_logout_always_succeeds(self, client, headers):
        resp = client.post("/auth/logout", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

    def test_blocked_after_login_is_rejected(self, client, db):
        user = add_user(db)
        token = login(client).json()["token"]

        CredentialStore(db).set_blocked(user.id, True)

        resp = client.get("/auth/check", headers=bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "ACCOUNT_BLOCKED"

    def test_renew_token(self, client, db):
        add_user(db)
        old = login(client).json()["token"]

        resp = client.post("/auth/renew-token", headers=bearer(old))

        assert resp.status_code == 200
        new = resp.json()["token"]
        assert new != old
        assert resp.json()["user"]["loginCode"] == "CIP0001"
        assert client.get("/auth/check", headers=bearer(new)).status_code == 200
        assert client.get("/auth/check", headers=bearer(old)).status_code == 401

    def test_renew_requires_token(self, client):
        resp = client.post("/auth/renew-token")
        assert resp.status_code == 401


class TestPermissionGuard:
    def test_capability_present(self, guarded_client, db):
        user = add_user(db, bitmask=Capability.VIEW | Capability.DERIVE)
        token = login(guarded_client).json()["token"]

        resp = guarded_client.post("/documents/derive", headers=bearer(token))

        assert resp.status_code == 200
        assert resp.json() == {"userId": user.id}

    def test_capability_missing_is_forbidden(self, guarded_client, db):
        add_user(db, bitmask=Capability.VIEW)
        token = login(guarded_client).json()["token"]

        resp = guarded_client.post("/documents/derive", headers=bearer(token))

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    def test_authentication_checked_before_permission(self, guarded_client):
        resp = guarded_client.post("/documents/derive")
        assert resp.status_code == 401

    def test_route_without_requirement(self, guarded_client, db):
        add_user(db, bitmask=0)
        token = login(guarded_client).json()["token"]
        resp = guarded_client.get("/documents/whoami", headers=bearer(token))
        assert resp.json() == {"loginCode": "CIP0001"}


class TestApplicationShell:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_unknown_route_uses_envelope(self, client):
        resp = client.get("/nowhere")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    def test_unexpected_error_is_opaque(self, app):
        @app.get("/boom")
        def boom():
            raise RuntimeError("secret internals")

        with TestClient(app, raise_server_exceptions=False) as c:
            resp = c.get("/boom")

        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
        }

    def test_unexpected_error_detail_in_debug_mode(self, settings, engine):
        from main import create_app

        app = create_app(settings.model_copy(update={"debug": True}), engine=engine)

        @app.get("/boom")
        def boom():
            raise RuntimeError("secret internals")

        with TestClient(app, raise_server_exceptions=False) as c:
            resp = c.get("/boom")

        assert resp.status_code == 500
        assert "RuntimeError: secret internals" in resp.json()["error"]["message"]


class TestOwnSessionsAndPassword:
    def test_list_sessions_flags_the_current_one(self, client, db):
        add_user(db)
        login(client)
        token = login(client).json()["token"]

        resp = client.get("/auth/sessions", headers=bearer(token))

        assert resp.status_code == 200
        sessions = resp.json()["sessions"]
        assert len(sessions) == 2
        assert [s["current"] for s in sessions].count(True) == 1
        assert {"id", "originAddress", "createdAt", "current"} == set(sessions[0])

    def test_list_sessions_requires_token(self, client):
        assert client.get("/auth/sessions").status_code == 401

    def test_logout_all_keeps_caller_signed_in(self, client, db):
        add_user(db)
        other = login(client).json()["token"]
        token = login(client).json()["token"]

        resp = client.post("/auth/logout-all", headers=bearer(token))

        assert resp.json() == {"success": True, "closed": 1}
        assert client.get("/auth/check", headers=bearer(token)).status_code == 200
        assert client.get("/auth/check", headers=bearer(other)).status_code == 401

    def test_logout_all_including_current(self, client, db):
        add_user(db)
        token = login(client).json()["token"]

        resp = client.post("/auth/logout-all?includeCurrent=true", headers=bearer(token))

        assert resp.json()["closed"] == 1
        assert client.get("/auth/check", headers=bearer(token)).status_code == 401

    def test_change_password(self, client, db):
        add_user(db)
        other = login(client).json()["token"]
        token = login(client).json()["token"]

        resp = client.post(
            "/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Battery-Staple-7"},
            headers=bearer(token),
        )

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "closed": 1}
        assert client.get("/auth/check", headers=bearer(other)).status_code == 401
        assert login(client, password="Battery-Staple-7").status_code == 200
        assert login(client).status_code == 401

    def test_change_password_with_wrong_current(self, client, db):
        add_user(db)
        token = login(client).json()["token"]

        resp = client.post(
            "/auth/change-password",
            json={"currentPassword": "nope", "newPassword": "Battery-Staple-7"},
            headers=bearer(token),
        )

        assert resp.status_code == 401
        assert resp.json()["error"] == {
            "code": "INVALID_CREDENTIALS",
            "message": "Current password is incorrect",
        }

    def test_change_password_too_short(self, client, db):
        add_user(db)
        token = login(client).json()["token"]

        resp = client.post(
            "/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "short"},
            headers=bearer(token),
        )

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "BAD_REQUEST"


def test_request_log_uses_forwarded_client_address(client, caplog):
    caplog.set_level(logging.INFO, logger="recordsdesk")

    client.get("/health", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert any("client=203.0.113.9" in record.getMessage() for record in caplog.records)
