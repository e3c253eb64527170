"""
End-to-end tests for the HTTP surface.
"""

from datetime import datetime, timedelta, timezone

import bcrypt
import pytest
from fastapi.testclient import TestClient

from phoneauth.models.pending_signup import PendingSignup
from phoneauth.models.user import User

VALID_CODE = "123456"
SIGNUP = {"name": "A", "email": "a@x.com", "phone": "+1555", "password": "pw"}


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def _signup_and_verify(client, payload=SIGNUP):
    r = client.post("/api/signup", json=payload)
    assert r.status_code == 200, r.text
    r = client.post("/api/verify-signup", json={"phone": payload["phone"], "code": VALID_CODE})
    assert r.status_code == 200, r.text
    return r.json()


class TestHealth:
    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_cors_allows_any_origin(self, client):
        r = client.get("/health", headers={"Origin": "https://somewhere.example"})
        assert r.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight(self, client):
        r = client.options(
            "/api/user",
            headers={
                "Origin": "https://somewhere.example",
                "Access-Control-Request-Method": "PUT",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )
        assert r.status_code == 200
        assert "PUT" in r.headers["access-control-allow-methods"]


class TestSignupEndpoints:
    def test_full_example(self, client):
        r = client.post("/api/signup", json=SIGNUP)
        assert r.status_code == 200
        assert r.json() == {"success": True, "message": "OTP sent to your WhatsApp"}

        body = client.post("/api/verify-signup", json={"phone": "+1555", "code": VALID_CODE}).json()
        assert body["success"] is True
        assert body["token"]
        assert body["user"]["name"] == "A"
        assert body["user"]["email"] == "a@x.com"
        assert body["user"]["phone"] == "+1555"
        assert "password_hash" not in body["user"]
        assert "password" not in body["user"]

        me = client.get("/api/user", headers=auth_header(body["token"]))
        assert me.status_code == 200
        user = me.json()["user"]
        assert user["id"] == body["user"]["id"]
        assert user["verified"] is True
        assert user["name"] == "A"
        assert "password_hash" not in user

    def test_signup_response_never_leaks_hash(self, client):
        r = client.post("/api/signup", json=SIGNUP)
        assert "password" not in r.text

    @pytest.mark.parametrize("missing", ["name", "email", "phone", "password"])
    def test_signup_missing_field(self, client, gateway, missing):
        payload = {k: v for k, v in SIGNUP.items() if k != missing}
        r = client.post("/api/signup", json=payload)
        assert r.status_code == 400
        assert "error" in r.json()
        assert gateway.sent == []

    def test_signup_blank_field(self, client):
        r = client.post("/api/signup", json={**SIGNUP, "name": "   "})
        assert r.status_code == 400
        assert r.json()["error"] == "name is required"

    def test_signup_invalid_json(self, client):
        r = client.post("/api/signup", content="{not json", headers={"Content-Type": "application/json"})
        assert r.status_code == 400
        assert "error" in r.json()

    def test_signup_phone_longer_than_column(self, client, gateway):
        r = client.post("/api/signup", json={**SIGNUP, "phone": "+" + "1" * 50})
        assert r.status_code == 400
        assert r.json()["error"].startswith("phone:")
        assert gateway.sent == []

    def test_signup_phone_at_column_limit(self, client, gateway):
        phone = "+" + "1" * 49
        r = client.post("/api/signup", json={**SIGNUP, "phone": phone})
        assert r.status_code == 200
        assert gateway.sent == [phone]

    def test_login_phone_longer_than_column(self, client, gateway):
        r = client.post("/api/login", json={"phone": "1" * 51})
        assert r.status_code == 400
        assert gateway.sent == []

    def test_signup_password_kept_as_typed(self, client, db_session):
        r = client.post("/api/signup", json={**SIGNUP, "name": "  A  ", "password": "  pw  "})
        assert r.status_code == 200
        pending = db_session.query(PendingSignup).filter(PendingSignup.phone == "+1555").one()
        assert pending.name == "A"
        assert bcrypt.checkpw(b"  pw  ", pending.password_hash.encode("utf-8"))
        assert not bcrypt.checkpw(b"pw", pending.password_hash.encode("utf-8"))

    def test_unexpected_failure_is_json_500(self, app, gateway):
        gateway.crash = RuntimeError("boom")
        with TestClient(app, raise_server_exceptions=False) as client:
            r = client.post("/api/signup", json=SIGNUP)
        assert r.status_code == 500
        assert r.headers["content-type"].startswith("application/json")
        assert r.json() == {"error": "Internal server error"}

    def test_signup_existing_user(self, client):
        _signup_and_verify(client)
        r = client.post("/api/signup", json={**SIGNUP, "email": "new@x.com"})
        assert r.status_code == 400
        assert r.json() == {"error": "User already exists"}

    def test_signup_gateway_failure(self, client, gateway):
        gateway.accept_send = False
        r = client.post("/api/signup", json=SIGNUP)
        assert r.status_code == 500
        assert r.json() == {"error": "Failed to send OTP"}

    def test_verify_signup_bad_code(self, client):
        client.post("/api/signup", json=SIGNUP)
        r = client.post("/api/verify-signup", json={"phone": "+1555", "code": "000000"})
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid or expired OTP"}

    def test_verify_signup_twice(self, client, db_session):
        _signup_and_verify(client)
        r = client.post("/api/verify-signup", json={"phone": "+1555", "code": VALID_CODE})
        assert r.status_code == 400
        assert r.json() == {"error": "Signup session expired"}
        assert db_session.query(User).count() == 1

    def test_verify_signup_missing_code(self, client):
        r = client.post("/api/verify-signup", json={"phone": "+1555"})
        assert r.status_code == 400

    def test_resend_signup(self, client, gateway):
        client.post("/api/signup", json=SIGNUP)
        r = client.post("/api/resend-signup", json={"phone": "+1555"})
        assert r.status_code == 200
        assert gateway.sent == ["+1555", "+1555"]

    def test_resend_without_signup(self, client):
        r = client.post("/api/resend-signup", json={"phone": "+1555"})
        assert r.status_code == 400
        assert r.json() == {"error": "Signup session expired"}


class TestLoginEndpoints:
    def test_login_and_verify(self, client, gateway):
        created = _signup_and_verify(client)
        gateway.sent.clear()

        r = client.post("/api/login", json={"phone": "+1555"})
        assert r.status_code == 200
        assert r.json()["success"] is True
        assert gateway.sent == ["+1555"]

        r = client.post("/api/verify-login", json={"phone": "+1555", "code": VALID_CODE})
        assert r.status_code == 200
        body = r.json()
        assert body["user"]["id"] == created["user"]["id"]
        assert client.get("/api/user", headers=auth_header(body["token"])).status_code == 200

    def test_login_unknown_phone(self, client, gateway):
        r = client.post("/api/login", json={"phone": "+1999"})
        assert r.status_code == 404
        assert r.json() == {"error": "User not found"}
        assert gateway.sent == []

    def test_login_missing_phone(self, client):
        assert client.post("/api/login", json={}).status_code == 400

    def test_login_gateway_failure(self, client, gateway):
        _signup_and_verify(client)
        gateway.accept_send = False
        assert client.post("/api/login", json={"phone": "+1555"}).status_code == 500

    def test_verify_login_bad_code(self, client):
        _signup_and_verify(client)
        r = client.post("/api/verify-login", json={"phone": "+1555", "code": "000000"})
        assert r.status_code == 400

    def test_verify_login_unknown_phone(self, client):
        r = client.post("/api/verify-login", json={"phone": "+1999", "code": VALID_CODE})
        assert r.status_code == 404


class TestUserEndpoints:
    def test_get_user_without_token(self, client):
        r = client.get("/api/user")
        assert r.status_code == 401
        assert r.json() == {"error": "Unauthorized"}

    @pytest.mark.parametrize("value", ["Token abc", "Bearer", "bearer abc", "Bearer a b"])
    def test_get_user_malformed_header(self, client, value):
        r = client.get("/api/user", headers={"Authorization": value})
        assert r.status_code == 401

    def test_get_user_invalid_token(self, client):
        r = client.get("/api/user", headers=auth_header("not.a.token"))
        assert r.status_code == 401
        assert r.json() == {"error": "Invalid token"}

    def test_get_user_expired_token(self, client, app):
        created = _signup_and_verify(client)
        old = datetime.now(timezone.utc) - timedelta(days=7, hours=1)
        token = app.state.token_service.issue(created["user"]["id"], "+1555", now=old)
        assert client.get("/api/user", headers=auth_header(token)).status_code == 401

    def test_get_user_for_missing_account(self, client, app):
        token = app.state.token_service.issue("no-such-user", "+1555")
        r = client.get("/api/user", headers=auth_header(token))
        assert r.status_code == 404

    def test_update_user(self, client):
        token = _signup_and_verify(client)["token"]
        r = client.put("/api/user", json={"name": "B", "email": "b@x.com"}, headers=auth_header(token))
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["message"] == "Profile updated successfully"
        assert body["user"]["name"] == "B"
        assert body["user"]["email"] == "b@x.com"
        assert body["user"]["phone"] == "+1555"
        assert body["user"]["verified"] is True

    def test_update_user_email_taken(self, client):
        _signup_and_verify(client, {**SIGNUP, "phone": "+1666", "email": "taken@x.com"})
        token = _signup_and_verify(client)["token"]
        r = client.put("/api/user", json={"name": "A", "email": "taken@x.com"}, headers=auth_header(token))
        assert r.status_code == 400
        assert r.json() == {"error": "Email already in use by another account"}

    def test_update_user_same_email(self, client):
        token = _signup_and_verify(client)["token"]
        r = client.put("/api/user", json={"name": "A2", "email": "a@x.com"}, headers=auth_header(token))
        assert r.status_code == 200
        assert r.json()["user"]["name"] == "A2"

    def test_update_user_missing_fields(self, client):
        token = _signup_and_verify(client)["token"]
        r = client.put("/api/user", json={"name": "A2"}, headers=auth_header(token))
        assert r.status_code == 400

    def test_update_user_without_token(self, client):
        r = client.put("/api/user", json={"name": "B", "email": "b@x.com"})
        assert r.status_code == 401

    def test_update_user_for_missing_account(self, client, app):
        token = app.state.token_service.issue("no-such-user", "+1555")
        r = client.put("/api/user", json={"name": "B", "email": "b@x.com"}, headers=auth_header(token))
        assert r.status_code == 404
