"""
Auth tests — bcrypt hashing, JWT service, login endpoint, JWT middleware.
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from kimtex_nav.services.jwt_service import decode_access_token, generate_access_token, issue_token
from kimtex_nav.utils.crypto import hash_password, verify_password


# ═══════════════════════════════════════════════════════════════
# BLOCK 1: Crypto — bcrypt
# ═══════════════════════════════════════════════════════════════

class TestCrypto:
    def test_hash_and_verify(self):
        hashed = hash_password("dkm123", rounds=4)
        assert hashed != "dkm123"
        assert verify_password("dkm123", hashed) is True

    def test_wrong_password(self):
        assert verify_password("wrong", hash_password("correct", rounds=4)) is False

    def test_empty_hash(self):
        assert verify_password("anything", "") is False
        assert verify_password("anything", None) is False

    def test_non_bcrypt_hash_rejected(self):
        assert verify_password("old-pass", "pbkdf2:sha256:600000$salt$abc") is False


# ═══════════════════════════════════════════════════════════════
# BLOCK 2: JWT Service
# ═══════════════════════════════════════════════════════════════

class TestJWTService:
    def test_round_trip(self, app):
        payload = decode_access_token(generate_access_token(42, ["Dokuma"]))
        assert payload["sub"] == "42"
        assert payload["roles"] == ["Dokuma"]
        assert payload["type"] == "access"

    def test_issue_token(self, app):
        token = issue_token(1)
        assert token["token_type"] == "Bearer"
        assert token["expires_in"] == app.config["JWT_ACCESS_EXPIRES"]

    def test_expired_token(self, app):
        payload = {
            "sub": "1", "type": "access",
            "iat": datetime.now(timezone.utc) - timedelta(hours=2),
            "exp": datetime.now(timezone.utc) - timedelta(hours=1),
        }
        token = pyjwt.encode(payload, app.config["SECRET_KEY"], algorithm="HS256")
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_wrong_token_type(self, app):
        payload = {"sub": "1", "type": "refresh"}
        token = pyjwt.encode(payload, app.config["SECRET_KEY"], algorithm="HS256")
        with pytest.raises(pyjwt.InvalidTokenError):
            decode_access_token(token)


# ═══════════════════════════════════════════════════════════════
# BLOCK 3: Login API
# ═══════════════════════════════════════════════════════════════

class TestLoginAPI:
    def test_login_success(self, client, make_department, make_user):
        dept = make_department("DKM", "Dokuma")
        user = make_user("dkm", department=dept, roles=["Dokuma"])
        res = client.post("/api/v1/auth/login", json={"username": "DKM", "password": "secret123"})
        assert res.status_code == 200
        data = res.get_json()
        assert data["token_type"] == "Bearer"
        assert data["user"]["id"] == user.id
        assert decode_access_token(data["access_token"])["roles"] == ["Dokuma"]

    def test_token_opens_navigation(self, client, make_department, make_user):
        dept = make_department("DKM", "Dokuma")
        make_user("dkm", department=dept)
        token = client.post(
            "/api/v1/auth/login", json={"username": "dkm", "password": "secret123"},
        ).get_json()["access_token"]
        res = client.get("/api/v1/navigation", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200
        assert [s["key"] for s in res.get_json()["sections"]] == ["weaving"]

    def test_login_wrong_password(self, client, make_user):
        make_user("dkm")
        res = client.post("/api/v1/auth/login", json={"username": "dkm", "password": "nope"})
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_AUTH_INVALID"

    def test_login_inactive(self, client, make_user):
        make_user("dkm", is_active=False)
        res = client.post("/api/v1/auth/login", json={"username": "dkm", "password": "secret123"})
        assert res.status_code == 401

    def test_login_missing_fields(self, client):
        res = client.post("/api/v1/auth/login", json={})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"


# ═══════════════════════════════════════════════════════════════
# BLOCK 4: Middleware
# ═══════════════════════════════════════════════════════════════

def test_expired_token_is_treated_as_anonymous(app, client, make_user):
    user = make_user("dkm")
    payload = {
        "sub": str(user.id), "type": "access",
        "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
    }
    token = pyjwt.encode(payload, app.config["SECRET_KEY"], algorithm="HS256")
    res = client.get("/api/v1/user/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_unknown_api_path_is_json_404(client):
    res = client.get("/api/v1/does-not-exist")
    assert res.status_code == 404
    assert res.get_json()["path"] == "/api/v1/does-not-exist"
