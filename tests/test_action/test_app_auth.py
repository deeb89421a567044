"""Tests for the health check, login and token handling."""

import base64
import json
import time
from unittest.mock import MagicMock, patch

import pytest

from commercial_intel.action.api import VERSION
from commercial_intel.action.dependencies import (
    DirectoryUser,
    UserDirectoryError,
    create_jwt,
    decode_jwt,
    get_sales,
    get_sheets_client,
    get_user_directory,
    hash_password,
    identity_from_claims,
    load_user_directory,
    verify_password,
)
from commercial_intel.analytics.access_policy import Identity, Role
from commercial_intel.ingestion.sheets_client import SheetsError


def _directory():
    return {
        "ana": DirectoryUser("ana", hash_password("s3cret"), Role.REP, "Ana Souza", "ANA"),
    }


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("pw")
        assert verify_password("pw", hashed)
        assert not verify_password("other", hashed)

    def test_malformed_hash_never_verifies(self):
        assert verify_password("pw", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_claims_round_trip(self):
        claims = decode_jwt(create_jwt(Identity(Role.MANAGER, "carla", "Carla", None)))
        assert claims["sub"] == "carla"
        assert claims["role"] == "manager"
        assert identity_from_claims(claims) == Identity(Role.MANAGER, "carla", "Carla", None)

    def test_tampered_token_rejected(self):
        header, payload, signature = create_jwt(Identity(Role.REP, "bia")).split(".")
        forged = json.dumps({"sub": "bia", "role": "admin", "exp": time.time() + 60}).encode()
        forged_payload = base64.urlsafe_b64encode(forged).decode().rstrip("=")
        assert decode_jwt(f"{header}.{forged_payload}.{signature}") is None

    def test_expired_token_rejected(self):
        token = create_jwt(Identity(Role.ADMIN, "root"))
        with patch("commercial_intel.action.dependencies.time.time", return_value=time.time() + 10**7):
            assert decode_jwt(token) is None

    def test_garbage(self):
        assert decode_jwt("abc") is None

    def test_non_ascii_signature(self):
        assert decode_jwt("a.b.\u00e9") is None

    def test_unknown_role_claim(self):
        assert identity_from_claims({"sub": "x", "role": "intern"}) is None


class TestUserDirectory:
    def test_load(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"users": [
            {"username": "Ana", "password_hash": "h", "role": "vendedor", "rep_name": "ANA"},
        ]}), encoding="utf-8")
        users = load_user_directory(str(path))
        assert users["ana"].role is Role.REP
        assert users["ana"].identity().rep_identity == "ANA"

    def test_missing_file(self, tmp_path):
        with pytest.raises(UserDirectoryError):
            load_user_directory(str(tmp_path / "none.json"))

    def test_bad_entry(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"users": [{"username": "x"}]}), encoding="utf-8")
        with pytest.raises(UserDirectoryError):
            load_user_directory(str(path))


class TestHealth:
    def test_health(self, make_client):
        resp = make_client().get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "version": VERSION}


class TestLogin:
    def test_login_success(self, make_client):
        client = make_client({get_user_directory: _directory})
        resp = client.post("/auth/login", json={"username": " ANA ", "password": "s3cret"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "logged_in"
        assert body["user"]["role"] == "rep"
        assert body["user"]["rep_name"] == "ANA"

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["username"] == "ana"

    def test_login_wrong_password(self, make_client):
        client = make_client({get_user_directory: _directory})
        resp = client.post("/auth/login", json={"username": "ana", "password": "nope"})
        assert resp.status_code == 401

    def test_login_unknown_user(self, make_client):
        client = make_client({get_user_directory: _directory})
        assert client.post("/auth/login", json={"username": "zed", "password": "x"}).status_code == 401

    def test_me_requires_token(self, make_client):
        client = make_client()
        assert client.get("/auth/me").status_code == 401
        assert client.get("/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401


class TestErrors:
    def test_sheets_failure_is_502(self, make_client, auth):
        sheets = MagicMock()
        sheets.fetch_sales.side_effect = SheetsError("No data found in range VENDAS!A:J")
        client = make_client({get_sheets_client: lambda: sheets})
        resp = client.get("/pareto/clients", headers=auth(Identity(Role.ADMIN, "root")))
        assert resp.status_code == 502
        assert "No data found" in resp.json()["detail"]

    def test_unconfigured_sheets_is_502(self, make_client, auth):
        with patch("commercial_intel.action.dependencies.settings") as settings:
            settings.google_sheets_api_key = ""
            settings.google_sheet_id = ""
            settings.jwt_expiry_hours = 72
            settings.jwt_secret = "change-me"
            client = make_client()
            resp = client.get("/pareto/clients", headers=auth(Identity(Role.ADMIN, "root")))
        assert resp.status_code == 502

    def test_unhandled_error_returns_json(self, make_client, auth):
        def broken():
            raise RuntimeError("boom")

        client = make_client({get_sales: broken}, raise_server_exceptions=False)
        resp = client.get("/pareto/clients", headers=auth(Identity(Role.ADMIN, "root")))
        assert resp.status_code == 500
        assert resp.json()["status"] == "failed"
