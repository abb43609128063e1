"""Tests for the ``/api-keys`` routes."""
from unittest import mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from salak import tokens
from salak.main import create_app
from salak.tables import api_keys, system_logs

API_KEY = "sk-live-0123456789abcdef0123456789abcdef"


def store(client, headers, name="Production", secret=API_KEY):
    return client.post("/api-keys", json={"name": name, "secret": secret}, headers=headers)


def test_requires_login(client):
    assert client.get("/api-keys").status_code == 401
    assert client.post("/api-keys", json={"name": "x", "secret": API_KEY}).status_code == 401
    assert client.delete("/api-keys/abc").status_code == 401


def test_store_and_list(client, auth_headers):
    resp = store(client, auth_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert "cannot be viewed again" in body["message"]
    assert set(body["apiKey"]) == {"id", "name", "is_active", "created_at"}
    assert body["apiKey"]["name"] == "Production"
    assert body["apiKey"]["is_active"] is True

    resp = client.get("/api-keys", headers=auth_headers)
    assert resp.status_code == 200
    listed = resp.json()["apiKeys"]
    assert [k["id"] for k in listed] == [body["apiKey"]["id"]]
    assert set(listed[0]) == {"id", "name", "is_active", "created_at", "last_used_at"}


def test_key_material_never_returned(client, auth_headers, app):
    created = store(client, auth_headers).text
    listed = client.get("/api-keys", headers=auth_headers).text

    with app.extra["session_factory"]() as db:
        row = db.execute(select(api_keys)).mappings().one()
    for text in (created, listed):
        assert API_KEY not in text
        assert row["encrypted_key"] not in text
        assert row["iv"] not in text
        assert row["auth_tag"] not in text


def test_name_is_trimmed(client, auth_headers):
    resp = store(client, auth_headers, name="  Staging  ")
    assert resp.status_code == 201
    assert resp.json()["apiKey"]["name"] == "Staging"


@pytest.mark.parametrize("payload,message", [
    ({"secret": API_KEY}, "API Key Name is required and cannot be empty"),
    ({"name": "   ", "secret": API_KEY}, "API Key Name is required and cannot be empty"),
    ({"name": "ab", "secret": API_KEY}, "API Key Name must be at least 3 characters long"),
    ({"name": "Production"}, "API key is required and must be a non-empty string"),
    ({"name": "Production", "secret": "   "}, "API key is required and must be a non-empty string"),
    ({"name": "Production", "secret": "sk-short"}, "API key must be at least 32 characters long"),
])
def test_validation(client, auth_headers, payload, message):
    resp = client.post("/api-keys", json=payload, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": message}
    assert client.get("/api-keys", headers=auth_headers).json()["apiKeys"] == []


def test_duplicate_name(client, auth_headers):
    assert store(client, auth_headers).status_code == 201
    resp = store(client, auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "An API key with this name already exists"}


def test_same_name_for_other_user(client, auth_headers, secret):
    other = {"Authorization": f"Bearer {tokens.issue('other-user-subject-id', secret)}"}
    assert store(client, auth_headers).status_code == 201
    assert store(client, other).status_code == 201
    assert len(client.get("/api-keys", headers=other).json()["apiKeys"]) == 1


def test_revoke(client, auth_headers):
    key_id = store(client, auth_headers).json()["apiKey"]["id"]

    resp = client.delete(f"/api-keys/{key_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "API key revoked successfully"}
    listed = client.get("/api-keys", headers=auth_headers).json()["apiKeys"]
    assert listed[0]["is_active"] is False

    resp = client.delete(f"/api-keys/{key_id}", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "API key is already revoked"}


def test_revoke_unknown_or_foreign(client, auth_headers, secret):
    assert client.delete("/api-keys/no-such-key", headers=auth_headers).status_code == 404

    key_id = store(client, auth_headers).json()["apiKey"]["id"]
    other = {"Authorization": f"Bearer {tokens.issue('other-user-subject-id', secret)}"}
    resp = client.delete(f"/api-keys/{key_id}", headers=other)
    assert resp.status_code == 404
    assert resp.json() == {"error": "API key not found"}


def test_actions_are_logged(client, auth_headers, app):
    key_id = store(client, auth_headers).json()["apiKey"]["id"]
    store(client, auth_headers)
    client.delete(f"/api-keys/{key_id}", headers={**auth_headers, "X-Forwarded-For": "1.2.3.4"})

    with app.extra["session_factory"]() as db:
        rows = db.execute(select(system_logs).order_by(system_logs.c.id)).mappings().all()
    assert [(r["action"], r["status"]) for r in rows] == [
        ("API Key Store", "success"),
        ("API Key Store", "failed"),
        ("API Key Revoke", "success"),
    ]
    assert rows[2]["ip_address"] == "1.2.3.4"
    assert key_id in rows[2]["resource"]


def test_store_without_master_secret(database_url, secret, user_token):
    app = create_app(setup_logging=False, DATABASE_URL=database_url, JWT_SECRET=secret,
                     API_KEY_ENCRYPTION_SECRET="", SUPABASE_URL="", SUPABASE_ANON_KEY="")
    with TestClient(app) as client:
        resp = store(client, {"Authorization": f"Bearer {user_token}"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Service configuration error. Please contact support."}


def test_store_when_encryption_fails(client, auth_headers):
    with mock.patch('salak.vault.AESGCM') as mock_aesgcm:
        mock_aesgcm.return_value.encrypt.side_effect = OverflowError("boom")
        resp = store(client, auth_headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to encrypt API key"}


def test_unknown_setting():
    with pytest.raises(ValueError):
        create_app(setup_logging=False, NOT_A_SETTING=True)
