from __future__ import annotations

import uuid

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from matching_api.auth.deps import _jwt_user
from matching_api.auth.jwt import verify_access_token
from matching_api.models import User
from matching_api.models.user import UserRole
from tests.factories import access_token, admin_headers, make_user

JOBS_URL = "/admin/matching/embeddings/jobs"


def test_missing_token_is_unauthorized(client: TestClient):
    resp = client.get(JOBS_URL)
    assert resp.status_code == 401
    assert resp.json() == {"error": "missing bearer token"}
    assert resp.headers["www-authenticate"] == "Bearer"


def test_dev_token_without_prefix_is_rejected(client: TestClient):
    resp = client.get(JOBS_URL, headers={"Authorization": "Bearer admin@example.com"})
    assert resp.status_code == 401


def test_non_admin_is_forbidden(client: TestClient, db_session):
    make_user(db_session, "photographer@example.com", role=UserRole.PHOTOGRAPHER)

    resp = client.post(
        "/admin/matching/embeddings/generate-all",
        headers={"Authorization": "Bearer dev_photographer@example.com"},
    )
    assert resp.status_code == 403
    assert resp.json() == {"error": "forbidden"}


def test_unknown_dev_user_is_created_as_plain_user(client: TestClient, db_session):
    resp = client.get(JOBS_URL, headers={"Authorization": "Bearer dev_New@Example.com"})
    assert resp.status_code == 403

    user = db_session.query(User).filter(User.email == "new@example.com").one()
    assert user.role == UserRole.USER.value


def test_admin_is_allowed(client: TestClient, db_session):
    resp = client.get(JOBS_URL, headers=admin_headers(db_session))
    assert resp.status_code == 200
    assert resp.json()["jobs"] == []


def test_access_token_roundtrip():
    user_id = uuid.uuid4()
    token = access_token(user_id, UserRole.ADMIN.value)

    claims = verify_access_token(token)
    assert claims["sub"] == str(user_id)
    assert claims["role"] == "admin"


def test_jwt_user_resolves_known_user(db_session):
    user = make_user(db_session, "jwt-admin@example.com", role=UserRole.ADMIN)
    token = access_token(user.id, user.role)

    assert _jwt_user(db_session, token).id == user.id


def test_jwt_user_rejects_bad_and_unknown_tokens(db_session):
    with pytest.raises(HTTPException) as bad:
        _jwt_user(db_session, "not-a-jwt")
    assert bad.value.status_code == 401

    with pytest.raises(HTTPException) as unknown:
        _jwt_user(db_session, access_token(uuid.uuid4(), "admin"))
    assert unknown.value.status_code == 401
    assert unknown.value.detail == "unknown user"


def test_expired_token_is_rejected():
    token = access_token(uuid.uuid4(), "admin", ttl_seconds=-60)
    with pytest.raises(ValueError):
        verify_access_token(token)
