"""Tests de l'authentification des éditeurs (hachage, JWT, connexion HTTP)."""

from __future__ import annotations

import jwt

from cms.core.http_constants import HTTP_OK, HTTP_UNAUTHORIZED
from cms.domain.auth import (
    TokenData,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

SECRET = "s3cret"
ALG = "HS256"
PASSWORD = "correct horse"


def test_hash_and_verify_password() -> None:
    hashed = hash_password(PASSWORD)
    assert hashed != PASSWORD
    assert verify_password(PASSWORD, hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password(PASSWORD, "")
    assert not verify_password(PASSWORD, "not-a-hash")


def test_token_roundtrip_and_actor_id() -> None:
    token = create_access_token(SECRET, ALG, 5, {"sub": "42", "email": "a@example.com"})
    assert isinstance(token, str)
    data = decode_token(token, SECRET, ALG)
    assert data == TokenData(sub="42", email="a@example.com")
    assert data.actor_id == 42


def test_decode_rejects_bad_tokens() -> None:
    """Signature, expiration ou contenu invalides donnent None."""
    good = create_access_token(SECRET, ALG, 5, {"sub": "1", "email": "a@example.com"})
    assert decode_token(good, "other-secret", ALG) is None
    expired = create_access_token(SECRET, ALG, -1, {"sub": "1", "email": "a@example.com"})
    assert decode_token(expired, SECRET, ALG) is None
    incomplete = jwt.encode({"sub": "1"}, SECRET, algorithm=ALG)
    assert decode_token(incomplete, SECRET, ALG) is None
    assert decode_token("garbage", SECRET, ALG) is None


def test_non_numeric_subject_has_no_actor_id() -> None:
    assert TokenData(sub="abc", email="a@example.com").actor_id is None


def test_login_issues_usable_token(client, user_repo) -> None:
    user_repo.create("Admin@Example.com", hash_password(PASSWORD))
    r = client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": PASSWORD}
    )
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["token_type"] == "bearer"

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    draft = {"message": "Hello", "type": "info"}
    r = client.post("/api/v1/content/announcements", json=draft, headers=headers)
    assert r.status_code == HTTP_OK
    assert r.json()["createdBy"] == user_repo.get_by_email("admin@example.com")["id"]


def test_login_rejects_bad_credentials(client, user_repo) -> None:
    user_repo.create("admin@example.com", hash_password(PASSWORD))
    user_repo.create("viewer@example.com", hash_password(PASSWORD), is_admin=False)

    for email, password in (
        ("admin@example.com", "wrong"),
        ("ghost@example.com", PASSWORD),
        ("viewer@example.com", PASSWORD),
    ):
        r = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert r.status_code == HTTP_UNAUTHORIZED
        assert r.json()["message"] == "invalid_credentials"


def test_token_without_numeric_subject_is_refused(client, test_settings) -> None:
    token = create_access_token(
        test_settings.JWT_SECRET, ALG, 5, {"sub": "abc", "email": "a@example.com"}
    )
    r = client.post(
        "/api/v1/content/announcements",
        json={"message": "x", "type": "info"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["message"] == "invalid_subject"
