import time

import bcrypt
import jwt
import pytest

from auth import security
from core import settings

from conftest import ADMIN_PASS, ADMIN_USER, JWT_SECRET


def _token(secret=JWT_SECRET, **overrides):
    now = int(time.time())
    payload = {"sub": ADMIN_USER, "user": ADMIN_USER, "type": "access", "iat": now, "exp": now + 3600}
    payload.update(overrides)
    return jwt.encode(payload, secret, algorithm="HS256")


def test_login_returns_signed_seven_day_token(client):
    response = client.post("/api/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})

    assert response.status_code == 200
    body = response.json()
    assert body["user"] == ADMIN_USER
    payload = jwt.decode(body["token"], JWT_SECRET, algorithms=["HS256"])
    assert payload["sub"] == ADMIN_USER
    assert payload["user"] == ADMIN_USER
    assert payload["exp"] - payload["iat"] == 7 * 24 * 60 * 60


@pytest.mark.parametrize(
    "username,password",
    [
        (ADMIN_USER, "wrong"),
        ("someone", ADMIN_PASS),
        ("", ""),
    ],
)
def test_login_rejects_bad_credentials_with_generic_message(client, username, password):
    response = client.post("/api/login", json={"username": username, "password": password})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials."


def test_login_with_bcrypt_hash(client, monkeypatch):
    hashed = bcrypt.hashpw(b"hashed-pass", bcrypt.gensalt()).decode("utf-8")
    monkeypatch.setenv("ADMIN_PASSWORD_HASH", hashed)

    ok = client.post("/api/login", json={"username": ADMIN_USER, "password": "hashed-pass"})
    plain = client.post("/api/login", json={"username": ADMIN_USER, "password": ADMIN_PASS})

    assert ok.status_code == 200
    assert plain.status_code == 401


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer"},
        {"Authorization": "Basic abc"},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": f"Bearer {_token(secret='another-secret')}"},
        {"Authorization": f"Bearer {_token(exp=int(time.time()) - 10)}"},
        {"Authorization": f"Bearer {_token(type='refresh')}"},
    ],
)
def test_admin_routes_reject_invalid_tokens_without_mutation(client, headers):
    create = client.post("/api/admin/planes", json={"modelo": "Nivus", "version": "Highline"}, headers=headers)
    config = client.put("/api/admin/config", json={"site_title": "Hacked"}, headers=headers)
    listing = client.get("/api/admin/planes", headers=headers)

    assert create.status_code == 401
    assert config.status_code == 401
    assert listing.status_code == 401
    assert listing.headers["www-authenticate"] == "Bearer"
    assert client.get("/api/planes").json() == []
    assert client.get("/api/config").json()["site_title"] == "ALRA Planes"


def test_failed_login_advertises_bearer_scheme(client):
    response = client.post("/api/login", json={"username": "admin", "password": "nope"})

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_token_from_login_opens_admin_routes(client, auth_headers):
    response = client.get("/api/admin/planes", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == []


def test_decode_access_token_reports_expiry(env):
    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(_token(exp=int(time.time()) - 10))


def test_require_settings_names_missing_secrets(monkeypatch):
    for name in settings.REQUIRED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("ADMIN_PASS", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD_HASH", raising=False)

    with pytest.raises(RuntimeError) as excinfo:
        settings.require_settings()

    message = str(excinfo.value)
    assert "JWT_SECRET" in message
    assert "CLOUDINARY_API_SECRET" in message
    assert "ADMIN_PASS or ADMIN_PASSWORD_HASH" in message
