"""
Auth security helpers.
"""

from __future__ import annotations

import hmac
import time
from typing import Any

import bcrypt
import jwt

from core import settings


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    secret = settings.env_str("JWT_SECRET")
    if not secret:
        raise AuthSecurityError("JWT_SECRET is not set.")
    return secret


def jwt_algorithm() -> str:
    return settings.env_str("JWT_ALG", "HS256")


def access_token_expire_days() -> int:
    return settings.env_int("ACCESS_TOKEN_EXPIRE_DAYS", 7)


def admin_username() -> str:
    return settings.env_str("ADMIN_USER")


def now_epoch_s() -> int:
    return int(time.time())


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def check_admin_credentials(username: str, password: str) -> bool:
    """
    True only when both values match the configured admin pair.

    ADMIN_PASSWORD_HASH (bcrypt) takes precedence over the plain ADMIN_PASS.
    """
    expected_user = admin_username()
    if not expected_user or not username or not password:
        return False

    user_ok = _same(username, expected_user)

    password_hash = settings.env_str("ADMIN_PASSWORD_HASH")
    if password_hash:
        password_ok = verify_password(password, password_hash)
    else:
        expected_password = settings.env_str("ADMIN_PASS")
        password_ok = bool(expected_password) and _same(password, expected_password)

    return user_ok and password_ok


def build_access_token(*, username: str) -> str:
    issued_at = now_epoch_s()
    expires_at = issued_at + (access_token_expire_days() * 24 * 60 * 60)

    payload = {
        "sub": username,
        "user": username,
        "type": "access",
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            jwt_secret(),
            algorithms=[jwt_algorithm()],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "access":
        raise AuthSecurityError("Token is not an access token.")

    return payload
