"""
Auth business logic.

A single admin credential pair comes from the environment. Tokens are
stateless: nothing is stored server-side, there is no refresh and no
revocation.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from . import schemas, security

logger = logging.getLogger(__name__)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def login(payload: schemas.LoginRequest) -> schemas.LoginResponse:
    if not security.check_admin_credentials(payload.username, payload.password):
        logger.warning("login_failed")
        # Same message for unknown user and wrong password.
        raise unauthorized("Invalid credentials.")

    token = security.build_access_token(username=payload.username)
    logger.info("login_ok user=%s", payload.username)
    return schemas.LoginResponse(token=token, user=payload.username)


def principal_from_access_token(access_token: str) -> schemas.Principal:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise unauthorized(str(exc)) from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject:
        raise unauthorized("Invalid access token subject.")
    return schemas.Principal(username=subject)
