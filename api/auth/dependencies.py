"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from . import schemas, service


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise service.unauthorized("Missing Authorization header.")

    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise service.unauthorized("Authorization must be: Bearer <token>.")
    return token.strip()


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_admin(access_token: str = Depends(get_bearer_token)) -> schemas.Principal:
    return service.principal_from_access_token(access_token)
