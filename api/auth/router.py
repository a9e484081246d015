"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter

from . import schemas, service

router = APIRouter()


@router.post("/login", response_model=schemas.LoginResponse)
async def login(request: schemas.LoginRequest) -> schemas.LoginResponse:
    return service.login(request)
