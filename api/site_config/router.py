"""
Site config API endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from auth import dependencies as auth_dependencies
from auth.schemas import Principal

from . import service

router = APIRouter()


@router.get("/config")
async def get_config() -> dict:
    return await service.get_all()


@router.put("/admin/config")
async def update_config(
    values: dict[str, Any] = Body(...),
    _: Principal = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.set_many(values)
