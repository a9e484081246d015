"""
Plan catalog API endpoints.

`/planes` is public (landing page); everything under `/admin` requires a
bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile

from auth import dependencies as auth_dependencies
from auth.schemas import Principal
from media import service as media_service

from . import schemas, service

router = APIRouter()


@router.get("/planes")
async def list_public_plans() -> list[dict]:
    return await service.list_public()


@router.get("/admin/planes")
async def list_admin_plans(
    _: Principal = Depends(auth_dependencies.get_current_admin),
) -> list[dict]:
    return await service.list_admin()


@router.post("/admin/planes")
async def create_plan(
    request: schemas.PlanRequest,
    _: Principal = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.create_plan(request)


@router.put("/admin/planes/{plan_id}")
async def update_plan(
    plan_id: int,
    request: schemas.PlanRequest,
    _: Principal = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.update_plan(plan_id, request)


@router.delete("/admin/planes/{plan_id}")
async def delete_plan(
    plan_id: int,
    background_tasks: BackgroundTasks,
    _: Principal = Depends(auth_dependencies.get_current_admin),
    media: media_service.MediaClient = Depends(media_service.get_media_client),
) -> dict:
    return await service.delete_plan(plan_id, media=media, background_tasks=background_tasks)


@router.post("/admin/planes/{plan_id}/imagenes")
async def upload_plan_image(
    plan_id: int,
    imagen: UploadFile = File(...),
    _: Principal = Depends(auth_dependencies.get_current_admin),
    media: media_service.MediaClient = Depends(media_service.get_media_client),
) -> dict:
    return await service.add_image(plan_id, imagen, media=media)


@router.post("/admin/planes/{plan_id}/imagenes-url")
async def upload_plan_image_from_url(
    plan_id: int,
    request: schemas.ImageFromUrlRequest,
    _: Principal = Depends(auth_dependencies.get_current_admin),
    media: media_service.MediaClient = Depends(media_service.get_media_client),
) -> dict:
    return await service.add_image_from_url(plan_id, request, media=media)


# Declared before the `{image_id}` route so "reorder" is never parsed as an id.
@router.put("/admin/imagenes/reorder")
async def reorder_images(
    request: schemas.ReorderRequest,
    _: Principal = Depends(auth_dependencies.get_current_admin),
) -> dict:
    return await service.reorder_images(request)


@router.delete("/admin/imagenes/{image_id}")
async def delete_image(
    image_id: int,
    background_tasks: BackgroundTasks,
    _: Principal = Depends(auth_dependencies.get_current_admin),
    media: media_service.MediaClient = Depends(media_service.get_media_client),
) -> dict:
    return await service.delete_image(image_id, media=media, background_tasks=background_tasks)
