"""
Plan catalog business logic.

Scope:
- public and admin listings with embedded, ordered image lists
- plan create / full-replace update / cascading delete
- image upload (bytes or remote URL) through the media host, delete, reorder

Remote image deletion is scheduled as a background task after the local rows
are gone; it never affects the response.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import BackgroundTasks, HTTPException, UploadFile, status

from core import db, settings
from media import service as media_service
from media.cloudinary import MediaError, UploadedImage

from . import repository, schemas

logger = logging.getLogger(__name__)


def _plan_not_found(plan_id: int) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Plan {plan_id} not found.")


def _image_not_found(image_id: int) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Image {image_id} not found.")


def _iso(value: Any) -> str | None:
    """
    ISO 8601 in UTC for both backends: asyncpg returns aware datetimes, SQLite
    returns `YYYY-MM-DD HH:MM:SS` text (CURRENT_TIMESTAMP is UTC).
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _to_image(row: dict[str, Any], *, include_public_id: bool) -> dict[str, Any]:
    image = {
        "id": int(row["id"]),
        "url": str(row["url"]),
        "orden": int(row["orden"]),
    }
    if include_public_id:
        image["public_id"] = str(row.get("public_id") or "")
    return image


def _to_plan(row: dict[str, Any], images: list[dict[str, Any]]) -> dict[str, Any]:
    return {
        "id": int(row["id"]),
        "modelo": row["modelo"],
        "version": row["version"],
        "valor": row["valor"],
        "anticipo": row["anticipo"],
        "cuota": row["cuota"],
        "tipo": row["tipo"],
        "adjudicacion": row["adjudicacion"],
        "whatsapp_texto": row["whatsapp_texto"],
        "activo": bool(row["activo"]),
        "orden": int(row["orden"]),
        "created_at": _iso(row["created_at"]),
        "updated_at": _iso(row["updated_at"]),
        "imagenes": images,
    }


async def _list_plans(*, active_only: bool, include_public_id: bool) -> list[dict[str, Any]]:
    plan_rows = await repository.list_plans(active_only=active_only)
    image_rows = await repository.list_images(active_only=active_only)

    images_by_plan: dict[int, list[dict[str, Any]]] = {}
    for row in image_rows:
        # Rows without a URL cannot be rendered; skip them.
        if not row.get("url"):
            continue
        images_by_plan.setdefault(int(row["plan_id"]), []).append(
            _to_image(row, include_public_id=include_public_id)
        )

    return [_to_plan(row, images_by_plan.get(int(row["id"]), [])) for row in plan_rows]


async def list_public() -> list[dict[str, Any]]:
    return await _list_plans(active_only=True, include_public_id=False)


async def list_admin() -> list[dict[str, Any]]:
    return await _list_plans(active_only=False, include_public_id=True)


async def create_plan(payload: schemas.PlanRequest) -> dict[str, Any]:
    row = await repository.insert_plan(**payload.model_dump())
    plan_id = int(row["id"])
    logger.info("plan_created plan_id=%s modelo=%s", plan_id, payload.modelo)
    return {"id": plan_id, "message": "Plan creado"}


async def update_plan(plan_id: int, payload: schemas.PlanRequest) -> dict[str, Any]:
    row = await repository.update_plan(plan_id, **payload.model_dump())
    if row is None:
        raise _plan_not_found(plan_id)
    logger.info("plan_updated plan_id=%s", plan_id)
    return {"message": "Plan actualizado"}


async def delete_plan(
    plan_id: int,
    *,
    media: media_service.MediaClient,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    async with db.transaction() as conn:
        if await repository.get_plan(plan_id, conn=conn) is None:
            raise _plan_not_found(plan_id)
        public_ids = await repository.list_plan_public_ids(plan_id, conn=conn)
        await repository.delete_plan_images(plan_id, conn=conn)
        await repository.delete_plan(plan_id, conn=conn)

    for public_id in public_ids:
        background_tasks.add_task(media_service.destroy_background, media, public_id)

    logger.info("plan_deleted plan_id=%s images=%s", plan_id, len(public_ids))
    return {"message": "Plan eliminado"}


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


def validate_image_upload(file: UploadFile) -> None:
    # content_type is often missing in practice; only reject what is clearly not an image.
    content_type = (file.content_type or "").lower()
    if content_type and not content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported content type '{content_type}'. Only images are accepted.",
        )


async def _require_plan(plan_id: int) -> None:
    if await repository.get_plan(plan_id) is None:
        raise _plan_not_found(plan_id)


async def _store_uploaded(
    plan_id: int,
    uploaded: UploadedImage,
    *,
    media: media_service.MediaClient,
) -> dict[str, Any]:
    try:
        async with db.transaction() as conn:
            orden = await repository.next_image_order(plan_id, conn=conn)
            row = await repository.insert_image(
                plan_id=plan_id,
                url=uploaded.url,
                public_id=uploaded.public_id,
                orden=orden,
                conn=conn,
            )
    except db.DatabaseError:
        # Nothing references the uploaded asset; drop it before failing.
        if uploaded.public_id:
            await media_service.destroy_background(media, uploaded.public_id)
        raise

    logger.info("image_added plan_id=%s image_id=%s orden=%s", plan_id, row["id"], orden)
    return _to_image(row, include_public_id=True)


async def add_image(
    plan_id: int,
    file: UploadFile,
    *,
    media: media_service.MediaClient,
) -> dict[str, Any]:
    await _require_plan(plan_id)
    validate_image_upload(file)
    data = await read_upload_bytes(file, max_bytes=settings.max_upload_bytes())
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty.")

    try:
        uploaded = await media.upload_bytes(
            data,
            filename=file.filename or "upload",
            content_type=file.content_type or "application/octet-stream",
        )
    except MediaError as exc:
        logger.error("image_upload_failed plan_id=%s error=%s", plan_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Image upload failed: {exc}",
        ) from exc

    image = await _store_uploaded(plan_id, uploaded, media=media)
    return {**image, "message": "Imagen subida"}


async def add_image_from_url(
    plan_id: int,
    payload: schemas.ImageFromUrlRequest,
    *,
    media: media_service.MediaClient,
) -> dict[str, Any]:
    await _require_plan(plan_id)

    try:
        uploaded = await media.upload_url(payload.url)
    except MediaError as exc:
        logger.error("image_url_upload_failed plan_id=%s url=%s error=%s", plan_id, payload.url, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Image upload failed: {exc}",
        ) from exc

    image = await _store_uploaded(plan_id, uploaded, media=media)
    return {**image, "message": "Imagen migrada desde URL"}


async def delete_image(
    image_id: int,
    *,
    media: media_service.MediaClient,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    row = await repository.delete_image(image_id)
    if row is None:
        raise _image_not_found(image_id)

    public_id = str(row.get("public_id") or "")
    if public_id:
        background_tasks.add_task(media_service.destroy_background, media, public_id)

    logger.info("image_deleted image_id=%s plan_id=%s", image_id, row["plan_id"])
    return {"message": "Imagen eliminada"}


async def reorder_images(payload: schemas.ReorderRequest) -> dict[str, Any]:
    async with db.transaction() as conn:
        for item in payload.orden:
            if not await repository.set_image_order(item.id, item.orden, conn=conn):
                # Raising inside the transaction rolls back earlier updates.
                raise _image_not_found(item.id)

    logger.info("images_reordered count=%s", len(payload.orden))
    return {"message": "Orden actualizado"}
