"""
Media adapter: what the catalog needs from the image host.

Uploads are awaited by callers. Deletions are best-effort: they run as FastAPI
background tasks after the response is sent and never raise.
"""

from __future__ import annotations

import logging
from typing import Protocol

from core import settings

from . import cloudinary
from .cloudinary import CloudinaryClient, UploadedImage

logger = logging.getLogger(__name__)

_client: "MediaClient | None" = None


class MediaClient(Protocol):
    async def upload_bytes(
        self,
        data: bytes,
        *,
        filename: str = "upload",
        content_type: str = "application/octet-stream",
    ) -> UploadedImage:
        ...

    async def upload_url(self, url: str) -> UploadedImage:
        ...

    async def destroy(self, public_id: str) -> str:
        ...


def cloudinary_folder() -> str:
    return settings.env_str("CLOUDINARY_FOLDER", "alra-planes")


def cloudinary_transformation() -> str:
    return settings.env_str("CLOUDINARY_TRANSFORMATION", cloudinary.DEFAULT_TRANSFORMATION)


def get_media_client() -> MediaClient:
    """
    FastAPI dependency returning a process-wide Cloudinary client.
    """
    global _client
    if _client is None:
        _client = CloudinaryClient(
            cloud_name=settings.env_str("CLOUDINARY_CLOUD_NAME"),
            api_key=settings.env_str("CLOUDINARY_API_KEY"),
            api_secret=settings.env_str("CLOUDINARY_API_SECRET"),
            folder=cloudinary_folder(),
            transformation=cloudinary_transformation(),
            timeout_s=float(settings.env_int("CLOUDINARY_TIMEOUT_S", 60)),
        )
    return _client


async def destroy_background(client: MediaClient, public_id: str) -> None:
    """
    BackgroundTasks entrypoint.

    This should never raise to the request path; we just log failures.
    """
    try:
        result = await client.destroy(public_id)
        logger.info("media_destroyed public_id=%s result=%s", public_id, result)
    except Exception:
        logger.exception("media_destroy_failed public_id=%s", public_id)
