"""
Site config business logic: an open-ended key/value map read by the landing page.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import HTTPException, status

from core import db

from . import repository

logger = logging.getLogger(__name__)


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


async def get_all() -> dict[str, str | None]:
    rows = await repository.list_entries()
    return {str(row["key"]): row["value"] for row in rows}


async def set_many(values: dict[str, Any]) -> dict[str, Any]:
    entries = [(str(key).strip(), _to_text(value)) for key, value in values.items()]
    if any(not key for key, _ in entries):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Config keys must not be empty.")

    async with db.transaction() as conn:
        for key, value in entries:
            await repository.upsert_entry(key, value, conn=conn)

    logger.info("config_updated keys=%s", ",".join(key for key, _ in entries))
    return {"message": "Config actualizada"}
