"""
Site config persistence (raw SQL).
"""

from __future__ import annotations

from typing import Any

from core import db


async def list_entries() -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT key, value
        FROM config
        ORDER BY key ASC
        """
    )


async def upsert_entry(key: str, value: str, *, conn: db.Executor) -> None:
    await conn.execute(
        """
        INSERT INTO config (key, value)
        VALUES ($1, $2)
        ON CONFLICT (key) DO UPDATE
        SET value = EXCLUDED.value
        """,
        key,
        value,
    )
