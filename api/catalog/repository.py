"""
Plan catalog persistence (raw SQL).

Functions that take part in a multi-statement operation accept `conn`, the
executor yielded by `db.transaction()`. Without it they run on their own.
"""

from __future__ import annotations

from typing import Any

from core import db

PLAN_COLUMNS = """
    id, modelo, version, valor, anticipo, cuota, tipo, adjudicacion,
    whatsapp_texto, activo, orden, created_at, updated_at
"""


def _executor(conn: db.Executor | None) -> Any:
    return conn if conn is not None else db


async def list_plans(*, active_only: bool) -> list[dict[str, Any]]:
    if active_only:
        return await db.fetch_all(
            f"""
            SELECT {PLAN_COLUMNS}
            FROM plans
            WHERE activo = 1
            ORDER BY orden ASC, id ASC
            """
        )
    return await db.fetch_all(
        f"""
        SELECT {PLAN_COLUMNS}
        FROM plans
        ORDER BY orden ASC, id ASC
        """
    )


async def list_images(*, active_only: bool) -> list[dict[str, Any]]:
    """
    Images of every listed plan, grouped by plan and sorted for display.
    """
    if active_only:
        return await db.fetch_all(
            """
            SELECT i.id, i.plan_id, i.url, i.public_id, i.orden
            FROM plan_images i
            JOIN plans p ON p.id = i.plan_id
            WHERE p.activo = 1
            ORDER BY i.plan_id ASC, i.orden ASC, i.id ASC
            """
        )
    return await db.fetch_all(
        """
        SELECT id, plan_id, url, public_id, orden
        FROM plan_images
        ORDER BY plan_id ASC, orden ASC, id ASC
        """
    )


async def get_plan(plan_id: int, *, conn: db.Executor | None = None) -> dict[str, Any] | None:
    return await _executor(conn).fetch_one(
        f"""
        SELECT {PLAN_COLUMNS}
        FROM plans
        WHERE id = $1
        """,
        plan_id,
    )


async def insert_plan(
    *,
    modelo: str,
    version: str,
    valor: str,
    anticipo: str,
    cuota: str,
    tipo: str,
    adjudicacion: str,
    whatsapp_texto: str,
    activo: bool,
    orden: int,
) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO plans (modelo, version, valor, anticipo, cuota, tipo,
                           adjudicacion, whatsapp_texto, activo, orden)
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
        RETURNING id
        """,
        modelo,
        version,
        valor,
        anticipo,
        cuota,
        tipo,
        adjudicacion,
        whatsapp_texto,
        1 if activo else 0,
        orden,
    )
    if row is None:
        raise db.DatabaseError("Failed to create plan.")
    return row


async def update_plan(
    plan_id: int,
    *,
    modelo: str,
    version: str,
    valor: str,
    anticipo: str,
    cuota: str,
    tipo: str,
    adjudicacion: str,
    whatsapp_texto: str,
    activo: bool,
    orden: int,
) -> dict[str, Any] | None:
    """
    Replace every mutable field. Returns None when the plan does not exist.
    """
    return await db.fetch_one(
        """
        UPDATE plans
        SET modelo = $1,
            version = $2,
            valor = $3,
            anticipo = $4,
            cuota = $5,
            tipo = $6,
            adjudicacion = $7,
            whatsapp_texto = $8,
            activo = $9,
            orden = $10,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = $11
        RETURNING id
        """,
        modelo,
        version,
        valor,
        anticipo,
        cuota,
        tipo,
        adjudicacion,
        whatsapp_texto,
        1 if activo else 0,
        orden,
        plan_id,
    )


async def list_plan_public_ids(plan_id: int, *, conn: db.Executor | None = None) -> list[str]:
    rows = await _executor(conn).fetch_all(
        """
        SELECT public_id
        FROM plan_images
        WHERE plan_id = $1
        ORDER BY orden ASC, id ASC
        """,
        plan_id,
    )
    return [str(r["public_id"]) for r in rows if r.get("public_id")]


async def delete_plan_images(plan_id: int, *, conn: db.Executor | None = None) -> None:
    await _executor(conn).execute("DELETE FROM plan_images WHERE plan_id = $1", plan_id)


async def delete_plan(plan_id: int, *, conn: db.Executor | None = None) -> bool:
    row = await _executor(conn).fetch_one(
        "DELETE FROM plans WHERE id = $1 RETURNING id",
        plan_id,
    )
    return row is not None


async def next_image_order(plan_id: int, *, conn: db.Executor | None = None) -> int:
    row = await _executor(conn).fetch_one(
        """
        SELECT COALESCE(MAX(orden), 0) AS m
        FROM plan_images
        WHERE plan_id = $1
        """,
        plan_id,
    )
    return (int(row["m"]) if row is not None else 0) + 1


async def insert_image(
    *,
    plan_id: int,
    url: str,
    public_id: str,
    orden: int,
    conn: db.Executor | None = None,
) -> dict[str, Any]:
    row = await _executor(conn).fetch_one(
        """
        INSERT INTO plan_images (plan_id, url, public_id, orden)
        VALUES ($1, $2, $3, $4)
        RETURNING id, plan_id, url, public_id, orden
        """,
        plan_id,
        url,
        public_id,
        orden,
    )
    if row is None:
        raise db.DatabaseError("Failed to insert plan image.")
    return row


async def delete_image(image_id: int) -> dict[str, Any] | None:
    """
    Delete one image row. Returns the deleted row, or None when not found.
    """
    return await db.fetch_one(
        """
        DELETE FROM plan_images
        WHERE id = $1
        RETURNING id, plan_id, public_id
        """,
        image_id,
    )


async def set_image_order(image_id: int, orden: int, *, conn: db.Executor | None = None) -> bool:
    row = await _executor(conn).fetch_one(
        """
        UPDATE plan_images
        SET orden = $1
        WHERE id = $2
        RETURNING id
        """,
        orden,
        image_id,
    )
    return row is not None
