"""
Schema creation and first-boot seed data.

Runs once per process from the FastAPI lifespan. Both scripts are idempotent
(`IF NOT EXISTS`), so booting against an existing database is a no-op apart
from the config seed check.
"""

from __future__ import annotations

import logging

from . import db

logger = logging.getLogger(__name__)

POSTGRES_SCHEMA = """
CREATE TABLE IF NOT EXISTS plans (
    id SERIAL PRIMARY KEY,
    modelo TEXT NOT NULL,
    version TEXT NOT NULL,
    valor TEXT NOT NULL DEFAULT '',
    anticipo TEXT NOT NULL DEFAULT '',
    cuota TEXT NOT NULL DEFAULT '',
    tipo TEXT NOT NULL DEFAULT '70/30',
    adjudicacion TEXT NOT NULL DEFAULT 'cuota 2',
    whatsapp_texto TEXT NOT NULL DEFAULT '',
    activo INTEGER NOT NULL DEFAULT 1,
    orden INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS plan_images (
    id SERIAL PRIMARY KEY,
    plan_id INTEGER NOT NULL REFERENCES plans(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    public_id TEXT NOT NULL DEFAULT '',
    orden INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS plan_images_plan_orden_idx ON plan_images (plan_id, orden);

CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

SQLITE_SCHEMA = """
CREATE TABLE IF NOT EXISTS plans (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    modelo TEXT NOT NULL,
    version TEXT NOT NULL,
    valor TEXT NOT NULL DEFAULT '',
    anticipo TEXT NOT NULL DEFAULT '',
    cuota TEXT NOT NULL DEFAULT '',
    tipo TEXT NOT NULL DEFAULT '70/30',
    adjudicacion TEXT NOT NULL DEFAULT 'cuota 2',
    whatsapp_texto TEXT NOT NULL DEFAULT '',
    activo INTEGER NOT NULL DEFAULT 1,
    orden INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS plan_images (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    plan_id INTEGER NOT NULL,
    url TEXT NOT NULL,
    public_id TEXT NOT NULL DEFAULT '',
    orden INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (plan_id) REFERENCES plans(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS plan_images_plan_orden_idx ON plan_images (plan_id, orden);

CREATE TABLE IF NOT EXISTS config (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

SCHEMAS = {
    "postgres": POSTGRES_SCHEMA,
    "sqlite": SQLITE_SCHEMA,
}

DEFAULT_CONFIG: tuple[tuple[str, str], ...] = (
    ("whatsapp_number", "5491121655405"),
    ("site_title", "ALRA Planes"),
    ("hero_title", "Tu Volkswagen 0km en cuotas sin interés"),
    (
        "hero_subtitle",
        "Financiá tu Volkswagen 0km. Adjudicación asegurada desde cuota 2. "
        "Más de 42 años acompañándote.",
    ),
)


async def create_tables() -> None:
    await db.execute_script(SCHEMAS[db.dialect()])


async def seed_config() -> int:
    """
    Insert default site config, only when the config table is empty.
    Returns the number of inserted keys.
    """
    async with db.transaction() as conn:
        row = await conn.fetch_one("SELECT COUNT(*) AS c FROM config")
        if row is not None and int(row["c"]) > 0:
            return 0
        for key, value in DEFAULT_CONFIG:
            await conn.execute("INSERT INTO config (key, value) VALUES ($1, $2)", key, value)
    return len(DEFAULT_CONFIG)


async def migrate() -> None:
    await create_tables()
    seeded = await seed_config()
    logger.info("schema_ready dialect=%s seeded_config_keys=%s", db.dialect(), seeded)
