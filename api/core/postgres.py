"""
Networked store: asyncpg connection pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

from .db import DatabaseError

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class _Connection:
    """
    Executor bound to one pooled connection (used inside a transaction).
    """

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        try:
            row = await self._conn.fetchrow(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        try:
            rows = await self._conn.fetch(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> None:
        try:
            await self._conn.execute(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc


class PostgresBackend:
    dialect = "postgres"

    def __init__(self, *, dsn: str, min_size: int = 1, max_size: int = 5, command_timeout: float = 30):
        self._dsn = dsn
        self._min_size = max(1, min_size)
        self._max_size = max(self._min_size, max_size)
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Could not connect to Postgres: {exc}") from exc

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
        return self._pool

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        try:
            row = await self.pool().fetchrow(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        try:
            rows = await self.pool().fetch(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> None:
        try:
            await self.pool().execute(sql, *args)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc

    async def execute_script(self, script: str) -> None:
        # Without arguments asyncpg uses the simple query protocol, so several
        # statements can go in one call.
        await self.execute(script)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_Connection]:
        # Acquire, BEGIN and COMMIT can fail too (lost connection, serialization).
        try:
            async with self.pool().acquire() as conn:
                async with conn.transaction():
                    yield _Connection(conn)
        except _DRIVER_ERRORS as exc:
            raise DatabaseError(f"Database error: {exc}") from exc
