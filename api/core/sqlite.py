"""
Embedded store: one SQLite file, one connection.

sqlite3 is blocking, so every statement runs in a worker thread. An asyncio
lock serializes access; a transaction holds the lock until it commits or rolls
back.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from .db import DatabaseError

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")


def to_sqlite_params(sql: str) -> str:
    """
    Rewrite asyncpg-style `$1` placeholders into SQLite numbered `?1` ones.
    """
    return _PLACEHOLDER.sub(r"?\1", sql)


class _Transaction:
    """
    Executor used while the backend lock is held.
    """

    def __init__(self, backend: "SqliteBackend"):
        self._backend = backend

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        rows = await self._backend._run(sql, args)
        return rows[0] if rows else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        return await self._backend._run(sql, args)

    async def execute(self, sql: str, *args: Any) -> None:
        await self._backend._run(sql, args)


class SqliteBackend:
    dialect = "sqlite"

    def __init__(self, path: str):
        self.path = path
        self._conn: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()

    def _open(self) -> sqlite3.Connection:
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        # isolation_level=None: autocommit, transactions are explicit BEGIN/COMMIT.
        conn = sqlite3.connect(self.path, check_same_thread=False, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def connect(self) -> None:
        if self._conn is not None:
            return None
        try:
            self._conn = await asyncio.to_thread(self._open)
        except (sqlite3.Error, OSError) as exc:
            raise DatabaseError(f"Could not open SQLite database '{self.path}': {exc}") from exc

    async def close(self) -> None:
        if self._conn is None:
            return None
        async with self._lock:
            await asyncio.to_thread(self._conn.close)
            self._conn = None

    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SQLite database is not open. Call init_pool() on startup.")
        return self._conn

    def _run_sync(self, sql: str, args: tuple[Any, ...]) -> list[dict[str, Any]]:
        cursor = self.connection().execute(to_sqlite_params(sql), args)
        try:
            return [dict(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    async def _run(self, sql: str, args: tuple[Any, ...]) -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._run_sync, sql, args)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Database error: {exc}") from exc

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        async with self._lock:
            rows = await self._run(sql, args)
        return rows[0] if rows else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        async with self._lock:
            return await self._run(sql, args)

    async def execute(self, sql: str, *args: Any) -> None:
        async with self._lock:
            await self._run(sql, args)

    async def execute_script(self, script: str) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self.connection().executescript, script)
            except sqlite3.Error as exc:
                raise DatabaseError(f"Database error: {exc}") from exc

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[_Transaction]:
        async with self._lock:
            await self._run("BEGIN IMMEDIATE", ())
            try:
                yield _Transaction(self)
            except BaseException:
                await self._rollback()
                raise
            try:
                await self._run("COMMIT", ())
            except DatabaseError:
                # A failed COMMIT (e.g. deferred foreign keys) leaves the transaction open.
                await self._rollback()
                raise

    async def _rollback(self) -> None:
        try:
            await self._run("ROLLBACK", ())
        except DatabaseError:
            # SQLite may already have rolled back on its own; keep the original error.
            logger.exception("sqlite_rollback_failed path=%s", self.path)
