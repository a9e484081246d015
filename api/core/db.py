"""
Async database access helpers (raw SQL).

This module owns the active storage backend. FastAPI initializes it on startup
and closes it on shutdown (see `api/main.py`). The backend is chosen from
`DATABASE_URL`:

- `postgres://...` / `postgresql://...` -> asyncpg connection pool
- `sqlite:///path/to/file.db`          -> embedded single-file database

SQL parameter style:
- repositories always write positional placeholders: $1, $2, $3, ...
- the SQLite backend rewrites them to `?1, ?2, ...` before execution.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from . import settings


class DatabaseError(RuntimeError):
    pass


class Executor(Protocol):
    """
    Anything that can run statements: the module itself or an open transaction.
    """

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        ...

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        ...

    async def execute(self, sql: str, *args: Any) -> None:
        ...


class Backend(Executor, Protocol):
    dialect: str

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def execute_script(self, script: str) -> None:
        ...

    def transaction(self) -> Any:
        ...


_backend: Backend | None = None


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = settings.env_str("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return url


def sqlite_path(url: str) -> str:
    """
    `sqlite:///data/alra.db` -> `data/alra.db`, `sqlite:////srv/alra.db` -> `/srv/alra.db`.
    """
    path = url[len("sqlite://"):]
    if path.startswith("/"):
        path = path[1:]
    if not path:
        raise RuntimeError("DATABASE_URL does not contain a SQLite file path.")
    return path


def create_backend(url: str) -> Backend:
    scheme = urlsplit(url).scheme.lower()
    if scheme in ("postgres", "postgresql"):
        from .postgres import PostgresBackend

        return PostgresBackend(
            dsn=_sanitize_database_url(url),
            min_size=settings.env_int("DB_POOL_MIN", 1),
            max_size=settings.env_int("DB_POOL_MAX", 5),
        )
    if scheme == "sqlite":
        from .sqlite import SqliteBackend

        return SqliteBackend(sqlite_path(url))
    raise RuntimeError(f"Unsupported DATABASE_URL scheme '{scheme}'.")


async def init_pool() -> None:
    global _backend
    if _backend is not None:
        return None
    backend = create_backend(database_url())
    await backend.connect()
    _backend = backend


async def close_pool() -> None:
    global _backend
    if _backend is None:
        return None
    await _backend.close()
    _backend = None


def backend() -> Backend:
    if _backend is None:
        raise RuntimeError("Database is not initialized. Call init_pool() on startup.")
    return _backend


def dialect() -> str:
    return backend().dialect


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    return await backend().fetch_one(sql, *args)


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    return await backend().fetch_all(sql, *args)


async def execute(sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await backend().execute(sql, *args)


async def execute_script(script: str) -> None:
    await backend().execute_script(script)


@asynccontextmanager
async def transaction() -> AsyncIterator[Executor]:
    """
    All-or-nothing block: commits on exit, rolls back if the body raises.
    """
    async with backend().transaction() as conn:
        yield conn
