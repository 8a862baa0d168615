from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any
from urllib.parse import quote

from ..errors import ConnectionDriverError, QueryError, SchemaError, SchemaNotFound
from .base import Column, Engine, TableSchema, driver_errors

_PREFIX = "sqlite:///"

_LIST_TABLES_SQL = """
SELECT name FROM sqlite_master
WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""


def path_from_dsn(dsn: str) -> str:
    """``sqlite:///data/app.db`` -> ``data/app.db``; empty -> in-memory."""
    raw = dsn[len(_PREFIX):] if dsn.startswith(_PREFIX) else dsn
    return raw.strip() or ":memory:"


def connect_file(db_path: str) -> sqlite3.Connection:
    """Open an existing database file (never creates one)."""
    if db_path == ":memory:":
        conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    else:
        uri = f"file:{quote(str(Path(db_path).expanduser()))}?mode=rw"
        conn = sqlite3.connect(uri, uri=True, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


class SQLiteBackend:
    """sqlite3 on a worker thread.

    Calls are already serialized by the connection manager's lock, which is
    what makes sharing the connection across threads safe here.
    """

    engine = Engine.SQLITE

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    @classmethod
    async def connect(cls, dsn: str) -> SQLiteBackend:
        with driver_errors(ConnectionDriverError, sqlite3.Error):
            conn = await asyncio.to_thread(connect_file, path_from_dsn(dsn))
        return cls(conn)

    def _fetch(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        cur = self._conn.execute(sql, params)
        if cur.description is None:
            return []
        return [dict(r) for r in cur.fetchall()]

    def _execute(self, sql: str) -> int:
        return self._conn.execute(sql).rowcount

    async def query(self, sql: str) -> list[Any]:
        with driver_errors(QueryError, sqlite3.Error):
            return await asyncio.to_thread(self._fetch, sql)

    async def execute(self, sql: str) -> int:
        with driver_errors(QueryError, sqlite3.Error):
            return await asyncio.to_thread(self._execute, sql)

    async def list_databases(self) -> list[str]:
        rows = await self.query("PRAGMA database_list")
        return [str(r["name"]) for r in rows]

    async def list_tables(self) -> list[str]:
        rows = await self.query(_LIST_TABLES_SQL)
        return [str(r["name"]) for r in rows]

    async def describe_table(self, name: str) -> TableSchema:
        with driver_errors(SchemaError, sqlite3.Error):
            rows = await asyncio.to_thread(
                self._fetch, "SELECT * FROM pragma_table_info(?)", (name,)
            )
        if not rows:
            raise SchemaNotFound(name)
        columns = tuple(
            Column(
                name=str(r["name"]),
                data_type=str(r["type"] or ""),
                is_nullable=not bool(r["notnull"]),
                default=None if r["dflt_value"] is None else str(r["dflt_value"]),
            )
            for r in rows
        )
        return TableSchema(table_name=name, columns=columns)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


async def connect(dsn: str) -> SQLiteBackend:
    return await SQLiteBackend.connect(dsn)
