from __future__ import annotations

from typing import Any

import psycopg
from psycopg.rows import dict_row

from ..errors import ConnectionDriverError, QueryError, SchemaError, SchemaNotFound
from .base import Column, Engine, TableSchema, driver_errors

_LIST_DATABASES_SQL = """
SELECT datname
FROM pg_database
WHERE datistemplate = false
ORDER BY datname
"""

_LIST_TABLES_SQL = """
SELECT table_name
FROM information_schema.tables
WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
  AND table_type = 'BASE TABLE'
ORDER BY table_name
"""

_DESCRIBE_SQL = """
SELECT column_name, data_type, is_nullable, column_default
FROM information_schema.columns
WHERE table_name = %s
  AND table_schema NOT IN ('pg_catalog', 'information_schema')
ORDER BY ordinal_position
"""


class PostgresBackend:
    engine = Engine.POSTGRES

    def __init__(self, conn: psycopg.AsyncConnection):
        self._conn = conn

    @classmethod
    async def connect(cls, dsn: str) -> PostgresBackend:
        # autocommit: statements apply immediately, there is no transaction UI.
        with driver_errors(ConnectionDriverError, psycopg.Error, OSError):
            conn = await psycopg.AsyncConnection.connect(dsn, autocommit=True, row_factory=dict_row)
        return cls(conn)

    async def query(self, sql: str) -> list[Any]:
        with driver_errors(QueryError, psycopg.Error):
            async with self._conn.cursor() as cur:
                await cur.execute(sql)
                if cur.description is None:
                    return []
                return list(await cur.fetchall())

    async def execute(self, sql: str) -> int:
        with driver_errors(QueryError, psycopg.Error):
            async with self._conn.cursor() as cur:
                await cur.execute(sql)
                return cur.rowcount

    async def list_databases(self) -> list[str]:
        rows = await self.query(_LIST_DATABASES_SQL)
        return [str(r["datname"]) for r in rows]

    async def list_tables(self) -> list[str]:
        rows = await self.query(_LIST_TABLES_SQL)
        return [str(r["table_name"]) for r in rows]

    async def describe_table(self, name: str) -> TableSchema:
        with driver_errors(SchemaError, psycopg.Error):
            async with self._conn.cursor() as cur:
                await cur.execute(_DESCRIBE_SQL, (name,))
                rows = await cur.fetchall()
        if not rows:
            raise SchemaNotFound(name)
        columns = tuple(
            Column(
                name=str(r["column_name"]),
                data_type=str(r["data_type"]),
                is_nullable=str(r["is_nullable"]).upper() == "YES",
                default=None if r["column_default"] is None else str(r["column_default"]),
            )
            for r in rows
        )
        return TableSchema(table_name=name, columns=columns)

    async def close(self) -> None:
        await self._conn.close()


async def connect(dsn: str) -> PostgresBackend:
    return await PostgresBackend.connect(dsn)
