from __future__ import annotations

from typing import Any

import aiomysql

from ..errors import ConnectionDriverError, QueryError, SchemaError, SchemaNotFound
from .base import Column, Engine, TableSchema, driver_errors, parse_dsn

_DESCRIBE_SQL = """
SELECT COLUMN_NAME AS column_name,
       COLUMN_TYPE AS data_type,
       IS_NULLABLE AS is_nullable,
       COLUMN_DEFAULT AS column_default
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = DATABASE()
  AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
"""


def _first_value(row: Any) -> str:
    # SHOW statements key their single column by a server-chosen name
    # (e.g. "Tables_in_sales"), so take the value positionally.
    if isinstance(row, dict):
        return str(next(iter(row.values())))
    return str(row[0])


class MySQLBackend:
    engine = Engine.MYSQL

    def __init__(self, conn: aiomysql.Connection):
        self._conn = conn

    @classmethod
    async def connect(cls, dsn: str) -> MySQLBackend:
        parts = parse_dsn(dsn)
        with driver_errors(ConnectionDriverError, aiomysql.MySQLError, OSError):
            conn = await aiomysql.connect(
                host=parts.hostname or "localhost",
                port=parts.port or Engine.MYSQL.default_port,
                user=parts.username,
                password=parts.password,
                db=parts.database or None,
                autocommit=True,
            )
        return cls(conn)

    async def query(self, sql: str) -> list[Any]:
        with driver_errors(QueryError, aiomysql.MySQLError):
            async with self._conn.cursor(aiomysql.DictCursor) as cur:
                await cur.execute(sql)
                return list(await cur.fetchall())

    async def execute(self, sql: str) -> int:
        with driver_errors(QueryError, aiomysql.MySQLError):
            async with self._conn.cursor() as cur:
                return await cur.execute(sql)

    async def list_databases(self) -> list[str]:
        return [_first_value(r) for r in await self.query("SHOW DATABASES")]

    async def list_tables(self) -> list[str]:
        return sorted(_first_value(r) for r in await self.query("SHOW TABLES"))

    async def describe_table(self, name: str) -> TableSchema:
        with driver_errors(SchemaError, aiomysql.MySQLError):
            async with self._conn.cursor(aiomysql.DictCursor) as cur:
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
        self._conn.close()


async def connect(dsn: str) -> MySQLBackend:
    return await MySQLBackend.connect(dsn)
