"""Database backends behind a single async contract."""
from __future__ import annotations

from .base import (
    Backend,
    Column,
    Connector,
    Engine,
    Row,
    TableSchema,
    build_dsn,
    parse_dsn,
    split_host_port,
)


# Drivers are imported on first use so a missing server driver only
# matters when that engine is actually chosen.
async def _connect_postgres(dsn: str) -> Backend:
    from .postgres import connect

    return await connect(dsn)


async def _connect_mysql(dsn: str) -> Backend:
    from .mysql import connect

    return await connect(dsn)


async def _connect_sqlite(dsn: str) -> Backend:
    from .sqlite import connect

    return await connect(dsn)


def default_connectors() -> dict[Engine, Connector]:
    return {
        Engine.POSTGRES: _connect_postgres,
        Engine.MYSQL: _connect_mysql,
        Engine.SQLITE: _connect_sqlite,
    }


__all__ = [
    "Backend",
    "Column",
    "Connector",
    "Engine",
    "Row",
    "TableSchema",
    "build_dsn",
    "default_connectors",
    "parse_dsn",
    "split_host_port",
]
