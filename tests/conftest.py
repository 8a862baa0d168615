from __future__ import annotations

import asyncio
import os
import sys
from collections import Counter

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `dbfox/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from dbfox.db import Column, Engine, TableSchema  # noqa: E402
from dbfox.errors import ConnectionDriverError, QueryError, SchemaNotFound  # noqa: E402
from dbfox.manager import ConnectionManager  # noqa: E402

ORDERS = TableSchema(
    table_name="orders",
    columns=(
        Column("id", "integer", False, "nextval('orders_id_seq'::regclass)"),
        Column("customer_id", "integer", False),
        Column("note", "text", True),
    ),
)
CUSTOMERS = TableSchema(
    table_name="customers",
    columns=(
        Column("id", "integer", False),
        Column("name", "text", True),
    ),
)


class FakeBackend:
    """In-memory stand-in for a live connection; counts every call."""

    engine = Engine.POSTGRES

    def __init__(self, dsn: str, server: FakeServer):
        self.dsn = dsn
        self.server = server
        self.closed = False
        self.calls: Counter[str] = Counter()

    async def query(self, sql: str):
        self.calls["query"] += 1
        if self.server.query_error:
            raise QueryError(self.server.query_error)
        return list(self.server.rows)

    async def execute(self, sql: str) -> int:
        self.calls["execute"] += 1
        if self.server.query_error:
            raise QueryError(self.server.query_error)
        self.server.executed.append(sql)
        return 1

    async def list_databases(self) -> list[str]:
        self.calls["list_databases"] += 1
        return list(self.server.databases)

    async def list_tables(self) -> list[str]:
        self.calls["list_tables"] += 1
        return list(self.server.tables)

    async def describe_table(self, name: str) -> TableSchema:
        self.calls["describe_table"] += 1
        if name not in self.server.schemas:
            raise SchemaNotFound(name)
        return self.server.schemas[name]

    async def close(self) -> None:
        self.closed = True


class FakeServer:
    """Connector: DSN in, FakeBackend out. Knobs inject delay and failure."""

    def __init__(self):
        self.databases = ["postgres", "sales"]
        self.tables = ["orders", "customers"]
        self.schemas = {"orders": ORDERS, "customers": CUSTOMERS}
        self.rows: list = [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}]
        self.executed: list[str] = []
        self.query_error: str | None = None
        self.fail: str | None = None
        self.delay = 0.0
        self.opened: list[FakeBackend] = []

    async def __call__(self, dsn: str) -> FakeBackend:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionDriverError(self.fail)
        backend = FakeBackend(dsn, self)
        self.opened.append(backend)
        return backend


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def manager(fake_server) -> ConnectionManager:
    connectors = {engine: fake_server for engine in Engine.ordered()}
    return ConnectionManager(connectors, connect_timeout=0.2)
