"""Connection lifecycle: the single connection slot and everything that uses it."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .db import Backend, Connector, Engine, TableSchema, build_dsn, default_connectors
from .errors import ConnectionDriverError, ConnectionTimeout, NoConnection

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SEC = 3.0


@dataclass(frozen=True)
class ConnectionTarget:
    """Server + credentials of the last successful first-hop connect."""

    engine: Engine
    hostname: str
    port: int | None
    username: str
    password: str

    def dsn(self, database: str | None = None) -> str:
        return build_dsn(
            self.engine,
            username=self.username,
            password=self.password,
            hostname=self.hostname,
            port=self.port,
            database=database,
        )

    def describe(self, database: str | None = None) -> str:
        if self.engine is Engine.SQLITE:
            return f"sqlite:{self.hostname or ':memory:'}"
        db = database if database is not None else self.engine.default_database
        return f"{self.engine.value}://{self.username}@{self.hostname}:{self.port}/{db}"


class ConnectionManager:
    """Owns the connection slot (zero or one live backend).

    Every operation takes the lock for its whole duration, so the slot is
    never observed half-replaced. A new connection only lands in the slot
    after it is fully open; a failed attempt leaves the slot as it was.
    The schema cache lives and dies with the connection in the slot.
    """

    def __init__(
        self,
        connectors: Mapping[Engine, Connector] | None = None,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SEC,
    ):
        self._connectors = dict(connectors) if connectors is not None else default_connectors()
        self.connect_timeout = connect_timeout
        self._lock = asyncio.Lock()
        self._current: Backend | None = None
        self._target: ConnectionTarget | None = None
        self._schemas: dict[str, TableSchema] = {}
        self.database: str | None = None

    @property
    def connected(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Backend | None:
        return self._current

    @property
    def target(self) -> ConnectionTarget | None:
        return self._target

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def cached_schema(self, table: str) -> TableSchema | None:
        return self._schemas.get(table)

    # ── connect ──────────────────────────────────────────────────────────

    async def connect_to_default(
        self,
        engine: Engine,
        hostname: str,
        port: int | None,
        username: str,
        password: str,
    ) -> None:
        """First hop: the engine's system database, bounded by the timeout."""
        target = ConnectionTarget(
            engine=engine,
            hostname=hostname,
            port=port if port is not None else engine.default_port,
            username=username,
            password=password,
        )
        async with self._lock:
            try:
                backend = await asyncio.wait_for(
                    self._open(target, None), timeout=self.connect_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Connect to %s timed out after %.1fs", target.describe(), self.connect_timeout
                )
                raise ConnectionTimeout() from None
            await self._replace(backend, database=engine.default_database)
            self._target = target

    async def connect_to_named(self, db_name: str) -> None:
        """Second hop: a database the user picked. Not time-bounded."""
        async with self._lock:
            target = self._target
            if target is None:
                raise NoConnection("Connect to a server before choosing a database.")
            backend = await self._open(target, db_name)
            await self._replace(backend, database=db_name)

    async def _open(self, target: ConnectionTarget, database: str | None) -> Backend:
        connector = self._connectors.get(target.engine)
        if connector is None:
            raise ConnectionDriverError(f"unsupported engine: {target.engine.value}")
        try:
            backend = await connector(target.dsn(database))
        except ConnectionDriverError as e:
            logger.warning("Connect to %s failed: %s", target.describe(database), e.driver_message)
            raise
        logger.info("Connected to %s", target.describe(database))
        return backend

    async def _replace(self, backend: Backend, *, database: str | None) -> None:
        previous, self._current = self._current, backend
        self._schemas = {}
        self.database = database
        if previous is not None:
            await self._close_quietly(previous)

    @staticmethod
    async def _close_quietly(backend: Backend) -> None:
        try:
            await backend.close()
        except Exception:
            logger.warning("Error closing previous connection", exc_info=True)

    async def close(self) -> None:
        async with self._lock:
            previous, self._current = self._current, None
            self._schemas = {}
            self.database = None
            if previous is not None:
                await self._close_quietly(previous)

    # ── operations on the current connection ────────────────────────────

    def _require(self) -> Backend:
        if self._current is None:
            raise NoConnection()
        return self._current

    async def list_databases(self) -> list[str]:
        async with self._lock:
            return await self._require().list_databases()

    async def list_tables(self) -> list[str]:
        async with self._lock:
            return await self._require().list_tables()

    async def describe_table(self, name: str) -> TableSchema:
        async with self._lock:
            backend = self._require()
            cached = self._schemas.get(name)
            if cached is not None:
                return cached
            schema = await backend.describe_table(name)
            self._schemas[name] = schema
            return schema

    async def query(self, sql: str) -> list[Any]:
        async with self._lock:
            return await self._require().query(sql)

    async def execute(self, sql: str) -> int:
        async with self._lock:
            return await self._require().execute(sql)
