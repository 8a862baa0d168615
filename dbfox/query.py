"""Ad-hoc SQL: classify, dispatch to the current connection, normalize rows."""
from __future__ import annotations

import base64
import decimal
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .db import Row
from .errors import NoConnection
from .manager import ConnectionManager

logger = logging.getLogger(__name__)

WRITE_SUCCESS_MESSAGE = "Non-SELECT query executed successfully."


@dataclass
class QueryOutcome:
    rows: list[Row] = field(default_factory=list)
    message: str | None = None
    # -1 when the driver does not report a count.
    rows_affected: int | None = None


def is_read_query(sql: str) -> bool:
    return sql.strip().upper().startswith("SELECT")


def to_scalar(value: Any) -> Any:
    """Coerce a driver value into None/bool/int/float/str."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, decimal.Decimal):
        # numeric/DECIMAL columns stay numbers; whole values become int.
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def normalize_rows(raw_rows: list[Any]) -> list[Row]:
    """Keep mapping-shaped rows; anything else is dropped, not an error."""
    rows: list[Row] = []
    dropped = 0
    for raw in raw_rows:
        if isinstance(raw, Mapping):
            rows.append({str(k): to_scalar(v) for k, v in raw.items()})
        else:
            dropped += 1
    if dropped:
        logger.debug("Dropped %d non-mapping rows from result set", dropped)
    return rows


class QueryRunner:
    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self.last_rows: list[Row] = []

    async def run(self, sql_text: str) -> QueryOutcome:
        sql = sql_text.strip()
        if not self.manager.connected:
            raise NoConnection()

        if is_read_query(sql):
            rows = normalize_rows(await self.manager.query(sql))
            self.last_rows = rows
            logger.info("Query returned %d rows", len(rows))
            return QueryOutcome(rows=rows)

        affected = await self.manager.execute(sql)
        logger.info("Statement executed (rows affected: %s)", affected)
        return QueryOutcome(rows=[], message=WRITE_SUCCESS_MESSAGE, rows_affected=affected)
