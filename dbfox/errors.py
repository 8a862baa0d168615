"""Error kinds raised by backends and the connection manager."""
from __future__ import annotations


class DbFoxError(Exception):
    """Base exception for database operations."""

    pass


class NoConnection(DbFoxError):
    """Raised when an operation needs a connection and the slot is empty."""

    def __init__(self, message: str = "No database connection available."):
        super().__init__(message)


class DbConnectionError(DbFoxError):
    """Raised when a connect attempt fails."""

    pass


class ConnectionTimeout(DbConnectionError):
    def __init__(self, message: str = "Connection timed out"):
        super().__init__(message)


class ConnectionDriverError(DbConnectionError):
    def __init__(self, message: str):
        self.driver_message = message
        super().__init__(f"Connection error: {message}")


class QueryError(DbFoxError):
    """Raised when the driver rejects a query or statement."""

    pass


class SchemaError(DbFoxError):
    """Raised when a table cannot be described."""

    pass


class SchemaNotFound(SchemaError):
    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Table not found: {table}")
