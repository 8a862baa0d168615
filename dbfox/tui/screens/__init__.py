"""Screen modules for the TUI."""
from __future__ import annotations

# Import all screen modules to register them with the router
from . import connection, databases, db_type, tables

__all__ = [
    "connection",
    "databases",
    "db_type",
    "tables",
]
