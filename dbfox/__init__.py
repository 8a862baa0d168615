"""dbfox: a keyboard-driven terminal client for Postgres, MySQL and SQLite."""

__version__ = "0.1.0"
