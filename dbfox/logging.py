from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_FILE_NAME = "dbfox.log"

# Driver loggers are chatty at DEBUG.
_DRIVER_LOGGERS = ("psycopg", "aiomysql")


def _resolve_log_dir(settings: object) -> Path:
    """Absolute DBFOX_LOG_DIR is used as-is; relative ones hang off the project root."""
    raw = getattr(settings, "DBFOX_LOG_DIR", Path("_logs"))
    p = raw if isinstance(raw, Path) else Path(str(raw))
    if p.is_absolute():
        return p
    return Path(__file__).resolve().parents[1] / p  # dbfox/logging.py -> project root


def _with_format(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(settings: object, *, console: bool = False) -> Path:
    """Send all logging to ``<log dir>/dbfox.log`` and return that path.

    The file rolls over at midnight and keeps DBFOX_LOG_BACKUP_COUNT old
    copies. ``console=True`` also echoes to stderr, which must stay off while
    the TUI owns the terminal. Calling this again replaces the handlers.
    """
    log_dir = _resolve_log_dir(settings)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    level_name = str(getattr(settings, "DBFOX_LOG_LEVEL", "INFO") or "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)
    keep = max(0, int(getattr(settings, "DBFOX_LOG_BACKUP_COUNT", 7) or 0))

    handlers = [
        _with_format(
            TimedRotatingFileHandler(
                filename=str(log_file), when="midnight", backupCount=keep, encoding="utf-8"
            ),
            level,
        )
    ]
    if console:
        handlers.append(_with_format(logging.StreamHandler(), level))

    root = logging.getLogger()
    for old in root.handlers:
        old.close()
    root.handlers = handlers
    root.setLevel(level)

    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    logging.getLogger("dbfox").info(
        "dbfox logging enabled (file=%s, level=%s, console=%s)",
        os.fspath(log_file),
        level_name,
        console,
    )
    return log_file
