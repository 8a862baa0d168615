from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .db import Engine


class Settings(BaseSettings):
    """Configuration for the terminal client.

    Values are loaded from environment variables and `.env`.

    Notes:
    - Only the first connect (to the engine's system database) is time-bounded.
    - Logs go to a file; the terminal belongs to the UI while it runs.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Connection
    DBFOX_CONNECT_TIMEOUT_SEC: float = Field(default=3.0, gt=0)
    DBFOX_DEFAULT_HOST: str = Field(default="localhost")
    DBFOX_DEFAULT_USER: str | None = Field(default=None)
    DBFOX_POSTGRES_PORT: int = Field(default=5432)
    DBFOX_MYSQL_PORT: int = Field(default=3306)

    # Logging (diagnostic; file only while the TUI is up)
    DBFOX_LOG_DIR: Path = Field(default=Path("_logs"))
    DBFOX_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    DBFOX_LOG_BACKUP_COUNT: int = Field(default=7)

    def port_for(self, engine: Engine) -> int | None:
        if engine is Engine.POSTGRES:
            return self.DBFOX_POSTGRES_PORT
        if engine is Engine.MYSQL:
            return self.DBFOX_MYSQL_PORT
        return None


def load_settings() -> Settings:
    return Settings()
