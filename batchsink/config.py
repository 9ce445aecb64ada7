"""
Configuration for batchsink.

Two layers:
- `WriterConfig`: the immutable connection + batching value handed (by copy) to
  every partition task. Validated once at construction.
- `Settings`: Pydantic Settings reading environment variables (and `.env`) for
  the CLI, producing a `WriterConfig` on demand.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from batchsink.exceptions import ConfigurationError

DEFAULT_PORT = 9191
DEFAULT_THREADS = 4
DEFAULT_INSERT_SIZE = 1


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in exc.errors()
    )


class WriterConfig(BaseModel):
    """
    Connection and batching parameters shared read-only by all partition tasks.

    Raises
    ------
    ConfigurationError
        If host or table is missing/empty, or any numeric field is out of range.
    """

    host: str = Field(..., description="Database server hostname/address.")
    port: int = Field(DEFAULT_PORT, ge=1, le=65535, description="Database server port.")
    threads: int = Field(
        DEFAULT_THREADS, ge=1, description="Parallelism hint for the bulk insert."
    )
    table: str = Field(..., description="Target table name, optionally schema-qualified.")
    insert_size: int = Field(
        DEFAULT_INSERT_SIZE,
        ge=1,
        alias="insertSize",
        description="Flush threshold; also the bulk insert sub-batch size.",
    )
    user: str = Field("postgres", description="Database user.")
    password: str = Field("postgres", description="Database password.")
    database: str = Field("postgres", description="Database name.")
    connect_timeout: float = Field(10.0, gt=0, description="Connection timeout in seconds.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid writer configuration: {_describe(exc)}") from exc

    @field_validator("host")
    @classmethod
    def _host_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("No database hostname defined")
        return value

    @field_validator("table")
    @classmethod
    def _table_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("No table name defined")
        return value

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "WriterConfig":
        """
        Build a config from a flat property mapping.

        Recognized keys: host, port, threads, table, insertSize (or insert_size),
        user, password, database, connect_timeout. Unknown keys are ignored.
        """
        return cls(**{str(key): value for key, value in properties.items()})

    def describe(self) -> str:
        """Human-readable summary without credentials."""
        return (
            f"{self.user}@{self.host}:{self.port}/{self.database} table={self.table} "
            f"insert_size={self.insert_size} threads={self.threads}"
        )


class Settings(BaseSettings):
    # Connection
    sink_host: str = Field("", alias="SINK_HOST")
    sink_port: int = Field(DEFAULT_PORT, alias="SINK_PORT")
    sink_user: str = Field("postgres", alias="SINK_USER")
    sink_password: str = Field("postgres", alias="SINK_PASSWORD")
    sink_database: str = Field("postgres", alias="SINK_DATABASE")

    # Batching
    sink_table: str = Field("", alias="SINK_TABLE")
    sink_threads: int = Field(DEFAULT_THREADS, alias="SINK_THREADS")
    sink_insert_size: int = Field(DEFAULT_INSERT_SIZE, alias="SINK_INSERT_SIZE")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def writer_config(self, **overrides: Any) -> WriterConfig:
        """
        Produce a validated `WriterConfig`; keyword overrides win over the environment.
        """
        values: dict[str, Any] = {
            "host": self.sink_host,
            "port": self.sink_port,
            "threads": self.sink_threads,
            "table": self.sink_table,
            "insert_size": self.sink_insert_size,
            "user": self.sink_user,
            "password": self.sink_password,
            "database": self.sink_database,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return WriterConfig(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "DEFAULT_INSERT_SIZE",
    "DEFAULT_PORT",
    "DEFAULT_THREADS",
    "Settings",
    "WriterConfig",
    "get_settings",
]
