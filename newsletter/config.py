from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


@dataclass(frozen=True)
class AdminConnection:
    """Credentials for the database server itself, with no database selected.

    Only used for CREATE/DROP DATABASE and session termination.
    """

    host: str
    port: int
    user: str
    password: str
    ssl: bool = False
    timeout: float = 10.0

    def connect_kwargs(self) -> dict[str, Any]:
        # asyncpg falls back to a database named after the user when none is given
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "ssl": "require" if self.ssl else None,
            "timeout": self.timeout,
        }


class DatabaseSettings(BaseModel):
    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = SecretStr("password")
    database_name: str = "newsletter"
    require_ssl: bool = False
    connect_timeout: float = 10.0
    # "force" needs PostgreSQL 13+ (DROP DATABASE ... WITH (FORCE))
    teardown_strategy: Literal["terminate_backends", "force"] = "terminate_backends"

    def without_db(self) -> AdminConnection:
        return AdminConnection(
            host=self.host,
            port=self.port,
            user=self.username,
            password=self.password.get_secret_value(),
            ssl=self.require_ssl,
            timeout=self.connect_timeout,
        )

    def with_db(self) -> URL:
        return URL.create(
            "postgresql+asyncpg",
            username=self.username,
            password=self.password.get_secret_value(),
            host=self.host,
            port=self.port,
            database=self.database_name,
            query={"ssl": "require"} if self.require_ssl else {},
        )


class ApplicationSettings(BaseModel):
    host: str = "127.0.0.1"
    # 0 lets the OS pick a free port
    port: int = 8000


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    application: ApplicationSettings = Field(default_factory=ApplicationSettings)

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    max_name_length: int = 256


def get_settings() -> Settings:
    """Build a fresh Settings from the environment (tests mutate their copy)."""
    return Settings()


settings = get_settings()
