"""Environment-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def resolve_database_url() -> str:
    """Resolve DB connection string.

    Priority:
      1) DATABASE_URL (explicit)
      2) Build from PG* env vars (common Postgres convention)
      3) Fallback to local sqlite
    """

    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    host = os.getenv("PGHOST")
    user = os.getenv("PGUSER")
    database = os.getenv("PGDATABASE")
    port_raw = os.getenv("PGPORT")

    if host and user and database:
        try:
            port = int(port_raw) if port_raw else 5432
        except ValueError:
            port = 5432

        sslmode = os.getenv("PGSSLMODE", "require")
        url = URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=os.getenv("PGPASSWORD"),
            host=host,
            port=port,
            database=database,
            query={"sslmode": sslmode} if sslmode else {},
        )
        return url.render_as_string(hide_password=False)

    return "sqlite:///./fairdraw.db"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class BaseConfig:
    """Base configuration shared by all environments."""

    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    DB_BACKEND: str = (
        os.getenv("DB_BACKEND")
        or ("mongo" if os.getenv("MONGODB_URI") else "sql")
    ).lower().strip()  # "sql" | "mongo" | "memory"

    # SQL backend
    DATABASE_URL: str = resolve_database_url()

    # Mongo backend
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    MONGODB_DB: str = os.getenv("MONGODB_DB", "fairdraw")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Draw creation
    KEY_ALLOCATION_ATTEMPTS: int = _int_env("KEY_ALLOCATION_ATTEMPTS", 5)
    OWNER_HEADER: str = os.getenv("OWNER_HEADER", "X-User-Id")


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    """Development configuration."""

    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    """Production configuration."""

    DEBUG: bool = False


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    """Configuration used by the test suite."""

    DEBUG: bool = False
    TESTING: bool = True
    DB_BACKEND: str = "memory"
    DATABASE_URL: str = "sqlite://"


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    env = os.getenv("APP_ENV", "development").lower().strip()
    if env == "production":
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
