"""Create the draw table in the configured SQL database.

Reads DATABASE_URL (or PG* vars) from .env / environment and creates all
registered ORM tables and indexes. For MongoDB, indexes are created by the app
on startup instead.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy import text

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from fairdraw.config import resolve_database_url
from fairdraw.db import create_app_engine
from fairdraw.models.base import Base

# Import models so they register with Base.metadata
from fairdraw import models  # noqa: F401


def main() -> int:
    """Create all ORM tables in the target database."""

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    # create_all() does not add indexes to an existing table.
    if engine.dialect.name == "postgresql":
        ddl = [
            "CREATE INDEX IF NOT EXISTS ix_rng_results_owner_created_at ON rng_results (owner, created_at)",
            "CREATE INDEX IF NOT EXISTS ix_rng_results_created_at ON rng_results (created_at)",
        ]
        with engine.begin() as conn:
            for stmt in ddl:
                conn.execute(text(stmt))

    print("Tables created (or already exist).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
