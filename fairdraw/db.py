"""Storage backend setup.

Builds the configured draw store once per application and exposes it to the
request handlers through ``app.extensions``.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, current_app
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fairdraw.models.base import Base
from fairdraw.repositories.draw_repository import (
    DrawStore,
    MemoryDrawRepository,
    MongoDrawRepository,
    SqlDrawRepository,
)

logger = logging.getLogger(__name__)

DRAW_COLLECTION = "rng_results"


def create_app_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    # In-memory SQLite needs a single shared connection across threads.
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )

    return create_engine(database_url, pool_pre_ping=True, future=True)


def create_mongo_collection(uri: str, database: str) -> Any:
    """Return the draw collection, creating its secondary indexes."""

    from pymongo import ASCENDING, DESCENDING, MongoClient

    client: MongoClient = MongoClient(uri, tz_aware=True)
    collection = client[database][DRAW_COLLECTION]
    collection.create_index([("owner", ASCENDING), ("created_at", DESCENDING)])
    collection.create_index([("created_at", ASCENDING)])
    return collection


def get_db_backend(app: Flask | None = None) -> str:
    target = app or current_app
    return str(target.config.get("DB_BACKEND", "sql")).lower().strip()


def init_db(app: Flask) -> None:
    """Initialize the draw store for the configured backend."""

    backend = get_db_backend(app)
    store: DrawStore
    if backend == "mongo":
        store = MongoDrawRepository(
            create_mongo_collection(str(app.config["MONGODB_URI"]), str(app.config["MONGODB_DB"]))
        )
    elif backend == "memory":
        store = MemoryDrawRepository()
    elif backend == "sql":
        engine = create_app_engine(str(app.config["DATABASE_URL"]))
        session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

        # Create tables for local runs (scripts/create_tables.py for managed DBs).
        Base.metadata.create_all(bind=engine)

        app.extensions["engine"] = engine
        app.extensions["session_factory"] = session_factory
        store = SqlDrawRepository(session_factory)
    else:
        raise RuntimeError(f"Unknown DB_BACKEND {backend!r} (expected sql, mongo or memory)")

    app.extensions["draw_store"] = store
    logger.info("Draw store initialized backend=%s", backend)


def get_draw_store() -> Any:
    """Get the draw store of the current application."""

    store = current_app.extensions.get("draw_store")
    if store is None:
        raise RuntimeError("Draw store not initialized")
    return store
