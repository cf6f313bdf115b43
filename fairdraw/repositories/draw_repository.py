"""Repository layer for draw persistence.

Every backend offers the same contract: ``insert`` (atomic on the draw id,
raising :class:`DuplicateKeyError` on collision) and ``get``. There is no
update operation; stored draws are read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fairdraw.errors import DuplicateKeyError, StorageFailureError
from fairdraw.models.draw import DrawRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawRecord:
    id: str
    owner: str | None
    min: int
    max: int
    secret: str
    commitment: str
    result: int
    created_at: datetime


class DrawStore(Protocol):
    def insert(self, record: DrawRecord) -> None: ...

    def get(self, draw_id: str) -> DrawRecord | None: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite and pymongo hand back naive datetimes that were stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlDrawRepository:
    """SQLAlchemy-backed store.

    Each call runs in its own short transaction so that a failed insert never
    leaves a shared session in a rolled-back state.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_record(row: DrawRow) -> DrawRecord:
        return DrawRecord(
            id=str(row.id),
            owner=row.owner,
            min=int(row.min_value),
            max=int(row.max_value),
            secret=str(row.secret),
            commitment=str(row.commitment_hash),
            result=int(row.result),
            created_at=_as_utc(row.created_at),
        )

    def insert(self, record: DrawRecord) -> None:
        row = DrawRow(
            id=record.id,
            owner=record.owner,
            min_value=record.min,
            max_value=record.max,
            result=record.result,
            secret=record.secret,
            commitment_hash=record.commitment,
            created_at=record.created_at,
        )
        try:
            with self._session_factory.begin() as session:
                session.add(row)
        except IntegrityError as exc:
            raise DuplicateKeyError(record.id) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to insert draw %s", record.id)
            raise StorageFailureError() from exc

    def get(self, draw_id: str) -> DrawRecord | None:
        try:
            with self._session_factory() as session:
                row = session.get(DrawRow, draw_id)
                return self._to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Failed to load draw %s", draw_id)
            raise StorageFailureError() from exc

    def list_by_owner(self, owner: str, *, limit: int = 20, offset: int = 0) -> Sequence[DrawRecord]:
        stmt = (
            select(DrawRow)
            .where(DrawRow.owner == owner)
            .order_by(DrawRow.created_at.desc(), DrawRow.id.asc())
            .limit(int(limit))
            .offset(int(offset))
        )
        try:
            with self._session_factory() as session:
                return [self._to_record(row) for row in session.scalars(stmt).all()]
        except SQLAlchemyError as exc:
            logger.exception("Failed to list draws for owner")
            raise StorageFailureError() from exc

    def count(self) -> int:
        try:
            with self._session_factory() as session:
                return int(session.scalar(select(func.count()).select_from(DrawRow)) or 0)
        except SQLAlchemyError as exc:
            logger.exception("Failed to count draws")
            raise StorageFailureError() from exc

    def iter_all(self, batch_size: int = 500) -> Iterator[DrawRecord]:
        """Yield every stored draw, oldest first, in batches."""

        offset = 0
        while True:
            stmt = (
                select(DrawRow)
                .order_by(DrawRow.created_at.asc(), DrawRow.id.asc())
                .limit(batch_size)
                .offset(offset)
            )
            try:
                with self._session_factory() as session:
                    batch = [self._to_record(row) for row in session.scalars(stmt).all()]
            except SQLAlchemyError as exc:
                logger.exception("Failed to scan draws")
                raise StorageFailureError() from exc

            yield from batch
            if len(batch) < batch_size:
                return
            offset += batch_size


class MongoDrawRepository:
    """pymongo-backed store; the draw id is the document ``_id``."""

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    @staticmethod
    def _to_record(doc: dict[str, Any]) -> DrawRecord:
        return DrawRecord(
            id=str(doc["_id"]),
            owner=doc.get("owner"),
            min=int(doc["min_value"]),
            max=int(doc["max_value"]),
            secret=str(doc["secret"]),
            commitment=str(doc["commitment_hash"]),
            result=int(doc["result"]),
            created_at=_as_utc(doc["created_at"]),
        )

    def insert(self, record: DrawRecord) -> None:
        from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
        from pymongo.errors import PyMongoError

        doc = {
            "_id": record.id,
            "owner": record.owner,
            "min_value": int(record.min),
            "max_value": int(record.max),
            "result": int(record.result),
            "secret": record.secret,
            "commitment_hash": record.commitment,
            "created_at": record.created_at,
        }
        try:
            self._collection.insert_one(doc)
        except MongoDuplicateKeyError as exc:
            raise DuplicateKeyError(record.id) from exc
        except PyMongoError as exc:
            logger.exception("Failed to insert draw %s", record.id)
            raise StorageFailureError() from exc

    def get(self, draw_id: str) -> DrawRecord | None:
        from pymongo.errors import PyMongoError

        try:
            doc = self._collection.find_one({"_id": draw_id})
        except PyMongoError as exc:
            logger.exception("Failed to load draw %s", draw_id)
            raise StorageFailureError() from exc
        return self._to_record(doc) if doc else None

    def list_by_owner(self, owner: str, *, limit: int = 20, offset: int = 0) -> Sequence[DrawRecord]:
        from pymongo import ASCENDING, DESCENDING
        from pymongo.errors import PyMongoError

        try:
            cur = (
                self._collection.find({"owner": owner})
                .sort([("created_at", DESCENDING), ("_id", ASCENDING)])
                .skip(int(offset))
                .limit(int(limit))
            )
            return [self._to_record(doc) for doc in cur]
        except PyMongoError as exc:
            logger.exception("Failed to list draws for owner")
            raise StorageFailureError() from exc

    def count(self) -> int:
        from pymongo.errors import PyMongoError

        try:
            return int(self._collection.count_documents({}))
        except PyMongoError as exc:
            logger.exception("Failed to count draws")
            raise StorageFailureError() from exc

    def iter_all(self, batch_size: int = 500) -> Iterator[DrawRecord]:
        from pymongo import ASCENDING
        from pymongo.errors import PyMongoError

        try:
            cur = self._collection.find({}).sort([("created_at", ASCENDING), ("_id", ASCENDING)])
            cur = cur.batch_size(batch_size)
            for doc in cur:
                yield self._to_record(doc)
        except PyMongoError as exc:
            logger.exception("Failed to scan draws")
            raise StorageFailureError() from exc


class MemoryDrawRepository:
    """In-process store for development and tests. Not shared across workers."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: dict[str, DrawRecord] = {}

    def insert(self, record: DrawRecord) -> None:
        with self._lock:
            if record.id in self._records:
                raise DuplicateKeyError(record.id)
            self._records[record.id] = record

    def get(self, draw_id: str) -> DrawRecord | None:
        with self._lock:
            return self._records.get(draw_id)

    def list_by_owner(self, owner: str, *, limit: int = 20, offset: int = 0) -> Sequence[DrawRecord]:
        with self._lock:
            owned = [r for r in self._records.values() if r.owner == owner]
        owned.sort(key=lambda r: r.id)
        owned.sort(key=lambda r: r.created_at, reverse=True)
        return owned[int(offset) : int(offset) + int(limit)]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def iter_all(self, batch_size: int = 500) -> Iterator[DrawRecord]:
        with self._lock:
            snapshot = sorted(self._records.values(), key=lambda r: (r.created_at, r.id))
        yield from snapshot


__all__ = [
    "DrawRecord",
    "DrawStore",
    "MemoryDrawRepository",
    "MongoDrawRepository",
    "SqlDrawRepository",
]
