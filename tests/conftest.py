"""Shared fixtures and deterministic test doubles."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from threading import Lock

import pytest

from fairdraw import create_app
from fairdraw.repositories.draw_repository import MemoryDrawRepository
from fairdraw.services.draw_service import DrawEngine
from fairdraw.services.fairness import SECRET_BYTES, ModuloRangeMapper, Sha256Commitment
from fairdraw.utils.base58 import Base58KeyEncoder

DIE_SECRET = "00112233445566778899aabbccddeeff"
DIE_COMMITMENT = "5947d7c33d783f94b3b4c1a96ebc8991ed28f1b069b71e03376cba8caa98a720"
DIE_PREFIX = "5947d7c33d783f9"
DIE_HASH_INT = 402084239141995513
DIE_RESULT = 2


class StubSecretSource:
    """Fixed secret (when given) and counter-based key bytes."""

    def __init__(self, secret_hex: str | None = None) -> None:
        self._secret = bytes.fromhex(secret_hex) if secret_hex else None
        self._counter = itertools.count(1)
        self._lock = Lock()

    def generate(self, n_bytes: int) -> bytes:
        with self._lock:
            value = next(self._counter)
        if n_bytes == SECRET_BYTES and self._secret is not None:
            return self._secret
        return value.to_bytes(n_bytes, "big")


class ScriptedKeyEncoder:
    """Hands out scripted keys first, then real base58 encodings."""

    def __init__(self, keys: list[str] | None = None, *, repeat: str | None = None) -> None:
        self._keys = list(keys or [])
        self._repeat = repeat
        self._lock = Lock()
        self._fallback = Base58KeyEncoder()
        self.calls = 0

    def encode(self, data: bytes) -> str:
        with self._lock:
            self.calls += 1
            if self._repeat is not None:
                return self._repeat
            if self._keys:
                return self._keys.pop(0)
        return self._fallback.encode(data)


class StepClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._lock = Lock()

    def __call__(self) -> datetime:
        with self._lock:
            self._now += timedelta(seconds=1)
            return self._now


@pytest.fixture
def memory_store() -> MemoryDrawRepository:
    return MemoryDrawRepository()


@pytest.fixture
def make_engine(memory_store):
    def _make(
        *,
        secret_hex: str | None = None,
        key_encoder=None,
        store=None,
        max_attempts: int = 5,
    ) -> DrawEngine:
        return DrawEngine(
            secret_source=StubSecretSource(secret_hex),
            commitment=Sha256Commitment(),
            range_mapper=ModuloRangeMapper(),
            key_encoder=key_encoder or Base58KeyEncoder(),
            store=store if store is not None else memory_store,
            max_attempts=max_attempts,
            clock=StepClock(),
        )

    return _make


@pytest.fixture
def app():
    return create_app({"TESTING": True, "DB_BACKEND": "memory", "LOG_LEVEL": "WARNING"})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sql_app(tmp_path):
    db_path = tmp_path / "fairdraw-test.db"
    return create_app(
        {
            "TESTING": True,
            "DB_BACKEND": "sql",
            "DATABASE_URL": f"sqlite:///{db_path}",
            "LOG_LEVEL": "WARNING",
        }
    )
