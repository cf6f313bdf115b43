"""Business logic for creating provably-fair draws."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

from fairdraw.errors import (
    DuplicateKeyError,
    InvalidInputError,
    KeyAllocationFailedError,
    NegativeMinimumError,
    RangeInvertedError,
    RangeTooLargeError,
)
from fairdraw.repositories.draw_repository import DrawRecord, DrawStore
from fairdraw.services.fairness import (
    KEY_BYTES,
    MAX_RANGE_SPAN,
    SECRET_BYTES,
    ModuloRangeMapper,
    RangeDerivation,
    Sha256Commitment,
    SystemSecretSource,
)
from fairdraw.utils.base58 import Base58KeyEncoder

logger = logging.getLogger(__name__)

DEFAULT_KEY_ALLOCATION_ATTEMPTS = 5


class SecretSource(Protocol):
    def generate(self, n_bytes: int) -> bytes: ...


class CommitmentScheme(Protocol):
    def commit(self, secret: str) -> str: ...


class RangeMapper(Protocol):
    def map(self, hash_hex: str, min_value: int, max_value: int) -> int: ...


class DerivingRangeMapper(RangeMapper, Protocol):
    def derive(self, hash_hex: str, min_value: int, max_value: int) -> RangeDerivation: ...


class KeyEncoder(Protocol):
    def encode(self, data: bytes) -> str: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_range(min_value: object, max_value: object) -> tuple[int, int]:
    """Check a requested range, raising the first rule it breaks.

    Order matters: parse, inverted, negative minimum, span ceiling.
    """

    for name, value in (("min", min_value), ("max", max_value)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(
                message="Both min and max are required integers.",
                details={name: ["Not a valid integer."]},
            )

    lo, hi = int(min_value), int(max_value)  # type: ignore[call-overload]
    if lo >= hi:
        raise RangeInvertedError()
    if lo < 0:
        raise NegativeMinimumError()
    if hi - lo > MAX_RANGE_SPAN:
        raise RangeTooLargeError(details={"max_span": MAX_RANGE_SPAN})
    return lo, hi


class DrawEngine:
    """Create draws: secret, commitment, result and a freshly minted key.

    Identifier allocation is "generate, attempt insert, retry on conflict".
    Every attempt starts over with a new secret and a new key.
    """

    def __init__(
        self,
        *,
        secret_source: SecretSource,
        commitment: CommitmentScheme,
        range_mapper: RangeMapper,
        key_encoder: KeyEncoder,
        store: DrawStore,
        max_attempts: int = DEFAULT_KEY_ALLOCATION_ATTEMPTS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._secret_source = secret_source
        self._commitment = commitment
        self._range_mapper = range_mapper
        self._key_encoder = key_encoder
        self._store = store
        self._max_attempts = max_attempts
        self._clock = clock

    @classmethod
    def with_defaults(
        cls,
        store: DrawStore,
        *,
        max_attempts: int = DEFAULT_KEY_ALLOCATION_ATTEMPTS,
    ) -> "DrawEngine":
        """Wire the production primitives around ``store``."""

        return cls(
            secret_source=SystemSecretSource(),
            commitment=Sha256Commitment(),
            range_mapper=ModuloRangeMapper(),
            key_encoder=Base58KeyEncoder(),
            store=store,
            max_attempts=max_attempts,
        )

    def _build_record(self, min_value: int, max_value: int, owner: str | None) -> DrawRecord:
        secret = self._secret_source.generate(SECRET_BYTES).hex()
        commitment = self._commitment.commit(secret)
        result = self._range_mapper.map(commitment, min_value, max_value)
        draw_id = self._key_encoder.encode(self._secret_source.generate(KEY_BYTES))
        return DrawRecord(
            id=draw_id,
            owner=owner,
            min=min_value,
            max=max_value,
            secret=secret,
            commitment=commitment,
            result=result,
            created_at=self._clock(),
        )

    def create_draw(self, min_value: object, max_value: object, owner: str | None = None) -> DrawRecord:
        """Create and persist a draw.

        Raises:
            InvalidInputError, RangeInvertedError, NegativeMinimumError,
            RangeTooLargeError: the range is rejected (never retried).
            KeyAllocationFailedError: every attempt collided on the draw id.
            StorageFailureError, SecureRandomUnavailableError: propagated as-is.
        """

        lo, hi = validate_range(min_value, max_value)

        for attempt in range(1, self._max_attempts + 1):
            record = self._build_record(lo, hi, owner)
            try:
                self._store.insert(record)
            except DuplicateKeyError:
                logger.warning(
                    "Draw id collision on attempt %d/%d; regenerating",
                    attempt,
                    self._max_attempts,
                )
                continue

            logger.info(
                "Created draw %s range=[%d, %d] owner=%s",
                record.id,
                lo,
                hi,
                owner if owner is not None else "-",
            )
            return record

        logger.error("Giving up on draw creation after %d id collisions", self._max_attempts)
        raise KeyAllocationFailedError(details={"attempts": self._max_attempts})


__all__ = [
    "CommitmentScheme",
    "DEFAULT_KEY_ALLOCATION_ATTEMPTS",
    "DerivingRangeMapper",
    "DrawEngine",
    "KeyEncoder",
    "RangeMapper",
    "SecretSource",
    "validate_range",
]
