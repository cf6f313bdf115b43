"""Provably-fair primitives: secret generation, commitment and range mapping.

A draw is fixed by a random secret. Its SHA-256 commitment is published first,
and the result is a pure function of that commitment and the requested range:

    commitment = sha256(secret_hex.encode("ascii")).hexdigest()
    H          = int(commitment[:15], 16)
    result     = H % (max - min + 1) + min

Anyone holding the disclosed secret can redo these steps by hand. The modulo
reduction is slightly biased (at most range / 2**60), which is negligible for
ranges up to ``MAX_RANGE_SPAN``.
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass

from fairdraw.errors import SecureRandomUnavailableError

SECRET_BYTES = 16
KEY_BYTES = 9
HASH_PREFIX_LENGTH = 15
MAX_RANGE_SPAN = 1_000_000_000

_HEX_DIGITS = frozenset("0123456789abcdef")


class SystemSecretSource:
    """Random bytes from the operating system CSPRNG."""

    def generate(self, n_bytes: int) -> bytes:
        if isinstance(n_bytes, bool) or not isinstance(n_bytes, int) or n_bytes <= 0:
            raise ValueError("n_bytes must be a positive integer")
        try:
            return secrets.token_bytes(n_bytes)
        except (NotImplementedError, OSError) as exc:
            # Never degrade to a non-cryptographic generator.
            raise SecureRandomUnavailableError() from exc


class Sha256Commitment:
    """SHA-256 commitment over the ASCII bytes of a hex-encoded secret."""

    algorithm = "sha256"

    def commit(self, secret: str) -> str:
        if not isinstance(secret, str):
            raise TypeError("secret must be a hex string")
        try:
            payload = secret.encode("ascii")
        except UnicodeEncodeError as exc:
            raise ValueError("secret must contain only ASCII characters") from exc
        return hashlib.sha256(payload).hexdigest()


@dataclass(frozen=True)
class RangeDerivation:
    """Every intermediate value of a range mapping, in evaluation order."""

    hash_hex: str
    prefix: str
    hash_int: int
    min: int
    max: int
    range_size: int
    modulo: int
    result: int


class ModuloRangeMapper:
    """Fold a hex digest into ``[min, max]`` by prefix modulo reduction."""

    prefix_length = HASH_PREFIX_LENGTH

    def derive(self, hash_hex: str, min_value: int, max_value: int) -> RangeDerivation:
        if max_value <= min_value:
            raise ValueError("max must be greater than min")

        normalized = str(hash_hex).strip().lower()
        prefix = normalized[: self.prefix_length]
        if len(prefix) < self.prefix_length or not set(prefix) <= _HEX_DIGITS:
            raise ValueError(
                f"hash must start with at least {self.prefix_length} hex characters"
            )

        hash_int = int(prefix, 16)
        range_size = max_value - min_value + 1
        modulo = hash_int % range_size
        return RangeDerivation(
            hash_hex=normalized,
            prefix=prefix,
            hash_int=hash_int,
            min=min_value,
            max=max_value,
            range_size=range_size,
            modulo=modulo,
            result=modulo + min_value,
        )

    def map(self, hash_hex: str, min_value: int, max_value: int) -> int:
        return self.derive(hash_hex, min_value, max_value).result


__all__ = [
    "HASH_PREFIX_LENGTH",
    "KEY_BYTES",
    "MAX_RANGE_SPAN",
    "ModuloRangeMapper",
    "RangeDerivation",
    "SECRET_BYTES",
    "Sha256Commitment",
    "SystemSecretSource",
]
