"""Base-58 encoding for short, human-typable verification keys."""

from __future__ import annotations

# Digits and ASCII letters without the look-alikes 0, O, I and l.
BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

_INDEX = {ch: i for i, ch in enumerate(BASE58_ALPHABET)}


class Base58KeyEncoder:
    """Turn random bytes into a short key and back into the integer they encode.

    The bytes are read as one big-endian unsigned integer, so leading zero
    bytes carry no information in the key. A zero value (or empty input)
    encodes to the first alphabet symbol instead of an empty string.
    """

    alphabet = BASE58_ALPHABET

    def encode(self, data: bytes) -> str:
        num = int.from_bytes(bytes(data), "big")
        base = len(self.alphabet)

        symbols: list[str] = []
        while num > 0:
            num, rem = divmod(num, base)
            symbols.append(self.alphabet[rem])

        if not symbols:
            return self.alphabet[0]
        return "".join(reversed(symbols))

    def decode(self, key: str) -> int:
        """Return the integer value encoded by ``key``."""

        if not key:
            raise ValueError("key must not be empty")

        num = 0
        for ch in key:
            try:
                digit = _INDEX[ch]
            except KeyError as exc:
                raise ValueError(f"Invalid base58 character {ch!r}") from exc
            num = num * len(self.alphabet) + digit
        return num


__all__ = ["BASE58_ALPHABET", "Base58KeyEncoder"]
