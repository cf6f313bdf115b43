"""Verification of stored draws.

Verification is read-only and open to anyone holding the key: the key itself
is the capability to see a draw's secret.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fairdraw.errors import InvalidInputError, NotFoundError
from fairdraw.repositories.draw_repository import DrawRecord, DrawStore
from fairdraw.services.draw_service import CommitmentScheme, DerivingRangeMapper
from fairdraw.services.fairness import ModuloRangeMapper, RangeDerivation, Sha256Commitment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of re-deriving a stored draw.

    ``recomputed_commitment`` is None when the stored secret cannot be hashed,
    ``derivation`` is None when the stored commitment cannot be mapped.
    """

    draw: DrawRecord
    recomputed_commitment: str | None
    derivation: RangeDerivation | None
    hash_match: bool
    calc_match: bool
    derivation_trace: tuple[str, ...]

    @property
    def verified(self) -> bool:
        return self.hash_match and self.calc_match


def build_derivation_trace(
    draw: DrawRecord,
    recomputed_commitment: str | None,
    derivation: RangeDerivation | None,
) -> tuple[str, ...]:
    """Render each arithmetic step so an auditor can redo it by hand."""

    hash_state = "matches" if recomputed_commitment == draw.commitment else "MISMATCH"
    lines = [f"1) secret = {draw.secret}"]
    if recomputed_commitment is None:
        lines.append("2) sha256(secret) = ERROR: stored secret is not ASCII text and cannot be hashed")
    else:
        lines.append(f"2) sha256(secret) = {recomputed_commitment}")
    lines.append(f"3) stored commitment = {draw.commitment} ({hash_state})")

    if derivation is None:
        lines.append("4) ERROR: stored commitment cannot be mapped to the stored range")
        lines.append(f"5) WARNING: no final value can be calculated for stored result {draw.result}")
        return tuple(lines)

    lines.extend(
        [
            f"4) first {len(derivation.prefix)} hex chars of commitment = {derivation.prefix}",
            f"5) as integer (base 16) = {derivation.hash_int}",
            (
                f"6) range = max - min + 1 = {draw.max} - {draw.min} + 1 = "
                f"{derivation.range_size}"
            ),
            (
                f"7) mod = integer mod range = {derivation.hash_int} mod "
                f"{derivation.range_size} = {derivation.modulo}"
            ),
            f"8) final = mod + min = {derivation.modulo} + {draw.min} = {derivation.result}",
        ]
    )
    if derivation.result == draw.result:
        lines.append(f"9) OK: this matches the stored result {draw.result}")
    else:
        lines.append(
            f"9) WARNING: calculated final value {derivation.result} does not match "
            f"stored result {draw.result}"
        )
    return tuple(lines)


class Verifier:
    """Recompute commitment and result for a stored draw and compare."""

    def __init__(
        self,
        *,
        store: DrawStore,
        commitment: CommitmentScheme | None = None,
        range_mapper: DerivingRangeMapper | None = None,
    ) -> None:
        self._store = store
        self._commitment = commitment or Sha256Commitment()
        self._range_mapper = range_mapper or ModuloRangeMapper()

    def check(self, draw: DrawRecord) -> VerificationReport:
        """Verify an already loaded record.

        A stored value that cannot be hashed or mapped is reported as a
        mismatch, never raised.
        """

        recomputed: str | None
        try:
            recomputed = self._commitment.commit(draw.secret)
        except ValueError:
            logger.warning("Draw %s has a secret that cannot be hashed", draw.id)
            recomputed = None

        derivation: RangeDerivation | None
        try:
            derivation = self._range_mapper.derive(draw.commitment, draw.min, draw.max)
        except ValueError:
            logger.warning("Draw %s has a commitment that cannot be mapped", draw.id)
            derivation = None

        hash_match = recomputed is not None and recomputed == draw.commitment
        calc_match = derivation is not None and derivation.result == draw.result

        if not (hash_match and calc_match):
            logger.warning(
                "Draw %s failed verification hash_match=%s calc_match=%s",
                draw.id,
                hash_match,
                calc_match,
            )

        return VerificationReport(
            draw=draw,
            recomputed_commitment=recomputed,
            derivation=derivation,
            hash_match=hash_match,
            calc_match=calc_match,
            derivation_trace=build_derivation_trace(draw, recomputed, derivation),
        )

    def verify(self, draw_id: str) -> VerificationReport:
        key = (draw_id or "").strip()
        if not key:
            raise InvalidInputError(message="Key required.", details={"key": ["Missing key."]})

        draw = self._store.get(key)
        if draw is None:
            logger.info("Verification requested for unknown key")
            raise NotFoundError(message="Key not found. Check the verification key and try again.")

        return self.check(draw)


__all__ = ["VerificationReport", "Verifier", "build_derivation_trace"]
