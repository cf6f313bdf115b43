"""Stored provably-fair draws.

Columns:
- id (PK, base58 verification key)
- owner (nullable principal identifier)
- min_value / max_value / result
- secret (hex, disclosed on verification)
- commitment_hash (sha256 of secret, published at creation)
- created_at
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fairdraw.models.base import Base


class DrawRow(Base):
    """One row per draw. Rows are inserted once and never updated."""

    __tablename__ = "rng_results"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str | None] = mapped_column(String(191), nullable=True)

    min_value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    result: Mapped[int] = mapped_column(BigInteger, nullable=False)

    secret: Mapped[str] = mapped_column(String(64), nullable=False)
    commitment_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_rng_results_owner_created_at", "owner", "created_at"),
        Index("ix_rng_results_created_at", "created_at"),
    )
