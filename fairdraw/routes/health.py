"""Health, clock and code-integrity routes."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from flask import Blueprint

from fairdraw.services import fairness
from fairdraw.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Health check endpoint."""

    return ok({"status": "ok"})


@health_bp.get("/server-time")
def server_time():
    """Server clock in UTC, for comparing against draw timestamps."""

    return ok({"server_time": datetime.now(timezone.utc).isoformat()})


@health_bp.get("/integrity")
def integrity():
    """SHA-256 of the deployed fairness module source."""

    source = Path(fairness.__file__)
    digest = hashlib.sha256(source.read_bytes()).hexdigest()
    return ok(
        {
            "file": source.name,
            "status": "active",
            "sha256_hash": digest,
            "message": "Compare this hash with the published source to verify the draw logic.",
        }
    )
