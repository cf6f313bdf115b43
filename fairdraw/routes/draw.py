"""Draw and verification routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from fairdraw.db import get_draw_store
from fairdraw.errors import InvalidInputError
from fairdraw.schemas.draw import (
    DrawCreatedSchema,
    DrawCreateSchema,
    HistoryItemSchema,
    HistoryQuerySchema,
    VerificationSchema,
    VerifyRequestSchema,
)
from fairdraw.services.draw_service import DrawEngine
from fairdraw.services.verification_service import VerificationReport, Verifier
from fairdraw.utils.responses import ok


draw_bp = Blueprint("draw", __name__)

_create_schema = DrawCreateSchema()
_created_schema = DrawCreatedSchema()
_verify_request_schema = VerifyRequestSchema()
_verification_schema = VerificationSchema()
_history_query_schema = HistoryQuerySchema()
_history_schema = HistoryItemSchema(many=True)


def _current_owner() -> str | None:
    header = str(current_app.config.get("OWNER_HEADER", "X-User-Id"))
    owner = (request.headers.get(header) or "").strip()
    return owner or None


def _engine() -> DrawEngine:
    return DrawEngine.with_defaults(
        get_draw_store(),
        max_attempts=int(current_app.config.get("KEY_ALLOCATION_ATTEMPTS", 5)),
    )


def _verification_payload(report: VerificationReport) -> dict:
    draw = report.draw
    return _verification_schema.dump(
        {
            "id": draw.id,
            "min": draw.min,
            "max": draw.max,
            "result": draw.result,
            "secret": draw.secret,
            "commitment_hash": draw.commitment,
            "created_at": draw.created_at,
            "hash_match": report.hash_match,
            "calc_match": report.calc_match,
            "derivation_trace": list(report.derivation_trace),
        }
    )


@draw_bp.post("/draws")
def create_draw():
    payload = request.get_json(silent=True) or {}
    data = _create_schema.load(payload)

    record = _engine().create_draw(data.min, data.max, owner=_current_owner())
    return ok(_created_schema.dump(record), status_code=201)


@draw_bp.get("/verify/<string:key>")
def verify_draw(key: str):
    report = Verifier(store=get_draw_store()).verify(key)
    return ok(_verification_payload(report))


@draw_bp.post("/verify")
def verify_draw_from_body():
    payload = request.get_json(silent=True) or {}
    data = _verify_request_schema.load(payload)

    report = Verifier(store=get_draw_store()).verify(data.key)
    return ok(_verification_payload(report))


@draw_bp.get("/history")
def owner_history():
    """Draws created by the calling principal, newest first."""

    owner = _current_owner()
    if owner is None:
        raise InvalidInputError(
            message="An owner identifier is required to list history.",
            details={"header": [str(current_app.config.get("OWNER_HEADER", "X-User-Id"))]},
        )

    query = _history_query_schema.load(request.args.to_dict())
    records = get_draw_store().list_by_owner(owner, limit=query.limit, offset=query.offset)
    return ok(
        {
            "items": _history_schema.dump(records),
            "limit": query.limit,
            "offset": query.offset,
        }
    )
