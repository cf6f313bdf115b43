"""Schemas for the draw and verification API."""

from __future__ import annotations

from dataclasses import dataclass

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates_schema

# Largest value every backend can store (signed 64-bit).
MAX_STORABLE_INT = 2**63 - 1


@dataclass(frozen=True)
class DrawCreateRequest:
    min: int
    max: int


@dataclass(frozen=True)
class VerifyRequest:
    key: str


@dataclass(frozen=True)
class HistoryQuery:
    limit: int
    offset: int


class DrawCreateSchema(Schema):
    """Validate create-draw payload. Range rules live in the draw engine."""

    min = fields.Integer(
        required=True,
        validate=validate.Range(min=-MAX_STORABLE_INT, max=MAX_STORABLE_INT),
    )
    max = fields.Integer(
        required=True,
        validate=validate.Range(min=-MAX_STORABLE_INT, max=MAX_STORABLE_INT),
    )

    @validates_schema(pass_original=True)
    def _reject_fractions(self, data, original_data, **kwargs):  # type: ignore[no-untyped-def]
        if not isinstance(original_data, dict):
            return
        errors = {}
        for name in ("min", "max"):
            value = original_data.get(name)
            if isinstance(value, float) and not value.is_integer():
                errors[name] = ["Not a valid integer."]
        if errors:
            raise ValidationError(errors)

    @post_load
    def _make_request(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return DrawCreateRequest(min=int(data["min"]), max=int(data["max"]))


class VerifyRequestSchema(Schema):
    key = fields.String(required=True, validate=validate.Length(min=1, max=64))

    @post_load
    def _make_request(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return VerifyRequest(key=str(data["key"]).strip())


class HistoryQuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE

    limit = fields.Integer(required=False, load_default=20, validate=validate.Range(min=1, max=100))
    offset = fields.Integer(required=False, load_default=0, validate=validate.Range(min=0))

    @post_load
    def _make_query(self, data, **kwargs):  # type: ignore[no-untyped-def]
        return HistoryQuery(limit=int(data["limit"]), offset=int(data["offset"]))


class DrawCreatedSchema(Schema):
    """Creation response. The secret stays undisclosed until verification."""

    id = fields.String(required=True)
    min = fields.Integer(required=True)
    max = fields.Integer(required=True)
    result = fields.Integer(required=True)
    commitment_hash = fields.String(attribute="commitment", required=True)
    created_at = fields.DateTime(required=True)


class HistoryItemSchema(Schema):
    id = fields.String(required=True)
    min = fields.Integer(required=True)
    max = fields.Integer(required=True)
    result = fields.Integer(required=True)
    created_at = fields.DateTime(required=True)


class VerificationSchema(Schema):
    id = fields.String(required=True)
    min = fields.Integer(required=True)
    max = fields.Integer(required=True)
    result = fields.Integer(required=True)
    secret = fields.String(required=True)
    commitment_hash = fields.String(required=True)
    created_at = fields.DateTime(required=True)
    hash_match = fields.Boolean(required=True)
    calc_match = fields.Boolean(required=True)
    derivation_trace = fields.List(fields.String(), required=True)
