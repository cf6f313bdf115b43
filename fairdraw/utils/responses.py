"""Helpers for the JSON response envelope."""

from __future__ import annotations

from typing import Any

from flask import Response, jsonify


def ok(data: Any, status_code: int = 200) -> tuple[Response, int]:
    """Success envelope: ``{"success": true, "data": ..., "error": null}``."""

    return jsonify({"success": True, "data": data, "error": None}), status_code


def fail(code: str, message: str, status_code: int, details: Any | None = None) -> tuple[Response, int]:
    """Error envelope carrying a stable ``code`` and a display ``message``."""

    return (
        jsonify(
            {
                "success": False,
                "data": None,
                "error": {"code": code, "message": message, "details": details},
            }
        ),
        status_code,
    )
