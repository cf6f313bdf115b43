"""API tests through the Flask test client."""

import dataclasses

import pytest

from fairdraw.repositories.draw_repository import MemoryDrawRepository
from fairdraw.services import fairness


def _create(client, payload, owner=None):
    headers = {"X-User-Id": owner} if owner else {}
    return client.post("/draws", json=payload, headers=headers)


class TestCreateDraw:
    def test_create_returns_commitment_without_secret(self, client) -> None:
        resp = _create(client, {"min": 1, "max": 6})
        assert resp.status_code == 201

        body = resp.get_json()
        assert body["success"] is True
        data = body["data"]
        assert set(data) == {"id", "min", "max", "result", "commitment_hash", "created_at"}
        assert 1 <= data["result"] <= 6
        assert len(data["commitment_hash"]) == 64
        assert "secret" not in str(body)

    def test_numeric_strings_are_accepted(self, client) -> None:
        resp = _create(client, {"min": "0", "max": "1"})
        assert resp.status_code == 201
        assert resp.get_json()["data"]["result"] in (0, 1)

    @pytest.mark.parametrize(
        ("payload", "code"),
        [
            ({"min": 1}, "invalid_input"),
            ({"min": "one", "max": 6}, "invalid_input"),
            ({"min": 1.5, "max": 6}, "invalid_input"),
            ({"min": 1, "max": 6.7}, "invalid_input"),
            ({"min": 6, "max": 6}, "range_inverted"),
            ({"min": 9, "max": 2}, "range_inverted"),
            ({"min": -3, "max": 6}, "negative_minimum"),
            ({"min": 0, "max": 1_000_000_001}, "range_too_large"),
        ],
    )
    def test_validation_errors(self, client, payload, code) -> None:
        resp = _create(client, payload)
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"]["code"] == code
        assert body["error"]["message"]

    def test_float_range_is_not_truncated(self, client) -> None:
        resp = _create(client, {"min": 1.9, "max": 6.7})
        assert resp.status_code == 400
        assert set(resp.get_json()["error"]["details"]) == {"min", "max"}

    def test_missing_body_is_invalid(self, client) -> None:
        resp = client.post("/draws", data="not json", content_type="text/plain")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "invalid_input"


class TestVerifyDraw:
    def test_verify_discloses_secret_and_matches(self, client) -> None:
        created = _create(client, {"min": 1, "max": 6}).get_json()["data"]

        resp = client.get(f"/verify/{created['id']}")
        assert resp.status_code == 200
        data = resp.get_json()["data"]

        assert data["id"] == created["id"]
        assert data["result"] == created["result"]
        assert data["commitment_hash"] == created["commitment_hash"]
        assert data["created_at"] == created["created_at"]
        assert len(data["secret"]) == 32
        assert data["hash_match"] is True
        assert data["calc_match"] is True
        assert any(line.startswith("6) range") and line.endswith("= 6") for line in data["derivation_trace"])

    def test_verify_by_post_body(self, client) -> None:
        created = _create(client, {"min": 10, "max": 20}).get_json()["data"]
        resp = client.post("/verify", json={"key": created["id"]})
        assert resp.status_code == 200
        assert resp.get_json()["data"]["calc_match"] is True

    def test_verify_needs_no_owner(self, client) -> None:
        created = _create(client, {"min": 1, "max": 6}, owner="alice").get_json()["data"]
        assert client.get(f"/verify/{created['id']}").status_code == 200

    @pytest.mark.parametrize(
        ("field", "value", "hash_match", "calc_match"),
        [
            ("secret", "é" * 32, False, True),
            ("commitment", "zz" * 32, False, False),
            ("commitment", "not-a-hash", False, False),
        ],
    )
    def test_corrupted_record_reports_mismatch(self, app, client, field, value, hash_match, calc_match) -> None:
        created = _create(client, {"min": 1, "max": 6}).get_json()["data"]
        stored = app.extensions["draw_store"].get(created["id"])

        tampered_store = MemoryDrawRepository()
        tampered_store.insert(dataclasses.replace(stored, **{field: value}))
        app.extensions["draw_store"] = tampered_store

        resp = client.get(f"/verify/{created['id']}")
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["hash_match"] is hash_match
        assert data["calc_match"] is calc_match
        assert "MISMATCH" in data["derivation_trace"][2]

    def test_unknown_key_is_not_found(self, client) -> None:
        resp = client.get("/verify/doesNotExist")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "not_found"

    def test_empty_key_is_invalid(self, client) -> None:
        resp = client.post("/verify", json={"key": ""})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "invalid_input"

    def test_storage_failure_is_distinct_from_not_found(self, app, client) -> None:
        class DownStore:
            def get(self, draw_id):
                from fairdraw.errors import StorageFailureError

                raise StorageFailureError()

        app.extensions["draw_store"] = DownStore()
        resp = client.get("/verify/anything")
        assert resp.status_code == 503
        assert resp.get_json()["error"]["code"] == "storage_failure"


class TestHistory:
    def test_lists_only_callers_draws(self, client) -> None:
        mine = [_create(client, {"min": 1, "max": 6}, owner="alice").get_json()["data"]["id"] for _ in range(3)]
        _create(client, {"min": 1, "max": 6}, owner="bob")
        _create(client, {"min": 1, "max": 6})

        resp = client.get("/history", headers={"X-User-Id": "alice"})
        assert resp.status_code == 200
        items = resp.get_json()["data"]["items"]
        assert sorted(item["id"] for item in items) == sorted(mine)
        assert all("secret" not in item for item in items)

    def test_requires_owner(self, client) -> None:
        resp = client.get("/history")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "invalid_input"

    def test_limit_is_bounded(self, client) -> None:
        resp = client.get("/history?limit=500", headers={"X-User-Id": "alice"})
        assert resp.status_code == 400


class TestSqlBackend:
    def test_create_and_verify_round_trip(self, sql_app) -> None:
        client = sql_app.test_client()
        created = client.post("/draws", json={"min": 0, "max": 1}, headers={"X-User-Id": "9"})
        assert created.status_code == 201
        key = created.get_json()["data"]["id"]

        data = client.get(f"/verify/{key}").get_json()["data"]
        assert data["hash_match"] is True
        assert data["calc_match"] is True
        assert data["result"] in (0, 1)


class TestServiceRoutes:
    def test_health(self, client) -> None:
        assert client.get("/health").get_json()["data"] == {"status": "ok"}

    def test_server_time(self, client) -> None:
        data = client.get("/server-time").get_json()["data"]
        assert data["server_time"].endswith("+00:00")

    def test_integrity_hashes_fairness_module(self, client) -> None:
        import hashlib
        from pathlib import Path

        data = client.get("/integrity").get_json()["data"]
        expected = hashlib.sha256(Path(fairness.__file__).read_bytes()).hexdigest()
        assert data["file"] == "fairness.py"
        assert data["sha256_hash"] == expected

    def test_unknown_route(self, client) -> None:
        resp = client.get("/no-such-page")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "not_found"
