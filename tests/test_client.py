"""Conformance tests for the independent verification client."""

import pytest

from conftest import DIE_COMMITMENT, DIE_RESULT, DIE_SECRET
from fairdraw.client import (
    DrawApiError,
    FairDrawClient,
    build_http_session,
    recompute_commitment,
    recompute_result,
)
from fairdraw.services.fairness import ModuloRangeMapper, Sha256Commitment


class _FlaskResponse:
    def __init__(self, resp) -> None:
        self._resp = resp
        self.status_code = resp.status_code
        self.reason = resp.status

    def json(self):
        payload = self._resp.get_json(silent=True)
        if payload is None:
            raise ValueError("not json")
        return payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise RuntimeError(self.reason)


class FlaskBackedSession:
    """Minimal stand-in for ``requests.Session`` routed into a Flask test client."""

    def __init__(self, test_client) -> None:
        self._client = test_client
        self.requested: list[str] = []

    def get(self, url: str, timeout: float | None = None):
        path = url.split("http://fairdraw.test", 1)[1]
        self.requested.append(path)
        return _FlaskResponse(self._client.get(path))


class TestRecompute:
    def test_die_vector(self) -> None:
        assert recompute_commitment(DIE_SECRET) == DIE_COMMITMENT
        assert recompute_result(DIE_SECRET, 1, 6) == DIE_RESULT

    def test_matches_server_core(self) -> None:
        commit = Sha256Commitment()
        mapper = ModuloRangeMapper()
        ranges = [(0, 1), (1, 6), (1, 100), (0, 1_000_000_000), (123_456, 123_999)]
        for i in range(100):
            secret = f"{i * 7919:032x}"
            for lo, hi in ranges:
                assert recompute_result(secret, lo, hi) == mapper.map(commit.commit(secret), lo, hi)


class TestFairDrawClient:
    @pytest.fixture
    def http(self, client):
        return FlaskBackedSession(client)

    def test_audit_created_draw(self, client, http) -> None:
        key = client.post("/draws", json={"min": 1, "max": 6}).get_json()["data"]["id"]

        check = FairDrawClient("http://fairdraw.test/", http=http).audit(key)

        assert http.requested == [f"/verify/{key}"]
        assert check.key == key
        assert check.hash_match
        assert check.result_match
        assert check.verified
        assert check.agrees_with_server

    def test_audit_detects_tampered_secret(self, app, client, http) -> None:
        import dataclasses

        from fairdraw.repositories.draw_repository import MemoryDrawRepository

        key = client.post("/draws", json={"min": 1, "max": 6}).get_json()["data"]["id"]
        original = app.extensions["draw_store"].get(key)
        tampered = MemoryDrawRepository()
        tampered.insert(dataclasses.replace(original, secret="e" * 32))
        app.extensions["draw_store"] = tampered

        check = FairDrawClient("http://fairdraw.test", http=http).audit(key)
        assert not check.hash_match
        assert not check.verified
        assert check.agrees_with_server

    def test_error_envelope_raises(self, http) -> None:
        with pytest.raises(DrawApiError) as excinfo:
            FairDrawClient("http://fairdraw.test", http=http).audit("unknownKey")
        assert excinfo.value.code == "not_found"
        assert excinfo.value.status_code == 404

    def test_http_session_retries_idempotent_gets(self) -> None:
        session = build_http_session(retries=2, backoff_factor=0.1)
        retry = session.get_adapter("https://example.com").max_retries
        assert retry.total == 2
        assert 503 in retry.status_forcelist
