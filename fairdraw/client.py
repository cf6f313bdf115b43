"""Independent verification client.

This module deliberately shares no code with :mod:`fairdraw.services`: it
re-derives commitment and result from the disclosed secret with ``hashlib``
alone, so a draw can be checked without trusting the server's own
``hash_match``/``calc_match`` flags. Both implementations must stay bit-exact:
SHA-256 over the ASCII bytes of the hex secret, first 15 hex characters,
base-16 integer, modulo ``max - min + 1``, plus ``min``.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

PREFIX_CHARS = 15


def recompute_commitment(secret: str) -> str:
    return hashlib.sha256(secret.encode("ascii")).hexdigest()


def recompute_result(secret: str, min_value: int, max_value: int) -> int:
    """Result a draw with this secret and range must have."""

    digest = recompute_commitment(secret)
    hash_int = int(digest[:PREFIX_CHARS], 16)
    return hash_int % (max_value - min_value + 1) + min_value


@dataclass(frozen=True)
class IndependentCheck:
    key: str
    commitment: str
    recomputed_commitment: str
    result: int
    recomputed_result: int
    server_hash_match: bool | None
    server_calc_match: bool | None

    @property
    def hash_match(self) -> bool:
        return self.commitment.lower() == self.recomputed_commitment

    @property
    def result_match(self) -> bool:
        return self.result == self.recomputed_result

    @property
    def verified(self) -> bool:
        return self.hash_match and self.result_match

    @property
    def agrees_with_server(self) -> bool:
        # The server maps the stored commitment, this client maps sha256(secret);
        # the two calculations only coincide when the hashes match.
        if self.server_hash_match != self.hash_match:
            return False
        return not self.hash_match or self.server_calc_match == self.result_match


class DrawApiError(Exception):
    """The service answered with an error envelope."""

    def __init__(self, code: str, message: str, status_code: int) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code


def build_http_session(retries: int = 3, backoff_factor: float = 0.3) -> requests.Session:
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.headers.update({"User-Agent": "fairdraw-verifier/1.0", "Accept": "application/json"})
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class FairDrawClient:
    """Fetch disclosed draws from a running service and check them locally."""

    def __init__(
        self,
        base_url: str,
        *,
        http: requests.Session | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http or build_http_session()
        self._timeout = timeout_seconds

    def _unwrap(self, resp: requests.Response) -> dict[str, Any]:
        try:
            body: dict[str, Any] = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise

        if not body.get("success"):
            error = body.get("error") or {}
            raise DrawApiError(
                str(error.get("code") or "http_error"),
                str(error.get("message") or resp.reason),
                int(resp.status_code),
            )
        return dict(body.get("data") or {})

    def fetch_verification(self, key: str) -> dict[str, Any]:
        resp = self._http.get(f"{self._base_url}/verify/{key}", timeout=self._timeout)
        return self._unwrap(resp)

    def audit(self, key: str) -> IndependentCheck:
        data = self.fetch_verification(key)
        secret = str(data["secret"])
        min_value, max_value = int(data["min"]), int(data["max"])

        check = IndependentCheck(
            key=str(data.get("id") or key),
            commitment=str(data["commitment_hash"]),
            recomputed_commitment=recompute_commitment(secret),
            result=int(data["result"]),
            recomputed_result=recompute_result(secret, min_value, max_value),
            server_hash_match=data.get("hash_match"),
            server_calc_match=data.get("calc_match"),
        )
        if not check.agrees_with_server:
            logger.warning("Server verdict for %s disagrees with local recomputation", check.key)
        return check


__all__ = [
    "DrawApiError",
    "FairDrawClient",
    "IndependentCheck",
    "build_http_session",
    "recompute_commitment",
    "recompute_result",
]
