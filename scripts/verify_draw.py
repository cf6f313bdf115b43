"""Check a draw against a running service without trusting its verdict.

Usage:
  python scripts/verify_draw.py 3kQx9vTn2 --base-url https://rng.example.com
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from fairdraw.client import DrawApiError, FairDrawClient, build_http_session


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Independently verify a draw.")
    parser.add_argument("key", type=str)
    parser.add_argument("--base-url", dest="base_url", type=str, default="http://127.0.0.1:8000")
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, default=10.0)
    parser.add_argument("--retries", dest="retries", type=int, default=3)
    parser.add_argument("--backoff", dest="backoff", type=float, default=0.3)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    client = FairDrawClient(
        args.base_url,
        http=build_http_session(retries=args.retries, backoff_factor=args.backoff),
        timeout_seconds=args.timeout_seconds,
    )
    try:
        check = client.audit(args.key)
    except DrawApiError as exc:
        logger.error("Service refused verification: %s", exc)
        return 2

    print(f"key:                 {check.key}")
    print(f"commitment (server): {check.commitment}")
    print(f"sha256(secret):      {check.recomputed_commitment}")
    print(f"result (server):     {check.result}")
    print(f"result (recomputed): {check.recomputed_result}")
    print(f"verified:            {check.verified}")
    if not check.agrees_with_server:
        print("warning: server verdict differs from local recomputation")
    return 0 if check.verified else 1


if __name__ == "__main__":
    raise SystemExit(main())
