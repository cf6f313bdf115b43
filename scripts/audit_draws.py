"""Re-verify every stored draw and report the ones that fail.

Usage:
  python scripts/audit_draws.py
  python scripts/audit_draws.py --batch-size 1000 --show-trace
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

from tqdm import tqdm

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from fairdraw import create_app
from fairdraw.db import get_draw_store
from fairdraw.services.verification_service import Verifier


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit all stored draws.")
    parser.add_argument("--batch-size", dest="batch_size", type=int, default=500)
    parser.add_argument("--show-trace", dest="show_trace", action="store_true")
    args = parser.parse_args(argv)

    if args.batch_size < 1:
        raise SystemExit("--batch-size must be >= 1")

    app = create_app()
    failures = 0
    with app.app_context():
        store = get_draw_store()
        verifier = Verifier(store=store)

        for draw in tqdm(store.iter_all(batch_size=args.batch_size), total=store.count(), unit="draw"):
            report = verifier.check(draw)
            if report.verified:
                continue
            failures += 1
            logger.error(
                "Draw %s failed: hash_match=%s calc_match=%s",
                draw.id,
                report.hash_match,
                report.calc_match,
            )
            if args.show_trace:
                for line in report.derivation_trace:
                    tqdm.write(f"  {line}")

    logger.info("Audit finished with %s failing draw(s)", failures)
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
