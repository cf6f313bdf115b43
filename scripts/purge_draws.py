"""Administrative deletion of stored draws.

Draws are never edited. The only way to remove one is this purge, run by an
operator against the configured backend.

Usage:
  python scripts/purge_draws.py --id 3kQx9vTn2
  python scripts/purge_draws.py --all --yes
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy import delete

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from fairdraw.db import create_app_engine, create_mongo_collection
from fairdraw.models.draw import DrawRow


logger = logging.getLogger(__name__)


def _purge_sql(database_url: str, draw_id: str | None) -> int:
    engine = create_app_engine(database_url)
    stmt = delete(DrawRow)
    if draw_id is not None:
        stmt = stmt.where(DrawRow.id == draw_id)
    with engine.begin() as conn:
        return int(conn.execute(stmt).rowcount or 0)


def _purge_mongo(uri: str, database: str, draw_id: str | None) -> int:
    col = create_mongo_collection(uri, database)
    query = {"_id": draw_id} if draw_id is not None else {}
    return int(col.delete_many(query).deleted_count)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete stored draws.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", dest="draw_id", type=str, default=None)
    target.add_argument("--all", dest="purge_all", action="store_true")
    parser.add_argument("--yes", action="store_true", help="Confirm --all")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if args.purge_all and not args.yes:
        raise SystemExit("Refusing to delete ALL draws without --yes")

    load_dotenv()
    from fairdraw.config import get_config

    config = get_config()
    backend = str(config.DB_BACKEND)

    if backend == "mongo":
        deleted = _purge_mongo(str(config.MONGODB_URI), str(config.MONGODB_DB), args.draw_id)
    elif backend == "sql":
        deleted = _purge_sql(str(config.DATABASE_URL), args.draw_id)
    else:
        raise SystemExit(f"Nothing to purge for DB_BACKEND={backend!r}")

    logger.info("Deleted %s draw(s)", deleted)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
