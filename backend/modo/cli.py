"""
MODO database bootstrap command.

Creates the tables and seeds the AI provider and model catalog.
"""

import argparse
import asyncio
import json

from modo.database import Database, get_database, set_database
from modo.storage.ai_registry import AIRegistryStorage
from modo.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MODO Creator Verse database bootstrap")
    parser.add_argument("--database-url", default="", help="Database URL (defaults to DATABASE_URL / settings)")
    parser.add_argument("--no-seed", action="store_true", help="Create tables only, skip the provider catalog")
    return parser.parse_args(argv)


async def _init_db(args: argparse.Namespace) -> dict:
    if args.database_url:
        set_database(Database(args.database_url))
    database = get_database()
    await database.create_all()
    seeded = {}
    if not args.no_seed:
        seeded = await AIRegistryStorage(database).seed_defaults()
        logger.info(f"Seeded AI registry: {seeded}")
    await database.dispose()
    return seeded


def init_db(argv=None) -> int:
    """Entry point for `modo-init-db`."""
    args = _parse_args(argv)
    seeded = asyncio.run(_init_db(args))
    print(json.dumps({"tables": "ok", "seeded": seeded}, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(init_db())
