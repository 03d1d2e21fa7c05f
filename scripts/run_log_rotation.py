"""
Apply the configured log retention policy once.

Usage:
    python -m scripts.run_log_rotation
    python -m scripts.run_log_rotation --type count --count 500
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from indexing import load_settings
from notification_log import PostgresLogStore, RotationEngine, ROTATION_TYPES, policy_from_settings
from services.db import create_db_pool


async def run_rotation(args: argparse.Namespace) -> int:
    settings = load_settings()
    if not settings.db_dsn:
        raise SystemExit("DB_DSN is not set")
    policy = settings.retention_policy
    if args.rotation_type:
        policy = policy_from_settings(
            args.rotation_type,
            days=args.days or settings.rotation_days,
            count=args.count or settings.rotation_count,
        )
    pool = await create_db_pool(settings.db_dsn)
    try:
        store = PostgresLogStore(pool, table=settings.log_table)
        await store.ensure_schema()
        deleted = await RotationEngine(store).run(policy)
    finally:
        await pool.close()
    print(f"{policy!r}: removed {deleted} entries")
    return deleted


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run notification log rotation once")
    parser.add_argument("--type", dest="rotation_type", choices=list(ROTATION_TYPES), help="Override LOG_ROTATION_TYPE")
    parser.add_argument("--days", type=int, help="Override LOG_ROTATION_DAYS")
    parser.add_argument("--count", type=int, help="Override LOG_ROTATION_COUNT")
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    asyncio.run(run_rotation(args))


if __name__ == "__main__":
    main()
