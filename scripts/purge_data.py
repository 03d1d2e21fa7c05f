"""Remove the notification log table when DELETE_DATA_ON_UNINSTALL=yes."""

from __future__ import annotations

import asyncio
import logging

from indexing import load_settings
from services.db import create_db_pool, purge_data


async def run_purge() -> bool:
    settings = load_settings()
    if not settings.db_dsn:
        raise SystemExit("DB_DSN is not set")
    pool = await create_db_pool(settings.db_dsn)
    try:
        removed = await purge_data(pool, settings)
    finally:
        await pool.close()
    print("Notification log removed." if removed else "Data kept (DELETE_DATA_ON_UNINSTALL is not 'yes').")
    return removed


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(run_purge())


if __name__ == "__main__":
    main()
