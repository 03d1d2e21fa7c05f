from __future__ import annotations

import logging
from typing import Awaitable, Callable

import asyncpg

from indexing.service import Settings
from notification_log import drop_log_schema
from notification_log.store import validate_table_name

logger = logging.getLogger(__name__)


async def create_db_pool(dsn: str) -> asyncpg.Pool:
    return await asyncpg.create_pool(dsn=dsn, min_size=1, max_size=5)


def make_subject_resolver(
    pool: asyncpg.Pool,
    *,
    table: str,
    url_column: str = "url",
    id_column: str = "id",
) -> Callable[[str], Awaitable[int]]:
    """
    Reverse lookup of a content id by its public URL.
    Returns 0 when nothing matches.
    """
    table = validate_table_name(table)
    url_column = validate_table_name(url_column)
    id_column = validate_table_name(id_column)
    sql = f"SELECT {id_column} FROM {table} WHERE {url_column}=$1 ORDER BY {id_column} DESC LIMIT 1"

    async def _resolve(url: str) -> int:
        async with pool.acquire() as conn:
            value = await conn.fetchval(sql, url)
        return int(value or 0)

    return _resolve


async def purge_data(pool: asyncpg.Pool, settings: Settings) -> bool:
    """Drop the notification log when the operator opted in to data removal."""
    if not settings.delete_data_on_uninstall:
        logger.info("DELETE_DATA_ON_UNINSTALL is not 'yes'; keeping %s", settings.log_table)
        return False
    async with pool.acquire() as conn:
        await drop_log_schema(conn, settings.log_table)
    logger.info("Dropped notification log table %s", settings.log_table)
    return True
