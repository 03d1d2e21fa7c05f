"""Database helpers for the notification log."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import re
from typing import Any, Protocol

import asyncpg

from .models import LogEntry, LogPage, LogQuery, now_utc

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "indexing_notification_log"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_COMMAND_COUNT_RE = re.compile(r"(\d+)\s*$")

SEARCH_COLUMNS: tuple[str, ...] = (
    "notified_url",
    "response_message",
    "subject_id::text",
    "status_code",
    "notification_type",
)


class LogStore(Protocol):
    """Storage contract shared by the dispatcher, the rotation engine and listings."""

    async def append(
        self,
        *,
        subject_id: int,
        url: str,
        notification_type: str,
        status_code: str,
        message: str = "",
        notified_at: datetime | None = None,
    ) -> LogEntry:
        ...

    async def query(self, query: LogQuery | None = None) -> LogPage:
        ...

    async def latest_for_subject(self, subject_id: int) -> LogEntry | None:
        ...

    async def count(self) -> int:
        ...

    async def delete_all(self) -> int:
        ...

    async def keep_latest_per_subject(self) -> int:
        """Delete every row except the highest id of each subject."""
        ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        ...

    async def trim_to_count(self, keep: int) -> int:
        """Delete the oldest rows (notified_at, then id) until ``keep`` remain."""
        ...


def validate_table_name(name: str) -> str:
    if not _IDENTIFIER_RE.match(name or ""):
        raise ValueError(f"Invalid log table name: {name!r}")
    return name


async def ensure_log_schema(conn: asyncpg.Connection, table: str = DEFAULT_TABLE_NAME) -> None:
    table = validate_table_name(table)
    await conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id                 bigserial PRIMARY KEY,
            subject_id         bigint NOT NULL DEFAULT 0,
            notified_url       text NOT NULL,
            notification_type  varchar(50) NOT NULL,
            status_code        varchar(50) NOT NULL,
            response_message   text NOT NULL DEFAULT '',
            notified_at        timestamptz NOT NULL DEFAULT NOW()
        );
        """
    )
    await conn.execute(
        f"""
        CREATE INDEX IF NOT EXISTS idx_{table}_subject
        ON {table}(subject_id);
        """
    )
    await conn.execute(
        f"""
        CREATE INDEX IF NOT EXISTS idx_{table}_notified_at
        ON {table}(notified_at);
        """
    )


async def drop_log_schema(conn: asyncpg.Connection, table: str = DEFAULT_TABLE_NAME) -> None:
    table = validate_table_name(table)
    await conn.execute(f"DROP TABLE IF EXISTS {table}")


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_command_count(status: str | None) -> int:
    """Row count from an asyncpg command tag such as ``DELETE 3``."""
    match = _COMMAND_COUNT_RE.search(status or "")
    return int(match.group(1)) if match else 0


def _row_to_entry(row: asyncpg.Record | dict[str, Any]) -> LogEntry:
    notified_at = row["notified_at"]
    if notified_at.tzinfo is None:
        notified_at = notified_at.replace(tzinfo=timezone.utc)
    return LogEntry(
        id=int(row["id"]),
        subject_id=int(row["subject_id"] or 0),
        url=row["notified_url"],
        notification_type=row["notification_type"],
        status_code=row["status_code"],
        message=row["response_message"] or "",
        notified_at=notified_at,
    )


_SELECT_COLUMNS = "id, subject_id, notified_url, notification_type, status_code, response_message, notified_at"


class PostgresLogStore:
    """LogStore backed by an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool, *, table: str = DEFAULT_TABLE_NAME) -> None:
        self.pool = pool
        self.table = validate_table_name(table)

    async def ensure_schema(self) -> None:
        async with self.pool.acquire() as conn:
            await ensure_log_schema(conn, self.table)

    async def drop_schema(self) -> None:
        async with self.pool.acquire() as conn:
            await drop_log_schema(conn, self.table)

    async def append(
        self,
        *,
        subject_id: int,
        url: str,
        notification_type: str,
        status_code: str,
        message: str = "",
        notified_at: datetime | None = None,
    ) -> LogEntry:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO {self.table}
                    (subject_id, notified_url, notification_type, status_code, response_message, notified_at)
                VALUES ($1,$2,$3,$4,$5,$6)
                RETURNING {_SELECT_COLUMNS}
                """,
                max(0, int(subject_id or 0)),
                url,
                notification_type,
                status_code,
                message or "",
                notified_at or now_utc(),
            )
        return _row_to_entry(row)

    async def query(self, query: LogQuery | None = None) -> LogPage:
        query = query or LogQuery()
        where_sql = ""
        params: list[Any] = []
        term = query.search_term
        if term:
            params.append(f"%{escape_like(term)}%")
            conditions = [f"{col} ILIKE $1" for col in SEARCH_COLUMNS]
            where_sql = "WHERE (" + " OR ".join(conditions) + ")"
        direction = "DESC" if query.descending else "ASC"
        order_sql = f"ORDER BY {query.sort_column} {direction}, id {direction}"
        limit_idx = len(params) + 1
        async with self.pool.acquire() as conn:
            total = await conn.fetchval(f"SELECT COUNT(*) FROM {self.table} {where_sql}", *params)
            rows = await conn.fetch(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM {self.table}
                {where_sql}
                {order_sql}
                LIMIT ${limit_idx} OFFSET ${limit_idx + 1}
                """,
                *params,
                query.limit,
                query.start,
            )
        return LogPage(items=[_row_to_entry(row) for row in rows], total=int(total or 0))

    async def latest_for_subject(self, subject_id: int) -> LogEntry | None:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM {self.table}
                WHERE subject_id=$1
                ORDER BY notified_at DESC, id DESC
                LIMIT 1
                """,
                int(subject_id),
            )
        return _row_to_entry(row) if row else None

    async def count(self) -> int:
        async with self.pool.acquire() as conn:
            total = await conn.fetchval(f"SELECT COUNT(*) FROM {self.table}")
        return int(total or 0)

    async def delete_all(self) -> int:
        async with self.pool.acquire() as conn:
            status = await conn.execute(f"DELETE FROM {self.table}")
        return parse_command_count(status)

    async def keep_latest_per_subject(self) -> int:
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"""
                DELETE FROM {self.table}
                WHERE id NOT IN (
                    SELECT MAX(id) FROM {self.table} GROUP BY subject_id
                )
                """
            )
        return parse_command_count(status)

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with self.pool.acquire() as conn:
            status = await conn.execute(
                f"DELETE FROM {self.table} WHERE notified_at < $1",
                cutoff,
            )
        return parse_command_count(status)

    async def trim_to_count(self, keep: int) -> int:
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                total = int(await conn.fetchval(f"SELECT COUNT(*) FROM {self.table}") or 0)
                excess = total - keep
                if excess <= 0:
                    return 0
                status = await conn.execute(
                    f"""
                    DELETE FROM {self.table}
                    WHERE id IN (
                        SELECT id FROM {self.table}
                        ORDER BY notified_at ASC, id ASC
                        LIMIT $1
                    )
                    """,
                    excess,
                )
        return parse_command_count(status)


__all__ = [
    "DEFAULT_TABLE_NAME",
    "LogStore",
    "PostgresLogStore",
    "drop_log_schema",
    "ensure_log_schema",
    "escape_like",
    "parse_command_count",
    "validate_table_name",
]
