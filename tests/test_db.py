"""Tests for services.db helpers against a recording pool."""

from __future__ import annotations

import pytest

from indexing.service import Settings
from services.db import make_subject_resolver, purge_data


class RecordingConn:
    def __init__(self, value=None) -> None:
        self.value = value
        self.executed: list[str] = []
        self.fetched: list[tuple] = []

    async def execute(self, sql: str, *args) -> str:
        self.executed.append(sql)
        return "DROP TABLE"

    async def fetchval(self, sql: str, *args):
        self.fetched.append((sql, args))
        return self.value


class _Acquire:
    def __init__(self, conn: RecordingConn) -> None:
        self.conn = conn

    async def __aenter__(self) -> RecordingConn:
        return self.conn

    async def __aexit__(self, *exc_info) -> None:
        return None


class RecordingPool:
    def __init__(self, conn: RecordingConn) -> None:
        self.conn = conn

    def acquire(self) -> _Acquire:
        return _Acquire(self.conn)


@pytest.mark.asyncio
async def test_purge_keeps_table_by_default() -> None:
    conn = RecordingConn()
    dropped = await purge_data(RecordingPool(conn), Settings())
    assert dropped is False
    assert conn.executed == []


@pytest.mark.asyncio
async def test_purge_drops_table_when_opted_in() -> None:
    conn = RecordingConn()
    settings = Settings(delete_data_on_uninstall=True, log_table="my_log")
    assert await purge_data(RecordingPool(conn), settings) is True
    assert conn.executed == ["DROP TABLE IF EXISTS my_log"]


@pytest.mark.asyncio
async def test_subject_resolver_returns_id_or_zero() -> None:
    conn = RecordingConn(value=17)
    resolve = make_subject_resolver(RecordingPool(conn), table="posts", url_column="permalink")
    assert await resolve("https://example.com/a/") == 17
    sql, args = conn.fetched[0]
    assert "FROM posts WHERE permalink=$1" in sql
    assert args == ("https://example.com/a/",)

    conn.value = None
    assert await resolve("https://example.com/missing/") == 0


def test_subject_resolver_rejects_bad_identifiers() -> None:
    with pytest.raises(ValueError):
        make_subject_resolver(RecordingPool(RecordingConn()), table="posts; DROP TABLE x")
