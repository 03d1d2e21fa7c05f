"""In-process notification log used by tests and database-less runs."""

from __future__ import annotations

from datetime import datetime
import itertools

from .models import LogEntry, LogPage, LogQuery, now_utc


class InMemoryLogStore:
    """LogStore kept in a list; same ordering and search rules as the SQL store."""

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []
        self._ids = itertools.count(1)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

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
        entry = LogEntry(
            id=next(self._ids),
            subject_id=max(0, int(subject_id or 0)),
            url=url,
            notification_type=notification_type,
            status_code=status_code,
            message=message or "",
            notified_at=notified_at or now_utc(),
        )
        self._entries.append(entry)
        return entry

    async def query(self, query: LogQuery | None = None) -> LogPage:
        query = query or LogQuery()
        rows = self._entries
        term = query.search_term
        if term:
            needle = term.lower()
            rows = [entry for entry in rows if _matches(entry, needle)]
        column = query.sort_column
        rows = sorted(rows, key=lambda e: (getattr(e, column), e.id), reverse=query.descending)
        return LogPage(items=rows[query.start : query.start + query.limit], total=len(rows))

    async def latest_for_subject(self, subject_id: int) -> LogEntry | None:
        matches = [entry for entry in self._entries if entry.subject_id == subject_id]
        if not matches:
            return None
        return max(matches, key=lambda e: (e.notified_at, e.id))

    async def count(self) -> int:
        return len(self._entries)

    async def delete_all(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed

    async def keep_latest_per_subject(self) -> int:
        latest: dict[int, int] = {}
        for entry in self._entries:
            latest[entry.subject_id] = max(latest.get(entry.subject_id, 0), entry.id)
        keep = set(latest.values())
        return self._remove(lambda e: e.id not in keep)

    async def delete_older_than(self, cutoff: datetime) -> int:
        return self._remove(lambda e: e.notified_at < cutoff)

    async def trim_to_count(self, keep: int) -> int:
        excess = len(self._entries) - keep
        if excess <= 0:
            return 0
        oldest = sorted(self._entries, key=lambda e: (e.notified_at, e.id))[:excess]
        doomed = {entry.id for entry in oldest}
        return self._remove(lambda e: e.id in doomed)

    def _remove(self, predicate) -> int:
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if not predicate(entry)]
        return before - len(self._entries)


def _matches(entry: LogEntry, needle: str) -> bool:
    fields = (
        entry.url,
        entry.message,
        str(entry.subject_id),
        entry.status_code,
        entry.notification_type,
    )
    return any(needle in value.lower() for value in fields)


__all__ = ["InMemoryLogStore"]
