"""Notification log records and query parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import re
from typing import Literal

NotificationType = Literal["URL_UPDATED", "URL_DELETED"]
URL_UPDATED: NotificationType = "URL_UPDATED"
URL_DELETED: NotificationType = "URL_DELETED"
NOTIFICATION_TYPES: tuple[str, ...] = (URL_UPDATED, URL_DELETED)

SortColumn = Literal["notified_at", "subject_id", "status_code"]
SORTABLE_COLUMNS: tuple[str, ...] = ("notified_at", "subject_id", "status_code")
DEFAULT_SORT_COLUMN: SortColumn = "notified_at"
DEFAULT_PAGE_SIZE = 20


@dataclass(slots=True, frozen=True)
class LogEntry:
    id: int
    subject_id: int
    url: str
    notification_type: str
    status_code: str
    message: str
    notified_at: datetime


@dataclass(slots=True, frozen=True)
class LogQuery:
    """
    Filter, sort and page for a log listing.

    Unknown sort columns fall back to ``notified_at`` and unknown directions
    to descending; the normalized values are what stores should use.
    """

    search: str | None = None
    order_by: str = DEFAULT_SORT_COLUMN
    order: str = "desc"
    per_page: int = DEFAULT_PAGE_SIZE
    offset: int = 0

    @property
    def sort_column(self) -> SortColumn:
        if self.order_by in SORTABLE_COLUMNS:
            return self.order_by  # type: ignore[return-value]
        return DEFAULT_SORT_COLUMN

    @property
    def descending(self) -> bool:
        return (self.order or "").strip().lower() not in {"asc", "ascending"}

    @property
    def search_term(self) -> str | None:
        term = (self.search or "").strip()
        return term or None

    @property
    def limit(self) -> int:
        return max(1, int(self.per_page))

    @property
    def start(self) -> int:
        return max(0, int(self.offset))


@dataclass(slots=True)
class LogPage:
    items: list[LogEntry] = field(default_factory=list)
    total: int = 0


@dataclass(slots=True, frozen=True)
class StatusSummary:
    label: str
    level: Literal["success", "warning", "error", "info"]


_CONFIG_STATUSES = {"CONFIG_ERROR", "JSON_ERROR"}
_AUTH_STATUSES = {
    "TOKEN_ERROR",
    "AUTH_EXCEPTION",
    "GENERAL_EXCEPTION_AUTH",
    "TOKEN_UNAVAILABLE",
}
_NETWORK_STATUSES = {"WP_REMOTE_ERROR"}


def describe_status(status_code: str | None) -> StatusSummary:
    """Map a stored status tag to a display category."""
    value = (status_code or "").strip()
    if value.isdigit():
        code = int(value)
        if 200 <= code < 300:
            return StatusSummary("Success", "success")
        if 400 <= code < 500:
            return StatusSummary("Failed (Client Error)", "error")
        if code >= 500:
            return StatusSummary("Failed (Server Error)", "error")
        return StatusSummary(value, "info")
    upper = value.upper()
    if upper == "200 OK":
        return StatusSummary("Success", "success")
    if upper in _CONFIG_STATUSES:
        return StatusSummary("Configuration Error", "warning")
    if upper in _AUTH_STATUSES:
        return StatusSummary("Auth/Permission Error", "error")
    if upper in _NETWORK_STATUSES:
        return StatusSummary("Network Error", "error")
    return StatusSummary("Failed (Unknown)", "error")


def summarize_entry(entry: LogEntry | None, *, max_words: int = 15) -> str:
    if entry is None:
        return "Indexing API: No log yet"
    summary = describe_status(entry.status_code)
    stamp = entry.notified_at.astimezone(timezone.utc).strftime("%Y/%m/%d %H:%M")
    line = f"Indexing API: {summary.label} ({entry.notification_type}) at {stamp}"
    message = trim_words(entry.message, max_words)
    if message:
        line += f" - {message}"
    return line


_TAG_RE = re.compile(r"<[^>]*>")


def trim_words(text: str | None, limit: int, more: str = "...") -> str:
    """Strip markup and keep at most ``limit`` words."""
    words = _TAG_RE.sub(" ", text or "").split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + more


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "NotificationType",
    "URL_UPDATED",
    "URL_DELETED",
    "NOTIFICATION_TYPES",
    "SORTABLE_COLUMNS",
    "LogEntry",
    "LogQuery",
    "LogPage",
    "StatusSummary",
    "describe_status",
    "summarize_entry",
    "trim_words",
    "now_utc",
]
