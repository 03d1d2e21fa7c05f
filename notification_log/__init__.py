"""Notification log: storage, retention and rotation."""

from .models import (
    NOTIFICATION_TYPES,
    SORTABLE_COLUMNS,
    URL_DELETED,
    URL_UPDATED,
    LogEntry,
    LogPage,
    LogQuery,
    NotificationType,
    StatusSummary,
    describe_status,
    summarize_entry,
    trim_words,
)
from .store import (
    DEFAULT_TABLE_NAME,
    LogStore,
    PostgresLogStore,
    drop_log_schema,
    ensure_log_schema,
)
from .memory import InMemoryLogStore
from .rotation import (
    LatestPerSubject,
    MaxAge,
    MaxCount,
    RetentionPolicy,
    RotationEngine,
    RotationError,
    ROTATION_TYPES,
    policy_from_settings,
)
from .worker import RotationWorker

__all__ = [
    "NOTIFICATION_TYPES",
    "SORTABLE_COLUMNS",
    "URL_UPDATED",
    "URL_DELETED",
    "NotificationType",
    "LogEntry",
    "LogPage",
    "LogQuery",
    "StatusSummary",
    "describe_status",
    "summarize_entry",
    "trim_words",
    "DEFAULT_TABLE_NAME",
    "LogStore",
    "PostgresLogStore",
    "InMemoryLogStore",
    "ensure_log_schema",
    "drop_log_schema",
    "LatestPerSubject",
    "MaxAge",
    "MaxCount",
    "RetentionPolicy",
    "RotationEngine",
    "RotationError",
    "ROTATION_TYPES",
    "policy_from_settings",
    "RotationWorker",
]
