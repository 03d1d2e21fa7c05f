"""Retention policies for the notification log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import inspect
import logging
from typing import Awaitable, Callable, Union

from .models import now_utc
from .store import LogStore

logger = logging.getLogger(__name__)

ROTATION_LATEST_PER_SUBJECT = "latest_per_subject"
ROTATION_DAYS = "days"
ROTATION_COUNT = "count"
ROTATION_TYPES: tuple[str, ...] = (ROTATION_LATEST_PER_SUBJECT, ROTATION_DAYS, ROTATION_COUNT)


@dataclass(slots=True, frozen=True)
class LatestPerSubject:
    pass


@dataclass(slots=True, frozen=True)
class MaxAge:
    days: int


@dataclass(slots=True, frozen=True)
class MaxCount:
    count: int


RetentionPolicy = Union[LatestPerSubject, MaxAge, MaxCount]
DeletionListener = Callable[[int], Union[Awaitable[None], None]]


class RotationError(RuntimeError):
    """Storage failure while applying a retention policy."""

    def __init__(self, policy: RetentionPolicy, cause: Exception):
        super().__init__(f"Log rotation {policy!r} failed: {cause}")
        self.policy = policy
        self.cause = cause


class RotationEngine:
    """
    Applies one retention policy to the log store.

    Every run recomputes from the full table, so repeating a run without new
    entries deletes nothing. Listeners are called with the number of removed
    rows after a run that deleted something.
    """

    def __init__(
        self,
        store: LogStore,
        *,
        clock: Callable[[], datetime] = now_utc,
        listeners: list[DeletionListener] | None = None,
    ) -> None:
        self.store = store
        self._clock = clock
        self._listeners: list[DeletionListener] = list(listeners or [])

    def add_listener(self, listener: DeletionListener) -> None:
        self._listeners.append(listener)

    async def run(self, policy: RetentionPolicy) -> int:
        try:
            deleted = await self._apply(policy)
        except Exception as exc:
            raise RotationError(policy, exc) from exc
        if deleted > 0:
            logger.info("Log rotation %r removed %s entries", policy, deleted)
            await self._notify(deleted)
        return deleted

    async def _apply(self, policy: RetentionPolicy) -> int:
        if isinstance(policy, LatestPerSubject):
            return await self.store.keep_latest_per_subject()
        if isinstance(policy, MaxAge):
            if policy.days <= 0:
                return 0
            cutoff = self._clock() - timedelta(days=policy.days)
            return await self.store.delete_older_than(cutoff)
        if isinstance(policy, MaxCount):
            if policy.count <= 0:
                return 0
            return await self.store.trim_to_count(policy.count)
        raise TypeError(f"Unknown retention policy: {policy!r}")

    async def _notify(self, deleted: int) -> None:
        for listener in self._listeners:
            try:
                result = listener(deleted)
                if inspect.isawaitable(result):
                    await result
            except Exception:  # noqa: BLE001
                logger.exception("Log rotation listener %r failed", listener)


def policy_from_settings(rotation_type: str, *, days: int, count: int) -> RetentionPolicy:
    if rotation_type == ROTATION_DAYS:
        return MaxAge(days=days)
    if rotation_type == ROTATION_COUNT:
        return MaxCount(count=count)
    return LatestPerSubject()


__all__ = [
    "LatestPerSubject",
    "MaxAge",
    "MaxCount",
    "RetentionPolicy",
    "RotationEngine",
    "RotationError",
    "ROTATION_TYPES",
    "ROTATION_LATEST_PER_SUBJECT",
    "ROTATION_DAYS",
    "ROTATION_COUNT",
    "policy_from_settings",
]
