"""Async worker that applies the log retention policy once a day."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
import logging

from .models import now_utc
from .rotation import RetentionPolicy, RotationEngine

logger = logging.getLogger(__name__)


def seconds_until(hour_utc: int, *, now: datetime | None = None) -> float:
    now = now or now_utc()
    now = now.astimezone(timezone.utc)
    target = now.replace(hour=hour_utc, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class RotationWorker:
    """
    Runs one rotation per day at ``hour_utc``.

    A failed run is logged and not repeated; the next attempt is the
    following daily slot. ``stop()`` lets an in-flight run finish.
    """

    def __init__(
        self,
        engine: RotationEngine,
        policy: RetentionPolicy,
        *,
        hour_utc: int = 3,
    ) -> None:
        self.engine = engine
        self.policy = policy
        self.hour_utc = hour_utc
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._stop_event.clear()
            self._task = asyncio.create_task(self.run(), name="log-rotation-worker")
        return self._task

    async def stop(self) -> None:
        self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            await task

    async def run_once(self) -> int:
        return await self.engine.run(self.policy)

    async def run(self) -> None:
        logger.info("Log rotation scheduled daily at %02d:00 UTC with %r", self.hour_utc, self.policy)
        while await self._wait_for_slot():
            try:
                deleted = await self.run_once()
            except Exception:  # noqa: BLE001
                logger.exception("Log rotation %r failed; skipping until the next daily slot", self.policy)
                continue
            logger.info("Daily log rotation finished, %s entries removed", deleted)
        logger.info("Log rotation schedule stopped")

    async def _wait_for_slot(self) -> bool:
        """Sleep until the next slot; False when stop() was called meanwhile."""
        if self._stop_event.is_set():
            return False
        delay = seconds_until(self.hour_utc)
        logger.debug("Next log rotation in %.0f seconds", delay)
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False


__all__ = ["RotationWorker", "seconds_until"]
