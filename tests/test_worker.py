"""Tests for the daily rotation worker."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from notification_log import InMemoryLogStore, LatestPerSubject, RotationEngine, RotationWorker
from notification_log.worker import seconds_until


def test_seconds_until_later_today() -> None:
    now = datetime(2026, 10, 19, 1, 30, tzinfo=timezone.utc)
    assert seconds_until(3, now=now) == 90 * 60


def test_seconds_until_rolls_over_to_tomorrow() -> None:
    now = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)
    assert seconds_until(3, now=now) == 24 * 3600


@pytest.mark.asyncio
async def test_run_once_applies_policy() -> None:
    store = InMemoryLogStore()
    for _ in range(3):
        await store.append(subject_id=4, url="u", notification_type="URL_UPDATED", status_code="200")
    worker = RotationWorker(RotationEngine(store), LatestPerSubject())
    assert await worker.run_once() == 2
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_start_and_stop() -> None:
    worker = RotationWorker(RotationEngine(InMemoryLogStore()), LatestPerSubject())
    task = worker.start()
    assert worker.start() is task
    await asyncio.sleep(0)
    assert worker.running
    await worker.stop()
    assert task.done()
    assert not task.cancelled()
    assert not worker.running


class BrokenStore(InMemoryLogStore):
    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0
        self.on_attempt = None

    async def keep_latest_per_subject(self) -> int:
        self.attempts += 1
        if self.on_attempt is not None:
            self.on_attempt(self.attempts)
        raise RuntimeError("relation does not exist")


@pytest.mark.asyncio
async def test_failed_run_waits_for_next_daily_slot(monkeypatch: pytest.MonkeyPatch) -> None:
    slots: list[int] = []

    def fake_seconds_until(hour_utc: int, *, now=None) -> float:
        slots.append(hour_utc)
        return 0.0

    monkeypatch.setattr("notification_log.worker.seconds_until", fake_seconds_until)
    store = BrokenStore()
    worker = RotationWorker(RotationEngine(store), LatestPerSubject(), hour_utc=5)

    def stop_after_second(attempt: int) -> None:
        if attempt == 2:
            worker._stop_event.set()

    store.on_attempt = stop_after_second

    await asyncio.wait_for(worker.run(), timeout=5)

    # one wait per attempt, no extra retry in between
    assert store.attempts == 2
    assert slots == [5, 5]
