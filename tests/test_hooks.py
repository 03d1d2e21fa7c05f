"""Tests for content lifecycle hooks and the content-event HTTP ingress."""

from __future__ import annotations

import pytest
from aiohttp.test_utils import TestClient, TestServer

from indexing import ContentEventServer, ContentHooks, ContentItem, DispatchResult


class RecordingDispatcher:
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.calls: list[tuple[str, str]] = []

    async def send(self, url: str, notification_type: str) -> DispatchResult:
        self.calls.append((url, notification_type))
        status = "200" if self.ok else "403"
        return DispatchResult(ok=self.ok, status=status, message="done" if self.ok else "denied")


def _item(**overrides) -> ContentItem:
    data = {"id": 5, "subject_type": "post", "url": "https://example.com/p5", "status": "publish", "notify": True}
    data.update(overrides)
    return ContentItem(**data)


@pytest.mark.asyncio
async def test_published_item_is_updated() -> None:
    dispatcher = RecordingDispatcher()
    hooks = ContentHooks(dispatcher, ["post", "page"])
    result = await hooks.on_published(_item())
    assert result.ok
    assert dispatcher.calls == [("https://example.com/p5", "URL_UPDATED")]


@pytest.mark.asyncio
async def test_trashed_item_is_deleted() -> None:
    dispatcher = RecordingDispatcher()
    await ContentHooks(dispatcher, ["post"]).on_trashed(_item(status="trash"))
    assert dispatcher.calls == [("https://example.com/p5", "URL_DELETED")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "targets,item",
    [
        ([], _item()),
        (["page"], _item()),
        (["post"], _item(status="draft")),
        (["post"], _item(notify=False)),
        (["post"], _item(url=None)),
    ],
)
async def test_skipped_items(targets: list[str], item: ContentItem) -> None:
    dispatcher = RecordingDispatcher()
    assert await ContentHooks(dispatcher, targets).on_published(item) is None
    assert dispatcher.calls == []


@pytest.mark.asyncio
async def test_opted_out_item_is_not_deleted() -> None:
    dispatcher = RecordingDispatcher()
    assert await ContentHooks(dispatcher, ["post"]).on_trashed(_item(notify=False)) is None
    assert dispatcher.calls == []


def test_item_from_payload() -> None:
    item = ContentItem.from_payload({"id": "9", "type": "page", "url": "https://example.com/9", "notify": "no"})
    assert item == ContentItem(id=9, subject_type="page", url="https://example.com/9", status="publish", notify=False)


@pytest.mark.parametrize("payload", [{"type": "post"}, {"id": "x", "type": "post"}, {"id": 1}])
def test_item_from_invalid_payload(payload: dict) -> None:
    with pytest.raises(ValueError):
        ContentItem.from_payload(payload)


@pytest.mark.asyncio
async def test_server_dispatches_published_event() -> None:
    dispatcher = RecordingDispatcher()
    server = ContentEventServer(ContentHooks(dispatcher, ["post"]), token="s3cret")
    async with TestClient(TestServer(server.create_app())) as client:
        resp = await client.post(
            "/content/events",
            json={"event": "published", "item": {"id": 1, "type": "post", "url": "https://example.com/1"}},
            headers={"X-Indexing-Token": "s3cret"},
        )
        assert resp.status == 200
        body = await resp.json()
    assert body == {"ok": True, "dispatched": True, "status": "200", "message": "done"}
    assert dispatcher.calls == [("https://example.com/1", "URL_UPDATED")]


@pytest.mark.asyncio
async def test_server_reports_skipped_and_failed_dispatch() -> None:
    dispatcher = RecordingDispatcher(ok=False)
    server = ContentEventServer(ContentHooks(dispatcher, ["post"]))
    async with TestClient(TestServer(server.create_app())) as client:
        skipped = await client.post(
            "/content/events",
            json={"event": "trashed", "item": {"id": 1, "type": "page", "url": "https://example.com/1"}},
        )
        assert await skipped.json() == {"ok": True, "dispatched": False}
        failed = await client.post(
            "/content/events?token=ignored",
            json={"event": "trashed", "item": {"id": 2, "type": "post", "url": "https://example.com/2"}},
        )
        body = await failed.json()
    assert body["ok"] is False
    assert body["status"] == "403"


@pytest.mark.asyncio
async def test_server_rejects_bad_requests() -> None:
    server = ContentEventServer(ContentHooks(RecordingDispatcher(), ["post"]), token="s3cret")
    async with TestClient(TestServer(server.create_app())) as client:
        unauthorized = await client.post("/content/events", json={})
        assert unauthorized.status == 401

        invalid_json = await client.post(
            "/content/events?token=s3cret",
            data="not-json",
            headers={"Content-Type": "application/json"},
        )
        assert invalid_json.status == 400
        assert (await invalid_json.json())["error"] == "invalid_json"

        unknown = await client.post(
            "/content/events?token=s3cret",
            json={"event": "renamed", "item": {"id": 1, "type": "post"}},
        )
        assert unknown.status == 400
        assert (await unknown.json())["error"] == "unknown_event"

        missing_item = await client.post("/content/events?token=s3cret", json={"event": "published"})
        assert missing_item.status == 400


@pytest.mark.asyncio
async def test_server_start_and_stop_are_idempotent(unused_tcp_port: int) -> None:
    server = ContentEventServer(ContentHooks(RecordingDispatcher(), ["post"]))
    await server.start("127.0.0.1", unused_tcp_port)
    assert server.running
    await server.start("127.0.0.1", unused_tcp_port)
    await server.stop()
    assert not server.running
    await server.stop()
