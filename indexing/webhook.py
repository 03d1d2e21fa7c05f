"""Minimal aiohttp server accepting content lifecycle events."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from aiohttp import web

from .dispatcher import DispatchResult
from .hooks import ContentHooks, ContentItem

logger = logging.getLogger(__name__)

EVENTS_PATH = "/content/events"
TOKEN_HEADER = "X-Indexing-Token"
EVENT_PUBLISHED = "published"
EVENT_TRASHED = "trashed"

EventHandler = Callable[[ContentItem], Awaitable[DispatchResult | None]]


def _error(reason: str, status: int) -> web.Response:
    return web.json_response({"ok": False, "error": reason}, status=status)


class ContentEventServer:
    def __init__(self, hooks: ContentHooks, *, token: str | None = None) -> None:
        self.hooks = hooks
        self.token = token
        self._handlers: dict[str, EventHandler] = {
            EVENT_PUBLISHED: hooks.on_published,
            EVENT_TRASHED: hooks.on_trashed,
        }
        self._runner: web.AppRunner | None = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post(EVENTS_PATH, self._handle)
        return app

    async def start(self, host: str, port: int) -> None:
        if self.running:
            return
        runner = web.AppRunner(self.create_app())
        await runner.setup()
        try:
            await web.TCPSite(runner, host, port).start()
        except Exception:
            await runner.cleanup()
            raise
        self._runner = runner
        logger.info("Accepting content events on http://%s:%s%s", host, port, EVENTS_PATH)

    async def stop(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        await runner.cleanup()
        logger.info("Content event intake closed")

    def _authorized(self, request: web.Request) -> bool:
        if not self.token:
            return True
        provided = request.headers.get(TOKEN_HEADER) or request.rel_url.query.get("token")
        return provided == self.token

    async def _handle(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            logger.warning("Rejected content event from %s: bad token", request.remote)
            return _error("unauthorized", 401)

        try:
            payload: Any = await request.json()
        except ValueError:
            return _error("invalid_json", 400)

        if not isinstance(payload, Mapping) or not isinstance(payload.get("item"), Mapping):
            return _error("invalid_payload", 400)
        handler = self._handlers.get(str(payload.get("event") or "").lower())
        try:
            item = ContentItem.from_payload(payload["item"])
        except ValueError as exc:
            return _error(str(exc), 400)
        if handler is None:
            return _error("unknown_event", 400)

        result = await handler(item)
        if result is None:
            return web.json_response({"ok": True, "dispatched": False})
        return web.json_response(
            {
                "ok": result.ok,
                "dispatched": True,
                "status": result.status,
                "message": result.message,
            }
        )


async def start_content_event_server(
    hooks: ContentHooks,
    *,
    host: str,
    port: int,
    token: str | None = None,
) -> ContentEventServer:
    server = ContentEventServer(hooks, token=token)
    await server.start(host, port)
    return server


__all__ = ["ContentEventServer", "start_content_event_server", "EVENTS_PATH"]
