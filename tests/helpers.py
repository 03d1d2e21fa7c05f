"""aiohttp session stand-ins shared by the HTTP client tests."""

from __future__ import annotations

import json
from typing import Any


class StubResponse:
    """Minimal stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(self, status: int, payload: Any = None, *, body: str | None = None) -> None:
        self.status = status
        if body is None:
            body = "" if payload is None else json.dumps(payload)
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "StubResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class _RaisingContext:
    def __init__(self, exc: BaseException) -> None:
        self._exc = exc

    async def __aenter__(self):
        raise self._exc

    async def __aexit__(self, *exc_info) -> None:
        return None


class StubSession:
    """Session stub returning queued responses or raising queued exceptions."""

    def __init__(self, responses: list[StubResponse | BaseException] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any):
        self.calls.append((url, kwargs))
        if not self.responses:
            return StubResponse(200, {})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            return _RaisingContext(item)
        return item

    async def close(self) -> None:
        self.closed = True


__all__ = ["StubResponse", "StubSession"]
