"""
Async clients for the Google OAuth2 token endpoint and the Indexing API.

Token exchange follows the service-account JWT-bearer grant:
https://developers.google.com/identity/protocols/oauth2/service-account
"""

from __future__ import annotations

from dataclasses import dataclass
import asyncio
import json
import logging
import time
from typing import Any, Callable, Mapping

import aiohttp
import jwt

from .credentials import ServiceAccountCredential
from .errors import (
    AuthDeniedError,
    AuthProtocolError,
    AuthTransportError,
    PublishTransportError,
)

logger = logging.getLogger(__name__)

INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"
PUBLISH_URL = "https://indexing.googleapis.com/v3/urlNotifications:publish"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

AUTH_TIMEOUT = aiohttp.ClientTimeout(total=10)
PUBLISH_TIMEOUT = aiohttp.ClientTimeout(total=15)

ASSERTION_LIFETIME = 3600
DEFAULT_EXPIRES_IN = 3599
TOKEN_SAFETY_MARGIN = 300
MIN_TOKEN_LIFETIME = 60


@dataclass(slots=True, frozen=True)
class AccessToken:
    access_token: str
    expires_in: int


@dataclass(slots=True, frozen=True)
class CachedToken:
    access_token: str
    expires_at: float


@dataclass(slots=True, frozen=True)
class PublishResponse:
    status: int
    body: str
    data: Any


def cache_lifetime(expires_in: int) -> int:
    return max(MIN_TOKEN_LIFETIME, expires_in - TOKEN_SAFETY_MARGIN)


class GoogleAuthClient:
    """Exchanges a service-account credential for a bearer token."""

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: aiohttp.ClientTimeout = AUTH_TIMEOUT,
        scopes: tuple[str, ...] = (INDEXING_SCOPE,),
    ) -> None:
        self._own_session = session is None
        self._session = session
        self._timeout = timeout
        self._scopes = scopes

    async def close(self) -> None:
        if self._own_session and self._session is not None and not self._session.closed:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def fetch_token(self, credential: ServiceAccountCredential) -> AccessToken:
        assertion = self._build_assertion(credential)
        form = {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}
        try:
            async with self._get_session().post(
                credential.token_uri,
                data=form,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                body = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise AuthTransportError(f"Token request failed: {exc!r}") from exc

        data = _decode_json(body)
        if not isinstance(data, Mapping):
            raise AuthProtocolError(
                f"Token endpoint returned a non-JSON response (HTTP {status})",
                body[:500],
            )
        if "error" in data or "error_description" in data:
            message = "Failed to fetch access token from Google."
            if data.get("error_description"):
                message += f" Description: {data['error_description']}"
            elif data.get("error"):
                message += f" Error: {data['error']}"
            raise AuthDeniedError(message, dict(data))
        token = data.get("access_token")
        if not isinstance(token, str) or not token:
            raise AuthProtocolError(f"Token response missing access_token (HTTP {status})", dict(data))
        if status >= 400:
            raise AuthProtocolError(f"Token endpoint returned HTTP {status}", dict(data))
        expires_in = _as_int(data.get("expires_in"), DEFAULT_EXPIRES_IN)
        logger.info("Indexing API token issued for %s (expires in %s s)", credential.client_email, expires_in)
        return AccessToken(access_token=token, expires_in=expires_in)

    def _build_assertion(self, credential: ServiceAccountCredential) -> str:
        issued_at = int(time.time())
        claims = {
            "iss": credential.client_email,
            "scope": " ".join(self._scopes),
            "aud": credential.token_uri,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME,
        }
        try:
            return jwt.encode(
                claims,
                credential.private_key,
                algorithm="RS256",
                headers={"kid": credential.private_key_id},
            )
        except (ValueError, TypeError, jwt.PyJWTError) as exc:
            raise AuthProtocolError(f"Could not sign token assertion: {exc}") from exc


class TokenCache:
    """
    Single process-wide slot for the bearer token of the configured credential.

    No lock: concurrent misses may fetch twice and the last write wins.
    """

    def __init__(
        self,
        auth_client: GoogleAuthClient,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._auth_client = auth_client
        self._clock = clock
        self._cached: CachedToken | None = None

    @property
    def auth_client(self) -> GoogleAuthClient:
        return self._auth_client

    @property
    def cached(self) -> CachedToken | None:
        return self._cached

    async def get_token(self, credential: ServiceAccountCredential) -> tuple[str, bool]:
        cached = self._cached
        if cached is not None and cached.expires_at > self._clock():
            return cached.access_token, True
        fetched = await self._auth_client.fetch_token(credential)
        self._cached = CachedToken(
            access_token=fetched.access_token,
            expires_at=self._clock() + cache_lifetime(fetched.expires_in),
        )
        return fetched.access_token, False

    def invalidate(self) -> None:
        if self._cached is not None:
            logger.info("Indexing API token cache cleared")
        self._cached = None


class IndexingClient:
    """Thin async wrapper around the urlNotifications:publish endpoint."""

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: aiohttp.ClientTimeout = PUBLISH_TIMEOUT,
        endpoint: str = PUBLISH_URL,
    ) -> None:
        self._own_session = session is None
        self._session = session
        self._timeout = timeout
        self._endpoint = endpoint

    async def close(self) -> None:
        if self._own_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "IndexingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def publish(self, token: str, *, url: str, notification_type: str) -> PublishResponse:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        payload = {"url": url, "type": notification_type}
        logger.debug("Indexing publish %s json=%s", self._endpoint, payload)
        try:
            async with self._get_session().post(
                self._endpoint,
                headers=headers,
                json=payload,
                timeout=self._timeout,
                ssl=True,
            ) as resp:
                status = resp.status
                body = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            message = str(exc) or exc.__class__.__name__
            raise PublishTransportError(message) from exc
        return PublishResponse(status=status, body=body, data=_decode_json(body))


def _decode_json(body: str) -> Any:
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


__all__ = [
    "AccessToken",
    "CachedToken",
    "GoogleAuthClient",
    "IndexingClient",
    "PublishResponse",
    "TokenCache",
    "cache_lifetime",
    "INDEXING_SCOPE",
    "PUBLISH_URL",
]
