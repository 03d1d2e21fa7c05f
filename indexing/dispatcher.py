"""
Indexing notification dispatch.

One call to ``NotificationDispatcher.send`` walks through:
type check -> config check -> credential parse -> token acquire -> publish -> classify.
Every exit writes exactly one row to the notification log and returns a
``DispatchResult``; failures are values, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from notification_log import NOTIFICATION_TYPES, LogStore, trim_words

from .credentials import ServiceAccountCredential, parse_credential
from .errors import (
    AuthError,
    AuthTransportError,
    ConfigMissingError,
    EmptyCredentialError,
    IndexingAPIError,
    IndexingError,
    InvalidNotificationTypeError,
    PublishTransportError,
    TokenUnavailableError,
    UnauthorizedError,
)
from .google_client import IndexingClient, PublishResponse, TokenCache

logger = logging.getLogger(__name__)

CredentialSource = Callable[[], Optional[str]]
SubjectResolver = Callable[[str], Awaitable[int]]

ERROR_BODY_WORD_LIMIT = 50


@dataclass(slots=True)
class DispatchResult:
    ok: bool
    status: str
    message: str
    subject_id: int = 0
    error: IndexingError | None = None
    response: Any | None = None


async def unresolved_subject(url: str) -> int:
    return 0


class NotificationDispatcher:
    def __init__(
        self,
        *,
        store: LogStore,
        token_cache: TokenCache,
        client: IndexingClient,
        credential_source: CredentialSource,
        subject_resolver: SubjectResolver = unresolved_subject,
    ) -> None:
        self.store = store
        self.token_cache = token_cache
        self.client = client
        self._credential_source = credential_source
        self._subject_resolver = subject_resolver

    async def send(self, url: str, notification_type: str) -> DispatchResult:
        subject_id = await self._resolve_subject(url)

        try:
            if notification_type not in NOTIFICATION_TYPES:
                raise InvalidNotificationTypeError(
                    f"Invalid notification type: {notification_type}",
                    {"allowed": list(NOTIFICATION_TYPES)},
                )
            credential = self._load_credential()
            token = await self._acquire_token(credential)
            response = await self.client.publish(token, url=url, notification_type=notification_type)
            message = self._classify(response)
        except IndexingError as exc:
            return await self._fail(url, notification_type, subject_id, exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure publishing %s", url)
            error = PublishTransportError(str(exc) or exc.__class__.__name__)
            return await self._fail(url, notification_type, subject_id, error)

        status = str(response.status)
        await self._record(subject_id, url, notification_type, status, message)
        logger.info("Indexing API accepted %s %s (HTTP %s)", notification_type, url, status)
        return DispatchResult(
            ok=True,
            status=status,
            message=message,
            subject_id=subject_id,
            response=response.data,
        )

    async def _resolve_subject(self, url: str) -> int:
        try:
            return max(0, int(await self._subject_resolver(url) or 0))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Subject lookup failed for %s: %s", url, exc)
            return 0

    def _load_credential(self) -> ServiceAccountCredential:
        raw = self._credential_source()
        try:
            return parse_credential(raw)
        except EmptyCredentialError as exc:
            raise ConfigMissingError("Service account JSON not configured.") from exc

    async def _acquire_token(self, credential: ServiceAccountCredential) -> str:
        try:
            token, from_cache = await self.token_cache.get_token(credential)
        except AuthError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AuthTransportError(f"Exception during auth: {exc}") from exc
        if not token:
            raise TokenUnavailableError("Access token is unavailable for API request.")
        logger.debug("Indexing API token resolved (cached=%s)", from_cache)
        return token

    def _classify(self, response: PublishResponse) -> str:
        status = response.status
        data = response.data
        if status == 401:
            self.token_cache.invalidate()
            raise UnauthorizedError(
                "API Error: Unauthorized (Access token may be invalid/expired). Token cache cleared.",
                {"status": status},
            )
        if 200 <= status < 300:
            message = "Successfully published."
            metadata_url = _metadata_url(data)
            if metadata_url:
                message += f" Metadata URL: {metadata_url}"
            return message
        message = f"API Error. Status: {status}"
        api_message = _api_error_message(data)
        if api_message:
            message += f" Message: {trim_words(api_message, ERROR_BODY_WORD_LIMIT)}"
        elif response.body:
            message += f" Body: {trim_words(response.body, ERROR_BODY_WORD_LIMIT)}"
        raise IndexingAPIError(status, message, data)

    async def _fail(
        self,
        url: str,
        notification_type: str,
        subject_id: int,
        error: IndexingError,
    ) -> DispatchResult:
        await self._record(subject_id, url, notification_type, error.status, error.message)
        logger.warning("Indexing %s for %s failed [%s]: %s", notification_type, url, error.status, error.message)
        return DispatchResult(
            ok=False,
            status=error.status,
            message=error.message,
            subject_id=subject_id,
            error=error,
            response=getattr(error, "body", None),
        )

    async def _record(
        self,
        subject_id: int,
        url: str,
        notification_type: str,
        status: str,
        message: str,
    ) -> None:
        try:
            await self.store.append(
                subject_id=subject_id,
                url=url,
                notification_type=notification_type,
                status_code=status,
                message=message,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to record indexing log for %s", url)


def _metadata_url(data: Any) -> str | None:
    if not isinstance(data, Mapping):
        return None
    metadata = data.get("urlNotificationMetadata")
    if not isinstance(metadata, Mapping):
        return None
    latest = metadata.get("latestUpdate")
    if not isinstance(latest, Mapping):
        return None
    value = latest.get("url")
    return str(value) if value else None


def _api_error_message(data: Any) -> str | None:
    if not isinstance(data, Mapping):
        return None
    error = data.get("error")
    if isinstance(error, Mapping) and error.get("message"):
        return str(error["message"])
    return None


__all__ = [
    "DispatchResult",
    "NotificationDispatcher",
    "CredentialSource",
    "SubjectResolver",
    "unresolved_subject",
]
