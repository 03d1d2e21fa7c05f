"""
Content lifecycle rules deciding when a URL is sent to the Indexing API.

- Only subject types on the allow-list are notified; an empty list notifies nothing.
- Publishing notifies URL_UPDATED, but only for items whose status is "publish".
- Trashing notifies URL_DELETED.
- Items with the per-item opt-out flag are skipped in both cases.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable, Mapping

from notification_log import URL_DELETED, URL_UPDATED

from .dispatcher import DispatchResult, NotificationDispatcher

logger = logging.getLogger(__name__)

PUBLISHED_STATUS = "publish"


@dataclass(slots=True, frozen=True)
class ContentItem:
    id: int
    subject_type: str
    url: str | None
    status: str = PUBLISHED_STATUS
    notify: bool = True

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ContentItem":
        try:
            item_id = int(data["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError("content item requires an integer 'id'") from exc
        subject_type = data.get("type") or data.get("subject_type")
        if not subject_type:
            raise ValueError("content item requires a 'type'")
        notify = data.get("notify", True)
        if isinstance(notify, str):
            notify = notify.strip().lower() not in {"no", "false", "0", "off"}
        return cls(
            id=item_id,
            subject_type=str(subject_type),
            url=str(data["url"]) if data.get("url") else None,
            status=str(data.get("status") or PUBLISHED_STATUS),
            notify=bool(notify),
        )


class ContentHooks:
    def __init__(self, dispatcher: NotificationDispatcher, target_subject_types: Iterable[str]) -> None:
        self.dispatcher = dispatcher
        self.target_subject_types = frozenset(target_subject_types)

    def is_targeted(self, item: ContentItem) -> bool:
        return bool(self.target_subject_types) and item.subject_type in self.target_subject_types

    async def on_published(self, item: ContentItem) -> DispatchResult | None:
        if item.status != PUBLISHED_STATUS:
            return None
        return await self._notify(item, URL_UPDATED)

    async def on_trashed(self, item: ContentItem) -> DispatchResult | None:
        return await self._notify(item, URL_DELETED)

    async def _notify(self, item: ContentItem, notification_type: str) -> DispatchResult | None:
        if not self.is_targeted(item) or not item.notify or not item.url:
            logger.debug("Skipping %s for %s %s", notification_type, item.subject_type, item.id)
            return None
        result = await self.dispatcher.send(item.url, notification_type)
        if not result.ok:
            logger.warning(
                "Error sending %s notification for %s: %s",
                notification_type,
                item.url,
                result.message,
            )
        return result


__all__ = ["ContentItem", "ContentHooks", "PUBLISHED_STATUS"]
