"""Configuration and wiring for the indexing notifier."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Mapping

import aiohttp
from dotenv import load_dotenv

from notification_log import (
    DEFAULT_TABLE_NAME,
    ROTATION_TYPES,
    LogStore,
    RetentionPolicy,
    policy_from_settings,
)
from notification_log.rotation import ROTATION_LATEST_PER_SUBJECT

from .dispatcher import CredentialSource, NotificationDispatcher, SubjectResolver, unresolved_subject
from .google_client import AUTH_TIMEOUT, PUBLISH_TIMEOUT, GoogleAuthClient, IndexingClient, TokenCache

logger = logging.getLogger(__name__)

DEFAULT_ROTATION_DAYS = 30
DEFAULT_ROTATION_COUNT = 1000
DEFAULT_ROTATION_HOUR_UTC = 3

JSON_ENV_KEY = "INDEXING_SERVICE_ACCOUNT_JSON"
FILE_ENV_KEY = "INDEXING_SERVICE_ACCOUNT_FILE"


@dataclass(frozen=True)
class Settings:
    db_dsn: str | None = None
    target_subject_types: tuple[str, ...] = ()
    rotation_type: str = ROTATION_LATEST_PER_SUBJECT
    rotation_days: int = DEFAULT_ROTATION_DAYS
    rotation_count: int = DEFAULT_ROTATION_COUNT
    rotation_hour_utc: int = DEFAULT_ROTATION_HOUR_UTC
    delete_data_on_uninstall: bool = False
    log_table: str = DEFAULT_TABLE_NAME
    content_table: str | None = None
    content_url_column: str = "url"
    events_host: str = "0.0.0.0"
    events_port: int = 0
    events_token: str | None = None

    @property
    def retention_policy(self) -> RetentionPolicy:
        return policy_from_settings(
            self.rotation_type,
            days=self.rotation_days,
            count=self.rotation_count,
        )


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    if environ is None:
        load_dotenv()
        environ = os.environ
    rotation_type = (environ.get("LOG_ROTATION_TYPE") or ROTATION_LATEST_PER_SUBJECT).strip().lower()
    if rotation_type not in ROTATION_TYPES:
        logger.warning("Unknown LOG_ROTATION_TYPE=%r; using %s", rotation_type, ROTATION_LATEST_PER_SUBJECT)
        rotation_type = ROTATION_LATEST_PER_SUBJECT
    hour = _positive_int(environ, "LOG_ROTATION_HOUR_UTC", DEFAULT_ROTATION_HOUR_UTC, allow_zero=True)
    if hour > 23:
        logger.warning("LOG_ROTATION_HOUR_UTC=%s out of range; using %s", hour, DEFAULT_ROTATION_HOUR_UTC)
        hour = DEFAULT_ROTATION_HOUR_UTC
    return Settings(
        db_dsn=environ.get("DB_DSN") or None,
        target_subject_types=_split_list(environ.get("INDEXING_TARGET_SUBJECT_TYPES")),
        rotation_type=rotation_type,
        rotation_days=_positive_int(environ, "LOG_ROTATION_DAYS", DEFAULT_ROTATION_DAYS),
        rotation_count=_positive_int(environ, "LOG_ROTATION_COUNT", DEFAULT_ROTATION_COUNT),
        rotation_hour_utc=hour,
        delete_data_on_uninstall=(environ.get("DELETE_DATA_ON_UNINSTALL") or "no").strip().lower() == "yes",
        log_table=environ.get("LOG_TABLE_NAME") or DEFAULT_TABLE_NAME,
        content_table=environ.get("CONTENT_TABLE") or None,
        content_url_column=environ.get("CONTENT_URL_COLUMN") or "url",
        events_host=environ.get("CONTENT_EVENTS_HOST") or "0.0.0.0",
        events_port=_positive_int(environ, "CONTENT_EVENTS_PORT", 0, allow_zero=True),
        events_token=environ.get("CONTENT_EVENTS_TOKEN") or None,
    )


def service_account_source(environ: Mapping[str, str] | None = None) -> CredentialSource:
    """
    Return a callable reading the key JSON at call time, so edits to the
    environment or the key file apply to the next dispatch.
    """

    def _read() -> str | None:
        env = os.environ if environ is None else environ
        raw = env.get(JSON_ENV_KEY)
        if raw and raw.strip():
            return raw
        path = env.get(FILE_ENV_KEY)
        if not path:
            return None
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Cannot read service account file %s: %s", path, exc)
            return None

    return _read


_token_cache: TokenCache | None = None


def get_token_cache() -> TokenCache:
    global _token_cache
    if _token_cache is None:
        _token_cache = TokenCache(GoogleAuthClient(timeout=AUTH_TIMEOUT))
    return _token_cache


def build_dispatcher(
    store: LogStore,
    *,
    credential_source: CredentialSource | None = None,
    subject_resolver: SubjectResolver = unresolved_subject,
    token_cache: TokenCache | None = None,
    session: aiohttp.ClientSession | None = None,
) -> NotificationDispatcher:
    return NotificationDispatcher(
        store=store,
        token_cache=token_cache or get_token_cache(),
        client=IndexingClient(session=session, timeout=PUBLISH_TIMEOUT),
        credential_source=credential_source or service_account_source(),
        subject_resolver=subject_resolver,
    )


def _split_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _positive_int(environ: Mapping[str, str], key: str, default: int, *, allow_zero: bool = False) -> int:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %s", key, raw, default)
        return default
    if value < 0 or (value == 0 and not allow_zero):
        logger.warning("%s=%s must be positive; using %s", key, value, default)
        return default
    return value


__all__ = [
    "Settings",
    "load_settings",
    "service_account_source",
    "get_token_cache",
    "build_dispatcher",
]
