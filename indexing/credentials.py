"""Service-account key parsing."""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Mapping

from .errors import EmptyCredentialError, MalformedJSONError, MissingFieldError, WrongTypeError

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
SERVICE_ACCOUNT_TYPE = "service_account"

REQUIRED_FIELDS: tuple[str, ...] = (
    "type",
    "project_id",
    "private_key_id",
    "private_key",
    "client_email",
    "client_id",
)


@dataclass(slots=True, frozen=True)
class ServiceAccountCredential:
    type: str
    project_id: str
    private_key_id: str
    private_key: str
    client_email: str
    client_id: str
    token_uri: str = DEFAULT_TOKEN_URI


def parse_credential(raw: str | None) -> ServiceAccountCredential:
    """
    Validate a service-account key and return the credential bundle.

    Raises EmptyCredentialError for blank input; callers treat that as
    "not configured" rather than as a broken key.
    """
    text = (raw or "").strip()
    if not text:
        raise EmptyCredentialError("Service account JSON not configured.")
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise MalformedJSONError(f"Invalid Service account JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise MalformedJSONError("Invalid Service account JSON: expected an object")

    for field in REQUIRED_FIELDS:
        if not _is_present(data.get(field)):
            raise MissingFieldError(field)
    if data["type"] != SERVICE_ACCOUNT_TYPE:
        raise WrongTypeError(
            'The provided JSON is not of type "service_account".',
            {"type": data["type"]},
        )

    token_uri = data.get("token_uri")
    return ServiceAccountCredential(
        type=str(data["type"]),
        project_id=str(data["project_id"]),
        private_key_id=str(data["private_key_id"]),
        private_key=str(data["private_key"]),
        client_email=str(data["client_email"]),
        client_id=str(data["client_id"]),
        token_uri=str(token_uri) if isinstance(token_uri, str) and token_uri else DEFAULT_TOKEN_URI,
    )


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


__all__ = [
    "DEFAULT_TOKEN_URI",
    "REQUIRED_FIELDS",
    "ServiceAccountCredential",
    "parse_credential",
]
