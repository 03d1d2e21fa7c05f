"""Failure taxonomy for indexing notifications.

Every error carries the status tag written to the notification log.
"""

from __future__ import annotations

from typing import Any


class IndexingError(RuntimeError):
    """Base class for dispatch failures."""

    status = "ERROR"

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigMissingError(IndexingError):
    status = "CONFIG_ERROR"


class InvalidNotificationTypeError(IndexingError):
    status = "TYPE_ERROR"


class CredentialError(IndexingError):
    """Service-account key failed validation."""

    status = "JSON_ERROR"
    reason = "invalid"


class EmptyCredentialError(CredentialError):
    reason = "empty"


class MalformedJSONError(CredentialError):
    reason = "bad_json"


class MissingFieldError(CredentialError):
    reason = "missing_field"

    def __init__(self, field: str):
        super().__init__(
            f"Service account JSON is missing a required field: {field}",
            {"field": field},
        )
        self.field = field


class WrongTypeError(CredentialError):
    reason = "wrong_type"


class AuthError(IndexingError):
    """Raised while exchanging the credential for an access token."""


class AuthDeniedError(AuthError):
    status = "TOKEN_ERROR"


class AuthProtocolError(AuthError):
    status = "AUTH_EXCEPTION"


class AuthTransportError(AuthError):
    status = "GENERAL_EXCEPTION_AUTH"


class TokenUnavailableError(IndexingError):
    status = "TOKEN_UNAVAILABLE"


class PublishTransportError(IndexingError):
    status = "WP_REMOTE_ERROR"


class UnauthorizedError(IndexingError):
    status = "401"


class IndexingAPIError(IndexingError):
    """Indexing API answered with a non-2xx status other than 401."""

    def __init__(self, status_code: int, message: str, body: Any | None = None):
        super().__init__(message, body)
        self.status_code = status_code
        self.body = body
        self.status = str(status_code)


__all__ = [
    "IndexingError",
    "ConfigMissingError",
    "InvalidNotificationTypeError",
    "CredentialError",
    "EmptyCredentialError",
    "MalformedJSONError",
    "MissingFieldError",
    "WrongTypeError",
    "AuthError",
    "AuthDeniedError",
    "AuthProtocolError",
    "AuthTransportError",
    "TokenUnavailableError",
    "PublishTransportError",
    "UnauthorizedError",
    "IndexingAPIError",
]
