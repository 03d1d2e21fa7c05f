"""
Google Indexing API integration.

Contains the credential parser, auth/publish clients, token cache and the
notification dispatcher.
"""

from .errors import (
    AuthDeniedError,
    AuthError,
    AuthProtocolError,
    AuthTransportError,
    ConfigMissingError,
    CredentialError,
    EmptyCredentialError,
    IndexingAPIError,
    IndexingError,
    InvalidNotificationTypeError,
    MalformedJSONError,
    MissingFieldError,
    PublishTransportError,
    TokenUnavailableError,
    UnauthorizedError,
    WrongTypeError,
)
from .credentials import ServiceAccountCredential, parse_credential
from .google_client import (
    AccessToken,
    GoogleAuthClient,
    IndexingClient,
    PublishResponse,
    TokenCache,
)
from .dispatcher import DispatchResult, NotificationDispatcher
from .hooks import ContentHooks, ContentItem
from .service import Settings, build_dispatcher, get_token_cache, load_settings, service_account_source
from .webhook import ContentEventServer, start_content_event_server

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
    "ServiceAccountCredential",
    "parse_credential",
    "AccessToken",
    "GoogleAuthClient",
    "IndexingClient",
    "PublishResponse",
    "TokenCache",
    "DispatchResult",
    "NotificationDispatcher",
    "ContentHooks",
    "ContentItem",
    "Settings",
    "load_settings",
    "service_account_source",
    "get_token_cache",
    "build_dispatcher",
    "ContentEventServer",
    "start_content_event_server",
]
