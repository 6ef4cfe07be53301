"""ExtraTheme: Compare and merge content between two Shopify themes."""

from extratheme.client import ThemeClient
from extratheme.content import is_content_key, merge_settings_data
from extratheme.exceptions import (
    APIError,
    AuthenticationError,
    AuthError,
    ConflictError,
    EmptySourceError,
    ExtraThemeError,
    InvalidShopError,
    NotFoundError,
    OperationTimeoutError,
    RateLimitError,
    TransportError,
)
from extratheme.rate_limit import AdmissionPolicy, SyncPolicy
from extratheme.session import (
    InMemorySessionStore,
    Session,
    SessionStore,
    require_session,
    sanitize_shop,
)
from extratheme.transport import AssetTransport, LocalFileTransport, ShopifyTransport
from extratheme.types import (
    AssetContent,
    AssetEntryDelta,
    AssetRef,
    DifferenceSet,
    FileDiff,
    MergeFailure,
    MergeLedger,
    ThemeRef,
)

__all__ = [
    # Client
    "ThemeClient",
    # Transport
    "AssetTransport",
    "ShopifyTransport",
    "LocalFileTransport",
    # Sessions
    "Session",
    "SessionStore",
    "InMemorySessionStore",
    "require_session",
    "sanitize_shop",
    # Rate limiting
    "AdmissionPolicy",
    "SyncPolicy",
    # Content rules
    "is_content_key",
    "merge_settings_data",
    # Types
    "ThemeRef",
    "AssetRef",
    "AssetContent",
    "AssetEntryDelta",
    "DifferenceSet",
    "FileDiff",
    "MergeFailure",
    "MergeLedger",
    # Exceptions
    "ExtraThemeError",
    "AuthError",
    "InvalidShopError",
    "TransportError",
    "AuthenticationError",
    "NotFoundError",
    "APIError",
    "RateLimitError",
    "ConflictError",
    "EmptySourceError",
    "OperationTimeoutError",
]
