"""Custom exceptions for ExtraTheme."""

from __future__ import annotations


class ExtraThemeError(Exception):
    """Base exception for all ExtraTheme errors."""

    pass


class AuthError(ExtraThemeError):
    """Raised when the session is missing, has no token, or has expired."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "Not authenticated or session expired")


class InvalidShopError(ExtraThemeError):
    """Raised when a shop domain is not a valid myshopify.com domain."""

    def __init__(self, shop: str) -> None:
        self.shop = shop
        super().__init__(f"Invalid shop domain: {shop!r}")


class TransportError(ExtraThemeError):
    """Base exception for transport-related errors."""

    pass


class AuthenticationError(TransportError):
    """Raised when the store rejects the access token (401/403)."""

    pass


class NotFoundError(TransportError):
    """Raised when a theme or asset is not found (404).

    ``key`` is set when a single asset was requested.
    """

    def __init__(self, path: str, message: str | None = None, *, key: str | None = None) -> None:
        self.path = path
        self.key = key
        if message is None:
            message = f"Asset not found: {key} ({path})" if key else f"Not found: {path}"
        super().__init__(message)


class APIError(TransportError):
    """Raised for other API errors."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"API error {status_code}: {message}")


class RateLimitError(TransportError):
    """Raised when the store throttles a request (429).

    ``retry_after`` holds the server's hint in seconds, when it sent one.
    """

    def __init__(self, retry_after: float | None = None, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message or "Rate limit exceeded")


class ConflictError(ExtraThemeError):
    """Raised when a target asset changed between read and write."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Target asset {key} changed during merge")


class EmptySourceError(ExtraThemeError):
    """Raised when a source asset has no text content to copy."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No content found in source asset {key}")


class OperationTimeoutError(ExtraThemeError):
    """Raised when an operation exceeds its overall deadline."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} did not finish within {timeout:g}s")
