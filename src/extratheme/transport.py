"""Transport layer for the Shopify Admin REST API.

Defines the transport contract used by the client and its implementations:
- ShopifyTransport: Production transport using the Admin REST API
- LocalFileTransport: Test transport reading from local golden files

Paths are relative to the Admin API root and carry no ``.json`` suffix,
e.g. ``themes`` or ``themes/123/assets``.
"""

from __future__ import annotations

import json
import re
import ssl
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import certifi
import httpx

from extratheme.exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    TransportError,
)

DEFAULT_API_VERSION = "2024-10"
DEFAULT_TIMEOUT = 30.0

_ASSETS_PATH_RE = re.compile(r"^themes/(?P<theme_id>[^/]+)/assets$")


class AssetTransport(ABC):
    """Abstract request/response primitive for theme API operations."""

    @abstractmethod
    async def get(self, path: str, query: dict[str, str] | None = None) -> dict[str, Any]:
        """Issue a read request.

        Args:
            path: API path relative to the Admin API root.
            query: Optional query parameters.

        Returns:
            The decoded response body.

        Raises:
            RateLimitError: When the request was throttled.
            TransportError: On any other failure.
        """
        pass

    @abstractmethod
    async def put(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        """Issue a write request with a JSON body."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close transport and cleanup resources."""
        pass


class ShopifyTransport(AssetTransport):
    """Production transport using the Shopify Admin REST API."""

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the transport for one shop.

        Args:
            shop: The shop's myshopify.com domain.
            access_token: Admin API access token for the shop.
            api_version: Admin API version, e.g. ``2024-10``.
            timeout: Per-request timeout in seconds.
        """
        self._base_url = f"https://{shop}/admin/api/{api_version}"
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=ssl_context,
            headers={
                "X-Shopify-Access-Token": access_token,
                "Accept": "application/json",
            },
        )

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}.json"

    def _check_response(
        self, response: httpx.Response, path: str, key: str | None = None
    ) -> None:
        """Check HTTP response and raise appropriate exceptions.

        Raises:
            RateLimitError: On 429 responses.
            AuthenticationError: On 401/403 responses.
            NotFoundError: On 404 responses.
            APIError: On other error responses.
        """
        if response.is_success:
            return

        status = response.status_code
        if status == 429:
            raise RateLimitError(_parse_retry_after(response.headers.get("Retry-After")))

        if status in (401, 403):
            raise AuthenticationError(
                f"Access denied for {path} ({status}). "
                "Check the access token and the read_themes/write_themes scopes."
            )

        if status == 404:
            raise NotFoundError(path, key=key)

        # Shopify reports errors as {"errors": ...}
        try:
            message = str(response.json().get("errors", response.text))
        except ValueError:
            message = response.text

        raise APIError(status, message)

    async def get(self, path: str, query: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(self._url(path), params=query)
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e
        self._check_response(response, path, (query or {}).get("asset[key]"))
        return response.json()  # type: ignore[no-any-return]

    async def put(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.put(self._url(path), json=data)
        except httpx.RequestError as e:
            raise TransportError(f"Network error: {e}") from e
        self._check_response(response, path, data.get("asset", {}).get("key"))
        return response.json()  # type: ignore[no-any-return]

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


class LocalFileTransport(AssetTransport):
    """Testing transport using local golden files.

    Expected directory structure:
        golden_dir/
            themes.json              # Raw themes response
            <theme_id>/
                config/settings_data.json
                sections/header.json
                ...                  # One file per asset key

    Catalog entries are derived from the files: ``size`` is the byte length
    and ``updated_at`` the modification time. Writes go to the same files.
    """

    def __init__(self, golden_dir: Path) -> None:
        self._golden_dir = golden_dir

    async def get(self, path: str, query: dict[str, str] | None = None) -> dict[str, Any]:
        if path == "themes":
            themes_file = self._golden_dir / "themes.json"
            if not themes_file.exists():
                return {"themes": []}
            return json.loads(themes_file.read_text())  # type: ignore[no-any-return]

        theme_dir = self._theme_dir(path)
        key = (query or {}).get("asset[key]")
        if key is None:
            return {"assets": [_asset_entry(theme_dir, f) for f in _walk(theme_dir)]}

        asset_file = theme_dir / key
        if not asset_file.is_file():
            raise NotFoundError(path, key=key)
        return {"asset": {"key": key, "value": asset_file.read_text()}}

    async def put(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        theme_dir = self._theme_dir(path)
        asset = data["asset"]
        asset_file = theme_dir / asset["key"]
        asset_file.parent.mkdir(parents=True, exist_ok=True)
        asset_file.write_text(asset.get("value") or "")
        return {"asset": _asset_entry(theme_dir, asset_file)}

    async def close(self) -> None:
        """No cleanup needed for local file transport."""
        pass

    def _theme_dir(self, path: str) -> Path:
        match = _ASSETS_PATH_RE.match(path)
        if not match:
            raise NotFoundError(path, f"Unsupported path for local transport: {path}")
        theme_dir = self._golden_dir / match.group("theme_id")
        if not theme_dir.is_dir():
            raise NotFoundError(path, f"Golden theme not found: {theme_dir}")
        return theme_dir


# --- Helpers ---


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _walk(theme_dir: Path) -> list[Path]:
    return sorted(p for p in theme_dir.rglob("*") if p.is_file())


def _asset_entry(theme_dir: Path, asset_file: Path) -> dict[str, Any]:
    stat = asset_file.stat()
    return {
        "key": asset_file.relative_to(theme_dir).as_posix(),
        "size": stat.st_size,
        "updated_at": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
    }
