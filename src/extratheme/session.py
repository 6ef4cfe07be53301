"""Authenticated store sessions and where they are kept.

The OAuth install flow that creates sessions lives outside this package.
It hands sessions to a ``SessionStore``; everything here only checks that a
session is usable before any remote call is made.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from extratheme.exceptions import AuthError, InvalidShopError

SHOP_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$")


@dataclass(frozen=True)
class Session:
    """An authenticated session for one shop."""

    shop: str
    access_token: str
    is_online: bool = False
    expires: datetime | None = None
    scope: str = ""

    def is_active(self) -> bool:
        """Online sessions are active until they expire."""
        if not self.access_token:
            return False
        if self.expires is None:
            return True
        return self.expires > datetime.now(UTC)


def require_session(session: Session | None) -> Session:
    """Return the session if it can be used for API calls.

    Offline sessions often carry no expiry, so only the token is checked
    for them. Online sessions must also be active.

    Raises:
        AuthError: If the session is missing, has no token, or has expired.
    """
    if session is None:
        raise AuthError()
    if not session.access_token:
        raise AuthError("Session has no access token")
    if session.is_online and not session.is_active():
        raise AuthError("Online session is not active or expired")
    return session


def sanitize_shop(shop: str | None) -> str:
    """Normalize a shop parameter to a bare ``*.myshopify.com`` domain.

    Accepts values with a scheme or trailing slash, e.g.
    ``https://my-store.myshopify.com/``.

    Raises:
        InvalidShopError: If the value is not a myshopify.com domain.
    """
    if not shop:
        raise InvalidShopError(shop or "")
    cleaned = shop.strip().lower()
    cleaned = re.sub(r"^https?://", "", cleaned).rstrip("/")
    if not SHOP_DOMAIN_RE.match(cleaned):
        raise InvalidShopError(shop)
    return cleaned


class SessionStore(ABC):
    """Key-value storage for sessions, keyed by shop domain."""

    @abstractmethod
    async def get(self, shop: str) -> Session | None:
        """Return the stored session for a shop, if any."""
        pass

    @abstractmethod
    async def store(self, session: Session) -> None:
        """Save or replace the session for ``session.shop``."""
        pass

    @abstractmethod
    async def delete(self, shop: str) -> None:
        """Forget the session for a shop."""
        pass


class InMemorySessionStore(SessionStore):
    """Per-process session store. Suitable for single-instance deployments."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    async def get(self, shop: str) -> Session | None:
        return self._sessions.get(shop)

    async def store(self, session: Session) -> None:
        self._sessions[session.shop] = session

    async def delete(self, shop: str) -> None:
        self._sessions.pop(shop, None)
