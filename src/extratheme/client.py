"""ThemeClient - Main API for extratheme.

Provides theme and asset listing, rate-limit aware asset fetching, and the
compare, diff and merge operations used to move content between two themes
of the same shop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from extratheme.config import Settings
from extratheme.diff import compare_themes, diff_asset
from extratheme.exceptions import OperationTimeoutError, RateLimitError
from extratheme.merge import merge_assets
from extratheme.rate_limit import Sleep, SyncPolicy
from extratheme.session import Session, require_session
from extratheme.transport import AssetTransport, ShopifyTransport
from extratheme.types import AssetContent, AssetRef, DifferenceSet, FileDiff, MergeLedger, ThemeRef

ThemeId = int | str

T = TypeVar("T")


class ThemeClient:
    """Client for comparing and merging content between themes of one shop.

    Example:
        >>> transport = ShopifyTransport("my-store.myshopify.com", "shpat_...")
        >>> client = ThemeClient(transport)
        >>> differences = await client.compare(source_id, target_id)
        >>> ledger = await client.merge(source_id, target_id, differences.actionable_keys)
    """

    def __init__(
        self,
        transport: AssetTransport,
        policy: SyncPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._transport = transport
        self._policy = policy or SyncPolicy()
        self._sleep = sleep

    @classmethod
    def for_session(cls, session: Session | None, settings: Settings) -> ThemeClient:
        """Create a client backed by the Admin API for an authenticated session.

        Raises:
            AuthError: If the session cannot be used. No request is made.
        """
        session = require_session(session)
        transport = ShopifyTransport(
            session.shop,
            session.access_token,
            api_version=settings.shopify_api_version,
            timeout=settings.request_timeout,
        )
        return cls(transport, policy=SyncPolicy.from_settings(settings))

    @property
    def policy(self) -> SyncPolicy:
        return self._policy

    @property
    def sleep(self) -> Sleep:
        return self._sleep

    async def close(self) -> None:
        await self._transport.close()

    # --- Catalog ---

    async def list_themes(self) -> list[ThemeRef]:
        """List all themes of the shop. Errors propagate without retry."""
        data = await self._transport.get("themes")
        return [_parse_theme(t) for t in data.get("themes", [])]

    async def list_assets(self, theme_id: ThemeId) -> list[AssetRef]:
        """List catalog metadata for every asset in a theme. Errors propagate without retry."""
        data = await self._transport.get(f"themes/{theme_id}/assets")
        return [_parse_asset(a) for a in data.get("assets", [])]

    # --- Single assets ---

    async def fetch_content(
        self,
        theme_id: ThemeId,
        key: str,
        max_retries: int | None = None,
    ) -> AssetContent:
        """Fetch one asset body, retrying when throttled.

        A throttled read waits ``retry_after * attempt`` seconds, where
        ``retry_after`` is the server's hint (or the policy default) and
        ``attempt`` counts from 1. Any other error, or running out of
        retries, is raised to the caller.

        Args:
            theme_id: Theme to read from.
            key: Asset key, e.g. ``templates/index.json``.
            max_retries: Retries after the first attempt. Defaults to the policy.

        Raises:
            RateLimitError: If the read is still throttled after all retries.
            TransportError: On any other remote failure.
        """
        retries = self._policy.max_retries if max_retries is None else max_retries
        path = f"themes/{theme_id}/assets"

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(RateLimitError),
            stop=stop_after_attempt(retries + 1),
            wait=self._wait_for_retry_after,
            sleep=self._sleep,
            before_sleep=_log_retry(theme_id, key),
            reraise=True,
        ):
            with attempt:
                data = await self._transport.get(path, {"asset[key]": key})

        asset = data.get("asset") or {}
        return AssetContent(key=asset.get("key", key), value=asset.get("value"))

    async def update_asset(self, theme_id: ThemeId, key: str, value: str) -> dict[str, Any]:
        """Write one asset body. A single request, never retried."""
        data = await self._transport.put(
            f"themes/{theme_id}/assets",
            {"asset": {"key": key, "value": value}},
        )
        return data.get("asset") or {}

    def _wait_for_retry_after(self, retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(exc, "retry_after", None) or self._policy.default_retry_after
        return float(retry_after) * retry_state.attempt_number

    # --- Operations ---

    async def compare(
        self,
        source_theme_id: ThemeId,
        target_theme_id: ThemeId,
        *,
        timeout: float | None = None,
    ) -> DifferenceSet:
        """Find content assets that differ between two themes.

        Raises:
            TransportError: If either catalog cannot be listed.
            OperationTimeoutError: If ``timeout`` seconds elapse first.
        """
        return await self._run(
            "compare",
            lambda: compare_themes(self, source_theme_id, target_theme_id),
            timeout,
        )

    async def diff(
        self,
        source_theme_id: ThemeId,
        target_theme_id: ThemeId,
        key: str,
        *,
        timeout: float | None = None,
    ) -> FileDiff:
        """Fetch one asset from both themes for side-by-side display."""
        return await self._run(
            "diff",
            lambda: diff_asset(self, source_theme_id, target_theme_id, key),
            timeout,
        )

    async def merge(
        self,
        source_theme_id: ThemeId,
        target_theme_id: ThemeId,
        keys: Sequence[str],
        *,
        check_conflicts: bool = False,
        timeout: float | None = None,
    ) -> MergeLedger:
        """Copy the chosen assets from the source theme into the target theme.

        Per-key failures are recorded in the returned ledger.
        """
        return await self._run(
            "merge",
            lambda: merge_assets(
                self,
                source_theme_id,
                target_theme_id,
                keys,
                check_conflicts=check_conflicts,
            ),
            timeout,
        )

    async def _run(
        self,
        operation: str,
        factory: Callable[[], Awaitable[T]],
        timeout: float | None,
    ) -> T:
        if timeout is None:
            return await factory()
        try:
            async with asyncio.timeout(timeout):
                return await factory()
        except TimeoutError as e:
            logger.error(
                "Operation deadline exceeded",
                extra={"operation": operation, "timeout": timeout},
            )
            raise OperationTimeoutError(operation, timeout) from e


# --- Helpers ---


def _log_retry(theme_id: ThemeId, key: str) -> Callable[[RetryCallState], None]:
    def before_sleep(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else None
        logger.warning(
            "Rate limited, retrying asset fetch",
            extra={
                "theme_id": theme_id,
                "key": key,
                "attempt": retry_state.attempt_number,
                "delay_seconds": delay,
            },
        )

    return before_sleep


def _parse_theme(data: dict[str, Any]) -> ThemeRef:
    return ThemeRef(
        id=data["id"],
        name=data.get("name", ""),
        role=data.get("role", "unpublished"),
    )


def _parse_asset(data: dict[str, Any]) -> AssetRef:
    return AssetRef(
        key=data["key"],
        size=data.get("size") or 0,
        updated_at=data.get("updated_at", ""),
    )
