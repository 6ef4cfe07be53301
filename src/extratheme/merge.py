"""Selective merge of content assets from one theme into another."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from extratheme.content import SETTINGS_DATA_KEY, merge_settings_data
from extratheme.exceptions import ConflictError, EmptySourceError, NotFoundError
from extratheme.rate_limit import run_in_batches
from extratheme.types import MergeLedger

if TYPE_CHECKING:
    from extratheme.client import ThemeClient, ThemeId


async def merge_assets(
    client: ThemeClient,
    source_theme_id: ThemeId,
    target_theme_id: ThemeId,
    keys: Sequence[str],
    *,
    check_conflicts: bool = False,
) -> MergeLedger:
    """Write each chosen key from the source theme to the target theme.

    Keys are processed under the merge admission policy. Every key ends up
    in exactly one of ``ledger.success`` and ``ledger.failed``; a failing
    key never stops the others.

    Args:
        client: Client for the shop owning both themes.
        source_theme_id: Theme to copy from.
        target_theme_id: Theme to write to.
        keys: Asset keys chosen by the operator.
        check_conflicts: Re-read the target settings document before writing
            it and fail the key if it changed since it was merged.
    """
    async def merge_one(key: str) -> str | None:
        try:
            await _merge_key(client, source_theme_id, target_theme_id, key, check_conflicts)
        except Exception as e:
            logger.error("Failed to merge asset", extra={"key": key, "error": str(e)})
            return str(e)
        return None

    keys = list(keys)
    errors = await run_in_batches(keys, merge_one, client.policy.merge, client.sleep)

    # Recorded in request order regardless of completion order
    ledger = MergeLedger()
    for key, error in zip(keys, errors, strict=True):
        if error is None:
            ledger.record_success(key)
        else:
            ledger.record_failure(key, error)

    logger.info(
        "Merge complete",
        extra={"source_theme_id": source_theme_id, "target_theme_id": target_theme_id, **ledger.summary},
    )
    return ledger


async def _merge_key(
    client: ThemeClient,
    source_theme_id: ThemeId,
    target_theme_id: ThemeId,
    key: str,
    check_conflicts: bool,
) -> None:
    source = await client.fetch_content(source_theme_id, key)
    if not source.value:
        raise EmptySourceError(key)

    value = source.value
    if key == SETTINGS_DATA_KEY:
        target_value = await _fetch_target_value(client, target_theme_id, key)
        if target_value:
            merged = merge_settings_data(source.value, target_value)
            if merged is None:
                logger.warning("Settings merge skipped, writing source as-is", extra={"key": key})
            else:
                value = merged
            if check_conflicts:
                current = await _fetch_target_value(client, target_theme_id, key)
                if current != target_value:
                    raise ConflictError(key)

    await client.update_asset(target_theme_id, key, value)
    logger.debug("Merged asset", extra={"key": key})


async def _fetch_target_value(client: ThemeClient, theme_id: ThemeId, key: str) -> str | None:
    try:
        content = await client.fetch_content(theme_id, key)
    except NotFoundError:
        return None
    return content.value
