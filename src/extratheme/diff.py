"""Compare the content assets of two themes.

Only content documents are considered (see ``is_content_key``). Keys whose
catalog size or timestamp differ are ambiguous: reformatting changes the
size without changing the content, and a duplicated theme has new
timestamps on identical files. Those candidates are resolved by fetching
and comparing both bodies, under the compare admission policy.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from loguru import logger

from extratheme.content import contents_equal, is_content_key, pretty_content
from extratheme.rate_limit import run_in_batches
from extratheme.types import AssetEntryDelta, AssetRef, DifferenceSet, FileDiff

if TYPE_CHECKING:
    from extratheme.client import ThemeClient, ThemeId

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class _Candidate:
    source: AssetRef
    target: AssetRef

    @property
    def key(self) -> str:
        return self.source.key

    def delta(self, error: str | None = None) -> AssetEntryDelta:
        return AssetEntryDelta(
            key=self.key,
            source_size=self.source.size,
            target_size=self.target.size,
            source_updated_at=self.source.updated_at,
            target_updated_at=self.target.updated_at,
            error=error,
        )


def content_assets(assets: list[AssetRef]) -> dict[str, AssetRef]:
    """Filter a catalog to content documents, keyed by asset key in catalog order."""
    return {a.key: a for a in assets if is_content_key(a.key)}


async def gather_pair(
    first: Coroutine[Any, Any, T],
    second: Coroutine[Any, Any, U],
) -> tuple[T, U]:
    """Await two calls concurrently.

    If either call fails, the other is cancelled and awaited before the
    first error is raised, so no request outlives the pair.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            first_task = tg.create_task(first)
            second_task = tg.create_task(second)
    except ExceptionGroup as eg:
        raise eg.exceptions[0] from None
    return first_task.result(), second_task.result()


async def compare_themes(
    client: ThemeClient,
    source_theme_id: ThemeId,
    target_theme_id: ThemeId,
) -> DifferenceSet:
    """Compute added, modified and deleted content assets from source to target.

    A catalog failure aborts the comparison. A failure while resolving one
    candidate marks that key as modified, with the error attached.
    """
    source_assets, target_assets = await gather_pair(
        client.list_assets(source_theme_id),
        client.list_assets(target_theme_id),
    )
    source_map = content_assets(source_assets)
    target_map = content_assets(target_assets)

    added: list[AssetRef] = []
    candidates: list[_Candidate] = []
    for key, source_asset in source_map.items():
        target_asset = target_map.get(key)
        if target_asset is None:
            added.append(source_asset)
        elif (
            source_asset.size != target_asset.size
            or source_asset.updated_at != target_asset.updated_at
        ):
            candidates.append(_Candidate(source_asset, target_asset))

    logger.info(
        "Comparing content",
        extra={
            "source_theme_id": source_theme_id,
            "target_theme_id": target_theme_id,
            "candidates": len(candidates),
        },
    )

    async def resolve(candidate: _Candidate) -> AssetEntryDelta | None:
        return await _resolve_candidate(client, source_theme_id, target_theme_id, candidate)

    resolved = await run_in_batches(candidates, resolve, client.policy.compare, client.sleep)
    modified = [delta for delta in resolved if delta is not None]

    # Informational only: no content is fetched for these
    deleted = [asset for key, asset in target_map.items() if key not in source_map]

    result = DifferenceSet(added=tuple(added), modified=tuple(modified), deleted=tuple(deleted))
    logger.info("Content comparison complete", extra=result.summary.to_dict())
    return result


async def _resolve_candidate(
    client: ThemeClient,
    source_theme_id: ThemeId,
    target_theme_id: ThemeId,
    candidate: _Candidate,
) -> AssetEntryDelta | None:
    key = candidate.key
    try:
        source_content, target_content = await gather_pair(
            client.fetch_content(source_theme_id, key),
            client.fetch_content(target_theme_id, key),
        )
    except Exception as e:
        logger.error(
            "Error comparing asset, treating as modified",
            extra={"key": key, "error": str(e)},
        )
        return candidate.delta(error=str(e))

    if contents_equal(key, source_content.value, target_content.value):
        logger.debug("Identical content", extra={"key": key})
        return None
    logger.debug("Content differs", extra={"key": key})
    return candidate.delta()


async def diff_asset(
    client: ThemeClient,
    source_theme_id: ThemeId,
    target_theme_id: ThemeId,
    key: str,
) -> FileDiff:
    """Fetch one asset from both themes, pretty-printing each JSON side that parses."""
    source_content, target_content = await gather_pair(
        client.fetch_content(source_theme_id, key),
        client.fetch_content(target_theme_id, key),
    )
    return FileDiff(
        key=key,
        source=pretty_content(key, source_content.value),
        target=pretty_content(key, target_content.value),
    )
