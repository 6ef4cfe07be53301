"""Admission control for calls against the store's rate-limited API.

The Admin REST API allows roughly two requests per second per shop. Work
is admitted in batches of at most ``max_in_flight`` items with a pause of
``min_interval`` seconds between batches.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from extratheme.config import Settings

T = TypeVar("T")
R = TypeVar("R")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class AdmissionPolicy:
    """How many items may run at once, and the pause between batches."""

    max_in_flight: int
    min_interval: float

    def __post_init__(self) -> None:
        if self.max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        if self.min_interval < 0:
            raise ValueError("min_interval must not be negative")


# Each comparison candidate issues two reads, so one pair per 0.6s stays under 2 req/s
DEFAULT_COMPARE_POLICY = AdmissionPolicy(max_in_flight=1, min_interval=0.6)
DEFAULT_MERGE_POLICY = AdmissionPolicy(max_in_flight=5, min_interval=0.5)


@dataclass(frozen=True)
class SyncPolicy:
    """Rate-limit parameters for a ThemeClient."""

    compare: AdmissionPolicy = field(default=DEFAULT_COMPARE_POLICY)
    merge: AdmissionPolicy = field(default=DEFAULT_MERGE_POLICY)
    max_retries: int = 3
    default_retry_after: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> SyncPolicy:
        return cls(
            compare=AdmissionPolicy(
                max_in_flight=settings.compare_max_in_flight,
                min_interval=settings.compare_interval,
            ),
            merge=AdmissionPolicy(
                max_in_flight=settings.merge_max_in_flight,
                min_interval=settings.merge_interval,
            ),
            max_retries=settings.fetch_max_retries,
            default_retry_after=settings.default_retry_after,
        )


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    policy: AdmissionPolicy,
    sleep: Sleep = asyncio.sleep,
) -> list[R]:
    """Run ``worker`` over ``items`` under an admission policy.

    Items within a batch run concurrently; batches run one after another.
    Results are returned in input order. Workers are expected to handle
    their own per-item failures; an exception escaping a worker aborts the run.
    """
    results: list[R] = []
    size = policy.max_in_flight
    for start in range(0, len(items), size):
        batch = items[start : start + size]
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
        if start + size < len(items):
            await sleep(policy.min_interval)
    return results
