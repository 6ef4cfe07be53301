"""Fake implementations for testing.

FakeTransport serves an in-memory shop over the same request paths the
Admin API uses, and lets tests inject failures and throttling per asset.
"""

from __future__ import annotations

import asyncio
from typing import Any

from extratheme.exceptions import NotFoundError, RateLimitError
from extratheme.rate_limit import AdmissionPolicy, SyncPolicy
from extratheme.transport import AssetTransport

DEFAULT_UPDATED_AT = "2024-01-01T00:00:00-05:00"

# No pauses between batches; batch sizes as in production
FAST_POLICY = SyncPolicy(
    compare=AdmissionPolicy(max_in_flight=1, min_interval=0),
    merge=AdmissionPolicy(max_in_flight=5, min_interval=0),
)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class YieldingSleep(RecordingSleep):
    """Records delays and yields to the event loop without waiting."""

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class FakeTransport(AssetTransport):
    """In-memory shop with controllable behavior for every request."""

    def __init__(self) -> None:
        self.themes: list[dict[str, Any]] = []
        # theme_id -> key -> {"value", "updated_at", "size"}
        self.assets: dict[str, dict[str, dict[str, Any]]] = {}
        self.read_errors: dict[tuple[str, str], Exception] = {}
        self.write_errors: dict[tuple[str, str], Exception] = {}
        self.list_errors: dict[str, Exception] = {}
        # (theme_id, key) -> [remaining 429s, retry_after]
        self.throttled: dict[tuple[str, str], list[Any]] = {}
        self.reads: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str, str]] = []
        self.in_flight = 0
        # Seconds every request takes before it is answered
        self.latency = 0.0
        self.max_in_flight = 0
        self._writes_done = 0

    # --- Setup helpers ---

    def add_theme(self, theme_id: int, name: str, role: str = "unpublished") -> None:
        self.themes.append({"id": theme_id, "name": name, "role": role})
        self.assets.setdefault(str(theme_id), {})

    def set_asset(
        self,
        theme_id: int,
        key: str,
        value: str,
        updated_at: str = DEFAULT_UPDATED_AT,
        size: int | None = None,
    ) -> None:
        self.assets.setdefault(str(theme_id), {})[key] = {
            "value": value,
            "updated_at": updated_at,
            "size": len(value.encode()) if size is None else size,
        }

    def value(self, theme_id: int, key: str) -> str | None:
        asset = self.assets.get(str(theme_id), {}).get(key)
        return asset["value"] if asset else None

    def throttle(self, theme_id: int, key: str, times: int, retry_after: float | None = None) -> None:
        self.throttled[(str(theme_id), key)] = [times, retry_after]

    # --- AssetTransport ---

    async def get(self, path: str, query: dict[str, str] | None = None) -> dict[str, Any]:
        async with self._track():
            if path == "themes":
                return {"themes": list(self.themes)}

            theme_id = self._theme_id(path)
            if query is None:
                if theme_id in self.list_errors:
                    raise self.list_errors[theme_id]
                return {
                    "assets": [
                        {"key": key, "size": a["size"], "updated_at": a["updated_at"]}
                        for key, a in self.assets[theme_id].items()
                    ]
                }

            key = query["asset[key]"]
            self.reads.append((theme_id, key))
            throttle = self.throttled.get((theme_id, key))
            if throttle and throttle[0] > 0:
                throttle[0] -= 1
                raise RateLimitError(throttle[1])
            if (theme_id, key) in self.read_errors:
                raise self.read_errors[(theme_id, key)]
            asset = self.assets[theme_id].get(key)
            if asset is None:
                raise NotFoundError(path, key=key)
            return {"asset": {"key": key, "value": asset["value"]}}

    async def put(self, path: str, data: dict[str, Any]) -> dict[str, Any]:
        async with self._track():
            theme_id = self._theme_id(path)
            key = data["asset"]["key"]
            value = data["asset"]["value"]
            if (theme_id, key) in self.write_errors:
                raise self.write_errors[(theme_id, key)]
            self._writes_done += 1
            self.writes.append((theme_id, key, value))
            self.assets[theme_id][key] = {
                "value": value,
                "updated_at": f"2024-06-01T00:00:{self._writes_done:02d}-05:00",
                "size": len(value.encode()),
            }
            return {"asset": {"key": key, "size": len(value.encode())}}

    async def close(self) -> None:
        pass

    # --- Internals ---

    def _theme_id(self, path: str) -> str:
        parts = path.split("/")
        if len(parts) != 3 or parts[0] != "themes" or parts[2] != "assets":
            raise NotFoundError(path)
        if parts[1] not in self.assets:
            raise NotFoundError(path)
        return parts[1]

    def _track(self) -> _InFlight:
        return _InFlight(self)


class _InFlight:
    """Counts concurrent requests and yields so others can start."""

    def __init__(self, transport: FakeTransport) -> None:
        self._transport = transport

    async def __aenter__(self) -> None:
        self._transport.in_flight += 1
        self._transport.max_in_flight = max(self._transport.max_in_flight, self._transport.in_flight)
        await asyncio.sleep(self._transport.latency)

    async def __aexit__(self, *exc: object) -> None:
        self._transport.in_flight -= 1
