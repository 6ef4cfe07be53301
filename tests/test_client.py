"""Tests for ThemeClient catalog, fetch and write operations."""

from __future__ import annotations

import asyncio

import pytest

from extratheme.client import ThemeClient
from extratheme.config import Settings
from extratheme.exceptions import (
    APIError,
    AuthError,
    NotFoundError,
    OperationTimeoutError,
    RateLimitError,
)
from extratheme.session import Session
from extratheme.transport import ShopifyTransport
from tests.conftest import SOURCE, TARGET
from tests.fakes import FakeTransport, RecordingSleep


class TestCatalog:
    """Tests for list_themes() and list_assets()."""

    @pytest.mark.asyncio
    async def test_list_themes(self, client: ThemeClient) -> None:
        themes = await client.list_themes()

        assert [t.id for t in themes] == [SOURCE, TARGET]
        assert themes[1].is_live
        assert not themes[0].is_live

    @pytest.mark.asyncio
    async def test_list_assets(self, client: ThemeClient, transport: FakeTransport) -> None:
        transport.set_asset(SOURCE, "templates/index.json", '{"a":1}', updated_at="2024-02-02")

        assets = await client.list_assets(SOURCE)

        assert len(assets) == 1
        assert assets[0].key == "templates/index.json"
        assert assets[0].size == 7
        assert assets[0].updated_at == "2024-02-02"

    @pytest.mark.asyncio
    async def test_list_assets_error_propagates(
        self, client: ThemeClient, transport: FakeTransport
    ) -> None:
        transport.list_errors[str(SOURCE)] = APIError(500, "boom")

        with pytest.raises(APIError):
            await client.list_assets(SOURCE)


class TestFetchContent:
    """Tests for fetch_content() retry behavior."""

    @pytest.mark.asyncio
    async def test_fetch(self, client: ThemeClient, transport: FakeTransport) -> None:
        transport.set_asset(SOURCE, "sections/a.json", '{"x":1}')

        content = await client.fetch_content(SOURCE, "sections/a.json")

        assert content.key == "sections/a.json"
        assert content.value == '{"x":1}'

    @pytest.mark.asyncio
    async def test_retries_with_linear_backoff(
        self, client: ThemeClient, transport: FakeTransport, sleep: RecordingSleep
    ) -> None:
        transport.set_asset(SOURCE, "sections/a.json", '{"x":1}')
        transport.throttle(SOURCE, "sections/a.json", times=2, retry_after=1.5)

        content = await client.fetch_content(SOURCE, "sections/a.json")

        assert content.value == '{"x":1}'
        assert sleep.delays == [1.5, 3.0]
        assert len(transport.reads) == 3

    @pytest.mark.asyncio
    async def test_default_retry_after(
        self, client: ThemeClient, transport: FakeTransport, sleep: RecordingSleep
    ) -> None:
        transport.set_asset(SOURCE, "sections/a.json", "{}")
        transport.throttle(SOURCE, "sections/a.json", times=1)

        await client.fetch_content(SOURCE, "sections/a.json")

        assert sleep.delays == [2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(
        self, client: ThemeClient, transport: FakeTransport, sleep: RecordingSleep
    ) -> None:
        transport.set_asset(SOURCE, "sections/a.json", "{}")
        transport.throttle(SOURCE, "sections/a.json", times=10)

        with pytest.raises(RateLimitError):
            await client.fetch_content(SOURCE, "sections/a.json")

        # One attempt plus three retries
        assert len(transport.reads) == 4
        assert sleep.delays == [2.0, 4.0, 6.0]

    @pytest.mark.asyncio
    async def test_custom_retry_budget(
        self, client: ThemeClient, transport: FakeTransport, sleep: RecordingSleep
    ) -> None:
        transport.set_asset(SOURCE, "sections/a.json", "{}")
        transport.throttle(SOURCE, "sections/a.json", times=10)

        with pytest.raises(RateLimitError):
            await client.fetch_content(SOURCE, "sections/a.json", max_retries=0)

        assert len(transport.reads) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(
        self, client: ThemeClient, transport: FakeTransport, sleep: RecordingSleep
    ) -> None:
        with pytest.raises(NotFoundError):
            await client.fetch_content(SOURCE, "sections/missing.json")

        assert len(transport.reads) == 1
        assert sleep.delays == []


class TestUpdateAsset:
    @pytest.mark.asyncio
    async def test_writes_value(self, client: ThemeClient, transport: FakeTransport) -> None:
        result = await client.update_asset(TARGET, "sections/a.json", '{"x":1}')

        assert transport.value(TARGET, "sections/a.json") == '{"x":1}'
        assert result["key"] == "sections/a.json"


class TestDeadline:
    @pytest.mark.asyncio
    async def test_timeout_cancels_operation(self, transport: FakeTransport) -> None:
        transport.set_asset(SOURCE, "sections/a.json", '{"x":1}')
        transport.set_asset(TARGET, "sections/a.json", '{"x":2}', updated_at="2024-03-03")
        transport.set_asset(SOURCE, "sections/b.json", '{"x":1}')
        transport.set_asset(TARGET, "sections/b.json", '{"x":2}', updated_at="2024-03-03")
        # Real sleeps so the deadline fires during the pause between candidates
        client = ThemeClient(transport, sleep=asyncio.sleep)

        with pytest.raises(OperationTimeoutError) as exc_info:
            await client.compare(SOURCE, TARGET, timeout=0.05)

        assert exc_info.value.operation == "compare"

    @pytest.mark.asyncio
    async def test_no_timeout(self, client: ThemeClient) -> None:
        differences = await client.compare(SOURCE, TARGET, timeout=None)
        assert not differences.has_changes


class TestForSession:
    def test_requires_token(self) -> None:
        session = Session(shop="shop.myshopify.com", access_token="")

        with pytest.raises(AuthError):
            ThemeClient.for_session(session, Settings())

    def test_requires_session(self) -> None:
        with pytest.raises(AuthError):
            ThemeClient.for_session(None, Settings())

    @pytest.mark.asyncio
    async def test_builds_shopify_transport(self) -> None:
        session = Session(shop="shop.myshopify.com", access_token="shpat_123")

        client = ThemeClient.for_session(session, Settings(merge_max_in_flight=2))

        assert isinstance(client._transport, ShopifyTransport)
        assert client.policy.merge.max_in_flight == 2
        await client.close()
