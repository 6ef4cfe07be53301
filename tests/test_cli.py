"""Tests for the CLI commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from extratheme.__main__ import build_client, run_command
from extratheme.config import Settings
from extratheme.exceptions import AuthError, InvalidShopError


def _args(**kwargs) -> argparse.Namespace:
    defaults = {"shop": None, "token": None, "local": None, "timeout": None}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


@pytest.fixture
def golden(tmp_path: Path) -> Path:
    (tmp_path / "themes.json").write_text(json.dumps({"themes": [{"id": 1, "name": "A"}]}))
    for theme_id, value in (("1", '{"a": 1}'), ("2", '{"a": 22}')):
        path = tmp_path / theme_id / "templates" / "index.json"
        path.parent.mkdir(parents=True)
        path.write_text(value)
    (tmp_path / "1" / "sections").mkdir()
    (tmp_path / "1" / "sections" / "new.json").write_text("{}")
    return tmp_path


class TestBuildClient:
    def test_requires_token(self) -> None:
        with pytest.raises(AuthError):
            build_client(_args(shop="my-store.myshopify.com"), Settings(access_token=""))

    def test_rejects_bad_shop(self) -> None:
        with pytest.raises(InvalidShopError):
            build_client(_args(shop="nope", token="shpat_1"), Settings())


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_themes(self, golden: Path) -> None:
        output = await run_command(_args(local=str(golden), command="themes"), Settings())
        assert output == {"themes": [{"id": 1, "name": "A", "role": "unpublished"}]}

    @pytest.mark.asyncio
    async def test_compare(self, golden: Path) -> None:
        output = await run_command(
            _args(
                local=str(golden),
                command="compare",
                source_theme_id="1",
                target_theme_id="2",
            ),
            Settings(compare_interval=0),
        )
        assert output["summary"] == {"added": 1, "modified": 1, "deleted": 0, "total": 2}

    @pytest.mark.asyncio
    async def test_merge_defaults_to_compare_result(self, golden: Path) -> None:
        output = await run_command(
            _args(
                local=str(golden),
                command="merge",
                source_theme_id="1",
                target_theme_id="2",
                keys=[],
                check_conflicts=False,
            ),
            Settings(compare_interval=0, merge_interval=0),
        )

        assert output["summary"] == {"total": 2, "successful": 2, "failed": 0}
        assert (golden / "2" / "sections" / "new.json").read_text() == "{}"
        assert (golden / "2" / "templates" / "index.json").read_text() == '{"a": 1}'
