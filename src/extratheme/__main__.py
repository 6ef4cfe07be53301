"""CLI entry point for ExtraTheme."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, NoReturn

from extratheme.client import ThemeClient
from extratheme.config import Settings, get_settings
from extratheme.exceptions import ExtraThemeError
from extratheme.logging import configure_logging
from extratheme.rate_limit import SyncPolicy
from extratheme.session import Session, sanitize_shop
from extratheme.transport import LocalFileTransport


def main() -> NoReturn:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="extratheme",
        description="Compare and merge content between two Shopify themes",
    )
    parser.add_argument(
        "--shop",
        help="Shop domain, e.g. my-store.myshopify.com (default: EXTRATHEME_SHOP)",
    )
    parser.add_argument(
        "--token",
        help="Admin API access token (default: EXTRATHEME_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "--local",
        metavar="DIR",
        help="Read and write a local golden directory instead of the store",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Overall deadline per operation in seconds",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("themes", help="List themes of the shop")

    assets_parser = subparsers.add_parser("assets", help="List assets of a theme")
    assets_parser.add_argument("theme_id", help="Theme ID")

    compare_parser = subparsers.add_parser(
        "compare",
        help="Show content assets that differ between two themes",
    )
    compare_parser.add_argument("source_theme_id", help="Theme to compare from")
    compare_parser.add_argument("target_theme_id", help="Theme to compare against")

    diff_parser = subparsers.add_parser("diff", help="Show one asset from both themes")
    diff_parser.add_argument("source_theme_id")
    diff_parser.add_argument("target_theme_id")
    diff_parser.add_argument("key", help="Asset key, e.g. templates/index.json")

    merge_parser = subparsers.add_parser(
        "merge",
        help="Copy content assets from the source theme into the target theme",
    )
    merge_parser.add_argument("source_theme_id")
    merge_parser.add_argument("target_theme_id")
    merge_parser.add_argument(
        "keys",
        nargs="*",
        help="Asset keys to merge (default: every added or modified key)",
    )
    merge_parser.add_argument(
        "--check-conflicts",
        action="store_true",
        help="Fail settings_data.json if the target changes during the merge",
    )

    args = parser.parse_args()
    settings = get_settings()
    configure_logging(is_production=False, log_level=settings.log_level)

    try:
        output = asyncio.run(run_command(args, settings))
        print(json.dumps(output, indent=2))
    except ExtraThemeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted", file=sys.stderr)
        sys.exit(130)

    sys.exit(0)


async def run_command(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    """Execute one subcommand and return its JSON output."""
    client = build_client(args, settings)
    timeout = args.timeout if args.timeout is not None else settings.operation_timeout

    try:
        if args.command == "themes":
            themes = await client.list_themes()
            return {"themes": [t.to_dict() for t in themes]}

        if args.command == "assets":
            assets = await client.list_assets(args.theme_id)
            return {"assets": [a.to_dict() for a in assets]}

        if args.command == "compare":
            differences = await client.compare(
                args.source_theme_id, args.target_theme_id, timeout=timeout
            )
            return differences.to_dict()

        if args.command == "diff":
            file_diff = await client.diff(
                args.source_theme_id, args.target_theme_id, args.key, timeout=timeout
            )
            return file_diff.to_dict()

        keys = args.keys
        if not keys:
            differences = await client.compare(
                args.source_theme_id, args.target_theme_id, timeout=timeout
            )
            keys = differences.actionable_keys
        ledger = await client.merge(
            args.source_theme_id,
            args.target_theme_id,
            keys,
            check_conflicts=args.check_conflicts,
            timeout=timeout,
        )
        return ledger.to_dict()

    finally:
        await client.close()


def build_client(args: argparse.Namespace, settings: Settings) -> ThemeClient:
    """Create a client for the golden directory or the configured shop."""
    if args.local:
        return ThemeClient(
            LocalFileTransport(Path(args.local)),
            policy=SyncPolicy.from_settings(settings),
        )

    shop = sanitize_shop(args.shop or settings.shop)
    session = Session(shop=shop, access_token=args.token or settings.access_token)
    return ThemeClient.for_session(session, settings)


if __name__ == "__main__":
    main()
