# src/main.py — v1
"""CLI entry point — list, run commands.

Usage:
    bulkops list [--source S] [--search Q]
    bulkops run {delete,find_email,generate} (--all | --link L ...) [options]

Exit codes: 0 when nothing failed, 2 when some items failed, 1 on a fatal
error (configuration, backend unreachable, ...).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from bulkops.api.client import PipelineApiClient
from bulkops.batch.models import Progress, Summary
from bulkops.config.settings import Settings, load_settings
from bulkops.controller.pipeline import PipelineController
from bulkops.core.models import AffiliateItem, FilterState
from bulkops.logging.logger import setup_logging_from_settings
from bulkops.operations.registry import BATCH_KINDS, build_operations
from bulkops.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FATAL

    try:
        settings = load_settings(**_settings_overrides(args))
    except Exception as exc:
        _setup_fallback_logging()
        logger.error("Invalid configuration: %s", exc)
        return EXIT_FATAL

    setup_logging_from_settings(settings, verbose=args.verbose)
    _quiet_libraries()

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FATAL


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bulkops",
        description=f"bulkops v{__version__} — Bulk actions on the saved affiliate pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--user-id", type=int, default=None,
        help="Pipeline owner (default: BULKOPS_USER_ID)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- list ---
    p_list = subparsers.add_parser(
        "list", help="List the saved pipeline (filtered)",
    )
    _add_filter_args(p_list)
    p_list.set_defaults(func=_cmd_list)

    # --- run ---
    p_run = subparsers.add_parser(
        "run", help="Run a batch action over the selected affiliates",
    )
    p_run.add_argument("kind", choices=BATCH_KINDS, help="Batch action")
    target = p_run.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--all", action="store_true",
        help="Select every affiliate visible under the filters",
    )
    target.add_argument(
        "--link", action="append", dest="links", default=None,
        help="Select one affiliate by link (repeatable)",
    )
    p_run.add_argument(
        "--delay-ms", type=int, default=None,
        help="Pause between two items (default: BULKOPS_INTER_ITEM_DELAY_MS)",
    )
    _add_filter_args(p_run)
    p_run.set_defaults(func=_cmd_run)

    return parser


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--source", default="All",
        choices=("All", "Web", "YouTube", "Instagram", "TikTok"),
        help="Source tab (default: All)",
    )
    parser.add_argument(
        "--search", default="",
        help="Case-insensitive search over title, domain and keyword",
    )


def _settings_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.user_id is not None:
        overrides["user_id"] = args.user_id
    if getattr(args, "delay_ms", None) is not None:
        overrides["inter_item_delay_ms"] = args.delay_ms
    return overrides


def _filter_from_args(args: argparse.Namespace) -> FilterState:
    return FilterState(source=args.source, search=args.search)


def _make_client(settings: Settings) -> PipelineApiClient:
    """Backend client for the configured base URL."""
    return PipelineApiClient(
        settings.api_base_url,
        token=settings.api_token or None,
        timeout_s=settings.api_timeout_s,
    )


def _require_user(settings: Settings) -> int | None:
    if settings.user_id is None:
        logger.error("No user id: pass --user-id or set BULKOPS_USER_ID")
    return settings.user_id


async def _cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    """Print the saved pipeline under the given filters."""
    user_id = _require_user(settings)
    if user_id is None:
        return EXIT_FATAL

    async with _make_client(settings) as client:
        controller = PipelineController(
            {}, item_source=lambda: client.list_saved(user_id), settings=settings,
        )
        try:
            await controller.load()
            controller.set_filter(_filter_from_args(args))
            visible = controller.visible_items
        finally:
            controller.close()

    for item in visible:
        print(_format_item(item))
    print(f"\n{len(visible)} of {len(controller.items)} affiliates shown")
    return EXIT_OK


async def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Select affiliates and run one batch action over them."""
    user_id = _require_user(settings)
    if user_id is None:
        return EXIT_FATAL

    async with _make_client(settings) as client:
        controller: PipelineController | None = None

        def lookup(item_id: object) -> AffiliateItem | None:
            return controller.get_item(item_id) if controller else None  # type: ignore[arg-type]

        controller = PipelineController(
            build_operations(client, user_id, lookup),
            item_source=lambda: client.list_saved(user_id),
            settings=settings,
            on_progress=_print_progress,
        )
        try:
            await controller.load()
            controller.set_filter(_filter_from_args(args))
            if args.all:
                controller.select_all_visible()
            else:
                controller.selection.select_many(args.links)

            summary = await controller.run_batch(args.kind)
            notes = controller.notifications.notifications
        finally:
            controller.close()

    if summary is None:
        print("Nothing selected in view; no action taken.")
        return EXIT_OK

    for note in notes:
        print(f"[{note.severity}] {note.message}")
    _print_summary(summary)
    return EXIT_PARTIAL if summary.failed else EXIT_OK


def _format_item(item: AffiliateItem) -> str:
    email = item.email or "-"
    return f"{item.source:<9} {item.domain or item.title:<40} {email:<32} {item.link}"


def _print_progress(progress: Progress) -> None:
    print(f"  [{progress.current}/{progress.total}]", file=sys.stderr)


def _print_summary(summary: Summary) -> None:
    print(f"\nBatch {'cancelled' if summary.cancelled else 'complete'}:")
    print(f"  Succeeded:  {summary.succeeded}")
    print(f"  Failed:     {summary.failed}")
    print(f"  Skipped:    {summary.skipped}")


def _setup_fallback_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _quiet_libraries() -> None:
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
