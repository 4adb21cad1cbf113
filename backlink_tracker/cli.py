# backlink_tracker/cli.py
# Defines the command-line interface using argparse.

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import IO, Any, Dict, Sequence

from backlink_tracker import __version__
from backlink_tracker.config import apply_overrides, load_config
from backlink_tracker.fetcher import Fetcher
from backlink_tracker.matcher import make_matcher
from backlink_tracker.properties import DiskPropertyStore, StoreConfig
from backlink_tracker.runner import verify_link
from backlink_tracker.scheduler import PropertyTriggerRegistry, SchedulerAdapter, run_cycle
from backlink_tracker.ui import render_outcome, render_state, render_tick, render_triggers
from backlink_tracker.workbook import XlsxWorkbook

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check, in resumable batches, that source pages still link to their targets.",
        prog="backlink-tracker",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output to stderr.",
    )
    parser.add_argument(
        "--workbook", metavar="PATH", help="The .xlsx workbook holding the datasets."
    )
    parser.add_argument(
        "--state-dir",
        metavar="PATH",
        help="Directory for persisted progress ('os-default' for the platform cache dir).",
    )
    parser.add_argument(
        "--batch-size", type=int, metavar="N", help="Rows checked per tick."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start_parser = subparsers.add_parser(
        "start", help="Reset progress and arm the recurring tick."
    )
    start_parser.add_argument(
        "--dataset",
        dest="datasets",
        action="append",
        metavar="NAME",
        help="Dataset (sheet) to process; repeat for several. Defaults to config.",
    )

    subparsers.add_parser(
        "tick", help="Process the next batch, if a cycle is armed. Suitable for cron."
    )

    run_parser = subparsers.add_parser(
        "run", help="Start a cycle and keep ticking in-process until it completes."
    )
    run_parser.add_argument(
        "--dataset", dest="datasets", action="append", metavar="NAME"
    )
    run_parser.add_argument(
        "--interval", type=float, metavar="MINUTES", help="Minutes between ticks."
    )
    run_parser.add_argument(
        "--no-wait", action="store_true", help="Run batches back to back."
    )

    subparsers.add_parser("cancel", help="Remove the recurring tick trigger.")
    subparsers.add_parser("status", help="Show progress and armed triggers.")

    check_parser = subparsers.add_parser(
        "check", help="Check one source/target pair and print the outcome."
    )
    check_parser.add_argument("source", help="Page expected to carry the link.")
    check_parser.add_argument("target", help="URL the link should point to.")
    return parser


def _load(args: argparse.Namespace) -> Dict[str, Any]:
    config = load_config()
    apply_overrides(config, workbook=args.workbook, batch_size=args.batch_size)
    if args.state_dir:
        config["state"]["directory"] = args.state_dir
    return config


async def _check(config: Dict[str, Any], source: str, target: str, stdout: IO[str]) -> int:
    matcher = make_matcher(config["matcher"], int(config["max_related_links"]))
    async with Fetcher(config) as fetcher:
        outcome = await verify_link(
            fetcher, matcher, source, target, int(config["max_related_links"])
        )
    render_outcome(source, target, outcome, file=stdout)
    return 0 if outcome.status == "live" else 1


async def async_main(
    argv: Sequence[str] | None = None, stdout: IO[str] | None = None
) -> int:
    """Async entry point for the command-line interface."""
    stdout = stdout or sys.stdout
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    config = _load(args)

    if args.command == "check":
        return await _check(config, args.source, args.target, stdout)

    with DiskPropertyStore(StoreConfig(directory=config["state"]["directory"])) as store:
        adapter = SchedulerAdapter(
            config,
            XlsxWorkbook(config["workbook"]),
            store,
            PropertyTriggerRegistry(store),
        )

        if args.command == "start":
            state = adapter.start_cycle(args.datasets)
            render_state(state, file=stdout)
            return 0

        if args.command == "tick":
            if not adapter.is_armed():
                print("No cycle armed; nothing to do.", file=stdout)
                return 0
            render_tick(await adapter.tick(), file=stdout)
            return 0

        if args.command == "run":
            minutes = args.interval
            if minutes is None:
                minutes = float(config["tick_interval_minutes"])
            interval = 0.0 if args.no_wait else minutes * 60
            for report in await run_cycle(adapter, interval, args.datasets):
                render_tick(report, file=stdout)
            return 0

        if args.command == "cancel":
            removed = adapter.cancel_ticks()
            print(f"Removed {removed} trigger(s).", file=stdout)
            return 0

        if args.command == "status":
            render_state(adapter.load_state(), file=stdout)
            render_triggers(adapter.triggers.list(), file=stdout)
            return 0

    # Should not reach
    print(f"Unknown command: {args.command}", file=stdout)
    return 2


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous wrapper for the CLI entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
