"""
Adaptive Tasks CLI

Terminal front end for the session orchestrator.

Usage:
    python main.py run               # interactive: finish cards, reset, quit
    python main.py show              # print the current chain
    python main.py reset             # clear state and seed a new chain
    python main.py log [--limit N]   # recent finish activity
"""

import argparse
import asyncio
import logging
import os
import random
import sys
from typing import Callable, List, Optional

from recommender.client import RecommendationClient
from session.chain_store import ChainStore
from session.config_loader import load_config
from session.orchestrator import SessionOrchestrator
from session.presentation import ConsolePresentation, Presentation
from utils import activity_logger
from utils.kv_store import JsonFileStore
from utils.log_utils import setup_logging

logger = logging.getLogger(__name__)


def build_orchestrator(args: argparse.Namespace, presentation: Optional[Presentation] = None) -> SessionOrchestrator:
    """Wire store, client and presentation from CLI arguments and config."""
    config = load_config()
    storage_path = args.store or config["storage_path"]
    logger.info(f"Using session store at {storage_path}")

    rng = random.Random(args.seed) if args.seed is not None else None
    return SessionOrchestrator(
        chain_store=ChainStore(JsonFileStore(storage_path)),
        client=RecommendationClient(base_url=args.base_url),
        presentation=presentation or ConsolePresentation(),
        rng=rng
    )


async def run_interactive(
    orchestrator: SessionOrchestrator,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print
) -> None:
    """Boot, then loop on card selections until the user quits."""
    await orchestrator.boot()
    while True:
        try:
            choice = await asyncio.to_thread(input_fn, "\nCard number to finish, 'r' to reset, 'q' to quit: ")
        except EOFError:
            break
        choice = choice.strip().lower()

        if choice in ("q", "quit"):
            break
        if choice in ("r", "reset"):
            await orchestrator.reset()
            continue

        chain = orchestrator.chain
        try:
            index = int(choice)
        except ValueError:
            output_fn(f"Unknown command: {choice!r}")
            continue
        if not 1 <= index <= len(chain):
            output_fn(f"Pick a card between 1 and {len(chain)}")
            continue

        await orchestrator.finish(tapped=chain[index - 1])


async def _show(args: argparse.Namespace) -> None:
    await build_orchestrator(args).boot()


async def _reset(args: argparse.Namespace) -> None:
    await build_orchestrator(args).reset()


def print_activity_log(log_dir: str, limit: int, output_fn: Callable[[str], None] = print) -> int:
    """Print recent finish entries, newest first. Returns the number printed."""
    entries = activity_logger.read_activity_logs(
        os.path.join(log_dir, activity_logger.FINISH_SUBDIR),
        limit=limit
    )
    if not entries:
        output_fn("No finish activity recorded yet.")
        return 0

    for entry in entries:
        recommendation = entry.get("recommendation") or {}
        line = f"{entry.get('timestamp', '?')}  {entry.get('activity_id', '?')}  {entry.get('status', '?')}"
        if recommendation.get("activity_id"):
            line += f"  -> {recommendation['activity_id']}"
        if entry.get("error"):
            line += f"  ({entry['error']})"
        output_fn(line)
    return len(entries)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Adaptive Tasks: activity recommendation chain")
    parser.add_argument("--base-url", default=None, help="Recommendation service base URL")
    parser.add_argument("--store", default=None, help="Path of the session store JSON file")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for choosing the first activity")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "WARNING"), help="Logging level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="Interactive session")
    subparsers.add_parser("show", help="Print the current chain")
    subparsers.add_parser("reset", help="Clear state and seed a new chain")
    log_parser = subparsers.add_parser("log", help="Show recent finish activity")
    log_parser.add_argument("--limit", type=int, default=20, help="Number of entries to show")
    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "run":
        asyncio.run(run_interactive(build_orchestrator(args)))
    elif args.command == "show":
        asyncio.run(_show(args))
    elif args.command == "reset":
        asyncio.run(_reset(args))
    elif args.command == "log":
        print_activity_log(load_config()["activity_log_dir"], args.limit)
    return 0


if __name__ == "__main__":
    sys.exit(cli())
