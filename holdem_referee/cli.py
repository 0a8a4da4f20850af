"""Command line interface for the Hold'em referee."""

from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib
from typing import List, Optional

from dotenv import load_dotenv

from .session import SessionConfig, SessionResult, replicate_tables, run_tables


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Referee a Texas Hold'em game between decision-makers")
    parser.add_argument("--config", required=True, help="Path to game config (YAML or JSON)")
    parser.add_argument(
        "--output",
        required=False,
        default="artifacts/latest_game",
        help="Directory to store event logs, per-hand records and summaries",
    )
    parser.add_argument("--hands", type=int, default=None, help="Override the number of hands to play")
    parser.add_argument("--seed", type=int, default=None, help="Override the deck seed")
    parser.add_argument("--tables", type=int, default=1, help="Number of independent tables to run concurrently")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not call any model API; LLM seats check or call",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Python logging level (e.g. INFO, WARNING). Use INFO to see per-decision traces.",
    )
    return parser.parse_args(argv)


def print_summary(results: List[SessionResult], output_dir: pathlib.Path) -> None:
    for result in results:
        print(f"=== Table {result.table_id} ===")
        for seat_id in sorted(result.metrics):
            stats = result.metrics[seat_id]
            print(f"-- {stats['name']} ({seat_id}) --")
            print(f"Final stack: {result.final_stacks.get(seat_id)}")
            print(f"Hands played: {stats['hands']}, won: {stats['hands_won']}")
            print(f"bb/100: {stats['bb_per_100']:.2f}")
            print(f"Timeouts: {stats['timeouts']}, illegal actions: {stats['illegal_actions']}")
            print(f"VPIP {stats['vpip']:.3f}, PFR {stats['pfr']:.3f}, AF {stats['af']:.2f}")
            if result.rebuys.get(seat_id):
                print(f"Rebuys: {result.rebuys[seat_id]}")
            print()
    print(f"Artifacts written to: {output_dir.resolve()}")


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    # the SDK logs every HTTP request at INFO
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    config = SessionConfig.from_file(args.config)
    if args.hands is not None:
        config.hands = args.hands
    if args.seed is not None:
        config.seed = args.seed
    if args.dry_run:
        config.dry_run = True
    config.validate()

    output_dir = pathlib.Path(args.output)
    configs = replicate_tables(config, max(1, args.tables))
    results = asyncio.run(run_tables(configs, output_dir))
    print_summary(results, output_dir)


if __name__ == "__main__":
    main()
