from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Collect the keys, reach the exit.")
    parser.add_argument("config", nargs="?", default="config.json", help="Path to config.json")
    parser.add_argument("--seed", type=int, default=None, help="Seed for level generation")
    parser.add_argument(
        "--level",
        type=Path,
        default=None,
        help="Level file to open in the editor on start",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Entrypoint for running the game from the command line."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    from game import Game  # local import keeps module load side effects minimal

    Game(Path(args.config), seed=args.seed, level_path=args.level).run()


if __name__ == "__main__":
    main()
