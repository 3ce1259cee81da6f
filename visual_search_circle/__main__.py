from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_trial_config
from .logging_setup import setup_logging
from .results import TrialResult


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="visual-search-circle",
        description="Run one visual-search-circle trial and print its record as JSON.",
    )
    parser.add_argument("--config", type=Path, required=True, help="JSON file of trial parameters")
    parser.add_argument("--seed", type=int, default=None, help="seed for the circle start angle")
    parser.add_argument(
        "--image-dir",
        type=Path,
        default=None,
        help="directory relative image ids are resolved against (default: the config's directory)",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="log phase transitions")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point for running a trial from the command line."""

    args = _parse_args(argv)
    logger = setup_logging(args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_trial_config(args.config)
    except (OSError, ValueError) as exc:
        logger.error("invalid trial config %s: %s", args.config, exc)
        return 2

    # Imported late so --help and config errors do not initialise pygame.
    from .app import run

    results: list[TrialResult] = []
    image_dir = args.image_dir if args.image_dir is not None else args.config.resolve().parent
    code = run(config, seed=args.seed, image_dir=image_dir, on_finish=results.append)

    if results:
        json.dump(results[0].to_dict(), sys.stdout)
        sys.stdout.write("\n")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
