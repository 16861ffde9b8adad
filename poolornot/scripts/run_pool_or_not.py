#!/usr/bin/env python
"""
CLI entrypoint for the pooled-vs-differ selection experiment.

Usage: run_pool_or_not.py [num_datasets]

Configuration comes from $POOL_OR_NOT_CONFIG (YAML) or the packaged
default; $POOL_OR_NOT_SEED overrides the seed.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from poolornot.simulation.runner import PoolOrNotRunner, load_experiment_config

EX_USAGE = 64


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with EX_USAGE on bad usage."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {text!r}")
    return value


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = UsageArgumentParser(
        prog="pool-or-not",
        description="Compare one- vs two-component Gaussian evidence on synthetic datasets.",
    )
    parser.add_argument(
        "num_datasets",
        nargs="?",
        type=positive_int,
        default=None,
        help="Datasets generated per ground-truth model (default: 10, from config).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = load_experiment_config()
    if args.num_datasets is not None:
        cfg = replace(cfg, n_trials=args.num_datasets)
    PoolOrNotRunner(cfg).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
