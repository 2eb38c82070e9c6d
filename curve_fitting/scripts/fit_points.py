#!/usr/bin/env python3
"""
Fit Points Script.

Fit a points.v1 YAML file with a piecewise Bézier path, either straight
through or one checkpoint at a time.

Usage:
    python -m curve_fitting.scripts.fit_points circle.yaml
    python -m curve_fitting.scripts.fit_points circle.yaml --step
    python -m curve_fitting.scripts.fit_points circle.yaml --step --max-steps 20
    python -m curve_fitting.scripts.fit_points circle.yaml --config strict.yaml

Output:
    One line per segment: degree, sample interval, control points.
    In step mode, one line per checkpoint: step, stage, interval, message.
"""

from __future__ import annotations

import argparse
import logging
import sys

import yaml
from pydantic import ValidationError

from curve_fitting.configs.loader import ConfigError, load_config
from curve_fitting.fitting.engine import FittingError, PathFinder
from curve_fitting.fitting.path import FittedPath
from curve_fitting.fitting.pausable import PausablePathFinder
from curve_fitting.utils.logging_config import push_context, setup_logging
from curve_fitting.utils.validators import load_sample_points

logger = logging.getLogger(__name__)


def _format_point(p) -> str:
    return f"({p[0]:.3f}, {p[1]:.3f})"


def print_path(path: FittedPath) -> None:
    """Write one line per segment to stdout."""
    for idx, segment in enumerate(path):
        points = " ".join(_format_point(p) for p in segment.control_points)
        print(
            f"{idx:3d}  degree={segment.degree}  "
            f"samples=[{segment.start_index}, {segment.end_index}]  {points}"
        )
    print(f"{len(path)} segment(s), degrees {list(path.degrees)}")


def run_steps(finder: PausablePathFinder, max_steps: int | None) -> bool:
    """Drive the steppable engine, printing every checkpoint.

    Returns
    -------
    bool
        ``True`` if the fit finished, ``False`` if it was cancelled.
    """
    finder.launch()
    while True:
        cp = finder.checkpoint
        print(
            f"step {finder.steps:4d}  {cp.stage.value:<24s} "
            f"[{cp.start}, {cp.end}]  {cp.message}"
        )
        if finder.is_finished:
            return True
        if max_steps is not None and finder.steps >= max_steps:
            finder.request_cancel()
            print(f"Cancelled after {finder.steps} step(s)")
            return False
        finder.resume()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Fit sample points with a piecewise Bezier path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "points",
        type=str,
        help="Points file (points.v1 YAML)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Fitting configuration file path",
    )
    parser.add_argument(
        "--step",
        action="store_true",
        help="Run the steppable engine and print every checkpoint",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="With --step: cancel the fit after this many checkpoints",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit log records as JSON lines",
    )
    args = parser.parse_args(argv)

    if args.max_steps is not None and args.max_steps < 1:
        parser.error("--max-steps must be >= 1")

    setup_logging(args.log_level, json=args.json_logs, context={"app": "fit_points"})
    push_context(points=args.points)

    try:
        config = load_config(args.config)
        samples = load_sample_points(args.points)
        logger.info("Loaded %d sample points", len(samples))

        if args.step:
            finder = PausablePathFinder(samples, config)
            if run_steps(finder, args.max_steps):
                print_path(finder.get_path())
        else:
            print_path(PathFinder(samples, config).get_path())

    except (
        ConfigError,
        FittingError,
        ValidationError,
        ValueError,
        FileNotFoundError,
        yaml.YAMLError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Fit failed", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
