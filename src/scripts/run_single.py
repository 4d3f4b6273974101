#!/usr/bin/env python3
"""
Single Flow-Field Drawing Runner

Builds one drawing from a seed and writes image.png, image.txt and
parameters.json into <destination>/<seed>/.
Supports three modes: flow, windowed, and field.
"""

import argparse
import logging
import secrets
import sys
import time
from pathlib import Path

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from flow_sim import FlowFieldDrawing, RunConfig
from flow_sim.config import MODES, load_config
from flow_sim.errors import FlowFieldError
from flow_sim.export import FileWriter
from flow_sim.logger_setup import setup_logging

logger = logging.getLogger("flow_sim")


def build_config(args) -> RunConfig:
    """Merge an optional config file with command-line overrides."""
    overrides = {
        "seed": args.seed,
        "mode": args.mode,
        "width": args.width,
        "height": args.height,
    }
    if args.config:
        return load_config(args.config, **overrides)
    return RunConfig(**{k: v for k, v in overrides.items() if v is not None})


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Flowing particles: render one seeded flow-field drawing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "destination",
        help="Directory the output folder (named after the seed) is created in",
    )
    parser.add_argument(
        "seed",
        nargs="?",
        type=int,
        default=None,
        help="Seed used to reproduce previous results (default: random 64-bit)",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default=None,
        help="Drawing to produce (default: flow)",
    )
    parser.add_argument("--width", type=float, default=None, help="Canvas width")
    parser.add_argument("--height", type=float, default=None, help="Canvas height")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML run config; command-line values override it",
    )
    parser.add_argument(
        "--npz",
        action="store_true",
        help="Also save the line array as lines.npz",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also log to this file")

    args = parser.parse_args(argv)
    if args.seed is None:
        args.seed = secrets.randbits(64)

    setup_logging(args.log_level, args.log_file)

    try:
        config = build_config(args).validate()
    except (FlowFieldError, ValueError, OSError) as e:
        parser.error(str(e))

    logger.info(f"Running {config.mode} drawing: seed={config.seed}, "
                f"canvas={config.width:g}x{config.height:g}")
    start_time = time.time()

    drawing = FlowFieldDrawing(config)
    result = drawing.draw()

    writer = FileWriter(args.destination, config.seed)
    out_dir = writer.save_result(result, config.width, config.height, npz=args.npz)

    elapsed_time = time.time() - start_time
    logger.info(f"Drawing completed in {elapsed_time:.2f} seconds")
    logger.info(f"Lines: {result.line_count}")
    logger.info(f"Output saved to: {out_dir}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
