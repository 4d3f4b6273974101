#!/usr/bin/env python3
"""
Batch Flow-Field Drawing Runner

Renders many seeds in parallel processes, one output folder per seed, plus a
manifest.json describing the batch.
"""

import argparse
import json
import logging
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from flow_sim import FlowFieldDrawing, RunConfig, utils
from flow_sim.config import MODES, load_config
from flow_sim.export import FileWriter
from flow_sim.logger_setup import setup_logging

logger = logging.getLogger("flow_sim")


def run_single_drawing(config_data: Dict[str, Any], seed: int, batch_dir: str) -> Dict[str, Any]:
    """
    Render one seed and save it.

    This function is designed to be called in parallel by ProcessPoolExecutor.
    It must be at module level (not nested) for pickling. Each call owns its
    own random stream, so results do not depend on scheduling.
    """
    config = RunConfig.from_dict(config_data).with_seed(seed).validate()
    result = FlowFieldDrawing(config).draw()
    writer = FileWriter(batch_dir, seed)
    out_dir = writer.save_result(result, config.width, config.height)
    return {
        "output_path": str(out_dir),
        "seed": seed,
        "lines": result.line_count,
        "success": True,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate a batch of flow-field drawings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--count",
        type=int,
        required=True,
        help="Number of drawings to generate",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="flow",
        help="Drawing to produce (default: flow)",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of parallel processes (default: 1)",
    )
    parser.add_argument(
        "--name",
        type=str,
        default="batch",
        help="Batch name for output folder (default: 'batch')",
    )
    parser.add_argument(
        "--base-seed",
        type=int,
        default=42,
        help="Base seed (each drawing gets base_seed + index) (default: 42)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML run config shared by every drawing",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    config = load_config(args.config, mode=args.mode) if args.config else RunConfig(mode=args.mode)
    config.validate()
    config_data = config.to_dict()

    first_seed = args.base_seed
    last_seed = args.base_seed + args.count - 1

    timestamp = utils.now_str()
    batch_dir = Path("results") / "batches" / f"{args.name}_{args.mode}_S{first_seed}-{last_seed}_{timestamp}"
    batch_dir.mkdir(parents=True, exist_ok=True)

    manifest = {
        "mode": args.mode,
        "count": args.count,
        "base_seed": args.base_seed,
        "jobs": args.jobs,
        "timestamp": timestamp,
        "batch_name": args.name,
        "config": config_data,
    }

    manifest_path = batch_dir / "manifest.json"
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Batch generation started: {args.count} x {args.mode}, "
                f"{args.jobs} jobs, seeds {first_seed}-{last_seed}")
    logger.info(f"Output directory: {batch_dir}")

    seeds = [args.base_seed + i for i in range(args.count)]

    start_time = time.time()
    results = []
    failed = []

    with ProcessPoolExecutor(max_workers=args.jobs) as executor:
        future_to_seed = {
            executor.submit(run_single_drawing, config_data, seed, str(batch_dir)): seed
            for seed in seeds
        }

        completed = 0
        for future in as_completed(future_to_seed):
            completed += 1
            seed = future_to_seed[future]
            try:
                result = future.result()
                results.append(result)
                logger.info(
                    f"  [{completed}/{args.count}] Completed: seed={result['seed']}, "
                    f"lines={result['lines']}"
                )
            except Exception as e:
                failed.append({"seed": seed, "error": str(e)})
                logger.error(f"  [{completed}/{args.count}] FAILED: seed={seed} - {e}")

    elapsed_time = time.time() - start_time

    manifest["results"] = {
        "total": args.count,
        "successful": len(results),
        "failed": len(failed),
        "elapsed_seconds": elapsed_time,
    }
    manifest["drawings"] = sorted(results, key=lambda r: r["seed"])
    if failed:
        manifest["failures"] = failed

    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    logger.info("=" * 60)
    logger.info("Batch generation completed!")
    logger.info(f"  Successful: {len(results)}/{args.count}")
    logger.info(f"  Failed: {len(failed)}/{args.count}")
    logger.info(f"  Total time: {elapsed_time:.2f} seconds")
    if len(results) > 0:
        logger.info(f"  Average time per drawing: {elapsed_time/len(results):.2f} seconds")
    logger.info(f"  Manifest: {manifest_path}")
    logger.info("=" * 60)

    return 0 if len(failed) == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
