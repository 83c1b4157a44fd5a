#!/usr/bin/env python3
"""
Benchmark Experiment Runner
===========================

Runs the benchmark experiment described by a YAML configuration file.

Usage:
    python scripts/run_benchmark.py configs/iris_benchmark.yaml
"""
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger as lib_logger

from mlworkbench.runner import ExperimentRunner
from mlworkbench.utils.config import Config

# Suppress matplotlib font manager debug messages
logging.getLogger('matplotlib.font_manager').setLevel(logging.WARNING)
logging.getLogger('matplotlib').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a benchmark experiment from a YAML configuration"
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to configuration file (YAML)'
    )

    parser.add_argument(
        '--project-root',
        type=str,
        default=str(Path(__file__).parent.parent),
        help='Directory relative data and output paths are resolved against'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )

    config_path = Path(args.config)
    if not config_path.exists():
        logger.error(f"Configuration file not found: {args.config}")
        return 1

    config = Config(config_path)

    # Library messages go to the console and to a log file next to the results
    output_dir = config.get_output_config().get('output_dir', 'results')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_dir = Path(args.project_root) / output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{config_path.stem}_{timestamp}.log"

    level = "DEBUG" if args.debug else "INFO"
    lib_logger.remove()
    lib_logger.add(sys.stderr, level=level)
    lib_logger.add(log_file, level=level)
    logger.info(f"Log file: {log_file}")

    try:
        runner = ExperimentRunner(config, project_root=args.project_root)
        runner.run()
        logger.info(f"Results written to {runner.output_dir}")
        return 0
    except Exception as e:
        logger.error(f"Benchmark failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
