#!/usr/bin/env python3
"""
Example blackboard agent: a two-stage pipeline over a set of data files.

Start as many copies as you like, on one host or on several hosts that share
the blackboard directory; each file goes through each stage exactly once.

Usage:
    python scripts/run_agent.py                                  # ./data/*.txt, ./blackboard
    python scripts/run_agent.py --data "input/*.csv" --work 2    # custom glob, 2s of "work"
    python scripts/run_agent.py --report                         # print progress and exit
"""

import argparse
import glob
import logging
import os
import sys
import time

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from blackboard import Blackboard, LockTimeoutError
from blackboard.config import create_config_loader
from blackboard.logging_config import setup_logging
from blackboard.progress import format_summary, summarize

logger = logging.getLogger("blackboard.agent")

STAGES = ("preprocessing", "postprocessing")


def busywork(path: str, seconds: float) -> None:
    """Placeholder for real processing."""
    logger.debug(f"Working on {path} for {seconds}s")
    time.sleep(seconds)


def run_stage(bb: Blackboard, task: str, paths, work_seconds: float) -> int:
    """Claim and process every unclaimed file for one stage. Returns the number processed."""
    processed = 0
    for path in paths:
        basename = bb.basename_from(path)
        if basename is None:
            logger.warning(f"Skipping {path}: no file extension to derive an item name from")
            continue

        session = bb.needs_processing(basename, task, "started")
        if not session:
            continue

        try:
            busywork(path, work_seconds)
        except Exception as e:
            bb.update_status(session, f"failed: {type(e).__name__}")
            raise
        bb.update_status(session, "completed")
        processed += 1
    return processed


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a blackboard-coordinated pipeline agent")
    parser.add_argument("--config", default="config/config.yaml", help="Path to the YAML configuration file")
    parser.add_argument("--blackboard", help="Blackboard directory (overrides configuration)")
    parser.add_argument("--data", default="./data/*.txt", help="Glob of input files")
    parser.add_argument("--timeout", type=float, help="Lock timeout in seconds (overrides configuration)")
    parser.add_argument("--work", type=float, default=5.0, help="Seconds of simulated work per file")
    parser.add_argument("--report", action="store_true", help="Print blackboard progress and exit")
    args = parser.parse_args()

    loader = create_config_loader(args.config)
    setup_logging(loader.get_logging_settings())

    settings = loader.get_blackboard_settings()
    updates = {}
    if args.blackboard:
        updates["directory"] = args.blackboard
    if args.timeout is not None:
        updates["timeout_seconds"] = args.timeout
    settings = settings.model_copy(update=updates)

    bb = Blackboard.from_settings(settings)

    if args.report:
        print(format_summary(summarize(bb.store)))
        return 0

    paths = sorted(glob.glob(args.data))
    logger.info(f"🚀 Agent pid={os.getpid()} on {bb.hostname}: {len(paths)} files, stages={', '.join(STAGES)}")

    try:
        for task in STAGES:
            count = run_stage(bb, task, paths, args.work)
            logger.info(f"🏁 {task}: processed {count} file(s)")
    except LockTimeoutError as e:
        logger.error(f"❌ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
