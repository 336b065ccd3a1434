"""Scheduled mirroring service.

Runs the pipeline in a loop, sleeping for the cadence of the configured
fetch schedule (hourly, daily, weekly, monthly) between runs. Writes a
health file after every successful cycle for container liveness checks.

Environment:
    DISCUSSION_MIRROR_SYNC_ON_START=true  - Run immediately on start (default: true)
    DISCUSSION_MIRROR_HEALTH_FILE         - Health file path (default: /tmp/discussion-mirror.health)
    See config.py for all other settings.
"""

import logging
import os
import signal
import time
from pathlib import Path

from .config import MirrorConfig
from .pipeline import run_pipeline

logger = logging.getLogger("discussion_mirror.service")

HEALTH_FILE = Path(os.getenv("DISCUSSION_MIRROR_HEALTH_FILE", "/tmp/discussion-mirror.health"))
SHUTDOWN_REQUESTED = False


def handle_signal(signum, frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    global SHUTDOWN_REQUESTED
    logger.info("Shutdown signal received (signal=%d), finishing current cycle...", signum)
    SHUTDOWN_REQUESTED = True


def run_cycle(config: MirrorConfig) -> bool:
    """Run a single mirroring cycle.

    Returns:
        True if the run completed (even with per-repository failures),
        False if it crashed or was refused by the run lock.
    """
    try:
        summary = run_pipeline(config)
    except Exception as e:
        logger.error("Mirror run failed: %s", e)
        return False

    if summary.skipped_locked:
        return False
    logger.info(
        "Cycle complete: stored=%d, attempted=%d, failed_repos=%d",
        summary.stored,
        summary.attempted,
        len(summary.failed_repos),
    )
    return True


def write_health_file() -> None:
    """Write health file for container healthchecks."""
    try:
        HEALTH_FILE.write_text(str(int(time.time())))
    except OSError as e:
        logger.warning("Failed to write health file: %s", e)


def serve(config: MirrorConfig) -> None:
    """Main service loop; returns after a shutdown signal."""
    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    interval = config.get_schedule_interval()
    sync_on_start = os.getenv("DISCUSSION_MIRROR_SYNC_ON_START", "true").lower() == "true"

    logger.info(
        "Discussion mirror service starting (schedule=%s, interval=%ds, sync_on_start=%s)",
        config.github_fetch_schedule,
        interval,
        sync_on_start,
    )

    first_run = True
    while not SHUTDOWN_REQUESTED:
        if first_run and not sync_on_start:
            logger.info("Skipping initial run (DISCUSSION_MIRROR_SYNC_ON_START=false)")
        else:
            logger.info("Starting mirror cycle...")
            if run_cycle(config):
                write_health_file()
        first_run = False

        # Sleep in small increments to allow graceful shutdown
        for _ in range(interval):
            if SHUTDOWN_REQUESTED:
                break
            time.sleep(1)

    logger.info("Discussion mirror service shutting down gracefully")
