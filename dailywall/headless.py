#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
DailyWall Headless Script

This script is intended to be run automatically (e.g., by a systemd timer or
cron) to fetch the current wallpaper from the configured API, download it and
set it as the desktop background. It reads configuration from the standard
config file and logs its actions.
"""

import logging
import sys
from datetime import datetime

from dailywall.core import config as core_config
from dailywall.core.pipeline import WallpaperPipeline

logger = logging.getLogger(__name__)


def configure_logging():
    """Logs to the same file as the tray app, tagged as headless."""
    log_format = "%(asctime)s - %(name)s - HEADLESS - %(levelname)s - %(message)s"
    log_file_path = core_config.LOG_FILE
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=logging.INFO,
            format=log_format,
            handlers=[
                logging.FileHandler(log_file_path),
                logging.StreamHandler(),
            ],
        )
    except OSError as e:
        logging.basicConfig(level=logging.WARNING, format=log_format)
        logging.critical(f"Failed to configure file logging for headless script: {e}")


def run_daily_update(pipeline: WallpaperPipeline | None = None) -> bool:
    """Performs one refresh and records its outcome. Returns True on success."""
    logger.info("Starting daily update process...")
    pipeline = pipeline or WallpaperPipeline()

    config = core_config.load_pipeline_config()
    logger.info(
        f"Config loaded: custom_api={config.custom_api or '(default)'}, "
        f"region={config.region}, scratch_dir={config.scratch_dir}"
    )

    result = pipeline.refresh(config)
    core_config.record_last_result(
        result.status.value, result.message, datetime.now().isoformat(timespec="seconds")
    )

    if result.ok:
        logger.info("Daily update process completed successfully.")
    else:
        logger.error(f"Daily update failed: {result.status.value} - {result.message}")
    return result.ok


if __name__ == "__main__":
    configure_logging()
    logger.info("=" * 20 + " Headless Script Run Start " + "=" * 20)
    success = run_daily_update()
    logger.info("=" * 20 + f" Headless Script Run End (Success: {success}) " + "=" * 20)
    sys.exit(0 if success else 1)
