#!/usr/bin/env python3
# dailywall/main.py
"""
DailyWall - Daily Bing/Custom API Wallpaper Changer

This is the main entry point for the DailyWall application.
It handles both tray (GUI) and command-line modes.
"""

import sys
import argparse
import logging
from importlib.metadata import PackageNotFoundError, version as get_version

import dailywall
from dailywall.core import config as core_config

logger = logging.getLogger(__name__)


def configure_logging():
    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    log_file_path = core_config.LOG_FILE
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            level=logging.INFO,
            format=log_format,
            handlers=[
                logging.FileHandler(log_file_path),
                logging.StreamHandler()
            ]
        )
    except OSError as e:
        # Fallback basic logging if file handler fails
        logging.basicConfig(level=logging.WARNING, format=log_format)
        logging.critical(f"Failed to configure file logging: {e}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="DailyWall - Daily Wallpaper Changer")

    parser.add_argument("--gui", action="store_true", help="Run the tray application (default behavior if no args)")
    parser.add_argument("--headless", action="store_true", help="Refresh the wallpaper once and exit")
    parser.add_argument("--version", action="store_true", help="Show version information")
    parser.add_argument("--set-api", metavar="URL",
                        help="Save a custom wallpaper API URL (empty string restores the Bing default)")

    args = parser.parse_args(argv)

    # If no specific mode is requested, default to GUI
    if not args.headless and not args.version and args.set_api is None:
        args.gui = True

    return args


def run_gui() -> int:
    logger.info("Starting tray application")
    try:
        from PySide6.QtWidgets import QApplication, QSystemTrayIcon
        from dailywall.ui.tray import TrayApp
    except ImportError as e:
        logger.critical(f"Failed to import GUI components: {e}")
        return 1

    app = QApplication(sys.argv)
    app.setApplicationName("DailyWall")
    app.setOrganizationName("dailywall")
    app.setQuitOnLastWindowClosed(False)

    if not QSystemTrayIcon.isSystemTrayAvailable():
        logger.critical("No system tray available. Use --headless from a scheduler instead.")
        return 1

    tray_app = TrayApp(app)  # Must stay referenced while the loop runs
    logger.info("Starting application event loop...")
    result = app.exec()
    logger.info(f"Application event loop finished with result: {result}")
    tray_app.tray.hide()
    return result


def main(argv=None):
    """Main entry point for DailyWall."""
    args = parse_args(argv)

    if args.version:
        try:
            ver = get_version("dailywall")
        except PackageNotFoundError:
            ver = dailywall.__version__
        print(f"DailyWall version {ver}")
        return 0

    if args.set_api is not None:
        configure_logging()
        return 0 if core_config.set_custom_api(args.set_api.strip()) else 1

    if args.headless:
        from dailywall import headless
        headless.configure_logging()
        logger.info("Running in --headless update mode")
        return 0 if headless.run_daily_update() else 1

    configure_logging()
    try:
        return run_gui()
    except Exception as e:
        logger.critical(f"An error occurred during GUI execution: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
