# dailywall/core/wallpaper.py
"""
Sets the desktop background on the primary display.

GNOME is driven through the gsettings command-line tool, adapting to the
session type and available keys. macOS goes through osascript and Windows
through SystemParametersInfoW.
"""

import ctypes
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# Define GNOME settings schemas and keys
SCHEMA_BACKGROUND = "org.gnome.desktop.background"
KEY_PICTURE_URI = "picture-uri"
KEY_PICTURE_URI_DARK = "picture-uri-dark"  # Existence is checked before use
KEY_PICTURE_OPTIONS = "picture-options"

SPI_SETDESKWALLPAPER = 20
SPIF_UPDATEINIFILE = 0x01
SPIF_SENDWININICHANGE = 0x02


def primary_display_available() -> bool:
    """
    Reports whether there is a display to paint on.

    On Linux this needs an X11 or Wayland display in the environment, which a
    systemd timer or cron job may not have. Other platforms always have one
    while a user is logged in.
    """
    if sys.platform.startswith("linux"):
        return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))
    return True


def _check_gsettings_key_exists(schema: str, key: str) -> bool:
    """
    Checks if a specific key exists within a gsettings schema using the CLI tool.

    Args:
        schema: The gsettings schema path (e.g., "org.gnome.desktop.background").
        key: The specific key name to check for (e.g., "picture-uri-dark").

    Returns:
        True if the key exists and can be listed, False otherwise.
    """
    cmd = ["gsettings", "list-keys", schema]
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=True, timeout=5
        )
        exists = key in result.stdout.splitlines()
        logger.debug(f"Schema '{schema}' keys checked. Key '{key}' exists: {exists}")
        return exists
    except FileNotFoundError:
        logger.error(f"Command failed: '{cmd[0]}' not found during key check.")
        return False
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out while listing keys for schema '{schema}'.")
        return False
    except subprocess.CalledProcessError as e:
        # gsettings fails if the schema itself isn't installed
        logger.warning(
            f"Command failed while listing keys for schema '{schema}'. "
            f"Maybe schema not installed? Stderr: {e.stderr.strip()}"
        )
        return False


def _run_commands(commands: list[list[str]]) -> bool:
    """Runs commands in order, stopping at the first failure."""
    for cmd in commands:
        try:
            logger.debug(f"Running command: {' '.join(cmd)}")
            subprocess.run(cmd, capture_output=True, text=True, check=True, timeout=10)
        except FileNotFoundError:
            logger.error(f"Command failed: '{cmd[0]}' not found. Check PATH.")
            return False
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out: {' '.join(cmd)}")
            return False
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {' '.join(cmd)}")
            logger.error(f"  Return Code: {e.returncode}")
            logger.error(f"  Stderr: {(e.stderr or '').strip()}")
            return False
    return True


def set_gnome_wallpaper(image_path: Path) -> bool:
    """
    Sets the GNOME desktop wallpaper using the gsettings command-line tool.

    On X11 only 'picture-uri' is set. On Wayland (or unknown sessions)
    'picture-uri-dark' is set as well when the installed schema has it.

    Returns:
        True if the gsettings commands ran successfully. That doesn't
        guarantee the desktop visually updated.
    """
    if not shutil.which("gsettings"):
        logger.error("'gsettings' command not found. Cannot set GNOME wallpaper.")
        return False

    file_uri = image_path.as_uri()

    session_type = os.environ.get("XDG_SESSION_TYPE", "unknown").lower()
    should_set_dark_uri = False
    if session_type == "x11":
        logger.info("X11 session detected. Will only set 'picture-uri'.")
    elif _check_gsettings_key_exists(SCHEMA_BACKGROUND, KEY_PICTURE_URI_DARK):
        logger.info(f"Key '{KEY_PICTURE_URI_DARK}' found. Will set both light and dark URIs.")
        should_set_dark_uri = True

    commands_to_run = [
        ["gsettings", "set", SCHEMA_BACKGROUND, KEY_PICTURE_OPTIONS, "zoom"],
        ["gsettings", "set", SCHEMA_BACKGROUND, KEY_PICTURE_URI, file_uri],
    ]
    if should_set_dark_uri:
        commands_to_run.append(
            ["gsettings", "set", SCHEMA_BACKGROUND, KEY_PICTURE_URI_DARK, file_uri]
        )

    logger.info(
        f"Attempting to set wallpaper using {len(commands_to_run)} gsettings command(s). Target URI: {file_uri}"
    )
    return _run_commands(commands_to_run)


def set_macos_wallpaper(image_path: Path) -> bool:
    """Sets the picture of the main desktop through System Events."""
    safe_path = str(image_path).replace('\\', '\\\\').replace('"', '\\"')
    script = (
        'tell application "System Events"\n'
        f'  set picture of first desktop to "{safe_path}"\n'
        'end tell'
    )
    return _run_commands([["osascript", "-e", script]])


def set_windows_wallpaper(image_path: Path) -> bool:
    ok = ctypes.windll.user32.SystemParametersInfoW(
        SPI_SETDESKWALLPAPER,
        0,
        str(image_path),
        SPIF_UPDATEINIFILE | SPIF_SENDWININICHANGE,
    )
    if not ok:
        logger.error("SystemParametersInfoW rejected the wallpaper change.")
    return bool(ok)


def set_wallpaper(image_path: Path) -> bool:
    """
    Sets the desktop background of the primary display for the current platform.

    Args:
        image_path: Path to an existing image file.

    Returns:
        True on success, False otherwise. Never raises.
    """
    try:
        abs_image_path = image_path.resolve(strict=True)
    except OSError as e:
        logger.error(f"Wallpaper image file not found: {image_path} ({e})")
        return False

    if sys.platform.startswith("linux"):
        success = set_gnome_wallpaper(abs_image_path)
    elif sys.platform == "darwin":
        success = set_macos_wallpaper(abs_image_path)
    elif sys.platform == "win32":
        success = set_windows_wallpaper(abs_image_path)
    else:
        logger.error(f"Setting the wallpaper is not supported on {sys.platform}.")
        return False

    if success:
        logger.info(f"Wallpaper set to {abs_image_path.name}")
    else:
        logger.error("Failed to set wallpaper.")
    return success
