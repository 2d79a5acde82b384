# dailywall/core/config.py
from dataclasses import dataclass
from typing import Any
import configparser
import os
import tempfile
import threading
from pathlib import Path
import logging

from platformdirs import user_cache_path

logger = logging.getLogger(__name__)

# Define constants
APP_NAME = "DailyWall" # Used for config dir name
CONFIG_DIR = Path.home() / ".config" / APP_NAME.lower()
CONFIG_FILE = CONFIG_DIR / "config.ini"
LOG_FILE = CONFIG_DIR / "dailywall.log"
# Per-user, so no other account can own or redirect it
DEFAULT_SCRATCH_DIR = user_cache_path(appname=APP_NAME.lower(), appauthor=False) / "scratch"

# QTimer takes a signed 32-bit millisecond count
MAX_UPDATE_INTERVAL_HOURS = 24 * 24

# Default settings
DEFAULT_SETTINGS = {
    'Settings': {
        'custom_api': '', # Empty means the built-in Bing endpoint
        'region': 'en-US', # Market used by the built-in endpoint
        'scratch_dir': str(DEFAULT_SCRATCH_DIR),
        'update_interval_hours': '24',
        'request_timeout': '10', # Seconds, metadata request
        'download_timeout': '30', # Seconds, image request
    },
    'State': {
        'last_status': '', # RefreshStatus value of the most recent run
        'last_message': '',
        'last_run': '', # ISO timestamp of the most recent run
    }
}

# The tray reads settings from worker threads while the UI thread writes them
_config_lock = threading.RLock()


@dataclass(frozen=True)
class PipelineConfig:
    """Snapshot of the settings a single refresh needs."""
    custom_api: str = ''
    region: str = 'en-US'
    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    request_timeout: float = 10.0
    download_timeout: float = 30.0


def _new_parser():
    # Custom API URLs may carry percent-escapes, so no interpolation
    return configparser.ConfigParser(interpolation=None)

def ensure_config_dir_exists():
    """Ensures only the configuration directory exists."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Error creating config directory {CONFIG_FILE.parent}: {e}")
        return False

def _write_config_file(config) -> bool:
    """Writes to a temp file beside CONFIG_FILE and renames it into place."""
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".ini", dir=CONFIG_FILE.parent)
    except OSError as e:
        logger.error(f"Error creating temporary config file in {CONFIG_FILE.parent}: {e}")
        return False
    try:
        with os.fdopen(fd, 'w') as configfile:
            config.write(configfile)
        os.replace(tmp_name, CONFIG_FILE)
        return True
    except (OSError, configparser.Error) as e:
        logger.error(f"Error writing config file {CONFIG_FILE}: {e}")
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        return False

def create_default_config_if_missing():
    """Creates the default config file ONLY if it doesn't exist."""
    if not ensure_config_dir_exists():
        return False # Cannot create file if directory fails

    with _config_lock:
        if not CONFIG_FILE.is_file():
            logger.info(f"Config file not found. Creating default config at {CONFIG_FILE}")
            config = _new_parser()
            config.read_dict(DEFAULT_SETTINGS)
            return _write_config_file(config)
    return True # File already exists

def load_config():
    """Loads the configuration, creates defaults if missing, and ensures all keys exist."""
    with _config_lock:
        config = _new_parser()

        if not create_default_config_if_missing():
            # If creation failed, return in-memory defaults, don't try to read/write
            logger.warning("Failed to create or access config file. Using in-memory defaults.")
            config.read_dict(DEFAULT_SETTINGS)
            return config

        try:
            read_files = config.read(CONFIG_FILE)
            if not read_files:
                 logger.warning(f"Config file {CONFIG_FILE} reported as existing but couldn't be read. Using defaults.")
                 config.read_dict(DEFAULT_SETTINGS)

        except configparser.Error as e:
            logger.error(f"Error reading config file {CONFIG_FILE}: {e}. Using defaults.")
            config = _new_parser() # Start fresh
            config.read_dict(DEFAULT_SETTINGS)

        # --- Check for and add missing keys/sections ---
        needs_save = False
        for section, defaults in DEFAULT_SETTINGS.items():
            if not config.has_section(section):
                config.add_section(section)
                logger.info(f"Added missing section [{section}] to config.")
                needs_save = True
            for key, value in defaults.items():
                if not config.has_option(section, key):
                    config.set(section, key, value)
                    logger.info(f"Added missing key '{key}' to section [{section}] in config.")
                    needs_save = True

        if needs_save:
            save_config(config)

        return config


def save_config(config):
    """Saves the configuration object to the INI file."""
    if not ensure_config_dir_exists():
        logger.error("Cannot save config, directory creation/access failed.")
        return False
    with _config_lock:
        return _write_config_file(config)

def get_setting(section, key, fallback=None) -> Any:
    """Helper function to get a specific setting."""
    config = load_config()
    return config.get(section, key, fallback=fallback)

def set_setting(section, key, value) -> bool:
    """Helper function to set a specific setting and save."""
    with _config_lock:
        config = load_config()
        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, str(value)) # Ensure value is string
        saved = save_config(config)
    if saved:
         logger.info(f"Setting [{section}] {key} = {value} saved.")
         return True
    logger.error(f"Failed to save setting [{section}] {key} = {value}.")
    return False

def get_custom_api() -> str:
    return get_setting('Settings', 'custom_api', fallback='')

def set_custom_api(url: str) -> bool:
    """Stores the custom API URL as typed. Validity is only known at refresh time."""
    return set_setting('Settings', 'custom_api', url)

def _get_positive_float(config, key: str) -> float:
    default = float(DEFAULT_SETTINGS['Settings'][key])
    try:
        value = config.getfloat('Settings', key, fallback=default)
    except ValueError:
        logger.warning(f"Invalid value for '{key}' in config, using {default}.")
        return default
    if value <= 0:
        logger.warning(f"Non-positive value for '{key}' in config, using {default}.")
        return default
    return value

def get_update_interval_hours() -> float:
    hours = _get_positive_float(load_config(), 'update_interval_hours')
    if hours > MAX_UPDATE_INTERVAL_HOURS:
        logger.warning(f"update_interval_hours {hours} is too large, using {MAX_UPDATE_INTERVAL_HOURS}.")
        return float(MAX_UPDATE_INTERVAL_HOURS)
    return hours

def load_pipeline_config() -> PipelineConfig:
    """Reads settings storage once and returns the snapshot a refresh runs with."""
    config = load_config()
    scratch_dir = config.get('Settings', 'scratch_dir', fallback='').strip()
    return PipelineConfig(
        custom_api=config.get('Settings', 'custom_api', fallback=''),
        region=config.get('Settings', 'region', fallback='en-US').strip() or 'en-US',
        scratch_dir=Path(scratch_dir).expanduser() if scratch_dir else DEFAULT_SCRATCH_DIR,
        request_timeout=_get_positive_float(config, 'request_timeout'),
        download_timeout=_get_positive_float(config, 'download_timeout'),
    )

def record_last_result(status: str, message: str, timestamp: str) -> bool:
    """Stores the outcome of the latest refresh in the [State] section."""
    with _config_lock:
        config = load_config()
        config.set('State', 'last_status', status)
        config.set('State', 'last_message', message)
        config.set('State', 'last_run', timestamp)
        return save_config(config)
