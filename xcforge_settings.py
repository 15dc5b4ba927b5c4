"""
XCForge Settings Module
Handles loading and saving of application settings.
"""

import json
import xcforge_config as config
from xcforge_logger import get_logger
logger = get_logger("settings")


def default_settings():
    return {
        "debounce_ms": config.DEFAULT_DEBOUNCE_MS,
        "idle_dirty_threshold": config.DEFAULT_IDLE_DIRTY_THRESHOLD,
        "storage_path": str(config.DB_DIR / "catalogs.db"),
    }


def load_settings():
    """Load settings from JSON file, or return defaults if not found."""

    settings_file = config.SETTINGS_FILE_PATH
    defaults = default_settings()

    if not settings_file.is_file():
        logger.info(f"Settings file not found ({settings_file}). Using defaults.")
        return defaults

    try:
        logger.debug(f"Loading settings: {settings_file}")
        with settings_file.open('r', encoding='utf-8') as f:
            loaded_data = json.load(f)
    except json.JSONDecodeError:
        logger.error(f"Settings file ({settings_file}) is corrupt (invalid JSON). Using defaults.")
        return defaults
    except OSError as e:
        logger.error(f"Error while loading settings ({settings_file}): {e}. Using defaults.")
        return defaults

    if not isinstance(loaded_data, dict):
        logger.warning("Settings file format is invalid (not an object). Using defaults.")
        return defaults

    settings = defaults.copy()
    settings.update(loaded_data)

    for key in ("debounce_ms", "idle_dirty_threshold"):
        value = settings.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            logger.warning(f"Invalid '{key}' value ({value!r}). Using default.")
            settings[key] = defaults[key]

    if not isinstance(settings.get("storage_path"), str) or not settings["storage_path"].strip():
        logger.warning(f"Invalid 'storage_path' value ({settings.get('storage_path')!r}). Using default.")
        settings["storage_path"] = defaults["storage_path"]

    logger.debug("Settings loaded successfully.")
    return settings


def save_settings(settings_data):
    """Save settings to JSON file."""

    settings_file = config.SETTINGS_FILE_PATH
    try:
        logger.debug(f"Saving settings: {settings_file}")
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with settings_file.open('w', encoding='utf-8') as f:
            json.dump(settings_data, f, indent=4, ensure_ascii=False)
        logger.info("Settings saved successfully.")
        return True
    except (OSError, TypeError) as e:
        logger.critical(f"Could not save settings ({settings_file}): {e}")
        return False
