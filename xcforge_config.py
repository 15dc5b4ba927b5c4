from pathlib import Path

VERSION = "0.4.0"

APP_DIR = Path.home() / ".xcforge"
SETTINGS_DIR = APP_DIR
SETTINGS_FILE_PATH = SETTINGS_DIR / "settings.json"
DB_DIR = APP_DIR / "DB"

# Key-value storage layout of the multi-catalog store
STORAGE_KEY = "xcforge-catalogs"
LEGACY_STORAGE_KEY = "xcforge-catalog"
STORAGE_VERSION = 3

# Scheduling
DEFAULT_DEBOUNCE_MS = 300
DEFAULT_IDLE_DIRTY_THRESHOLD = 500  # keys; larger catalogs recompute dirtiness on an idle slice

# Formatting used when the text gives no hint
DEFAULT_INDENT_SIZE = 2
DEFAULT_EOL = "\n"

# Change summary
CHANGE_SUMMARY_SAMPLE_KEYS = 10
CHANGE_SUMMARY_TITLE = "chore(localization): update {descriptor} translation"

__all__ = [
    "VERSION", "APP_DIR", "SETTINGS_DIR", "SETTINGS_FILE_PATH", "DB_DIR",
    "STORAGE_KEY", "LEGACY_STORAGE_KEY", "STORAGE_VERSION",
    "DEFAULT_DEBOUNCE_MS", "DEFAULT_IDLE_DIRTY_THRESHOLD",
    "DEFAULT_INDENT_SIZE", "DEFAULT_EOL",
    "CHANGE_SUMMARY_SAMPLE_KEYS", "CHANGE_SUMMARY_TITLE",
]
