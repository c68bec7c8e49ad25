import os
import json
import logging
from dotenv import load_dotenv

from app_state import get_application_path, settings

# --- Settings Management ---
SETTINGS_FILE = os.path.join(get_application_path(), 'record_server_settings.json')
DEFAULT_SETTINGS = {
    "port": 8288,
    "lan_accessible": False,
    "recordings_dir": "recordings",
    "queue_size": 256,
    "log_file": "record_server.log"
}

# Environment variable -> (settings key, parser)
ENV_OVERRIDES = {
    "SKRIBBL_PORT": ("port", int),
    "SKRIBBL_RECORDINGS_DIR": ("recordings_dir", str),
    "SKRIBBL_LAN_ACCESSIBLE": ("lan_accessible", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
}

def load_settings(settings_file=None):
    """Loads settings from the JSON file or creates it with defaults."""
    settings_file = settings_file or SETTINGS_FILE
    if os.path.exists(settings_file):
        try:
            with open(settings_file, 'r') as f:
                loaded_settings = json.load(f)
            settings.clear()
            if isinstance(loaded_settings, dict):
                settings.update(loaded_settings)
            for key, value in DEFAULT_SETTINGS.items():
                settings.setdefault(key, value)
        except (json.JSONDecodeError, TypeError):
            logging.warning(f"Settings file {settings_file} is malformed, using defaults.")
            settings.clear()
            settings.update(DEFAULT_SETTINGS.copy())
    else:
        settings.clear()
        settings.update(DEFAULT_SETTINGS.copy())
    save_settings(settings.copy(), settings_file) # Writes the file or adds missing keys.
    apply_env_overrides()
    return settings

def save_settings(new_settings, settings_file=None):
    """Saves settings to the JSON file."""
    settings.clear()
    settings.update(new_settings)
    with open(settings_file or SETTINGS_FILE, 'w') as f:
        json.dump(settings, f, indent=4)

def apply_env_overrides(dotenv_path=None):
    """Applies SKRIBBL_* variables from the environment or a .env file. They are not persisted."""
    load_dotenv(dotenv_path or os.path.join(get_application_path(), '.env'))
    for env_name, (key, parse) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None or value == "":
            continue
        try:
            settings[key] = parse(value)
        except ValueError:
            logging.warning(f"Ignoring invalid value for {env_name}: '{value}'")

def get_recordings_dir():
    """Absolute path of the recordings directory; relative paths are resolved against the application path."""
    recordings_dir = settings.get("recordings_dir", DEFAULT_SETTINGS["recordings_dir"])
    if not os.path.isabs(recordings_dir):
        recordings_dir = os.path.join(get_application_path(), recordings_dir)
    return recordings_dir
