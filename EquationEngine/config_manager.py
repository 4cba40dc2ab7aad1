# config_manager.py
import copy
import json
import logging
from pathlib import Path

from . import error as E

logger = logging.getLogger(__name__)

config_json = Path(__file__).resolve().parent.parent / "config.json"

DEFAULT_SETTINGS = {
    "log_level": "WARNING",
    "variables": ["X"],
    "domain": {"start": -10.0, "stop": 10.0, "samples": 21},
}


def load_setting_value(key_value):
    """Return one setting, or every setting for "all". Missing keys fall back to DEFAULT_SETTINGS."""
    try:
        with open(config_json, 'r', encoding='utf-8') as f:
            settings_dict = json.load(f)

    except (FileNotFoundError, json.JSONDecodeError) as exc:
        logger.warning("Using default settings, %s could not be read: %s", config_json, exc)
        settings_dict = {}

    settings = copy.deepcopy(DEFAULT_SETTINGS)
    settings.update(settings_dict)

    if key_value == "all":
        return settings

    else:
        return settings.get(key_value)


def save_setting(settings_dict):
    try:
        with open(config_json, 'w', encoding='utf-8') as f:
            json.dump(settings_dict, f, indent=4)
            return settings_dict

    except OSError as exc:
        raise E.MathError(E.ERROR_MESSAGES["5000"] + str(config_json), code="5000") from exc
