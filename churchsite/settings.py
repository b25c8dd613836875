import copy
import os
import logging

import yaml

from churchsite.constants import CONFIG_FILE, DEFAULT_SETTINGS

# Retrieve main logger
logger = logging.getLogger("main")

# Environment variables overriding the settings file: (section, key)
ENV_OVERRIDES = {
    "JSONBIN_BIN_ID": ("remote", "bin_id"),
    "JSONBIN_ADMIN_ID": ("remote", "admin_bin_id"),
    "JSONBIN_SECRET": ("remote", "secret"),
    "JSONBIN_API_URL": ("remote", "api_url"),
    "CHURCHSITE_CONTENT_DIR": ("storage", "content_dir"),
    "CHURCHSITE_UPLOAD_DIR": ("storage", "upload_dir"),
}

# Cache variable
_cached_settings = None


def merge_settings(base, overrides):
    """Merge a partial settings mapping section by section over ``base``."""
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def apply_env_overrides(settings, environ=None):
    environ = os.environ if environ is None else environ
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            settings.setdefault(section, {})[key] = value
    return settings


def load_settings(force=False, config_file=CONFIG_FILE):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(config_file):
        logger.debug(f"Reading configuration file: {config_file}")
        with open(config_file, "r") as yaml_file:
            file_settings = yaml.safe_load(yaml_file) or {}
        settings = merge_settings(DEFAULT_SETTINGS, file_settings)
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        try:
            os.makedirs(os.path.dirname(config_file), exist_ok=True)
            with open(config_file, "w") as yaml_file:
                yaml.dump(settings, yaml_file)
        except OSError as e:
            logger.warning(f"Could not write default configuration file {config_file}: {e}")

    settings = apply_env_overrides(settings)

    _cached_settings = settings
    return settings


def reload_conf(config_file=CONFIG_FILE):
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True, config_file=config_file)
