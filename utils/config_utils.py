"""
JSON configuration loading shared by the recommender and session packages.

Each package keeps its own defaults and config.json next to its modules; this
module only knows how to read a file and lay it over the defaults.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def merge_config(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge overrides on top of defaults without mutating either.

    Nested dicts are merged key by key; any other value replaces the default.
    """
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_json_config(config_path: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
    """
    Load a JSON config file and merge it over defaults.

    Args:
        config_path: Path to the JSON file
        defaults: Built-in configuration used for missing keys

    Returns:
        Configuration dictionary. Returns a copy of defaults if the file is
        missing or invalid.
    """
    if not os.path.exists(config_path):
        logger.debug(f"Config file not found at {config_path}, using default configuration")
        return copy.deepcopy(defaults)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            file_config = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {config_path}: {e}. Using default configuration.")
        return copy.deepcopy(defaults)
    except OSError as e:
        logger.error(f"Error loading config file {config_path}: {e}. Using default configuration.")
        return copy.deepcopy(defaults)

    if not isinstance(file_config, dict):
        logger.error(f"Config file {config_path} must contain a JSON object. Using default configuration.")
        return copy.deepcopy(defaults)

    logger.info(f"Loaded configuration from {config_path}")
    return merge_config(defaults, file_config)


def env_override(config: Dict[str, Any], key: str, env_var: str, cast=str) -> None:
    """Replace config[key] with the value of env_var when it is set and castable."""
    raw = os.getenv(env_var)
    if raw is None or raw == "":
        return
    try:
        config[key] = cast(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid value for {env_var}: {raw!r}")
