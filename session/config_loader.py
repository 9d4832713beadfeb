"""
Configuration Loader for the Session Orchestrator

Loads session/config.json over built-in defaults, then applies environment
overrides (a .env file is honoured).
"""

import os
import logging
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from utils.config_utils import load_json_config, env_override

logger = logging.getLogger(__name__)

load_dotenv()

# Default configuration (used as fallback)
DEFAULT_CONFIG = {
    "storage_path": "data/session_store.json",
    "activity_log_dir": "data/activity_logs",
    "default_catalog": [
        {
            "id": "ACT021",
            "name": "ACT021",
            "weeklyPlan": "Mon–Fri: 5 trials · Short sessions · Praise & reward"
        },
        {
            "id": "ACT102",
            "name": "ACT102",
            "weeklyPlan": "Mon: intro · Tue: 5 trials · Wed: generalize · Thu: 5 trials · Fri: review"
        },
        {
            "id": "ACT153",
            "name": "ACT153",
            "weeklyPlan": "Daily: 3–5 trials · Use visuals · Fade prompts"
        }
    ]
}

# Cache for loaded config
_config_cache: Optional[Dict[str, Any]] = None


def load_config(config_path: str = None, reload: bool = False) -> Dict[str, Any]:
    """
    Load session configuration.

    Args:
        config_path: Path to config file. If None, uses config.json next to this module.
        reload: Ignore the cached configuration and read again.

    Returns:
        Configuration dictionary with env overrides applied.
    """
    global _config_cache

    if _config_cache is not None and not reload:
        return _config_cache

    if config_path is None:
        module_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(module_dir, "config.json")

    config = load_json_config(config_path, DEFAULT_CONFIG)
    env_override(config, "storage_path", "SESSION_STORAGE_PATH")
    env_override(config, "activity_log_dir", "SESSION_ACTIVITY_LOG_DIR")

    _config_cache = config
    return config
