"""
Configuration Loader for the Recommendation Client

Loads recommender/config.json over built-in defaults, then applies
environment overrides (a .env file is honoured).
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
    "base_url": "http://localhost:8000",
    "timeout_seconds": 15.0,
    "top_k": 5,
    "followup_n": 3
}

# Cache for loaded config
_config_cache: Optional[Dict[str, Any]] = None


def load_config(config_path: str = None, reload: bool = False) -> Dict[str, Any]:
    """
    Load recommender configuration.

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
    env_override(config, "base_url", "RECOMMENDER_BASE_URL")
    env_override(config, "timeout_seconds", "RECOMMENDER_TIMEOUT_SECONDS", float)

    _config_cache = config
    return config
