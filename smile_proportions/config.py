"""
Configuration for the smile proportion service.

Defaults live in code; a JSON file (``config.json`` or the path named by
``SMILE_PROPORTIONS_CONFIG``) overrides individual keys.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SMILE_PROPORTIONS_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "midline_padding": 2.0,
    "min_teeth_for_brackets": 4,
    "golden_ratio_tolerance": 0.2,
    "cors_origins": [
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    "log_level": "INFO",
    "host": "127.0.0.1",
    "port": 8000,
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration, falling back to defaults for anything missing."""
    config = dict(DEFAULT_CONFIG)
    path = config_path or os.environ.get(CONFIG_ENV_VAR, "config.json")

    if not os.path.exists(path):
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            overrides = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        logger.warning("Error loading config from %s: %s. Using defaults.", path, e)
        return config

    if not isinstance(overrides, dict):
        logger.warning("Config file %s is not a JSON object. Using defaults.", path)
        return config

    for key, value in overrides.items():
        if key not in DEFAULT_CONFIG:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        config[key] = value

    logger.info("Configuration loaded from %s", path)
    return config


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if root_logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    root_logger.addHandler(handler)
