# File: vcfprep/config.py
# Location: vcfprep/vcfprep/config.py

"""
Configuration management module.

This module handles loading configuration from JSON files.
All default values reside in config.json, which is included in
the installed package directory. A user-supplied JSON file is merged
over these defaults; keys it does not know about are ignored.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger("vcfprep")

DEFAULT_CONFIG_FILE = os.path.join(os.path.dirname(__file__), "config.json")


def _read_json(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}")

    if not isinstance(config, dict):
        raise ValueError(f"Configuration file '{config_file}' must contain a JSON object.")
    return config


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration, merging an optional user file over the packaged defaults.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, only the
        package-installed 'config.json' is used.

    Returns
    -------
    dict
        Configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing a JSON configuration file.
    """
    config = _read_json(DEFAULT_CONFIG_FILE)
    if not config_file:
        return config

    user_config = _read_json(config_file)
    for key, value in user_config.items():
        if key not in config:
            logger.debug("Ignoring unknown configuration key '%s' in %s", key, config_file)
            continue
        config[key] = value

    return config
