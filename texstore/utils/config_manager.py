"""
Store Configuration Persistence
===============================

This module manages the serialization and deserialization of StoreConfig
to a JSON file, so matching tolerances and naming conventions can be set
once per project instead of on every invocation.

Key Responsibilities:
---------------------
- File-System Persistence: Stores config in a JSON file, by default the
  hidden `~/.texstore_config.json`.
- Field Mapping: Applies only keys that are StoreConfig fields; unknown keys
  are ignored so older or newer files still load.
- Logging: Records save/load events through the central logger helpers.
"""

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Optional, Union

from texstore.core.config import StoreConfig
from texstore.utils.logger import log_config

CONFIG_PATH = Path.home() / ".texstore_config.json"


def save_config(config: StoreConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """
    Persist a StoreConfig as pretty-printed JSON.

    Args:
        config: The configuration to be saved.
        path: Target file (defaults to CONFIG_PATH).

    Returns:
        The path written to. OSError propagates.
    """
    logger = logging.getLogger(__name__)
    target = Path(path) if path is not None else CONFIG_PATH

    data = config.to_dict()
    log_config("Saving Configuration", data, logger)

    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info(f"Configuration saved successfully to {target}")
    return target


def load_config(path: Optional[Union[str, Path]] = None) -> StoreConfig:
    """
    Load a StoreConfig from JSON.

    A missing file yields the defaults. A corrupt file is logged and also
    yields the defaults. Values that fail validation raise ValueError.

    Args:
        path: Source file (defaults to CONFIG_PATH).
    """
    logger = logging.getLogger(__name__)
    source = Path(path) if path is not None else CONFIG_PATH
    config = StoreConfig()

    if not source.exists():
        logger.info(f"No existing configuration file found at {source}")
        return config

    try:
        logger.info(f"Loading configuration from {source}")
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Configuration file is corrupted: {e}", exc_info=True)
        return config

    if not isinstance(data, dict):
        logger.error(f"Configuration file {source} does not contain a JSON object")
        return config

    log_config("Loaded Configuration", data, logger)

    known = {f.name for f in fields(StoreConfig)}
    for k, v in data.items():
        if k in known:
            setattr(config, k, v)
        else:
            logger.debug(f"Ignoring unknown configuration key: {k}")

    config.validate()
    logger.info("Configuration loaded and applied successfully")
    return config
