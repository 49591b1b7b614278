"""
Configuration for the tar archive tool.
Optional YAML file merged over built-in defaults, then environment overrides.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

ENV_PREFIX = "TAR_"
CONFIG_FILE_NAMES = ("tar-config.yml", ".tar-config.yml")

DEFAULT_CONFIG = {
    "defaults": {
        "glob": "",
        "exclude": "",
        "compress": True,
        "overwrite": False,
        "default_excludes": True,
    },
    "writer": {
        "chunk_size": 65536,
        "compression_level": 6,
    },
    "artifacts": {
        "directory": "artifacts",
    },
    "logging": {
        "level": "INFO",
    },
}


def load_config(
    config_path: Optional[str] = None, workspace: Optional[str] = None
) -> Dict[str, Any]:
    """
    Load configuration from YAML with fallback to defaults.

    Args:
        config_path: Explicit config file; wins over the workspace lookup
        workspace: Directory searched for tar-config.yml / .tar-config.yml

    Returns:
        Configuration dictionary
    """
    if config_path:
        config_file = Path(config_path)
    else:
        search_dir = Path(workspace) if workspace else Path.cwd()
        config_file = None
        for name in CONFIG_FILE_NAMES:
            candidate = search_dir / name
            if candidate.exists():
                config_file = candidate
                break

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_file and config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}

            if not isinstance(user_config, dict):
                raise ValueError("top level must be a mapping")

            config = _deep_merge(config, user_config)
            logger.debug("Loaded configuration from %s", config_file)

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(
                "Failed to load config from %s: %s; using defaults", config_file, e
            )
    elif config_path:
        logger.warning("Config file not found: %s; using defaults", config_path)

    return _apply_env_overrides(config)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge ``override`` into a copy of ``base``."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Variables follow TAR_<SECTION>_<KEY>=value, where KEY may itself contain
    underscores: TAR_WRITER_CHUNK_SIZE=1048576 sets writer.chunk_size.
    Only sections present in the config are considered.
    """
    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        remainder = env_key[len(ENV_PREFIX) :].lower()
        section, _, key = remainder.partition("_")
        if not key or not isinstance(config.get(section), dict):
            continue

        config[section][key] = _convert_env_value(env_value)

    return config


def _convert_env_value(value: str) -> Any:
    """Convert an environment variable string to bool, int or str."""
    if value.lower() in ("true", "yes", "on"):
        return True
    elif value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    return value
