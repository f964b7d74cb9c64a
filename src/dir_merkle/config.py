"""Configuration management for Dir Merkle."""

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from . import CONFIG_DIR, CONFIG_ENV_VAR, CONFIG_FILE

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class MerkleConfig(BaseModel):
    """Configuration for Dir Merkle."""

    version: int = 1
    recursive: bool = False
    on_read_error: Literal["abort", "skip"] = "abort"


def get_config_path(config_path: Path | None = None) -> Path:
    """Get the config file path.

    An explicit path wins, then $DIRMERKLE_CONFIG, then ~/.dir-merkle/config.json.
    """
    if config_path is not None:
        return Path(config_path)
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        return Path(env_path)
    return Path.home() / CONFIG_DIR / CONFIG_FILE


def load_config(config_path: Path | None = None) -> MerkleConfig:
    """Load configuration from the config file.

    Falls back to defaults if file doesn't exist.
    Environment variables can override config values.
    """
    path = get_config_path(config_path)

    if path.exists():
        with open(path) as f:
            data = json.load(f)
        config = MerkleConfig.model_validate(data)
    else:
        config = MerkleConfig()

    # Apply environment variable overrides
    config = _apply_env_overrides(config)

    return config


def save_config(config: MerkleConfig, config_path: Path | None = None) -> Path:
    """Save configuration to the config file and return its path."""
    path = get_config_path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(config.model_dump(), f, indent=2)

    return path


def _apply_env_overrides(config: MerkleConfig) -> MerkleConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    # DIRMERKLE_RECURSIVE
    if recursive := os.environ.get("DIRMERKLE_RECURSIVE"):
        value = recursive.strip().lower()
        if value in _TRUE_VALUES:
            data["recursive"] = True
        elif value in _FALSE_VALUES:
            data["recursive"] = False

    # DIRMERKLE_ON_READ_ERROR
    if policy := os.environ.get("DIRMERKLE_ON_READ_ERROR"):
        policy = policy.strip().lower()
        if policy in ("abort", "skip"):
            data["on_read_error"] = policy

    return MerkleConfig.model_validate(data)
