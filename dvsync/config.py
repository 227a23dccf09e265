#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import logging
import sys

import yaml

from .exit_codes import ConfigError

logger = logging.getLogger("dvsync")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def configure_logging(config: Optional[Dict[str, Any]] = None, verbose: bool = False) -> None:
    """Configure the dvsync logger from the ``logging`` config section."""
    section = (config or {}).get("logging", {})
    level_name = "DEBUG" if verbose else str(section.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)  # Default to stderr
    handler.setFormatter(logging.Formatter(section.get("format", "%(levelname)s: %(message)s")))

    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. DVSYNC_CONFIG environment variable
    2. ~/.dvsync/ directory
    """
    # Check for environment variable override
    if 'DVSYNC_CONFIG' in os.environ:
        path = Path(os.environ['DVSYNC_CONFIG']).expanduser()
        if path.exists():
            return path

    dvsync_dir = Path.home() / '.dvsync'
    for filename in CONFIG_FILENAMES:
        path = dvsync_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return dvsync_dir / 'config.json'


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            return tomllib.load(f)
    if suffix in ['.yaml', '.yml']:
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    # Default to JSON format
    with open(config_path, 'r') as f:
        return json.load(f)


def load_config(config_path: Optional[Union[str, Path]] = None):
    """
    Load configuration: defaults, then the config file, then environment overrides.

    Args:
        config_path: Explicit config file (default: see get_config_path)

    Raises:
        ConfigError: if an explicitly given file is missing or unreadable
    """
    explicit = config_path is not None
    path = Path(config_path).expanduser() if explicit else get_config_path()

    # Start with default config
    config = get_default_config()

    if path.exists():
        try:
            file_config = _read_config_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            if explicit:
                raise ConfigError(f"Error loading config from {path}: {e}") from e
            logger.error(f"Error loading config from {path}: {e}")
        else:
            if not isinstance(file_config, dict):
                raise ConfigError(f"Config file {path} must contain a mapping")
            # Merge file config with defaults
            config = merge_configs(config, file_config)
    elif explicit:
        raise ConfigError(f"Config file not found: {path}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    return config


def save_config(config, config_path: Optional[Union[str, Path]] = None):
    """Save configuration to file (JSON or YAML; TOML paths are written as JSON)."""
    path = Path(config_path).expanduser() if config_path else get_config_path()

    # Create directory if it doesn't exist
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() in ['.yaml', '.yml']:
        with open(path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if path.suffix.lower() == '.toml':
            logger.warning("Writing TOML is not supported. Saving as JSON instead.")
            path = path.with_suffix('.json')
        with open(path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {path}")
    return path


def get_default_config():
    """Get default configuration."""
    return {
        "diversion": {
            "repository_id": "",
            "branch_name": "main",
            "executable": "dv",
            "working_directory": ""
        },
        "sync": {
            "max_checkout_retries": 10,
            "checkout_retry_delay_ms": 1000,
            "log_fetch_buffer": 10,
            "max_refetch_rounds": 2,
            "command_timeout_seconds": 0
        },
        "patch": {
            "metadata_directories": [".dv", ".diversion"]
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s"
        }
    }


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: DVSYNC_SECTION_KEY
    For example: DVSYNC_SYNC_LOG_FETCH_BUFFER=25
    """
    env_prefix = "DVSYNC_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "DVSYNC_CONFIG":
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts_from_key = config_key.split('_')
                if key_parts[i : i + len(config_key_parts_from_key)] == config_key_parts_from_key:
                    if len(config_key_parts_from_key) > best_match_len:
                        best_match_len = len(config_key_parts_from_key)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config


@dataclass(frozen=True)
class SyncSettings:
    """Typed view of the settings the engine needs."""
    repository_id: str = ""
    branch_name: str = "main"
    executable: str = "dv"
    working_directory: Optional[Path] = None
    max_checkout_retries: int = 10
    checkout_retry_delay: float = 1.0
    log_fetch_buffer: int = 10
    max_refetch_rounds: int = 2
    command_timeout: Optional[float] = None
    metadata_directories: Tuple[str, ...] = ('.dv', '.diversion')

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SyncSettings':
        """
        Build settings from a config dict (as returned by load_config).

        Raises:
            ConfigError: if a numeric setting is invalid
        """
        diversion = config.get("diversion", {})
        sync = config.get("sync", {})
        patch = config.get("patch", {})

        try:
            max_retries = int(sync.get("max_checkout_retries", 10))
            delay_ms = float(sync.get("checkout_retry_delay_ms", 1000))
            buffer = int(sync.get("log_fetch_buffer", 10))
            rounds = int(sync.get("max_refetch_rounds", 2))
            timeout = float(sync.get("command_timeout_seconds", 0) or 0)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid sync setting: {e}") from e

        if max_retries < 1:
            raise ConfigError("sync.max_checkout_retries must be at least 1")
        if buffer < 0 or rounds < 0 or delay_ms < 0:
            raise ConfigError("sync settings must not be negative")

        working_directory = str(diversion.get("working_directory") or "").strip()
        return cls(
            repository_id=str(diversion.get("repository_id") or "").strip(),
            branch_name=str(diversion.get("branch_name") or "main").strip(),
            executable=str(diversion.get("executable") or "dv").strip(),
            working_directory=Path(working_directory).expanduser() if working_directory else None,
            max_checkout_retries=max_retries,
            checkout_retry_delay=delay_ms / 1000.0,
            log_fetch_buffer=buffer,
            max_refetch_rounds=rounds,
            command_timeout=timeout or None,
            metadata_directories=tuple(patch.get("metadata_directories") or ('.dv', '.diversion')),
        )
