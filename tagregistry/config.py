#!/usr/bin/env python3

import os
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import logging
import sys

import toml
import yaml

from .domain.release import LabelPolicy
from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("tagregistry")

DEFAULT_PAGE_SIZE = 10


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. TAGREGISTRY_CONFIG environment variable
    2. ~/.tagregistry/config.{json,toml,yaml,yml}
    """
    if 'TAGREGISTRY_CONFIG' in os.environ:
        path = Path(os.environ['TAGREGISTRY_CONFIG'])
        if path.exists():
            return path

    config_dir = Path.home() / '.tagregistry'
    for filename in ['config.json', 'config.toml', 'config.yaml', 'config.yml']:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file, defaults and environment."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    if config_path.exists():
        try:
            suffix = config_path.suffix.lower()
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)
    configure_logging(config)

    return config


def save_config(config, config_path: Optional[Path] = None):
    """Save configuration to file, in the format its suffix names."""
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = config_path.suffix.lower()
    with open(config_path, 'w') as f:
        if suffix == '.toml':
            toml.dump(config, f)
        elif suffix in ['.yaml', '.yml']:
            yaml.safe_dump(config, f, default_flow_style=False)
        else:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "database": {
            "path": "",
            "busy_timeout_seconds": 5,
        },
        "pagination": {
            "default_page_size": DEFAULT_PAGE_SIZE,
            "max_page_size": 50,
        },
        "labels": {
            "draft_over_prerelease": True,
        },
        "permissions": {
            "site_admins": [],
            "grants": {},
        },
        "git": {
            "timeout_seconds": 30,
        },
        "logging": {
            "level": "INFO",
        },
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
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: TAGREGISTRY_SECTION_KEY
    For example: TAGREGISTRY_PAGINATION_DEFAULT_PAGE_SIZE=20
    """
    env_prefix = "TAGREGISTRY_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
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
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = typed_value
                break

            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config) -> None:
    """Set the package log level from config['logging']['level']."""
    level_name = str(config.get('logging', {}).get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        logger.warning(f"Unknown log level {level_name!r}, using INFO")
        level = logging.INFO
    logger.setLevel(level)


@dataclass(frozen=True)
class RegistrySettings:
    """
    Per-call settings for listing operations.

    Built once from configuration and handed to the services explicitly.
    """
    default_page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = 50
    label_policy: LabelPolicy = LabelPolicy()

    def __post_init__(self):
        if self.default_page_size < 1:
            raise ConfigError(f"default_page_size must be positive, got {self.default_page_size}")
        if self.max_page_size < self.default_page_size:
            raise ConfigError("max_page_size must be >= default_page_size")

    @classmethod
    def from_config(cls, config: dict) -> 'RegistrySettings':
        pagination = config.get('pagination', {})
        labels = config.get('labels', {})
        try:
            default_page_size = int(pagination.get('default_page_size', DEFAULT_PAGE_SIZE))
            max_page_size = int(pagination.get('max_page_size', 50))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid pagination settings: {e}") from e
        return cls(
            default_page_size=default_page_size,
            max_page_size=max_page_size,
            label_policy=LabelPolicy(
                draft_over_prerelease=bool(labels.get('draft_over_prerelease', True))
            ),
        )

    def page_size(self, requested: Optional[int] = None) -> int:
        """Resolve a per-call page size override against the defaults."""
        if requested is None:
            return self.default_page_size
        if requested < 1:
            raise ValueError(f"page size must be positive, got {requested}")
        return min(requested, self.max_page_size)
