"""
skunk.config — skunk.yaml settings.

skunk.yaml format:

    stacksPath: stacks/*.yaml
    catalogDir: catalog
    logLevel: info

Precedence (low to high):
  defaults → skunk.yaml (or --config) → SKUNK_* environment → CLI flags
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from skunk.errors import ConfigError

DEFAULT_CONFIG_FILE = "skunk.yaml"

# config key → (attribute, environment variable)
_KEYS = {
    "stacksPath": ("stacks_path", "SKUNK_STACKS_PATH"),
    "catalogDir": ("catalog_dir", "SKUNK_CATALOG_DIR"),
    "logLevel": ("log_level", "SKUNK_LOG_LEVEL"),
}


@dataclass
class Settings:
    """Resolved settings."""
    stacks_path: str = "fixtures/stacks/*.yaml"
    catalog_dir: str = "fixtures/catalog"
    log_level: str = "info"
    config_file: Path | None = None


def load_settings(config_file: str | Path | None = None) -> Settings:
    """Load settings from a config file and the environment.

    Args:
        config_file: Explicit config file (None = ./skunk.yaml if present)

    Raises:
        ConfigError: Explicit file missing, or not a YAML mapping
    """
    settings = Settings()

    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", path=path)
    else:
        path = Path(DEFAULT_CONFIG_FILE)
        if not path.exists():
            path = None

    if path is not None:
        _apply_file(settings, path)
        settings.config_file = path

    for attr, env_var in _KEYS.values():
        value = os.environ.get(env_var)
        if value:
            setattr(settings, attr, value)

    return settings


def _apply_file(settings: Settings, path: Path) -> None:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file: {e}", path=path) from e

    if data is None:
        return
    if not isinstance(data, dict):
        raise ConfigError("Config file must be a YAML mapping", path=path)

    for key, (attr, _) in _KEYS.items():
        if data.get(key) is not None:
            setattr(settings, attr, str(data[key]))
