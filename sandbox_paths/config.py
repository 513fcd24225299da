"""
Configuration loading for sandbox path translation.

Loads settings from the `sandbox_paths` section of a YAML file:

    sandbox_paths:
      cache_ttl_seconds: 300
      single_flight: true
      file_keys: [filePath, path, media]

Missing files or sections fall back to defaults.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .core.sandbox_path_resolver import DEFAULT_FILE_KEYS
from .core.session_context import DEFAULT_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SANDBOX_PATHS_CONFIG"
# Default config path relative to project root
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "sandbox-paths.yaml"


@dataclass
class PathResolverSettings:
    """Settings for the session context cache and parameter rewriting."""

    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    single_flight: bool = True
    file_keys: list[str] = field(default_factory=lambda: list(DEFAULT_FILE_KEYS))


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML configuration file."""
    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return {}

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Config file {config_path} is not a mapping, using defaults")
        return {}
    return data


def _parse_ttl(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        logger.warning(
            f"Invalid cache_ttl_seconds {value!r}, using {DEFAULT_CACHE_TTL_SECONDS}"
        )
        return DEFAULT_CACHE_TTL_SECONDS
    return float(value)


def _parse_bool(name: str, value: Any, default: bool) -> bool:
    if not isinstance(value, bool):
        logger.warning(f"Invalid {name} {value!r}, using {default}")
        return default
    return value


def _parse_file_keys(value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(k, str) and k for k in value):
        logger.warning(f"Invalid file_keys {value!r}, using defaults")
        return list(DEFAULT_FILE_KEYS)
    return list(value)


def load_settings(config_path: Path | None = None) -> PathResolverSettings:
    """
    Load path resolver settings from YAML file.

    Args:
        config_path: Path to the YAML file. If None, uses $SANDBOX_PATHS_CONFIG
                     or the config/sandbox-paths.yaml shipped
                     next to the package.

    Returns:
        PathResolverSettings with values from YAML or defaults.
    """
    path = config_path or Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))
    yaml_data = _load_yaml_config(path)

    section = yaml_data.get("sandbox_paths") or {}
    if not isinstance(section, dict):
        logger.warning(
            f"sandbox_paths config in {path} is not a mapping, using defaults"
        )
        return PathResolverSettings()
    if not section:
        logger.info("No sandbox_paths config in YAML, using defaults")
        return PathResolverSettings()

    settings = PathResolverSettings()
    if "cache_ttl_seconds" in section:
        settings.cache_ttl_seconds = _parse_ttl(section["cache_ttl_seconds"])
    if "single_flight" in section:
        settings.single_flight = _parse_bool(
            "single_flight", section["single_flight"], settings.single_flight
        )
    if "file_keys" in section:
        settings.file_keys = _parse_file_keys(section["file_keys"])

    logger.info(f"Loaded sandbox_paths config from {path}")
    return settings


# Global settings instance (lazy loaded)
_settings: PathResolverSettings | None = None


def get_settings() -> PathResolverSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(config_path: Path | None = None) -> PathResolverSettings:
    """Reload settings from file."""
    global _settings
    _settings = load_settings(config_path)
    return _settings
