"""YAML configuration loader with environment variable overrides.

# --- CONFIGURATION HIERARCHY -----------------------------------------------
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- static defaults checked into the repo
#   2. .env file           -- local developer overrides (not committed)
#   3. Environment vars    -- set at deploy time
#
# load_config() reads the YAML file, then deep-merges the Settings-derived
# values on top:
#   base      = {"cache": {"ttl_seconds": 1800}}
#   overrides = {"cache": {"backend": "memory"}}
#   result    = {"cache": {"ttl_seconds": 1800, "backend": "memory"}}
# ---------------------------------------------------------------------------
"""

from pathlib import Path

import yaml

from animebrowse.config.settings import Settings
from animebrowse.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              an empty base layer.
        settings: Pre-built Settings; a fresh instance is read when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file exists but cannot be parsed.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "jikan": {
            "base_url": settings.jikan_base_url,
            "timeout_seconds": settings.http_timeout_seconds,
        },
        "cache": {
            "backend": settings.cache_backend,
            "db_path": settings.cache_db_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
