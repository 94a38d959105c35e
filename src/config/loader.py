"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. Built-in defaults   - DEFAULT_SOURCE_POLICIES below
#   2. config/config.yaml  - Static defaults checked into the repo
#   3. .env file           - Local developer overrides (not committed)
#   4. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file, then deep-merges environment-based
# values on top.  build_source_policies() turns the `sources:` section into
# validated SourcePolicy models, filling gaps from the built-in defaults.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.config.settings import Settings
from src.utils.errors import ConfigurationError


class SourcePolicy(BaseModel):
    """Timing and write policy for one source's change-aware cache."""

    model_config = ConfigDict(frozen=True)

    cache_key: str
    freshness_window_seconds: float = Field(gt=0)
    min_poll_interval_seconds: float = Field(gt=0)
    store_ttl_seconds: int | None = Field(default=None, gt=0)
    touch_on_unchanged: bool = False


# Windows bound upstream call volume against each source's natural rate of
# change: a shelf changes every few days, a player every few minutes.
DEFAULT_SOURCE_POLICIES: dict[str, dict[str, Any]] = {
    "reading_list": {
        "cache_key": "books",
        "freshness_window_seconds": 3600,
        "min_poll_interval_seconds": 1800,
        "store_ttl_seconds": None,
        "touch_on_unchanged": False,
    },
    "playback": {
        "cache_key": "current_track",
        "freshness_window_seconds": 30,
        "min_poll_interval_seconds": 120,
        "store_ttl_seconds": 300,
        "touch_on_unchanged": False,
    },
}


# YAML section/key -> Settings field.  A field overrides the YAML only when
# it was set explicitly (environment or .env); otherwise the YAML wins over
# the Settings default.
_SETTINGS_SECTIONS: dict[str, dict[str, str]] = {
    "app": {"host": "app_host", "port": "app_port", "env": "app_env"},
    "cache": {"backend": "cache_backend", "db_path": "cache_db_path"},
    "scheduler": {
        "enabled": "scheduler_enabled",
        "tick_interval_seconds": "scheduler_tick_seconds",
    },
    "logging": {"level": "log_level"},
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Layering is Settings defaults, then the YAML file, then any Settings field
    set explicitly through the environment or ``.env``.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; constructed from the environment if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    resolved = _settings_sections(settings, set(Settings.model_fields))
    _deep_merge(resolved, yaml_config)
    _deep_merge(resolved, _settings_sections(settings, settings.model_fields_set))
    return resolved


def _settings_sections(settings: Settings, fields: set[str]) -> dict:
    """Nested config sections for the given Settings fields."""
    sections: dict[str, dict[str, Any]] = {}
    for section, keys in _SETTINGS_SECTIONS.items():
        for key, field in keys.items():
            if field in fields:
                sections.setdefault(section, {})[key] = getattr(settings, field)
    return sections


def build_source_policies(config: dict) -> dict[str, SourcePolicy]:
    """Validate the ``sources:`` section into one SourcePolicy per source.

    Raises:
        ConfigurationError: If a source entry is malformed, names an
            unknown source, or reuses another source's cache key.
    """
    sources_config = config.get("sources") or {}
    unknown = sorted(set(sources_config) - set(DEFAULT_SOURCE_POLICIES))
    if unknown:
        raise ConfigurationError(f"Unknown sources in config: {', '.join(unknown)}")

    policies: dict[str, SourcePolicy] = {}
    for name, defaults in DEFAULT_SOURCE_POLICIES.items():
        merged = dict(defaults)
        _deep_merge(merged, sources_config.get(name) or {})
        try:
            policies[name] = SourcePolicy(**merged)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid policy for source '{name}': {exc}") from exc

    # Each source owns exactly one store key.
    owners: dict[str, str] = {}
    for name, policy in policies.items():
        if policy.cache_key in owners:
            raise ConfigurationError(
                f"Sources '{owners[policy.cache_key]}' and '{name}' share "
                f"cache_key '{policy.cache_key}'"
            )
        owners[policy.cache_key] = name
    return policies


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
