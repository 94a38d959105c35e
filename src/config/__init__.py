"""Configuration module - exports Settings, load_config, and source policies."""

from src.config.loader import SourcePolicy, build_source_policies, load_config
from src.config.settings import Settings

__all__ = ["Settings", "SourcePolicy", "build_source_policies", "load_config"]
