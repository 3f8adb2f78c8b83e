"""
Configuration module for skillsync.

Exports the main components for convenient imports.
"""

from .loader import ConfigStore, default_config_path, load_settings
from .schema import LoggingConfig, RepoEntry, SourcesConfig, SyncConfig

__all__ = [
    "ConfigStore",
    "default_config_path",
    "load_settings",
    "LoggingConfig",
    "RepoEntry",
    "SourcesConfig",
    "SyncConfig",
]
