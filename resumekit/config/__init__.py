# resumekit/config/__init__.py
"""Configuration system for resumekit."""

from .loader import get_config_path, get_db_path, load_config
from .schema import (
    DefaultsConfig,
    EditorConfig,
    OutputConfig,
    ResumeKitConfig,
    SharingConfig,
    StoreConfig,
)

__all__ = [
    "ResumeKitConfig",
    "StoreConfig",
    "DefaultsConfig",
    "EditorConfig",
    "SharingConfig",
    "OutputConfig",
    "load_config",
    "get_config_path",
    "get_db_path",
]
