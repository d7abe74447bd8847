# resumekit/config/loader.py
"""
Locating, reading and seeding the resumekit config file.

Lookup order for the config file: explicit path, then $RESUMEKIT_CONFIG,
then config.yaml in the platformdirs user config directory. A missing file
is seeded with the defaults so users have something to edit.
"""

import logging
import os
from pathlib import Path

import yaml
from platformdirs import user_config_path, user_data_path

from .schema import ResumeKitConfig

logger = logging.getLogger(__name__)

APP_NAME = "resumekit"
CONFIG_ENV_VAR = "RESUMEKIT_CONFIG"


def get_config_path() -> Path:
    """Config file path from $RESUMEKIT_CONFIG, else the user config dir."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return user_config_path(APP_NAME, ensure_exists=True) / "config.yaml"


def get_db_path(config: ResumeKitConfig) -> Path:
    """Resolve the SQLite database path (configured, or in the user data dir)."""
    if config.store.db_path:
        return Path(config.store.db_path).expanduser()
    return user_data_path(APP_NAME, ensure_exists=True) / "resumes.db"


def _write_defaults(path: Path) -> ResumeKitConfig:
    config = ResumeKitConfig()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(
            config.model_dump(mode="json"), default_flow_style=False, sort_keys=False
        )
    )
    logger.info(f"Wrote default config to {path}")
    return config


def load_config(config_path: Path | None = None) -> ResumeKitConfig:
    """
    Load and validate the config file, seeding it with defaults if absent.

    Args:
        config_path: Explicit config file (see get_config_path otherwise)

    Raises:
        pydantic.ValidationError: A value in the file is out of range
    """
    path = config_path or get_config_path()
    if not path.exists():
        return _write_defaults(path)

    raw = yaml.safe_load(path.read_text()) or {}
    config = ResumeKitConfig.model_validate(raw)
    logger.debug(f"Loaded config from {path}")
    return config
