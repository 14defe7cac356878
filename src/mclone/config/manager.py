# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/config/manager.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Final, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from mclone.system.exceptions import ConfigError


# ---- Constants ----

USER_CFG: Final = "mclone.yml"
RCLONE_ENV: Final = "RCLONE"
DEFAULT_RCLONE: Final = "rclone"


def _get_user_config_search_paths() -> tuple[Path, ...]:
    """Get config file search paths (ordered by priority: lowest to highest).

    Evaluated at call time so tests can redirect the environment.
    """
    return (
        Path("/etc/mclone") / USER_CFG,  # System defaults
        Path.home() / ".config" / "mclone" / USER_CFG,  # User config
        Path(os.getenv("XDG_CONFIG_HOME", "")) / "mclone" / USER_CFG,  # XDG override
        Path(os.getenv("MCLONE_CONFIG_HOME", "")) / USER_CFG,  # Explicit override (highest priority)
    )


def _load_merged_config_data(candidates: tuple[Path, ...]) -> dict:
    """Load and merge config data from candidate paths.

    Later files override earlier ones key by key. Unreadable files are
    logged and skipped; no file at all yields an empty dict.
    """
    merged_data = {}
    found_configs = []

    for candidate in candidates:
        # Unset environment variables produce relative paths; skip them
        if not candidate.is_absolute() or not candidate.exists():
            continue
        try:
            with candidate.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
            merged_data.update(data)
            found_configs.append(str(candidate))
            logger.debug(f"Loaded config from {candidate}")
        except Exception as e:
            logger.warning(f"Failed to load config from {candidate}: {e}")

    if found_configs:
        logger.debug(f"Merged config from: {', '.join(found_configs)}")
    else:
        logger.debug("No mclone.yml found; using defaults")
    return merged_data


# ---- User Config ----

class UserConfig(BaseModel):
    """Per-user mclone settings."""

    # rclone executable; the RCLONE environment variable takes precedence
    rclone: Optional[str] = None

    # Optional logging configuration
    local_log: Optional[Path] = None

    # Extra directories searched for volumes, ahead of system mounts
    search_paths: list[Path] = Field(default_factory=list)
    scan_system_mounts: bool = True

    @classmethod
    def load(cls, config_path: Path) -> "UserConfig":
        """Load user config from a single file."""
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"invalid config {config_path}: {e}") from e

    def rclone_executable(self) -> str:
        return os.getenv(RCLONE_ENV) or self.rclone or DEFAULT_RCLONE


def load_merged_user_config() -> UserConfig:
    """Load and merge user config from all locations (system defaults + user overrides)."""
    merged_data = _load_merged_config_data(_get_user_config_search_paths())
    try:
        return UserConfig.model_validate(merged_data)
    except PydanticValidationError as e:
        raise ConfigError(f"invalid mclone configuration: {e}") from e
