"""Configuration management for vsix-stamp.

Loads configuration from:
1. vsixstamp.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

CONFIG_FILE_NAME = "vsixstamp.toml"


@dataclass
class ArchiveConfig:
    """Archive backend configuration."""

    tool: str = "zipfile"  # "zipfile" | "command"
    compression_level: int = 9
    temp_prefix: str = "vsixeditor"
    timeout: int = 300  # Seconds, command backend only


@dataclass
class TasksConfig:
    """Nested task manifest configuration."""

    version_type: str = "major"  # "major" | "minor" | "patch"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"


@dataclass
class Config:
    """Main configuration container."""

    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    tasks: TasksConfig = field(default_factory=TasksConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary.

        Raises:
            ValueError: If a section holds an unknown key.
        """
        try:
            return cls(
                archive=ArchiveConfig(**data.get("archive", {})),
                tasks=TasksConfig(**data.get("tasks", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except TypeError as e:
            raise ValueError(f"Invalid configuration: {e}") from e


def find_config_file() -> Path | None:
    """Find vsixstamp.toml in current or parent directories.

    Returns:
        Path to vsixstamp.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path

    return None


def resolve_config_path(config_path: Path | str | None = None) -> Path | None:
    """Resolve the config file to load.

    Args:
        config_path: Optional explicit path; searched for when omitted.

    Returns:
        Path to an existing config file, or None.
    """
    if config_path is None:
        return find_config_file()
    path = Path(config_path)
    return path if path.exists() else None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to vsixstamp.toml

    Returns:
        Config object with merged settings.

    Raises:
        ValueError: If the file is not valid TOML or holds unknown keys.
    """
    config_data: dict[str, Any] = {}

    path = resolve_config_path(config_path)
    if path is not None:
        with open(path, "rb") as f:
            config_data = tomllib.load(f)

    env_overrides = {
        "archive": {
            "tool": os.getenv("VSIXSTAMP_ARCHIVE_TOOL"),
            "temp_prefix": os.getenv("VSIXSTAMP_TEMP_PREFIX"),
            "timeout": _int_or_none(os.getenv("VSIXSTAMP_ARCHIVE_TIMEOUT")),
        },
        "tasks": {
            "version_type": os.getenv("VSIXSTAMP_TASKS_VERSION_TYPE"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None
_config_path: Path | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config, _config_path
    if _config is None:
        _config_path = resolve_config_path()
        _config = load_config(_config_path)
    return _config


def reload_config(config_path: Path | str | None = None) -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config, _config_path
    _config_path = resolve_config_path(config_path)
    _config = load_config(_config_path)
    return _config


def get_config_path() -> Path | None:
    """Get the config file the global configuration was loaded from.

    Returns:
        Path to the loaded config file, or None when only defaults and
        environment variables apply.
    """
    get_config()
    return _config_path
