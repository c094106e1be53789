"""Configuration management with YAML file support.

Priority (highest to lowest):
1. Environment variables (RUNTIME_DIAGNOSTICS_*)
2. diagnostics.yaml file (or the file passed to reload_settings)
3. .env file
4. Default values
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml  # type: ignore[import-untyped]
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from runtime_diagnostics.core.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "RUNTIME_DIAGNOSTICS_"

# Default config file locations (checked in order)
CONFIG_FILE_LOCATIONS = [
    Path("diagnostics.yaml"),
    Path("diagnostics.yml"),
    Path("./config/diagnostics.yaml"),
]

MEGABYTE = 1024 * 1024
KILOBYTE = 1024


def find_config_file() -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in CONFIG_FILE_LOCATIONS:
        if path.exists():
            return path
    return None


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load settings values from a YAML file.

    A missing, unreadable or malformed file yields an empty mapping, so the
    defaults and environment still apply.

    Args:
        config_path: Explicit file; searched in CONFIG_FILE_LOCATIONS when omitted.
    """
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring diagnostics config file", path=str(config_path), error=str(e))
        return {}

    if not isinstance(config, dict):
        logger.warning("Ignoring diagnostics config file, expected a mapping", path=str(config_path))
        return {}

    logger.debug("Loaded diagnostics config file", path=str(config_path))
    return config


class Settings(BaseSettings):
    """Diagnostics settings with YAML and environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Rolling log file
    log_path: Path = Field(
        default=Path("./logs/diagnostics.log"),
        description="Location of the rolling diagnostics log file",
    )
    maximum_size: int = Field(
        default=2 * MEGABYTE,
        gt=0,
        description="Maximum size of the log file in bytes before it is trimmed",
    )
    trim_size: int = Field(
        default=100 * KILOBYTE,
        ge=0,
        description="Extra bytes removed below the maximum when trimming",
    )
    minimum_free_disk_space: int = Field(
        default=500 * MEGABYTE,
        ge=0,
        description="Writes are dropped when less free disk space than this remains",
    )
    file_creation_limit: int = Field(
        default=2,
        ge=1,
        le=10,
        description="How many times the log file may be (re)created per process",
    )

    # Console capture
    capture_console: bool = Field(
        default=True,
        description="Mirror stdout/stderr into the diagnostics log",
    )

    # Report
    app_name: str = Field(default="Application", description="Name shown in reports")
    app_version: str = Field(default="0.0.0", description="Version shown in reports")
    report_title: str | None = Field(
        default=None,
        description="Report page title. Defaults to '<app_name> - Diagnostics Report'",
    )
    report_dir: Path = Field(
        default=Path("./reports"),
        description="Directory used when saving compiled reports",
    )

    # Library logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Level of the library's own structured logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Format of the library's own structured logging",
    )

    @field_validator("log_path", "report_dir", mode="before")
    @classmethod
    def parse_path(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_trim_size(self) -> "Settings":
        """The trim band has to fit below the maximum size."""
        if self.trim_size >= self.maximum_size:
            raise ValueError(
                f"trim_size ({self.trim_size}) must be smaller than "
                f"maximum_size ({self.maximum_size})"
            )
        return self

    @property
    def resolved_report_title(self) -> str:
        """Title used in the header of the report page."""
        return self.report_title or f"{self.app_name} - Diagnostics Report"

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for YAML serialization."""
        result = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            if isinstance(value, Path):
                value = str(value)
            result[field_name] = value
        return result


def _create_settings_with_yaml(config_path: Path | None = None) -> Settings:
    """Build Settings from the YAML file with environment variables on top.

    YAML values are passed as init arguments, so they take precedence over
    the ``.env`` file; real environment variables are re-applied over them.
    Empty environment variables count as unset.
    """
    values = load_yaml_config(config_path)
    for field_name in Settings.model_fields:
        env_value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}", "")
        if env_value != "":
            values[field_name] = env_value
    return Settings(**values)


# Cache for settings - can be cleared to reload
_settings_cache: Settings | None = None


def get_settings() -> Settings:
    """Get diagnostics settings (cached).

    Loads the YAML config file, then applies environment variable overrides.

    Returns:
        Settings: Diagnostics settings instance.
    """
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = _create_settings_with_yaml()
    return _settings_cache


def reload_settings(config_path: Path | None = None) -> Settings:
    """Force reload settings from config files.

    Args:
        config_path: Optional explicit YAML file to load instead of searching.

    Returns:
        Settings: Fresh settings instance.
    """
    global _settings_cache
    _settings_cache = _create_settings_with_yaml(config_path)
    return _settings_cache
