"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator


class DefaultsConfig(BaseModel):
    """Default settings for slot generation and searches."""
    duration_minutes: int = 30
    horizon_days: int = 30
    suggestion_limit: int = 5
    suggestion_days: int = 7

    @field_validator("duration_minutes", "horizon_days", "suggestion_limit")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and durations are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("suggestion_days")
    @classmethod
    def validate_suggestion_days(cls, value: int) -> int:
        if value < 0:
            raise ValueError("suggestion_days must not be negative")
        return value


class DataSourceConfig(BaseModel):
    """Where schedule, appointment and service data come from."""
    kind: Literal["file", "http"] = "file"
    path: Optional[Path] = None
    base_url: Optional[str] = None
    api_token: Optional[str] = None
    timeout_seconds: float = 30.0

    @model_validator(mode="after")
    def validate_source(self) -> "DataSourceConfig":
        """Each source kind needs its own location setting."""
        if self.kind == "file" and self.path is None:
            raise ValueError("data_source.path is required for the file data source")
        if self.kind == "http" and not self.base_url:
            raise ValueError("data_source.base_url is required for the http data source")
        if self.timeout_seconds <= 0:
            raise ValueError("data_source.timeout_seconds must be greater than zero")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    data_source: DataSourceConfig = Field(
        default_factory=lambda: DataSourceConfig(path=Path("schedule_data.json"))
    )
    log_level: str = "INFO"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Reject unknown IANA timezone names early."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative data file paths are resolved against the config file's directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        data_path = config.data_source.path
        if data_path is not None and not data_path.is_absolute():
            config.data_source.path = config_path.parent / data_path

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
