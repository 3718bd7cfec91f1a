"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.template_resolver import get_locale


class BookingDefaults(BaseModel):
    """Rules applied to every slot computation."""
    granularity_minutes: int = 15
    min_notice_minutes: int = 0
    advance_booking_days: Optional[int] = None

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure the slot grid step is positive and divides an hour."""
        if value <= 0:
            raise ValueError("granularity_minutes must be greater than zero")
        if 60 % value != 0:
            raise ValueError(f"granularity_minutes must divide 60, got {value}")
        return value

    @field_validator("min_notice_minutes")
    @classmethod
    def validate_notice(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_notice_minutes cannot be negative")
        return value

    @model_validator(mode="after")
    def validate_horizon(self) -> "BookingDefaults":
        """A horizon, when set, must allow booking at least today."""
        if self.advance_booking_days is not None and self.advance_booking_days < 0:
            raise ValueError("advance_booking_days cannot be negative")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Sao_Paulo"
    weekday_locale: str = "en"
    data_file: Optional[Path] = None
    booking: BookingDefaults = Field(default_factory=BookingDefaults)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("weekday_locale")
    @classmethod
    def validate_locale(cls, value: str) -> str:
        return get_locale(value).code

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``data_file`` paths are resolved against the config file.

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
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file

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
