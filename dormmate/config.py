"""Configuration management using Pydantic Settings v2."""

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from ruamel.yaml import YAML

APP_VERSION = "0.1.0"


class StoreConfig(BaseSettings):
    """Announcement store configuration."""

    backend: Literal["memory", "firestore"] = Field(
        default="memory", description="Store implementation"
    )
    collection: str = Field(default="announcements", description="Collection name")
    credentials_path: str = Field(
        default="", description="Service account JSON for Firestore"
    )
    project_id: str = Field(default="", description="Firebase project ID")
    watch_check_interval: float = Field(
        default=5.0, description="Seconds between Firestore listener liveness checks"
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    file: str = Field(default="logs/dormmate.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="7 days", description="Log retention period")
    json_format: bool = Field(default=False, description="Use JSON log format")


class ComposerConfig(BaseSettings):
    """Defaults for a fresh announcement draft."""

    default_date: str = Field(default="MM/DD/YY", description="Initial date field")
    default_start_time: str = Field(default="12:00 pm", description="Initial start time")
    default_end_time: str = Field(default="3:00 pm", description="Initial end time")
    default_building: str = Field(default="ALL", description="Initial target building")


class ViewerConfig(BaseSettings):
    """Viewer session configuration."""

    default_building: str = Field(default="D102", description="Initial building filter")
    snapshot_timeout: float = Field(
        default=5.0, gt=0, description="Seconds to wait for a first snapshot"
    )


class ApiConfig(BaseSettings):
    """HTTP API configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port")
    base_url: str = Field(
        default="http://localhost:8080", description="Base URL used by the CLI"
    )
    request_timeout: int = Field(default=10, ge=1, description="CLI request timeout")


class HealthCheckConfig(BaseSettings):
    """Health check configuration."""

    unhealthy_threshold: int = Field(
        default=3, ge=1, description="Consecutive store failures before unhealthy"
    )


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    composer: ComposerConfig = Field(default_factory=ComposerConfig)
    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    health: HealthCheckConfig = Field(default_factory=HealthCheckConfig)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "Config":
        """Load configuration from YAML file with environment variable overrides.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML parsing fails
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        yaml = YAML()
        with open(config_path) as f:
            config_dict = yaml.load(f) or {}

        config_dict = cls._normalize_keys(config_dict)

        return cls(
            store=StoreConfig(**config_dict.pop("store", {})),
            logging=LoggingConfig(**config_dict.pop("logging", {})),
            composer=ComposerConfig(**config_dict.pop("composer", {})),
            viewer=ViewerConfig(**config_dict.pop("viewer", {})),
            api=ApiConfig(**config_dict.pop("api", {})),
            health=HealthCheckConfig(**config_dict.pop("health", {})),
        )

    @staticmethod
    def _normalize_keys(data: dict) -> dict:
        """Convert hyphenated keys to underscored for Python compatibility.

        Args:
            data: Dictionary with possibly hyphenated keys

        Returns:
            Dictionary with normalized keys
        """
        normalized = {}
        for key, value in data.items():
            new_key = key.replace("-", "_")
            if isinstance(value, dict):
                normalized[new_key] = Config._normalize_keys(value)
            else:
                normalized[new_key] = value
        return normalized


def load_config(config_path: str | Path | None = None) -> Config:
    """Load application configuration.

    Args:
        config_path: Path to configuration file, defaults to $DORMMATE_CONFIG

    Returns:
        Config instance

    Raises:
        ValueError: If configuration is invalid
    """
    if config_path is None:
        config_path = os.environ.get("DORMMATE_CONFIG", "config/settings.yaml")
    try:
        return Config.from_yaml(config_path)
    except FileNotFoundError:
        return Config()


config: Config = load_config()
