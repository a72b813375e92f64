"""Application settings and configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from scaletrack.errors import ConfigurationError

VALID_PROVIDERS = ("openai", "ollama")
VALID_OUTPUT_FORMATS = ("table", "json", "csv")


def default_config_dir() -> Path:
    """Return the configuration directory (SCALETRACK_HOME or ~/.scaletrack)."""
    override = os.environ.get("SCALETRACK_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".scaletrack"


def _default_db_path() -> Path:
    return default_config_dir() / "scaletrack.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class AuthConfig:
    """Session token configuration."""

    secret_key: Optional[str] = None  # generated into secret.key when unset
    token_ttl_hours: int = 24 * 7


@dataclass
class VisionConfig:
    """Scale photo reader configuration."""

    provider: str = "openai"  # "openai" or "ollama"
    openai_model: str = "gpt-4o-mini"
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llava:7b"
    timeout_s: int = 60


@dataclass
class DefaultsConfig:
    """Default values for various operations."""

    chart_days: int = 30
    output_format: str = "table"  # "table", "json", "csv"


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    format: str = "plain"  # "plain" or "json"


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        return default_config_dir()

    @property
    def session_path(self) -> Path:
        return self.config_dir / "session"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses <config dir>/config.yaml

        Returns:
            Settings instance

        Raises:
            ConfigurationError: If the file is not valid YAML or has bad values
        """
        if config_path is None:
            config_path = default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        settings = cls()

        try:
            # Parse database config
            if "database" in data:
                db_data = data["database"]
                if db_data.get("path"):
                    settings.database.path = Path(db_data["path"]).expanduser()

            # Parse auth config
            if "auth" in data:
                auth_data = data["auth"]
                if auth_data.get("secret_key"):
                    settings.auth.secret_key = str(auth_data["secret_key"])
                if "token_ttl_hours" in auth_data:
                    settings.auth.token_ttl_hours = int(auth_data["token_ttl_hours"])

            # Parse vision config
            if "vision" in data:
                vision_data = data["vision"]
                if "provider" in vision_data:
                    settings.vision.provider = vision_data["provider"]
                if "openai_model" in vision_data:
                    settings.vision.openai_model = vision_data["openai_model"]
                if "ollama_url" in vision_data:
                    settings.vision.ollama_url = vision_data["ollama_url"]
                if "ollama_model" in vision_data:
                    settings.vision.ollama_model = vision_data["ollama_model"]
                if "timeout_s" in vision_data:
                    settings.vision.timeout_s = int(vision_data["timeout_s"])

            # Parse defaults
            if "defaults" in data:
                def_data = data["defaults"]
                if "chart_days" in def_data:
                    settings.defaults.chart_days = int(def_data["chart_days"])
                if "output_format" in def_data:
                    settings.defaults.output_format = def_data["output_format"]

            if "logging" in data:
                log_data = data["logging"]
                if "level" in log_data:
                    settings.logging.level = str(log_data["level"]).upper()
                if "format" in log_data:
                    settings.logging.format = log_data["format"]
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid value in {config_path}: {e}") from e

        if settings.vision.provider not in VALID_PROVIDERS:
            raise ConfigurationError(
                f"vision.provider must be one of {VALID_PROVIDERS}, "
                f"got '{settings.vision.provider}'"
            )
        if settings.defaults.output_format not in VALID_OUTPUT_FORMATS:
            raise ConfigurationError(
                f"defaults.output_format must be one of {VALID_OUTPUT_FORMATS}, "
                f"got '{settings.defaults.output_format}'"
            )

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        The secret key is never written here; it lives in its own file.
        """
        if config_path is None:
            config_path = default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "database": {
                "path": str(self.database.path),
            },
            "auth": {
                "token_ttl_hours": self.auth.token_ttl_hours,
            },
            "vision": {
                "provider": self.vision.provider,
                "openai_model": self.vision.openai_model,
                "ollama_url": self.vision.ollama_url,
                "ollama_model": self.vision.ollama_model,
                "timeout_s": self.vision.timeout_s,
            },
            "defaults": {
                "chart_days": self.defaults.chart_days,
                "output_format": self.defaults.output_format,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
