"""Configuration management for the problem details library."""

import codecs
import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings with environment variable support."""

    # Localisation settings
    default_locale: str = "en"

    # Serialization settings
    default_encoding: str = "utf-8"
    xml_declaration: bool = True

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("default_encoding")
    @classmethod
    def validate_default_encoding(cls, v):
        """Validate that the encoding is known to the codec registry."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v

    @field_validator("default_locale")
    @classmethod
    def validate_default_locale(cls, v):
        """Normalise the locale tag."""
        if not v or not v.strip():
            raise ValueError("Default locale must not be empty")
        return v.strip().replace("_", "-").lower()

    model_config = {
        "env_prefix": "PROBLEM_DETAILS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get library settings."""
    return settings


def configure_logging(config: Optional[Settings] = None) -> None:
    """Configure the root logger from settings."""
    config = config or get_settings()
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=config.log_format
    )
    logging.getLogger().setLevel(getattr(logging, config.log_level))
