"""Application configuration with validation."""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    TEXT = "text"


class Settings(BaseSettings):
    """
    Tagger settings with validation.

    Every value can be overridden through a ``TAGIT_``-prefixed environment
    variable or a ``.env`` file next to the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAGIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: Optional[str] = Field(
        default=None,
        description="Database URL of one managed folder; when set, the folder registry is bypassed"
    )
    registry_url: str = Field(
        default="sqlite:///./tagit_registry.db",
        description="Database URL of the managed folder registry"
    )
    managed_folder: str = Field(
        default="Default",
        description="Name of the folder created when the registry is empty"
    )
    folders_location: str = Field(
        default=".",
        description="Parent directory of the folder created when the registry is empty"
    )

    # Naming rules shared by tags and files
    forbidden_name_characters: str = Field(
        default="/\\\"'",
        description="Characters that may not appear in tag or file names"
    )

    # Search defaults
    default_sort_method: str = Field(
        default="NAME",
        description="Sort method used when a search request does not name one"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator('default_sort_method')
    @classmethod
    def validate_sort_method(cls, v: str) -> str:
        valid_methods = ['NAME', 'AGE', 'IMPORT_ORDER', 'RANDOM']
        v_upper = v.upper()
        if v_upper not in valid_methods:
            raise ValueError(f"Invalid sort method. Must be one of: {valid_methods}")
        return v_upper


# Global settings instance
settings = Settings()
