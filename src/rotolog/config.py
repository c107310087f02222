"""
Logger Configuration.

Loaded from ``ROTOLOG_*`` environment variables or a ``.env`` file, or built
explicitly and handed to :meth:`rotolog.Logger.from_settings`.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logger import DEFAULT_FORMAT


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"
    OFF = "OFF"


class LoggerSettings(BaseSettings):
    """Startup configuration for a Logger."""

    model_config = SettingsConfigDict(
        env_prefix="ROTOLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Initial severity threshold")
    file_path: str = Field(default="", description="Log file path; empty disables the file and rotation")
    max_size: int = Field(default=0, ge=0, description="Rotation threshold in megabytes (0 disables)")
    backups: int = Field(default=0, ge=0, description="Number of rotated backups to keep")
    prefix: str = Field(default="", description="Text for the ${prefix} tag")
    format: str = Field(default=DEFAULT_FORMAT, description="Record template")
    color: bool = Field(default=False, description="Colorize level names on terminals")
