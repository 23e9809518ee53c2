"""Configuration models for stick-sync."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class FingerprintStrategy(str, Enum):
    """How file membership is summarized in a directory fingerprint."""

    SIZE = "size"
    CONTENT = "content"


class SyncSettings(BaseModel):
    """Configuration for the synchronization run."""

    default_destination: str = Field(
        default="/Volumes/STICK",
        description="Destination used when none is given on the command line",
    )
    fingerprint_strategy: FingerprintStrategy = Field(
        default=FingerprintStrategy.SIZE,
        description="size (fast, default) or content (hashes file bytes)",
    )
    check_capacity: bool = Field(
        default=True, description="Compare source size against free destination space first"
    )
    remove_system_files: bool = Field(
        default=True, description="Delete OS junk files from the destination root before syncing"
    )
    continue_on_error: bool = Field(
        default=True, description="Keep syncing sibling directories after a subtree fails"
    )
    max_retries: int = Field(
        default=0, ge=0, le=10, description="Whole-tree re-runs after an I/O failure"
    )
    retry_base_delay: float = Field(
        default=1.0, ge=0.0, le=60.0, description="Initial retry delay in seconds"
    )


class LoggingConfig(BaseModel):
    """Where log entries go and how they look. The sync summary always goes to stdout."""

    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    json_logs: bool = Field(default=False, description="One JSON object per line on stderr")
    log_file: str | None = Field(
        default=None, description="Rotating file that receives a copy of every entry"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the STICK_SYNC_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="STICK_SYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
