"""
Configuration management using Pydantic Settings.
Follows Single Responsibility Principle - only handles configuration.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    # Application
    app_name: str = Field(default="Chunked Transcribe", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=True, alias="DEBUG")

    # API Service
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_reload: bool = Field(default=True, alias="API_RELOAD")
    api_workers: int = Field(default=1, alias="API_WORKERS")
    max_upload_size_mb: int = Field(default=300, alias="MAX_UPLOAD_SIZE_MB")

    # Working directories
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    segments_dir: str = Field(default="chunks", alias="SEGMENTS_DIR")
    transcriptions_dir: str = Field(
        default="transcriptions", alias="TRANSCRIPTIONS_DIR"
    )

    # Transcription service (OpenAI Whisper API)
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")
    transcription_model: str = Field(default="whisper-1", alias="TRANSCRIPTION_MODEL")
    transcription_language: Optional[str] = Field(
        default=None, alias="TRANSCRIPTION_LANGUAGE"
    )  # None = let the service detect the language
    transcription_limit_mb: int = Field(default=25, alias="TRANSCRIPTION_LIMIT_MB")

    # Segment planning
    target_segment_mb: int = Field(
        default=20, alias="TARGET_SEGMENT_MB"
    )  # Kept below the hard limit to absorb bitrate estimation error
    min_segment_seconds: int = Field(default=120, alias="MIN_SEGMENT_SECONDS")
    max_segment_seconds: int = Field(default=1200, alias="MAX_SEGMENT_SECONDS")
    max_repair_passes: int = Field(default=12, alias="MAX_REPAIR_PASSES")
    ffmpeg_binary: str = Field(default="ffmpeg", alias="FFMPEG_BINARY")

    # Processing Settings
    max_concurrent_segments: int = Field(default=3, alias="MAX_CONCURRENT_SEGMENTS")
    max_retries: int = Field(default=2, alias="MAX_RETRIES")
    retry_backoff_seconds: float = Field(default=1.0, alias="RETRY_BACKOFF_SECONDS")
    discovery_interval_seconds: float = Field(
        default=0.5, alias="DISCOVERY_INTERVAL_SECONDS"
    )

    # Cleanup sweep
    cleanup_interval_seconds: int = Field(default=3600, alias="CLEANUP_INTERVAL_SECONDS")
    cleanup_max_age_hours: int = Field(default=24, alias="CLEANUP_MAX_AGE_HOURS")
    scheduler_timezone: str = Field(default="UTC", alias="SCHEDULER_TIMEZONE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")

    @property
    def transcription_limit_bytes(self) -> int:
        """Hard payload limit of the transcription service in bytes."""
        return self.transcription_limit_mb * MB

    @property
    def target_segment_bytes(self) -> int:
        """Planning target for a single segment in bytes."""
        return self.target_segment_mb * MB

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * MB


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Using lru_cache to ensure single instance (Singleton pattern).
    """
    return Settings()
