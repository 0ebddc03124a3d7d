"""Configuration management for the multipart uploader using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UploadConfig(BaseSettings):
    """Upload orchestration configuration."""

    model_config = SettingsConfigDict(env_prefix="MULTIPART_UPLOAD_UPLOAD_")

    algorithm: str = "SHA-256"
    max_part_size: int = 100 * 1024 * 1024  # informational, parts come from the backend
    max_concurrent_parts: Optional[int] = None  # None = all parts at once


class RetryConfig(BaseSettings):
    """Per-part transfer retry configuration."""

    model_config = SettingsConfigDict(env_prefix="MULTIPART_UPLOAD_RETRY_")

    retries: int = 3
    base_delay: float = 0.1  # seconds, doubled on every attempt


class TransportConfig(BaseSettings):
    """HTTP transport configuration."""

    model_config = SettingsConfigDict(env_prefix="MULTIPART_UPLOAD_TRANSPORT_")

    timeout: float = 60.0
    stream_chunk_size: int = 64 * 1024
    max_connections: int = 100


class ObservabilityConfig(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="MULTIPART_UPLOAD_OBSERVABILITY_")

    log_level: str = "info"
    log_format: str = "json"
    otlp_endpoint: str = ""
    environment: str = "development"


class Config(BaseSettings):
    """Root configuration for the multipart uploader."""

    model_config = SettingsConfigDict(
        env_prefix="MULTIPART_UPLOAD_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    upload: UploadConfig = Field(default_factory=UploadConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
