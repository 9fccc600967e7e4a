"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Bundled profile schema shipped with the package
DEFAULT_PROFILE_SCHEMA_PATH = Path(__file__).resolve().parents[1] / "resources" / "profile-schema.json"

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment."""

    return LLMSettings()


def _build_storage_settings() -> "StorageSettings":
    return StorageSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class LLMSettings(BaseSettings):
    """LLM provider configuration.

    The API key is optional at startup: file endpoints work without it, and
    extraction requests fail with a configuration error when it is missing.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (only 'openai' is supported)",
    )
    model: str = Field(
        "gpt-4o-mini",
        description="Default model used when a request does not override it",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (OpenAI-compatible gateways)",
    )
    timeout_seconds: float | None = Field(
        None,
        description="Request timeout in seconds (None keeps the SDK default)",
    )
    temperature: float = Field(
        0.1,
        description="Default sampling temperature for extraction",
        ge=0.0,
        le=2.0,
    )
    max_tokens: int = Field(
        4000,
        description="Default output token budget for extraction",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Upload directory configuration."""

    root_dir: Path = Field(
        Path("upload"),
        description="Upload root; relative paths are resolved against the project root",
    )
    cv_dir: str = Field(
        "cv",
        description="Sub-directory holding CV documents",
    )
    photo_dir: str = Field(
        "photo",
        description="Sub-directory holding profile photos",
    )
    max_upload_size_mb: int = Field(
        10,
        description="Maximum file upload size in megabytes",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )

    def resolved_root(self) -> Path:
        """Return the absolute upload root directory."""
        root = self.root_dir.expanduser()
        if not root.is_absolute():
            root = PROJECT_ROOT / root
        return root


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    host: str = Field(
        "0.0.0.0",
        description="Bind address used by `python -m cvbot`",
    )
    port: int = Field(
        3001,
        description="Listen port used by `python -m cvbot`",
    )
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_json_body_mb: int = Field(
        10,
        description="Maximum JSON request body size in megabytes",
        ge=1,
    )
    profile_schema_path: Path = Field(
        DEFAULT_PROFILE_SCHEMA_PATH,
        description="JSON schema embedded in extraction prompts",
    )
    max_pdf_pages: int = Field(
        50,
        description="Maximum number of pages read from a PDF",
        ge=1,
    )
    max_docx_paragraphs: int = Field(
        2000,
        description="Maximum number of paragraphs read from a DOCX",
        ge=1,
    )
    file_extraction_timeout_seconds: float = Field(
        30.0,
        description="Timeout for document text extraction",
        gt=0,
    )
    cors_allow_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate log file at this size (0 disables)")
    backup_count: int = Field(5, description="Number of rotated log files kept")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
