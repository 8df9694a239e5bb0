"""
SAMBHAV Settings

Every value the ledger needs from the outside world (Cloudinary keys,
the Sheets spreadsheet, the admin credential, upload limits) is read
here from environment variables or a local .env file.

DESIGN DECISION: One settings class per external service, each with its
own env prefix. A missing Cloudinary key then breaks bill uploads only,
and the settings page can say exactly which service is unconfigured.
"""

import warnings
from functools import cached_property, lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_config(prefix: str = "") -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class CloudinarySettings(BaseSettings):
    """Where bill images are uploaded (CLOUDINARY_*)."""

    model_config = _env_config("CLOUDINARY_")

    cloud_name: str = Field(..., description="Cloudinary account (cloud) name")
    api_key: str = Field(..., description="Upload API key")
    api_secret: str = Field(..., description="Upload API secret")
    folder: str = Field(
        default="sambhav_bills",
        description="Folder that bill uploads are placed in"
    )
    max_dimension: int = Field(
        default=1000,
        ge=100,
        le=5000,
        description="Uploaded images are limited to this width/height"
    )


class GoogleSheetsSettings(BaseSettings):
    """The spreadsheet that holds the finance records (GOOGLE_SHEETS_*)."""

    model_config = _env_config("GOOGLE_SHEETS_")

    credentials_path: str = Field(
        ...,
        description="Service account key file with edit access to the spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Spreadsheet key, as found in its URL"
    )
    records_sheet_name: str = Field(
        default="Finance",
        description="Worksheet (tab) holding one row per record"
    )

    @field_validator('credentials_path')
    @classmethod
    def warn_if_key_file_missing(cls, v: str) -> str:
        """A missing key file only warns; it may be mounted after startup."""
        if not Path(v).exists():
            warnings.warn(f"Service account key file {v} does not exist yet.")
        return v


class AuthSettings(BaseSettings):
    """
    Static admin credential and session token configuration.

    There is exactly one user. The password and signing key come
    from the environment, never from code.
    """

    model_config = _env_config("AUTH_")

    admin_username: str = Field(
        default="admin",
        min_length=1,
        description="Admin login name"
    )
    admin_password: str = Field(
        ...,
        min_length=1,
        description="Admin password"
    )
    secret_key: str = Field(
        ...,
        min_length=16,
        description="Key used to sign session tokens"
    )
    token_ttl_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="How long a session token stays valid"
    )

    @property
    def token_ttl_seconds(self) -> int:
        return self.token_ttl_days * 24 * 60 * 60


class AppSettings(BaseSettings):
    """Process-wide settings that belong to no single service (no prefix)."""

    model_config = _env_config()

    app_environment: str = Field(
        default="development",
        description="development / staging / production"
    )
    debug_mode: bool = False
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )

    # Bill uploads
    max_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Largest bill file accepted, in MB"
    )
    supported_upload_formats: str = Field(
        default="jpg,jpeg,png,gif,webp,pdf",
        description="Comma-separated list of accepted bill file formats"
    )

    # HTTP API
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:8501",
        description="Comma-separated list of origins allowed to call the API"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Lower-cased extensions, without dots."""
        return [fmt.strip().lower() for fmt in self.supported_upload_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class Settings(BaseSettings):
    """
    Entry point to every settings group.

    Each group is built on first access and then kept, so the dashboard
    can start (and show its settings page) while some services are
    unconfigured. A group that fails to load is retried on next access.
    """

    model_config = _env_config()

    @cached_property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @cached_property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @cached_property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @cached_property
    def app(self) -> AppSettings:
        return AppSettings()


SETTINGS_GROUPS = ("cloudinary", "google_sheets", "auth", "app")


@lru_cache()
def get_settings() -> Settings:
    """
    Shared Settings instance.

    Tests call get_settings.cache_clear() to pick up a changed environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to load every settings group.

    Returns {group: loaded_ok}, plus "{group}_error" with the reason for
    each group that failed. Feeds the dashboard's connection status page.
    """
    results = {}
    settings = get_settings()

    for name in SETTINGS_GROUPS:
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
