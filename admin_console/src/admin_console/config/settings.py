"""
Configuration settings for the admin console.

This module handles environment variable loading and configuration management
using Pydantic for validation and type safety.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Admin console configuration settings.

    All settings can be overridden via environment variables.
    """

    # Document Store Configuration
    store_backend: str = Field(
        default="firestore",
        description="Submission store backend (firestore or memory)"
    )
    firebase_project_id: Optional[str] = Field(
        default=None,
        description="Firebase / Google Cloud project id"
    )
    firebase_api_key: Optional[str] = Field(
        default=None,
        description="Web API key used for Firebase Authentication REST calls"
    )
    firestore_database: str = Field(
        default="(default)",
        description="Firestore database id"
    )
    submissions_collection: str = Field(
        default="submissions",
        description="Collection holding form submissions"
    )
    http_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for a single HTTP request"
    )

    # Pagination
    page_size: int = Field(
        default=8,
        ge=1,
        description="Number of submissions shown per page"
    )
    latest_window_hours: int = Field(
        default=24,
        ge=1,
        description="Window used by the 'latest only' filter"
    )

    # Fetch retry policy (reads only)
    fetch_timeout: float = Field(
        default=15.0,
        description="Timeout in seconds for one page fetch attempt"
    )
    fetch_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries for transient page fetch failures"
    )
    fetch_initial_backoff: float = Field(
        default=0.5,
        description="Initial backoff between fetch retries in seconds"
    )
    fetch_max_backoff: float = Field(
        default=8.0,
        description="Maximum backoff between fetch retries in seconds"
    )

    # Display / export
    display_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to render submission dates"
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M",
        description="strftime format for submission dates"
    )
    export_filename: str = Field(
        default="submissions.csv",
        description="File name offered for CSV exports"
    )

    # Console Configuration
    streamlit_port: int = Field(
        default=8501,
        description="Port for Streamlit server"
    )
    streamlit_host: str = Field(
        default="0.0.0.0",
        description="Host for Streamlit server"
    )
    debug_mode: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="text",
        description="Logging format (json or text)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()
