"""
Quillpost Backend — Application Configuration
===============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time.

Note on the connection string:
    COSMOS_DB_CONNECTION_STRING defaults to empty. A missing value is not an
    import-time failure; it surfaces as a ConfigurationError the first time a
    database connection is attempted, and as a warning in the startup log.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings except the connection string have development defaults.
    Attributes are grouped by concern.
    """

    # ── Document Store ────────────────────────────────────────────────────
    # Format: AccountEndpoint=https://<account>.documents.azure.com:443/;AccountKey=<key>;
    cosmos_db_connection_string: str = Field(
        default="",
        description="Azure Cosmos DB connection string",
    )

    # Created on first connect if it does not exist
    cosmos_db_name: str = Field(default="quillpost", min_length=1)

    # Posts container, partitioned on /id
    cosmos_db_posts_container: str = Field(default="posts", min_length=1)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # COSMOS_DB_NAME and cosmos_db_name both work
        "extra": "ignore",
    }

    def missing_settings(self) -> List[str]:
        """
        What:  Names the settings that must be provided before the store can be used.
        When:  Called during app startup (lifespan) to log a warning.
        """
        missing = []
        if not self.cosmos_db_connection_string:
            missing.append("COSMOS_DB_CONNECTION_STRING")
        return missing


# Singleton instance, imported throughout the application
settings = Settings()
