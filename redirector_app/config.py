from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below

    The instance is frozen: it is built once at startup and handed to
    every component by reference.
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "Signed Redirector"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # Token signing (rotating the secret invalidates every issued link)
    jwt_secret: str = "your_strong_secret_key"
    jwt_algorithm: str = "HS256"

    # Storage
    store_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"
    database_url: str = "sqlite:///./redirects.db"

    # Redirect keys: 8 random bytes -> 16 hex characters
    key_bytes: int = 8

    # Bot gate
    honeypot_param: str = "hp_ref"
    identity_param: str = "email"

    # Serve the client-side challenge page instead of a plain 302
    challenge_mode: bool = False

    # Rate limiting (admission control ahead of all routes)
    rate_limit_enabled: bool = True
    rate_limit: str = "10/minute"
    rate_limit_storage_uri: str = "memory://"  # or "redis://host:6379/0"

    # Admin endpoints are open unless a key is configured
    admin_api_key: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )


def load_settings() -> Settings:
    """Build settings from the process environment."""
    return Settings()
