"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: SQLAlchemy connection string
        access_token_secret_signature: HMAC secret used to sign access tokens
        refresh_token_secret_signature: HMAC secret used to sign refresh tokens
        access_token_expire_minutes: Access token lifetime in minutes
        refresh_token_expire_days: Refresh token lifetime in days

        cors_origins: Origins allowed by the CORS middleware
        log_level: Root logging level
    """
    # Database settings
    database_url: str = "sqlite:///./blood_donation.db"

    # JWT settings. Both secrets are checked once at startup (see TokenConfig).
    access_token_secret_signature: Optional[str] = None
    refresh_token_secret_signature: Optional[str] = None
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7

    # Frontend settings
    cors_origins: List[str] = [
        "http://localhost:3000",
    ]

    # Logging
    log_level: str = "INFO"

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
