"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: str = "*"

    # ======================
    # DealMaker (investor onboarding)
    # ======================
    DEALMAKER_API_URL: str = "https://api.dealmaker.tech"
    DEALMAKER_AUTH_URL: str = "https://app.dealmaker.tech"
    DEALMAKER_CLIENT_ID: Optional[str] = None
    DEALMAKER_CLIENT_SECRET: Optional[str] = None
    DEALMAKER_DEAL_ID: Optional[str] = None
    DEALMAKER_TIMEOUT_SECONDS: float = 30.0

    # ======================
    # Offering
    # ======================
    # Empty means the built-in fallback offering is used
    OFFERING_CONFIG_PATH: str = "config/offering.yml"

    # ======================
    # Pydantic v2 config
    # ======================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
