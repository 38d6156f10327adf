"""
Application configuration loaded from environment variables.

Uses Pydantic Settings to:
1. Read from .env file automatically
2. Validate values at startup
3. Provide type-safe access throughout the app

Usage:
    from app.config import settings
    print(settings.PRODUCTIVITY_API_URL)

Note: We use a validator that prefers .env values over empty shell
environment variables, so an exported-but-empty variable (for example
PRODUCTIVITY_API_URL="") does not shadow the value in .env.
"""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All application configuration in one place."""

    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file
        env_file_encoding="utf-8",
        case_sensitive=True,     # ENV_VAR must match exactly
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def prefer_dotenv_over_empty_env(cls, data):
        """If an env var is empty but .env has a value, use the .env value."""
        from dotenv import dotenv_values

        dotenv_vals = dotenv_values(".env")
        for key, dotenv_value in dotenv_vals.items():
            if dotenv_value and (key not in data or not data.get(key)):
                data[key] = dotenv_value
        return data

    # --- Productivity API (monthly appointment summary per doctor) ---
    PRODUCTIVITY_API_URL: str = "http://localhost:5000"
    # None = wait indefinitely; callers wanting bounded latency set this
    PRODUCTIVITY_API_TIMEOUT_SECONDS: Optional[float] = None

    # --- Report rendering ---
    REPORT_TIMEZONE: str = "America/Santiago"
    SCHEDULED_HOURS_RATIO: float = 1.1

    # --- Clinic identity (report header) ---
    CLINIC_NAME: str = "MedSalud"
    CLINIC_ADDRESS: str = "Balmaceda 243, Laja"
    CLINIC_PHONE: str = "+56 9 4557 2744"
    CLINIC_EMAIL: str = "contacto@med-salud.cl"
    CLINIC_LOGO_PATH: str = ""

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # --- Application ---
    APP_ENV: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


# Singleton instance, import this everywhere
settings = Settings()
