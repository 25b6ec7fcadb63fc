"""
Base settings class for environment configuration.

Uses Pydantic Settings for automatic environment variable loading.
Extend this class for application-specific settings.

Example:
    from do_common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        USDA_API_KEY: str = ""

    settings = Settings()
    print(settings.REQUEST_TIMEOUT_SECONDS)
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """
    Base settings class with common client configuration options.

    Automatically loads values from environment variables.
    Extend this class for application-specific settings.
    """

    # ==========================================================================
    # Authentication Settings
    # ==========================================================================
    AUTH_TOKEN: Optional[str] = None  # Bearer token sent with every request
    USER_ID: Optional[str] = None  # Signed-in user, sent as X-User-Id

    # ==========================================================================
    # Network Settings
    # ==========================================================================
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    LONG_REQUEST_TIMEOUT_SECONDS: float = 60.0

    # ==========================================================================
    # Local Storage
    # ==========================================================================
    STORAGE_DIR: str = ".do_storage"

    # ==========================================================================
    # Runtime Settings
    # ==========================================================================
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development, staging, production
    DEFAULT_LOCALE: str = "en_US"
    UNITS: str = "imperial"  # "metric" or "imperial"

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",  # Allow app-specific settings
        case_sensitive=True,
    )

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def uses_metric(self) -> bool:
        """Check if measurements should be reported in metric units."""
        return self.UNITS.lower() == "metric"

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if self.is_production() and not self.AUTH_TOKEN:
            errors.append("AUTH_TOKEN is required in production")

        if self.UNITS.lower() not in ("metric", "imperial"):
            errors.append("UNITS must be 'metric' or 'imperial'")

        if self.REQUEST_TIMEOUT_SECONDS <= 0:
            errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
