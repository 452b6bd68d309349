"""Application configuration and settings."""
import os
from dotenv import load_dotenv

from stridesync.exceptions import ConfigError

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    # Strava OAuth Configuration
    STRAVA_CLIENT_ID: str = os.getenv("STRAVA_CLIENT_ID", "")
    STRAVA_CLIENT_SECRET: str = os.getenv("STRAVA_CLIENT_SECRET", "")
    STRAVA_REDIRECT_URI: str = os.getenv("STRAVA_REDIRECT_URI", "http://localhost:8080/auth/strava/callback")
    STRAVA_AUTH_URL: str = "https://www.strava.com/oauth/authorize"
    STRAVA_TOKEN_URL: str = "https://www.strava.com/oauth/token"
    STRAVA_API_BASE: str = "https://www.strava.com/api/v3"
    STRAVA_ACTIVITY_URL: str = "https://www.strava.com/activities"

    # Sync Configuration
    SYNC_PAGE_SIZE: int = int(os.getenv("SYNC_PAGE_SIZE", "200"))
    SYNC_MAX_PAGES: int = int(os.getenv("SYNC_MAX_PAGES", "10"))
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))

    # Storage Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./db/stridesync.db")
    STORAGE_ENABLED: bool = _env_bool("STORAGE_ENABLED", True)

    # Application Configuration
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    def require_oauth_credentials(self, need_secret: bool = True) -> None:
        """
        Fail fast when the Strava OAuth credentials are not configured.

        Raises:
            ConfigError: If the client id (or secret, when needed) is missing
        """
        if not self.STRAVA_CLIENT_ID:
            raise ConfigError("Missing Strava OAuth credentials: STRAVA_CLIENT_ID is not set")
        if need_secret and not self.STRAVA_CLIENT_SECRET:
            raise ConfigError("Missing Strava OAuth credentials: STRAVA_CLIENT_SECRET is not set")


settings = Settings()
