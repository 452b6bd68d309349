"""Error taxonomy for the activity sync pipeline."""
from typing import Optional


class StravaSyncError(Exception):
    """Base error for anything that can go wrong while syncing."""
    pass


class AuthError(StravaSyncError):
    """Expired, invalid or missing access token."""
    pass


class RateLimitError(StravaSyncError):
    """Strava rate limit hit on the first page."""
    pass


class NetworkError(StravaSyncError):
    """Failed request: transport error or unexpected HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, status_text: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class EmptyResultError(StravaSyncError):
    """A successful fetch that returned zero activities."""
    pass


class ConfigError(StravaSyncError):
    """Required credentials are missing."""
    pass
