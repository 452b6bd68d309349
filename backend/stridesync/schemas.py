"""Shapes of Strava records as they flow through the sync pipeline."""
from typing import Optional, TypedDict


class _RawActivityRequired(TypedDict):
    id: int
    name: str
    type: str
    distance: float
    moving_time: int
    total_elevation_gain: float
    start_date: str
    average_speed: float
    max_speed: float


class RawActivity(_RawActivityRequired, total=False):
    """Activity summary as returned by GET /athlete/activities."""

    start_date_local: str
    average_heartrate: float
    max_heartrate: float


class StoredActivity(TypedDict):
    """Canonical activity record kept in the local store."""

    id: int
    name: str
    type: str
    distance: float  # meters
    moving_time: int  # seconds
    total_elevation_gain: float  # meters
    start_date: str  # ISO 8601, UTC
    average_speed: float  # m/s
    max_speed: float  # m/s
    average_heartrate: Optional[float]
    max_heartrate: Optional[float]
    activity_url: str


class AthleteProfile(TypedDict):
    id: int
    first_name: str
    last_name: str
