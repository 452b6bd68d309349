"""Mapping from Strava activity summaries to the stored activity format."""
import logging
from typing import Iterable, List

from stridesync.config import settings
from stridesync.schemas import RawActivity, StoredActivity

logger = logging.getLogger(__name__)


def build_activity_url(activity_id: int) -> str:
    """Permanent Strava page for an activity."""
    return f"{settings.STRAVA_ACTIVITY_URL}/{activity_id}"


def normalize_activity(raw: RawActivity) -> StoredActivity:
    """
    Parse a Strava activity into our stored format.

    Scalars are copied as-is; no range checks are made, so odd upstream
    values (negative distance, zero speed) pass straight through.
    """
    return {
        "id": raw["id"],
        "name": raw["name"],
        "type": raw["type"],
        "distance": raw["distance"],
        "moving_time": raw["moving_time"],
        "total_elevation_gain": raw["total_elevation_gain"],
        "start_date": raw["start_date"],
        "average_speed": raw["average_speed"],
        "max_speed": raw["max_speed"],
        "average_heartrate": raw.get("average_heartrate"),
        "max_heartrate": raw.get("max_heartrate"),
        "activity_url": build_activity_url(raw["id"]),
    }


def normalize_activities(raws: Iterable[RawActivity]) -> List[StoredActivity]:
    """
    Normalize a fetched history, keeping the first record seen for each id.

    Activities can shift between pages while paginating, so the same id
    may show up twice.
    """
    stored: List[StoredActivity] = []
    seen = set()

    for raw in raws:
        activity = normalize_activity(raw)
        if activity["id"] in seen:
            logger.debug("Dropping duplicate activity %s", activity["id"])
            continue
        seen.add(activity["id"])
        stored.append(activity)

    return stored
