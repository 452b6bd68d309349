"""
Analytics over the stored activity list.

Everything here is a pure function of its arguments. Calendar grouping
happens in a timezone: pass ``tz`` explicitly, or leave it as None to use
the local timezone of the running process. Timestamps without an offset
are read as wall-clock time in that zone, and unparseable ones fall back
to the Unix epoch instead of raising.
"""
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Sequence

from stridesync.schemas import StoredActivity

METERS_TO_MILES = 0.000621371
METERS_TO_FEET = 3.28084
METERS_PER_MILE = 1609.34

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class WeeklyStats:
    weekly_data: List[Dict[str, Any]]
    week_activities: Dict[str, List[StoredActivity]]


@dataclass
class MonthlyStats:
    monthly_data: List[Dict[str, Any]]
    month_activities: Dict[str, List[StoredActivity]]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _number(activity: StoredActivity, key: str) -> float:
    """Numeric field of an activity, 0 when missing or not a number."""
    value = activity.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return float(value)


def parse_start_date(value: Optional[str], tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO 8601 timestamp into an aware datetime in tz."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, TypeError, ValueError):
        parsed = EPOCH

    try:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz) if tz else parsed.astimezone()
        return parsed.astimezone(tz)
    except (OverflowError, OSError):
        # shifting across date.min / date.max
        return EPOCH.astimezone(tz)


def _local_day(activity: StoredActivity, tz: Optional[tzinfo]) -> date:
    return parse_start_date(activity.get("start_date"), tz).date()


def week_start(day: date) -> date:
    """Sunday on or before day, clamped to date.min."""
    try:
        return day - timedelta(days=(day.weekday() + 1) % 7)
    except OverflowError:
        return date.min


def sort_by_start_date(
    activities: Sequence[StoredActivity],
    descending: bool = False,
    tz: Optional[tzinfo] = None,
) -> List[StoredActivity]:
    return sorted(
        activities,
        key=lambda a: parse_start_date(a.get("start_date"), tz),
        reverse=descending,
    )


# =============================================================================
# Formatting
# =============================================================================

def format_distance(meters: float) -> str:
    """Meters to miles, one decimal."""
    return f"{meters * METERS_TO_MILES:.1f}"


def format_elevation(meters: float) -> str:
    """Meters to whole feet."""
    return str(_round_half_up(meters * METERS_TO_FEET))


def format_duration(seconds: float) -> str:
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"


def format_pace(speed_ms: float) -> str:
    """
    Speed in m/s to a minutes-per-mile pace string, e.g. "8:30".

    A speed of zero has no pace and renders as "0:00".
    """
    if not speed_ms or not math.isfinite(speed_ms):
        return "0:00"

    minutes_per_mile = METERS_PER_MILE / (speed_ms * 60)
    if not math.isfinite(minutes_per_mile):
        return "0:00"

    minutes = math.floor(minutes_per_mile)
    seconds = _round_half_up((minutes_per_mile - minutes) * 60)
    if seconds == 60:
        minutes += 1
        seconds = 0
    return f"{minutes}:{seconds:02d}"


def format_date(iso_date: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """e.g. "Jan 5, 2025"."""
    d = parse_start_date(iso_date, tz)
    return f"{d:%b} {d.day}, {d.year}"


def _week_label(day: date) -> str:
    return f"{day:%b} {day.day}"


# =============================================================================
# Bucketing
# =============================================================================

def calculate_weekly_stats(
    activities: Sequence[StoredActivity],
    tz: Optional[tzinfo] = None,
) -> WeeklyStats:
    """
    Group activities into Sunday-based weeks.

    Returns:
        WeeklyStats where weekly_data is sorted by week_key (YYYY-MM-DD of
        the Sunday) and carries the weekly distance in miles rounded to one
        decimal, and week_activities maps each week_key to its activities
        with their original, unrounded distances.
    """
    totals: Dict[str, float] = defaultdict(float)
    groups: Dict[str, List[StoredActivity]] = defaultdict(list)

    for activity in activities:
        key = week_start(_local_day(activity, tz)).isoformat()
        totals[key] += _number(activity, "distance")
        groups[key].append(activity)

    weekly_data = [
        {
            "week": _week_label(date.fromisoformat(key)),
            "week_key": key,
            "distance": float(format_distance(totals[key])),
        }
        for key in sorted(totals)
    ]

    return WeeklyStats(weekly_data=weekly_data, week_activities=dict(groups))


def calculate_monthly_stats(
    activities: Sequence[StoredActivity],
    tz: Optional[tzinfo] = None,
) -> MonthlyStats:
    """Same as calculate_weekly_stats, keyed by month (YYYY-MM)."""
    totals: Dict[str, float] = defaultdict(float)
    groups: Dict[str, List[StoredActivity]] = defaultdict(list)

    for activity in activities:
        day = _local_day(activity, tz)
        key = f"{day.year:04d}-{day.month:02d}"
        totals[key] += _number(activity, "distance")
        groups[key].append(activity)

    monthly_data = []
    for key in sorted(totals):
        year, month = key.split("-")
        monthly_data.append({
            "month": f"{date(int(year), int(month), 1):%b %Y}",
            "month_key": key,
            "distance": float(format_distance(totals[key])),
        })

    return MonthlyStats(monthly_data=monthly_data, month_activities=dict(groups))


def week_calendar(
    week_key: str,
    activities: Sequence[StoredActivity],
    tz: Optional[tzinfo] = None,
) -> List[Dict[str, Any]]:
    """
    Lay out one week's activities Sunday through Saturday.

    Raises:
        ValueError: If week_key is not the YYYY-MM-DD date of a Sunday,
            or the week runs past date.max
    """
    start = date.fromisoformat(week_key)
    if week_start(start) != start:
        raise ValueError(f"{week_key} is not a Sunday")
    if start > date.max - timedelta(days=len(WEEKDAY_NAMES) - 1):
        raise ValueError(f"week of {week_key} is out of range")

    by_day: Dict[date, List[StoredActivity]] = defaultdict(list)
    for activity in activities:
        by_day[_local_day(activity, tz)].append(activity)

    days = []
    for offset, name in enumerate(WEEKDAY_NAMES):
        day = start + timedelta(days=offset)
        days.append({
            "day": name,
            "date": day.isoformat(),
            "activities": by_day.get(day, []),
        })
    return days


# =============================================================================
# Aggregates
# =============================================================================

def calculate_aggregate_stats(activities: Sequence[StoredActivity]) -> Dict[str, Any]:
    """
    Totals across all activities.

    avg_pace is the pace of the mean per-activity average speed, not
    total distance over total time.
    """
    if not activities:
        return {
            "total_activities": 0,
            "total_distance": "0.0",
            "total_time": "0m 0s",
            "avg_pace": "0:00",
            "total_elevation": "0",
        }

    total_distance = sum(_number(a, "distance") for a in activities)
    total_time = sum(_number(a, "moving_time") for a in activities)
    avg_speed = sum(_number(a, "average_speed") for a in activities) / len(activities)
    total_elevation = sum(_number(a, "total_elevation_gain") for a in activities)

    return {
        "total_activities": len(activities),
        "total_distance": format_distance(total_distance),
        "total_time": format_duration(total_time),
        "avg_pace": format_pace(avg_speed),
        "total_elevation": format_elevation(total_elevation),
    }


def count_by_type(activities: Sequence[StoredActivity]) -> Dict[str, int]:
    type_counts: Dict[str, int] = {}
    for activity in activities:
        activity_type = activity.get("type") or "Unknown"
        type_counts[activity_type] = type_counts.get(activity_type, 0) + 1
    return type_counts


def calculate_streaks(
    activities: Sequence[StoredActivity],
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, int]:
    """
    Current and longest runs of consecutive days with an activity.

    Several activities on one day count as a single streak day. The current
    streak only exists if the latest activity day is today or yesterday.
    """
    if not activities:
        return {"current_streak": 0, "longest_streak": 0, "total_activities": 0}

    if today is None:
        today = datetime.now(tz).date()

    days = sorted({_local_day(a, tz) for a in activities}, reverse=True)

    current_streak = 0
    if (today - days[0]).days <= 1:
        current_streak = 1
        for newer, older in zip(days, days[1:]):
            if (newer - older).days != 1:
                break
            current_streak += 1

    longest_streak = run = 1
    for newer, older in zip(days, days[1:]):
        if (newer - older).days == 1:
            run += 1
            longest_streak = max(longest_streak, run)
        else:
            run = 1

    return {
        "current_streak": current_streak,
        "longest_streak": longest_streak,
        "total_activities": len(activities),
    }


def calculate_pace_trends(
    activities: Sequence[StoredActivity],
    tz: Optional[tzinfo] = None,
) -> List[Dict[str, Any]]:
    """
    Pace per activity, oldest first, for charting.

    The numeric pace swaps ":" for "." in the display string, so "8:30"
    charts as 8.30 rather than 8.5.
    """
    trends = []
    for activity in sort_by_start_date(activities, tz=tz):
        display_pace = format_pace(_number(activity, "average_speed"))
        trends.append({
            "date": format_date(activity.get("start_date"), tz),
            "start_date": activity.get("start_date"),
            "pace": float(display_pace.replace(":", ".")),
            "display_pace": display_pace,
        })
    return trends
