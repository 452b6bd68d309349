"""Activities router for syncing stored Strava activities and serving stats."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from stridesync.dependencies import get_store, get_sync_orchestrator
from stridesync.exceptions import AuthError
from stridesync.services import analytics
from stridesync.services.storage import ActivityStore
from stridesync.services.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.post("/sync")
async def sync_activities(
    token: Optional[str] = Query(None, description="Strava access token (defaults to the stored one)"),
    store: ActivityStore = Depends(get_store),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """
    Run a full sync from Strava.

    Replaces the stored activity list. Uses the token from the OAuth
    redirect when given, otherwise the last token that synced successfully.
    """
    token = token or store.get_auth_token()

    if not token:
        raise HTTPException(
            status_code=401,
            detail="No Strava token available. Please connect with Strava first."
        )

    state = await orchestrator.sync_activities(token)

    if state.error:
        auth_failed = state.error_type is not None and issubclass(state.error_type, AuthError)
        raise HTTPException(
            status_code=401 if auth_failed else 500,
            detail=f"Failed to sync activities: {state.error}"
        )

    return {
        "success": True,
        "message": f"Synced {len(state.activities)} activities",
        **state.to_dict(),
    }


@router.get("")
async def get_activities(
    activity_type: Optional[str] = Query(None, description="Filter by activity type"),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """Get stored activities, newest first, optionally filtered by type."""
    activities = orchestrator.state.activities

    if activity_type and activity_type != "all":
        activities = [a for a in activities if a.get("type") == activity_type]

    activities = analytics.sort_by_start_date(activities, descending=True)

    return {
        "count": len(activities),
        "activities": activities,
    }


@router.delete("")
async def clear_activities(
    store: ActivityStore = Depends(get_store),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """Forget all stored activities, the sync time and the token."""
    store.clear_all()
    orchestrator.clear_data()
    logger.info("Cleared stored activities")

    return {
        "success": True,
        "message": "Stored activities cleared",
    }


@router.get("/sync/status")
async def get_sync_status(
    store: ActivityStore = Depends(get_store),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """Get sync status: state, last sync time and activity counts."""
    state = orchestrator.state

    return {
        **state.to_dict(),
        "has_synced": state.synced_at is not None,
        "storage_size": store.get_storage_size(),
    }


@router.get("/stats")
async def get_activity_stats(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Aggregate totals, streaks and counts by activity type."""
    activities = orchestrator.state.activities
    streaks = analytics.calculate_streaks(activities)

    return {
        **analytics.calculate_aggregate_stats(activities),
        "current_streak": streaks["current_streak"],
        "longest_streak": streaks["longest_streak"],
        "by_type": analytics.count_by_type(activities),
    }


@router.get("/stats/weekly")
async def get_weekly_stats(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Weekly distance in miles, oldest week first."""
    weekly = analytics.calculate_weekly_stats(orchestrator.state.activities)
    return {"weeks": weekly.weekly_data}


@router.get("/stats/monthly")
async def get_monthly_stats(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Monthly distance in miles, oldest month first."""
    monthly = analytics.calculate_monthly_stats(orchestrator.state.activities)
    return {"months": monthly.monthly_data}


@router.get("/stats/pace-trends")
async def get_pace_trends(orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """Pace of every activity, oldest first."""
    return {"trends": analytics.calculate_pace_trends(orchestrator.state.activities)}


@router.get("/weeks/{week_key}")
async def get_week(week_key: str, orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator)):
    """
    Drill into one week: its total and its activities laid out by day.

    week_key is the YYYY-MM-DD date of the week's Sunday, as returned by
    /stats/weekly.
    """
    weekly = analytics.calculate_weekly_stats(orchestrator.state.activities)
    week_activities = weekly.week_activities.get(week_key, [])

    try:
        days = analytics.week_calendar(week_key, week_activities)
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid week key. Use the YYYY-MM-DD date of a Sunday: {str(e)}"
        )

    week = next((w for w in weekly.weekly_data if w["week_key"] == week_key), None)

    return {
        "week_key": week_key,
        "distance": week["distance"] if week else 0.0,
        "count": len(week_activities),
        "days": days,
    }
