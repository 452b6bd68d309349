"""Sync orchestration: Strava -> normalizer -> store, with observable state."""
import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Type

from stridesync.config import settings
from stridesync.exceptions import AuthError, EmptyResultError, StravaSyncError
from stridesync.schemas import StoredActivity
from stridesync.services.normalizer import normalize_activities
from stridesync.services.storage import ActivityStore
from stridesync.services.strava import StravaClient

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SyncState:
    """
    Snapshot of the sync pipeline as seen by consumers.

    The orchestrator never mutates a state in place; it swaps in a new
    snapshot, so activities and synced_at always change together.
    error_type is the class of the exception behind error, for callers that
    map failures to their own codes.
    """

    loading: bool = False
    error: Optional[str] = None
    activities: List[StoredActivity] = field(default_factory=list)
    synced_at: Optional[int] = None
    athlete_name: Optional[str] = None
    status: SyncStatus = SyncStatus.IDLE
    error_type: Optional[Type[Exception]] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "loading": self.loading,
            "error": self.error,
            "synced_at": self.synced_at,
            "athlete_name": self.athlete_name,
            "total": len(self.activities),
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncOrchestrator:
    """
    Drives a full sync for the single local user.

    Every sync is a full replace of the stored activity list. Calls must be
    serialized by the caller; overlapping syncs are not guarded against.
    """

    def __init__(
        self,
        store: ActivityStore,
        client_factory: Callable[[str], StravaClient] = StravaClient,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.client_factory = client_factory
        self.page_size = page_size or settings.SYNC_PAGE_SIZE
        self.max_pages = max_pages or settings.SYNC_MAX_PAGES
        self.clock = clock
        self.state = self._initial_state()

    def _initial_state(self) -> SyncState:
        return SyncState(
            activities=self.store.get_activities(),
            synced_at=self.store.get_sync_timestamp(),
        )

    async def sync_activities(self, token: str) -> SyncState:
        """
        Fetch the full history for token, persist it and publish it.

        Failures never propagate: they end up as SyncState.error and leave
        both the store and the displayed activities untouched.

        Args:
            token: Strava bearer token

        Returns:
            The resulting state (status success or error)
        """
        if self.state.loading:
            logger.warning("Sync started while another sync is still loading")

        self.state = replace(self.state, loading=True, error=None, error_type=None, status=SyncStatus.LOADING)

        try:
            if not token:
                raise AuthError("No access token provided")

            client = self.client_factory(token)

            profile = await client.get_profile()
            athlete_name = f"{profile['first_name']} {profile['last_name']}".strip()

            raw_activities = await client.fetch_all_activities(
                page_size=self.page_size,
                max_pages=self.max_pages,
            )

            if not raw_activities:
                raise EmptyResultError("No activities found")

            activities = normalize_activities(raw_activities)

            synced_at = self.clock()
            self.store.set_activities(activities)
            self.store.set_auth_token(token)
            self.store.set_sync_timestamp(synced_at)

        except StravaSyncError as e:
            logger.warning("Sync failed: %s", e)
            self.state = replace(
                self.state, loading=False, error=str(e), error_type=type(e), status=SyncStatus.ERROR,
            )
            return self.state
        except Exception as e:
            logger.exception("Unexpected sync error")
            self.state = replace(
                self.state, loading=False, error=f"Sync failed: {e}", error_type=type(e), status=SyncStatus.ERROR,
            )
            return self.state

        self.state = SyncState(
            loading=False,
            error=None,
            activities=activities,
            synced_at=synced_at,
            athlete_name=athlete_name,
            status=SyncStatus.SUCCESS,
        )
        logger.info("Synced %d activities for %s", len(activities), athlete_name or "athlete")
        return self.state

    def reload(self) -> SyncState:
        """Re-read activities and sync time from the store."""
        self.state = self._initial_state()
        return self.state

    def clear_data(self) -> None:
        """Reset in-memory state; the store is left as is."""
        self.state = SyncState()
