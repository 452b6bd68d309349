"""FastAPI dependencies for the store and the sync orchestrator."""
from functools import lru_cache

from fastapi import Depends

from stridesync.config import settings
from stridesync.database import SessionLocal
from stridesync.services.storage import ActivityStore
from stridesync.services.sync import SyncOrchestrator


@lru_cache
def get_store() -> ActivityStore:
    """
    Get the process-wide activity store.

    With STORAGE_ENABLED off the store has no backing database and every
    operation is a no-op.
    """
    return ActivityStore(SessionLocal if settings.STORAGE_ENABLED else None)


@lru_cache
def _orchestrator_for(store: ActivityStore) -> SyncOrchestrator:
    return SyncOrchestrator(store)


def get_sync_orchestrator(store: ActivityStore = Depends(get_store)) -> SyncOrchestrator:
    """
    Get the orchestrator for the single local user.

    One instance per store so sync state survives between requests.
    """
    return _orchestrator_for(store)
