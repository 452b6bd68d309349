"""Key-value persistence for synced activities, sync time and auth token."""
import json
import logging
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stridesync.models import StoreEntry
from stridesync.schemas import StoredActivity

logger = logging.getLogger(__name__)


class ActivityStore:
    """
    Durable store with three slots: activities, sync timestamp, auth token.

    Built on a SQLAlchemy session factory. Without one (storage disabled)
    every read returns an empty value and every write is a no-op. Storage
    failures are logged and swallowed so a sync never fails on a write.
    """

    ACTIVITIES_KEY = "strava_activities"
    SYNC_TIMESTAMP_KEY = "strava_sync_timestamp"
    AUTH_TOKEN_KEY = "strava_auth_token"

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    @property
    def available(self) -> bool:
        return self._session_factory is not None

    def _read(self, key: str) -> Optional[str]:
        if not self.available:
            return None

        db = self._session_factory()
        try:
            entry = db.get(StoreEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def _write(self, key: str, value: str) -> None:
        if not self.available:
            return

        db = self._session_factory()
        try:
            entry = db.get(StoreEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StoreEntry(key=key, value=value))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def _delete(self, keys: Iterable[str]) -> None:
        if not self.available:
            return

        db = self._session_factory()
        try:
            db.query(StoreEntry).filter(StoreEntry.key.in_(list(keys))).delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def get_activities(self) -> List[StoredActivity]:
        try:
            data = self._read(self.ACTIVITIES_KEY)
            activities = json.loads(data) if data else []
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Failed to retrieve activities from store: %s", e)
            return []

        if not isinstance(activities, list):
            logger.error("Stored activities are not a list, ignoring them")
            return []
        return activities

    def set_activities(self, activities: List[StoredActivity]) -> None:
        try:
            self._write(self.ACTIVITIES_KEY, json.dumps(activities))
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error("Failed to save activities to store: %s", e)

    def get_sync_timestamp(self) -> Optional[int]:
        """Last successful sync, in milliseconds since the epoch."""
        try:
            timestamp = self._read(self.SYNC_TIMESTAMP_KEY)
            return int(timestamp) if timestamp else None
        except (SQLAlchemyError, ValueError) as e:
            logger.error("Failed to retrieve sync timestamp: %s", e)
            return None

    def set_sync_timestamp(self, timestamp: int) -> None:
        try:
            self._write(self.SYNC_TIMESTAMP_KEY, str(int(timestamp)))
        except SQLAlchemyError as e:
            logger.error("Failed to save sync timestamp: %s", e)

    def get_auth_token(self) -> Optional[str]:
        try:
            return self._read(self.AUTH_TOKEN_KEY)
        except SQLAlchemyError as e:
            logger.error("Failed to retrieve auth token: %s", e)
            return None

    def set_auth_token(self, token: str) -> None:
        try:
            self._write(self.AUTH_TOKEN_KEY, token)
        except SQLAlchemyError as e:
            logger.error("Failed to save auth token: %s", e)

    def clear_all(self) -> None:
        """Remove all three slots."""
        try:
            self._delete([self.ACTIVITIES_KEY, self.SYNC_TIMESTAMP_KEY, self.AUTH_TOKEN_KEY])
        except SQLAlchemyError as e:
            logger.error("Failed to clear store: %s", e)

    def get_storage_size(self) -> str:
        """Size of the serialized activity list, e.g. "12.34 KB"."""
        if not self.available:
            return "0 KB"

        try:
            data = self._read(self.ACTIVITIES_KEY) or ""
        except SQLAlchemyError:
            return "0 KB"
        return f"{len(data) / 1024:.2f} KB"
