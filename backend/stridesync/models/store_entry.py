"""StoreEntry model backing the key-value persistence store."""
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from stridesync.database import Base


class StoreEntry(Base):
    """
    One named slot of the key-value store.

    Values are opaque serialized strings; the store decides how each slot
    is encoded (JSON array for activities, integer text for the timestamp).
    """
    __tablename__ = "store_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)

    # Timestamps
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<StoreEntry(key='{self.key}', size={len(self.value or '')})>"
