"""Database models for StrideSync."""
from stridesync.models.store_entry import StoreEntry

__all__ = ["StoreEntry"]
