"""Persistence boundary: protocols and the in-memory reference store."""

from radiopulse.store.base import PersistenceGateway, StationCatalog, Subscription
from radiopulse.store.memory import MemoryStore

__all__ = ["MemoryStore", "PersistenceGateway", "StationCatalog", "Subscription"]
