"""Announcement store implementations."""

from loguru import logger

from dormmate.config import StoreConfig, config
from dormmate.store.base import AnnouncementStore, SubscriptionHandle
from dormmate.store.memory import InMemoryAnnouncementStore

_store: AnnouncementStore | None = None


def create_store(store_config: StoreConfig) -> AnnouncementStore:
    """Create the store selected by configuration.

    Args:
        store_config: Store configuration section

    Returns:
        AnnouncementStore instance
    """
    if store_config.backend == "firestore":
        from dormmate.store.firestore import FirestoreAnnouncementStore

        return FirestoreAnnouncementStore.from_config(store_config)

    return InMemoryAnnouncementStore()


def get_store() -> AnnouncementStore:
    """Get or create AnnouncementStore singleton.

    Returns:
        AnnouncementStore instance
    """
    global _store
    if _store is None:
        _store = create_store(config.store)
        logger.info(f"Using {type(_store).__name__} ({config.store.backend})")
    return _store


async def reset_store() -> None:
    """Close and drop the AnnouncementStore singleton for test isolation."""
    global _store
    if _store is not None:
        await _store.close()
    _store = None


__all__ = [
    "AnnouncementStore",
    "InMemoryAnnouncementStore",
    "SubscriptionHandle",
    "create_store",
    "get_store",
    "reset_store",
]
