"""FastAPI dependency helpers."""

from dormmate.events.bus import EventBus
from dormmate.events.bus import get_event_bus as bus_singleton
from dormmate.services.health_service import HealthChecker
from dormmate.store import AnnouncementStore
from dormmate.store import get_store as store_singleton


def get_store() -> AnnouncementStore:
    """Get announcement store for FastAPI dependency injection.

    Returns:
        AnnouncementStore singleton selected by config.store.backend
    """
    return store_singleton()


def get_event_bus() -> EventBus:
    """Get event bus for FastAPI dependency injection.

    Returns:
        EventBus singleton
    """
    return bus_singleton()


def get_health_checker() -> HealthChecker:
    """Get health checker for FastAPI dependency injection.

    Returns:
        HealthChecker singleton (module-level)
    """
    from dormmate.services.health_service import health_checker

    return health_checker
