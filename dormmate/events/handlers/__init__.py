"""Event handlers for EventBus."""

from typing import Protocol

from dormmate.events.handlers.health_handler import HealthHandler


class EventHandler(Protocol):
    """Protocol for event handlers."""

    async def initialize(self, event_bus) -> None:
        """Initialize handler with event bus."""
        ...


__all__ = [
    "HealthHandler",
    "EventHandler",
]
