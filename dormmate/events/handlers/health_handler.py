"""Store health tracking handler."""

from loguru import logger

from dormmate.events.bus import EventBus
from dormmate.events.events import (
    AnnouncementPostedEvent,
    SnapshotDeliveredEvent,
    SubmissionFailedEvent,
    SubscriptionFailedEvent,
)
from dormmate.services.health_service import HealthChecker


class HealthHandler:
    """Handler feeding store outcomes into the health checker."""

    def __init__(self, health_checker: HealthChecker) -> None:
        """Initialize health handler.

        Args:
            health_checker: Health checker instance
        """
        self.health_checker = health_checker

    async def initialize(self, event_bus: EventBus) -> None:
        """Subscribe to store outcome events.

        Args:
            event_bus: EventBus instance
        """
        await event_bus.subscribe(AnnouncementPostedEvent, self.on_store_success)
        await event_bus.subscribe(SnapshotDeliveredEvent, self.on_store_success)
        await event_bus.subscribe(SubmissionFailedEvent, self.on_store_failure)
        await event_bus.subscribe(SubscriptionFailedEvent, self.on_store_failure)
        logger.info("HealthHandler initialized")

    async def on_store_success(
        self, event: AnnouncementPostedEvent | SnapshotDeliveredEvent
    ) -> None:
        self.health_checker.set_store_status(True)

    async def on_store_failure(
        self, event: SubmissionFailedEvent | SubscriptionFailedEvent
    ) -> None:
        """Handle a failed store interaction.

        Args:
            event: Submission or subscription failure event
        """
        self.health_checker.set_store_status(False)
        logger.warning(
            f"Store failure from {event.source} "
            f"({self.health_checker.consecutive_failures} consecutive): {event.error}"
        )
