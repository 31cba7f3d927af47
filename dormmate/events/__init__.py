"""Application events."""

from dormmate.events.bus import Event, EventBus, get_event_bus, reset_event_bus
from dormmate.events.events import (
    AnnouncementPostedEvent,
    AppEvent,
    SnapshotDeliveredEvent,
    SubmissionFailedEvent,
    SubscriptionFailedEvent,
)

__all__ = [
    "Event",
    "EventBus",
    "get_event_bus",
    "reset_event_bus",
    "AppEvent",
    "AnnouncementPostedEvent",
    "SubmissionFailedEvent",
    "SnapshotDeliveredEvent",
    "SubscriptionFailedEvent",
]
