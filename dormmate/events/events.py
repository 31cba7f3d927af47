"""Application event definitions."""

from dataclasses import dataclass

from dormmate.events.bus import Event


@dataclass
class AppEvent(Event):
    """Base class for all application events."""

    source: str


@dataclass
class AnnouncementPostedEvent(AppEvent):
    """Store acknowledged a new announcement."""

    announcement_id: str
    building: str
    urgent: bool


@dataclass
class SubmissionFailedEvent(AppEvent):
    """Store rejected or could not be reached for an append."""

    error: str


@dataclass
class SnapshotDeliveredEvent(AppEvent):
    """A viewer session received a fresh result set."""

    session_id: str
    building: str
    count: int


@dataclass
class SubscriptionFailedEvent(AppEvent):
    """A viewer session's subscription failed or was interrupted."""

    session_id: str
    building: str
    error: str
