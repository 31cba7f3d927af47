"""Staff announcement composer."""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from dormmate.config import ComposerConfig, config
from dormmate.events.events import AnnouncementPostedEvent, AppEvent, SubmissionFailedEvent
from dormmate.exceptions import DormMateError, SubmissionError, ValidationError
from dormmate.models.announcement import (
    ALL_BUILDINGS,
    AnnouncementDraft,
    NewAnnouncement,
    normalize_building,
)
from dormmate.store.base import AnnouncementStore

if TYPE_CHECKING:
    from dormmate.events.bus import EventBus


class ComposerState(str, Enum):
    """Composer status signals."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    POSTED = "posted"
    VALIDATION_ERROR = "validation_error"
    SUBMISSION_ERROR = "submission_error"


@dataclass(frozen=True)
class ComposerStatus:
    """Outcome of the latest submit call."""

    state: ComposerState
    fields: tuple[str, ...] = ()
    error: DormMateError | None = None
    announcement_id: str | None = None


def new_draft(composer_config: ComposerConfig | None = None) -> AnnouncementDraft:
    """Create a draft pre-filled with configured defaults.

    Args:
        composer_config: Composer defaults, falls back to application config

    Returns:
        Fresh AnnouncementDraft
    """
    composer_config = composer_config or config.composer
    return AnnouncementDraft(
        date=composer_config.default_date,
        start_time=composer_config.default_start_time,
        end_time=composer_config.default_end_time,
        building=composer_config.default_building,
    )


def validate_draft(draft: AnnouncementDraft) -> NewAnnouncement:
    """Validate and normalize a draft.

    Args:
        draft: Staff form state

    Returns:
        NewAnnouncement ready for append

    Raises:
        ValidationError: If title or body is blank after trimming
    """
    title = (draft.title or "").strip()
    body = (draft.body or "").strip()

    missing = [name for name, value in (("title", title), ("body", body)) if not value]
    if missing:
        raise ValidationError(missing)

    return NewAnnouncement(
        title=title,
        body=body,
        building=normalize_building(draft.building) or ALL_BUILDINGS,
        date=(draft.date or "").strip(),
        start_time=(draft.start_time or "").strip(),
        end_time=(draft.end_time or "").strip(),
        urgent=bool(draft.urgent),
    )


class AnnouncementComposer:
    """Validates a staff draft and appends it to the store.

    The draft survives failed submissions so staff can retry without
    re-entering anything; only title and body are cleared once the store
    acknowledges the append. Retries are never automatic.
    """

    def __init__(
        self,
        store: AnnouncementStore,
        draft: AnnouncementDraft | None = None,
        event_bus: "EventBus | None" = None,
    ) -> None:
        """Initialize composer.

        Args:
            store: Announcement store to append to
            draft: Initial draft, defaults to a configured fresh draft
            event_bus: Optional bus receiving posted and failure events
        """
        self.store = store
        self.draft = draft if draft is not None else new_draft()
        self.event_bus = event_bus
        self.status = ComposerStatus(ComposerState.IDLE)

    async def submit(self) -> ComposerStatus:
        """Validate the draft and append it to the store.

        Returns:
            ComposerStatus describing the outcome
        """
        if self.status.state is ComposerState.SUBMITTING:
            logger.warning("Submission already in progress")
            return self.status

        try:
            record = validate_draft(self.draft)
        except ValidationError as e:
            self.status = ComposerStatus(
                ComposerState.VALIDATION_ERROR, fields=tuple(e.fields), error=e
            )
            logger.info(f"Announcement rejected: {e}")
            return self.status

        self.status = ComposerStatus(ComposerState.SUBMITTING)

        try:
            announcement_id = await self.store.append(record)
        except Exception as e:
            self.status = ComposerStatus(ComposerState.SUBMISSION_ERROR, error=SubmissionError(e))
            logger.error(f"Announcement append failed: {e}")
            await self._publish(SubmissionFailedEvent(source="composer", error=str(e)))
            return self.status

        self.draft.title = ""
        self.draft.body = ""
        self.status = ComposerStatus(ComposerState.POSTED, announcement_id=announcement_id)
        logger.info(f"Posted announcement {announcement_id} to {record.building}")

        await self._publish(
            AnnouncementPostedEvent(
                source="composer",
                announcement_id=announcement_id,
                building=record.building,
                urgent=record.urgent,
            )
        )
        return self.status

    async def _publish(self, event: AppEvent) -> None:
        if self.event_bus is not None and self.event_bus.is_running:
            await self.event_bus.publish(event)
