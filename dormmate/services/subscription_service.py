"""Viewer session subscription management."""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING

from loguru import logger

from dormmate.events.events import AppEvent, SnapshotDeliveredEvent, SubscriptionFailedEvent
from dormmate.exceptions import SubscriptionError
from dormmate.models.announcement import Announcement
from dormmate.query import build_query
from dormmate.store.base import AnnouncementStore, SubscriptionHandle

if TYPE_CHECKING:
    from dormmate.events.bus import EventBus


class SubscriptionState(str, Enum):
    """Lifecycle of a viewer session's subscription."""

    IDLE = "idle"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERROR = "error"
    DETACHED = "detached"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a viewer session for rendering."""

    state: SubscriptionState
    building: str
    announcements: tuple[Announcement, ...]
    error: SubscriptionError | None = None


SnapshotListener = Callable[[SessionSnapshot], Awaitable[None]]


class SubscriptionManager:
    """Keeps at most one live announcement subscription for a viewer session.

    Every filter change bumps a generation counter before the previous
    subscription is released. Store callbacks carry the generation they were
    created for, so pushes and errors from a superseded subscription are
    dropped and can never overwrite the result set of a newer filter.
    """

    def __init__(
        self,
        store: AnnouncementStore,
        event_bus: "EventBus | None" = None,
        listener: SnapshotListener | None = None,
        session_id: str | None = None,
    ) -> None:
        """Initialize subscription manager.

        Args:
            store: Announcement store to subscribe against
            event_bus: Optional bus receiving delivery and failure events
            listener: Optional coroutine awaited after every state change
            session_id: Identifier used in logs and events
        """
        self.store = store
        self.event_bus = event_bus
        self.listener = listener
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self._state = SubscriptionState.IDLE
        self._building = ""
        self._announcements: list[Announcement] = []
        self._error: SubscriptionError | None = None
        self._handle: SubscriptionHandle | None = None
        self._generation = 0
        self._settled = asyncio.Event()
        self._settled.set()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def building(self) -> str:
        return self._building

    @property
    def announcements(self) -> list[Announcement]:
        return list(self._announcements)

    @property
    def error(self) -> SubscriptionError | None:
        return self._error

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            building=self._building,
            announcements=tuple(self._announcements),
            error=self._error,
        )

    async def __aenter__(self) -> "SubscriptionManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.detach()

    async def set_filter(self, raw_building: str | None) -> None:
        """Point the session at a new building filter.

        The previous subscription is released before a new one is attached.
        An empty filter leaves the session idle with an empty result set.

        Args:
            raw_building: Building filter as typed by the viewer
        """
        if self._state is SubscriptionState.DETACHED:
            logger.warning(f"Session {self.session_id} is detached, ignoring filter change")
            return

        query = build_query(raw_building)
        self._generation += 1
        generation = self._generation

        await self._release()
        if generation != self._generation:
            return

        if query is None:
            self._building = ""
            self._announcements = []
            self._error = None
            self._state = SubscriptionState.IDLE
            self._settled.set()
            logger.debug(f"Session {self.session_id}: empty building filter, idle")
            await self._notify()
            return

        self._building = query.building
        self._error = None
        self._state = SubscriptionState.SUBSCRIBING
        self._settled.clear()
        logger.debug(f"Session {self.session_id}: subscribing to {query.buildings}")
        await self._notify()

        try:
            handle = await self.store.subscribe(
                query,
                partial(self._on_update, generation),
                partial(self._on_error, generation),
            )
        except Exception as e:
            if generation == self._generation:
                await self._fail(SubscriptionError(query.building, e))
            return

        if generation != self._generation:
            logger.debug(f"Session {self.session_id}: subscription superseded, releasing")
            await self.store.unsubscribe(handle)
            return

        self._handle = handle

    async def wait_settled(self, timeout: float | None = None) -> SessionSnapshot:
        """Wait until the current filter has produced a snapshot, an error or gone idle.

        Args:
            timeout: Seconds to wait, None for no limit

        Returns:
            Session snapshot at the time it settled

        Raises:
            TimeoutError: If nothing arrived within the timeout
        """
        await asyncio.wait_for(self._settled.wait(), timeout)
        return self.snapshot()

    async def detach(self) -> None:
        """End the session and release the underlying subscription."""
        if self._state is SubscriptionState.DETACHED:
            return

        self._generation += 1
        self._state = SubscriptionState.DETACHED
        await self._release()
        self._settled.set()
        logger.debug(f"Session {self.session_id} detached")
        await self._notify()

    async def _on_update(self, generation: int, announcements: list[Announcement]) -> None:
        if generation != self._generation:
            logger.debug(f"Session {self.session_id}: discarding stale snapshot")
            return

        self._announcements = list(announcements)
        self._error = None
        self._state = SubscriptionState.ACTIVE
        self._settled.set()

        await self._publish(
            SnapshotDeliveredEvent(
                source="subscription",
                session_id=self.session_id,
                building=self._building,
                count=len(announcements),
            )
        )
        await self._notify()

    async def _on_error(self, generation: int, cause: Exception) -> None:
        if generation != self._generation:
            logger.debug(f"Session {self.session_id}: discarding stale error: {cause}")
            return

        await self._fail(SubscriptionError(self._building, cause))

    async def _fail(self, error: SubscriptionError) -> None:
        """Enter the error state, keeping the last good result set."""
        self._error = error
        self._state = SubscriptionState.ERROR
        self._settled.set()
        logger.error(f"Session {self.session_id}: {error}")

        await self._publish(
            SubscriptionFailedEvent(
                source="subscription",
                session_id=self.session_id,
                building=error.building,
                error=str(error.cause),
            )
        )
        await self._notify()

    async def _release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return

        try:
            await self.store.unsubscribe(handle)
        except Exception as e:
            logger.error(f"Session {self.session_id}: failed to unsubscribe {handle.id}: {e}")

    async def _publish(self, event: AppEvent) -> None:
        if self.event_bus is not None and self.event_bus.is_running:
            await self.event_bus.publish(event)

    async def _notify(self) -> None:
        if self.listener is None:
            return

        try:
            await self.listener(self.snapshot())
        except Exception as e:
            logger.error(f"Session {self.session_id}: listener failed: {e}", exc_info=True)
