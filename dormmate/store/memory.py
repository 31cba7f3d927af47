"""In-process realtime announcement store."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from loguru import logger

from dormmate.exceptions import StoreError
from dormmate.models.announcement import Announcement, NewAnnouncement
from dormmate.query import AnnouncementQuery
from dormmate.store.base import (
    AnnouncementStore,
    ErrorCallback,
    SubscriptionHandle,
    UpdateCallback,
)
from dormmate.store.delivery import DeliveryChannel


class InMemoryAnnouncementStore(AnnouncementStore):
    """Realtime store kept in memory.

    Features:
    - Server-assigned IDs and strictly increasing creation timestamps
    - Initial snapshot on subscribe, full re-query pushed on every matching append
    - Per-subscription delivery ordering and error isolation
    - Simulated outages for exercising client error paths
    """

    def __init__(self) -> None:
        """Initialize empty store."""
        self._records: list[Announcement] = []
        self._channels: dict[str, DeliveryChannel] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._last_created_at: datetime | None = None
        self._available: bool = True

    @property
    def records(self) -> list[Announcement]:
        """All stored announcements in insertion order."""
        return list(self._records)

    @property
    def subscription_count(self) -> int:
        return len(self._channels)

    def set_available(self, available: bool) -> None:
        """Toggle simulated availability; appends and subscribes fail while unavailable."""
        self._available = available
        logger.info(f"In-memory store availability set to {available}")

    async def interrupt(self, cause: Exception) -> None:
        """Push a delivery failure to every live subscription."""
        async with self._lock:
            for channel in self._channels.values():
                channel.push(cause)
        logger.warning(f"Interrupted {len(self._channels)} subscriptions: {cause}")

    async def append(self, record: NewAnnouncement) -> str:
        """Append a record and push fresh snapshots to matching subscriptions."""
        async with self._lock:
            if not self._available:
                raise StoreError("Announcement store unavailable")

            announcement = Announcement(
                id=uuid.uuid4().hex,
                title=record.title,
                body=record.body,
                building=record.building,
                created_at=self._next_created_at(),
                date=record.date,
                start_time=record.start_time,
                end_time=record.end_time,
                urgent=record.urgent,
            )
            self._records.append(announcement)

            notified = 0
            for channel in self._channels.values():
                query = channel.handle.query
                if query.matches(announcement):
                    channel.push(query.apply(self._records))
                    notified += 1

        logger.debug(f"Appended announcement {announcement.id} ({notified} subscribers notified)")
        return announcement.id

    async def subscribe(
        self,
        query: AnnouncementQuery,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
    ) -> SubscriptionHandle:
        """Attach a listener and queue its initial snapshot."""
        async with self._lock:
            if not self._available:
                raise StoreError("Announcement store unavailable")

            handle = SubscriptionHandle(id=uuid.uuid4().hex, query=query)
            channel = DeliveryChannel(handle, on_update, on_error)
            channel.push(query.apply(self._records))
            channel.start()
            self._channels[handle.id] = channel

        logger.debug(f"Subscribed {handle.id} to buildings {query.buildings}")
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Detach a listener and stop its delivery worker."""
        channel = self._channels.pop(handle.id, None)
        if channel is None:
            return

        await channel.close()
        logger.debug(f"Unsubscribed {handle.id}")

    async def close(self) -> None:
        """Detach every listener."""
        for channel in list(self._channels.values()):
            await self.unsubscribe(channel.handle)

    def _next_created_at(self) -> datetime:
        """Return a timestamp strictly greater than any previously issued."""
        now = datetime.now(timezone.utc)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now
