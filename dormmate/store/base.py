"""Base announcement store interface."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dormmate.models.announcement import Announcement, NewAnnouncement
from dormmate.query import AnnouncementQuery

UpdateCallback = Callable[[list[Announcement]], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque reference to a live store subscription."""

    id: str
    query: AnnouncementQuery


class AnnouncementStore(ABC):
    """Abstract base class for realtime announcement stores."""

    @abstractmethod
    async def append(self, record: NewAnnouncement) -> str:
        """Durably append a record; the store assigns id and created_at.

        Args:
            record: Validated announcement without id or timestamp

        Returns:
            Store-assigned announcement ID

        Raises:
            StoreError: If the write could not be acknowledged
        """

    @abstractmethod
    async def subscribe(
        self,
        query: AnnouncementQuery,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
    ) -> SubscriptionHandle:
        """Attach a listener that receives the full ordered result set on every change.

        Args:
            query: Query descriptor from build_query
            on_update: Awaited with the ordered snapshot after each change
            on_error: Awaited with the cause when delivery fails

        Returns:
            Handle to pass to unsubscribe

        Raises:
            StoreError: If the listener could not be attached
        """

    @abstractmethod
    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Detach a listener; unknown or already detached handles are ignored."""

    async def close(self) -> None:
        """Release store resources."""
