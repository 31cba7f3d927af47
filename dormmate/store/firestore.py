"""Firestore-backed announcement store."""

import asyncio
import contextlib
import uuid
from typing import Any

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from loguru import logger

from dormmate.config import StoreConfig
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


def documents_to_announcements(documents: list[Any]) -> list[Announcement]:
    """Convert Firestore document snapshots, preserving query order.

    Args:
        documents: DocumentSnapshot objects from a query snapshot

    Returns:
        Announcements, skipping documents without a committed createdAt
    """
    announcements = []
    for document in documents:
        data = document.to_dict() or {}
        if data.get("createdAt") is None:
            logger.warning(f"Skipping announcement {document.id} without createdAt")
            continue
        announcements.append(Announcement.from_document(document.id, data))
    return announcements


class FirestoreAnnouncementStore(AnnouncementStore):
    """Announcement store on a Firestore collection.

    The Firestore client is synchronous; writes run in a worker thread and
    snapshot listeners fire on the client's watch thread, so every push is
    marshalled back onto the event loop before reaching subscribers.
    """

    def __init__(
        self,
        client: Any,
        collection: str = "announcements",
        watch_check_interval: float = 5.0,
    ) -> None:
        """Initialize store.

        Args:
            client: google.cloud.firestore.Client instance
            collection: Collection holding announcement documents
            watch_check_interval: Seconds between listener liveness checks
        """
        self._client = client
        self._collection = collection
        self._watch_check_interval = watch_check_interval
        self._watches: dict[str, tuple[Any, DeliveryChannel, asyncio.Task[None]]] = {}

    @classmethod
    def from_config(cls, store_config: StoreConfig) -> "FirestoreAnnouncementStore":
        """Create a store from configuration, initializing firebase_admin once.

        Args:
            store_config: Store configuration section

        Returns:
            FirestoreAnnouncementStore instance
        """
        import firebase_admin
        from firebase_admin import credentials

        if not firebase_admin._apps:
            if store_config.credentials_path:
                cred = credentials.Certificate(store_config.credentials_path)
            else:
                cred = credentials.ApplicationDefault()
            options = {"projectId": store_config.project_id} if store_config.project_id else None
            firebase_admin.initialize_app(cred, options)
            logger.info("Firebase app initialized")

        return cls(
            firestore.client(),
            store_config.collection,
            watch_check_interval=store_config.watch_check_interval,
        )

    async def append(self, record: NewAnnouncement) -> str:
        """Add a document with a server-assigned createdAt."""
        payload = record.to_document()
        payload["createdAt"] = firestore.SERVER_TIMESTAMP

        try:
            _, reference = await asyncio.to_thread(
                self._client.collection(self._collection).add, payload
            )
        except Exception as e:
            raise StoreError(f"Firestore add failed: {e}") from e

        logger.debug(f"Added announcement {reference.id}")
        return reference.id

    async def subscribe(
        self,
        query: AnnouncementQuery,
        on_update: UpdateCallback,
        on_error: ErrorCallback,
    ) -> SubscriptionHandle:
        """Attach an on_snapshot listener for the query."""
        loop = asyncio.get_running_loop()
        direction = firestore.Query.DESCENDING if query.descending else firestore.Query.ASCENDING
        firestore_query = (
            self._client.collection(self._collection)
            .where(filter=FieldFilter("building", "in", list(query.buildings)))
            .order_by(query.order_by, direction=direction)
        )

        handle = SubscriptionHandle(id=uuid.uuid4().hex, query=query)
        channel = DeliveryChannel(handle, on_update, on_error)
        channel.start()

        def on_snapshot(documents: list[Any], changes: Any, read_time: Any) -> None:
            try:
                item: list[Announcement] | Exception = documents_to_announcements(documents)
            except Exception as e:
                item = e
            loop.call_soon_threadsafe(channel.push, item)

        try:
            watch = await asyncio.to_thread(firestore_query.on_snapshot, on_snapshot)
        except Exception as e:
            await channel.close()
            raise StoreError(f"Firestore listener failed: {e}") from e

        monitor = asyncio.create_task(self._monitor_watch(watch, channel))
        self._watches[handle.id] = (watch, channel, monitor)

        logger.debug(f"Listening on {self._collection} for buildings {query.buildings}")
        return handle

    async def unsubscribe(self, handle: SubscriptionHandle) -> None:
        """Stop the Firestore watch and its delivery worker."""
        entry = self._watches.pop(handle.id, None)
        if entry is None:
            return

        watch, channel, monitor = entry
        monitor.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await monitor
        await channel.close()
        try:
            await asyncio.to_thread(watch.unsubscribe)
        except Exception as e:
            logger.error(f"Failed to stop Firestore watch {handle.id}: {e}")

    async def close(self) -> None:
        """Stop every listener."""
        for _, channel, _ in list(self._watches.values()):
            await self.unsubscribe(channel.handle)

    async def _monitor_watch(self, watch: Any, channel: DeliveryChannel) -> None:
        """Report a listener whose stream ended without recovery.

        Watch has no error callback; when its RPC terminates it closes itself
        on a background thread, so liveness is polled instead.
        """
        while not channel.closed:
            await asyncio.sleep(self._watch_check_interval)
            if not watch.is_active:
                logger.error(f"Firestore watch {channel.handle.id} stopped")
                channel.push(StoreError("Firestore listener stopped"))
                return
