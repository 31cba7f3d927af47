"""Per-subscription push delivery channel."""

import asyncio
import contextlib

from loguru import logger

from dormmate.models.announcement import Announcement
from dormmate.store.base import ErrorCallback, SubscriptionHandle, UpdateCallback


class DeliveryChannel:
    """Queue plus worker task forwarding store pushes to one listener.

    Pushes are delivered in the order they were queued. A failing callback is
    logged and does not stop later deliveries.
    """

    def __init__(
        self, handle: SubscriptionHandle, on_update: UpdateCallback, on_error: ErrorCallback
    ) -> None:
        self.handle = handle
        self.on_update = on_update
        self.on_error = on_error
        self._queue: asyncio.Queue[list[Announcement] | Exception] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._closed: bool = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the delivery worker on the running loop."""
        self._task = asyncio.create_task(self._run())

    def push(self, item: list[Announcement] | Exception) -> None:
        """Queue a snapshot or an error for delivery."""
        if not self._closed:
            self._queue.put_nowait(item)

    async def close(self) -> None:
        """Stop delivering; queued items are dropped."""
        self._closed = True
        task = self._task
        # A callback may close its own channel; that worker exits once the callback returns.
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while not self._closed:
            item = await self._queue.get()
            try:
                if isinstance(item, Exception):
                    await self.on_error(item)
                else:
                    await self.on_update(item)
            except Exception as e:
                logger.error(
                    f"Subscriber callback failed for {self.handle.id}: {e}",
                    exc_info=True,
                )
