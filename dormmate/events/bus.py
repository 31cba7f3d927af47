"""In-memory async event bus."""

import asyncio
import contextlib
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any, TypeVar

from loguru import logger

E = TypeVar("E", bound="Event")

Handler = Callable[[Any], Coroutine[Any, Any, None]]


@dataclass
class Event:
    """Base class for all application events."""

    timestamp: float = field(default_factory=time.monotonic, init=False)


class EventBus:
    """In-memory async event bus using asyncio.Queue.

    Features:
    - Non-blocking event publishing
    - Concurrent subscriber processing
    - Graceful shutdown support
    - Error isolation per subscriber
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        """Initialize event bus."""
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=max_queue_size)
        self._subscribers: dict[type[Event], list[Handler]] = {}
        self._running: bool = False
        self._worker_task: asyncio.Task[None] | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    async def subscribe(
        self, event_type: type[E], handler: Callable[[E], Coroutine[Any, Any, None]]
    ) -> None:
        """Subscribe a handler to an event type."""
        async with self._lock:
            self._subscribers.setdefault(event_type, []).append(handler)
            logger.debug(
                f"Subscribed handler {handler.__name__} to {event_type.__name__} "
                f"(total: {len(self._subscribers[event_type])})"
            )

    async def unsubscribe(
        self, event_type: type[E], handler: Callable[[E], Coroutine[Any, Any, None]]
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        async with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    async def publish(self, event: Event) -> None:
        """Publish an event to all subscribers."""
        await self._queue.put(event)
        logger.debug(f"Published event {event.__class__.__name__}")

    async def drain(self) -> None:
        """Wait until every published event has been dispatched."""
        await self._queue.join()

    async def start(self) -> None:
        """Start event bus processing."""
        if self._running:
            logger.warning("Event bus already running")
            return

        self._running = True
        self._worker_task = asyncio.create_task(self._process_events())
        logger.info("Event bus started")

    async def stop(self) -> None:
        """Stop event bus; undispatched events are dropped."""
        if not self._running:
            return

        logger.info("Stopping event bus...")
        self._running = False

        if self._worker_task:
            self._worker_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker_task
            self._worker_task = None

        logger.info("Event bus stopped")

    async def _process_events(self) -> None:
        """Process events from queue."""
        while self._running:
            event = await self._queue.get()
            try:
                await self._dispatch_event(event)
            except Exception as e:
                logger.error(f"Error processing event: {e}")
            finally:
                self._queue.task_done()

    async def _dispatch_event(self, event: Event) -> None:
        """Dispatch event to all subscribers concurrently."""
        event_type = type(event)
        handlers = list(self._subscribers.get(event_type, []))

        if not handlers:
            logger.debug(f"No subscribers for {event_type.__name__}")
            return

        await asyncio.gather(*(self._call_handler(handler, event) for handler in handlers))

    async def _call_handler(self, handler: Handler, event: Event) -> None:
        """Call a single handler with error isolation."""
        try:
            await handler(event)
        except Exception as e:
            logger.error(
                f"Handler {handler.__name__} failed for {event.__class__.__name__}: {e}",
                exc_info=True,
            )


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create EventBus singleton.

    Returns:
        EventBus instance
    """
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


async def reset_event_bus() -> None:
    """Reset EventBus singleton for test isolation."""
    global _event_bus
    if _event_bus is not None and _event_bus.is_running:
        await _event_bus.stop()
    _event_bus = None
