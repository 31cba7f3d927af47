"""Test viewer subscription management."""

import asyncio

import pytest

from dormmate.events import EventBus, SnapshotDeliveredEvent, SubscriptionFailedEvent
from dormmate.exceptions import SubscriptionError
from dormmate.models.announcement import NewAnnouncement
from dormmate.services.subscription_service import SubscriptionManager, SubscriptionState
from dormmate.store import InMemoryAnnouncementStore
from dormmate.store.base import AnnouncementStore, SubscriptionHandle


class RecordingStore(InMemoryAnnouncementStore):
    """In-memory store that logs subscribe/unsubscribe calls."""

    def __init__(self) -> None:
        super().__init__()
        self.calls = []

    async def subscribe(self, query, on_update, on_error):
        self.calls.append(("subscribe", query.building))
        return await super().subscribe(query, on_update, on_error)

    async def unsubscribe(self, handle):
        self.calls.append(("unsubscribe", handle.query.building))
        await super().unsubscribe(handle)


class ManualStore(AnnouncementStore):
    """Store whose pushes are triggered by the test."""

    def __init__(self) -> None:
        self.listeners = {}
        self.unsubscribed = []
        self.gate: asyncio.Event | None = None

    async def append(self, record):
        raise NotImplementedError

    async def subscribe(self, query, on_update, on_error):
        gate = self.gate
        self.gate = None
        if gate is not None:
            await gate.wait()
        handle = SubscriptionHandle(id=f"{query.building}-{len(self.listeners)}", query=query)
        self.listeners[handle.id] = (on_update, on_error)
        return handle

    async def unsubscribe(self, handle):
        self.unsubscribed.append(handle.id)


async def post(store: InMemoryAnnouncementStore, title: str, building: str) -> str:
    return await store.append(NewAnnouncement(title=title, body="details", building=building))


@pytest.mark.asyncio
async def test_visible_set_matches_building_and_all():
    """Test visible set equals records for the building plus ALL, newest first."""
    store = InMemoryAnnouncementStore()
    await post(store, "General", "ALL")
    await post(store, "Other building", "E7")
    await post(store, "Ours", "D102")

    async with SubscriptionManager(store) as manager:
        await manager.set_filter("d102")
        snapshot = await manager.wait_settled(timeout=1)

    assert snapshot.state is SubscriptionState.ACTIVE
    assert snapshot.building == "D102"
    assert [a.title for a in snapshot.announcements] == ["Ours", "General"]


@pytest.mark.asyncio
async def test_empty_filter_is_idle_and_empty():
    """Test empty filter shows nothing and attaches no subscription."""
    store = InMemoryAnnouncementStore()
    await post(store, "General", "ALL")
    manager = SubscriptionManager(store)

    await manager.set_filter("d102")
    await manager.wait_settled(timeout=1)
    await manager.set_filter("   ")

    assert manager.state is SubscriptionState.IDLE
    assert manager.announcements == []
    assert manager.building == ""
    assert store.subscription_count == 0

    await manager.detach()


@pytest.mark.asyncio
async def test_filter_change_cancels_before_attaching():
    """Test previous subscription is released before the new one is attached."""
    store = RecordingStore()
    manager = SubscriptionManager(store)

    await manager.set_filter("d102")
    await manager.set_filter("e7")

    assert store.calls == [
        ("subscribe", "D102"),
        ("unsubscribe", "D102"),
        ("subscribe", "E7"),
    ]
    assert store.subscription_count == 1

    await manager.detach()


@pytest.mark.asyncio
async def test_late_push_from_old_filter_is_discarded():
    """Test a push for a superseded filter never overwrites the newer result set."""
    store = ManualStore()
    manager = SubscriptionManager(store)

    await manager.set_filter("d102")
    old_update, old_error = store.listeners["D102-0"]
    await manager.set_filter("e7")
    new_update, _ = store.listeners["E7-1"]

    await new_update([])
    await old_update(["stale"])
    await old_error(ConnectionError("late"))

    assert manager.state is SubscriptionState.ACTIVE
    assert manager.building == "E7"
    assert manager.announcements == []
    assert manager.error is None
    assert store.unsubscribed == ["D102-0"]


@pytest.mark.asyncio
async def test_in_flight_subscribe_superseded():
    """Test a subscribe that completes after a newer filter is released immediately."""
    store = ManualStore()
    gate = asyncio.Event()
    store.gate = gate
    manager = SubscriptionManager(store)

    pending = asyncio.create_task(manager.set_filter("d102"))
    await asyncio.sleep(0)
    await manager.set_filter("e7")
    gate.set()
    await pending

    assert store.unsubscribed == ["D102-1"]
    assert manager.building == "E7"
    assert manager.state is SubscriptionState.SUBSCRIBING

    stale_update, _ = store.listeners["D102-1"]
    await stale_update(["stale"])
    assert manager.announcements == []

    current_update, _ = store.listeners["E7-0"]
    await current_update([])
    assert manager.state is SubscriptionState.ACTIVE


@pytest.mark.asyncio
async def test_subscription_error_keeps_last_good_snapshot():
    """Test a delivery failure records the error but keeps the last list visible."""
    store = InMemoryAnnouncementStore()
    await post(store, "Fire Drill", "D102")
    manager = SubscriptionManager(store)

    await manager.set_filter("D102")
    await manager.wait_settled(timeout=1)
    await store.interrupt(ConnectionError("offline"))
    await asyncio.sleep(0.01)

    assert manager.state is SubscriptionState.ERROR
    assert isinstance(manager.error, SubscriptionError)
    assert isinstance(manager.error.cause, ConnectionError)
    assert [a.title for a in manager.announcements] == ["Fire Drill"]

    await post(store, "Water outage", "ALL")
    await asyncio.sleep(0.01)

    assert manager.state is SubscriptionState.ACTIVE
    assert manager.error is None
    assert [a.title for a in manager.announcements] == ["Water outage", "Fire Drill"]

    await manager.detach()


@pytest.mark.asyncio
async def test_subscribe_failure_enters_error_state():
    """Test a store that cannot attach a listener puts the session in error."""
    store = InMemoryAnnouncementStore()
    store.set_available(False)
    manager = SubscriptionManager(store)

    await manager.set_filter("D102")
    snapshot = await manager.wait_settled(timeout=1)

    assert snapshot.state is SubscriptionState.ERROR
    assert snapshot.error is not None
    assert snapshot.announcements == ()

    store.set_available(True)
    await manager.set_filter("D102")
    snapshot = await manager.wait_settled(timeout=1)

    assert snapshot.state is SubscriptionState.ACTIVE

    await manager.detach()


@pytest.mark.asyncio
async def test_detach_releases_subscription():
    """Test detached session releases its handle and ignores further changes."""
    store = InMemoryAnnouncementStore()
    manager = SubscriptionManager(store)

    await manager.set_filter("D102")
    await manager.detach()
    await manager.set_filter("E7")

    assert manager.state is SubscriptionState.DETACHED
    assert store.subscription_count == 0


@pytest.mark.asyncio
async def test_listener_receives_state_changes():
    """Test listener sees subscribing, active and idle snapshots in order."""
    store = InMemoryAnnouncementStore()
    seen = []

    async def listener(snapshot) -> None:
        seen.append((snapshot.state, snapshot.building, len(snapshot.announcements)))

    manager = SubscriptionManager(store, listener=listener)
    await manager.set_filter("d102")
    await manager.wait_settled(timeout=1)
    await post(store, "Fire Drill", "D102")
    await asyncio.sleep(0.01)
    await manager.set_filter("")

    assert seen == [
        (SubscriptionState.SUBSCRIBING, "D102", 0),
        (SubscriptionState.ACTIVE, "D102", 0),
        (SubscriptionState.ACTIVE, "D102", 1),
        (SubscriptionState.IDLE, "", 0),
    ]

    await manager.detach()


@pytest.mark.asyncio
async def test_fire_drill_scenario():
    """Test D102 post is visible to D102 viewers only, newest first."""
    store = InMemoryAnnouncementStore()
    await post(store, "Welcome", "ALL")

    d102_viewer = SubscriptionManager(store)
    all_viewer = SubscriptionManager(store)
    await d102_viewer.set_filter("d102")
    await all_viewer.set_filter("ALL")
    await d102_viewer.wait_settled(timeout=1)
    await all_viewer.wait_settled(timeout=1)

    await store.append(NewAnnouncement(title="Fire Drill", body="3pm today", building="D102"))
    await asyncio.sleep(0.01)

    assert [a.title for a in d102_viewer.announcements] == ["Fire Drill", "Welcome"]
    assert [a.title for a in all_viewer.announcements] == ["Welcome"]

    await d102_viewer.detach()
    await all_viewer.detach()


@pytest.mark.asyncio
async def test_manager_publishes_events():
    """Test deliveries and failures are published to the event bus."""
    store = InMemoryAnnouncementStore()
    bus = EventBus()
    await bus.start()
    events = []

    async def capture(event) -> None:
        events.append(event)

    await bus.subscribe(SnapshotDeliveredEvent, capture)
    await bus.subscribe(SubscriptionFailedEvent, capture)

    manager = SubscriptionManager(store, event_bus=bus, session_id="viewer-1")
    await manager.set_filter("D102")
    await manager.wait_settled(timeout=1)
    await store.interrupt(ConnectionError("offline"))
    await asyncio.sleep(0.01)
    await bus.drain()

    assert isinstance(events[0], SnapshotDeliveredEvent)
    assert events[0].session_id == "viewer-1"
    assert events[0].building == "D102"
    assert isinstance(events[1], SubscriptionFailedEvent)
    assert events[1].error == "offline"

    await manager.detach()
    await bus.stop()
