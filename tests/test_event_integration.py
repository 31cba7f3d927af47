"""Integration tests for the post-to-viewer flow."""

import asyncio

import pytest

from dormmate.events import EventBus
from dormmate.events.handlers import HealthHandler
from dormmate.models.announcement import AnnouncementDraft
from dormmate.services.composer_service import AnnouncementComposer, ComposerState
from dormmate.services.health_service import HealthChecker, HealthStatus
from dormmate.services.subscription_service import SubscriptionManager, SubscriptionState
from dormmate.store import InMemoryAnnouncementStore


@pytest.mark.asyncio
async def test_post_propagates_to_matching_viewers():
    """Test composer writes reach only viewers whose filter matches."""
    store = InMemoryAnnouncementStore()
    event_bus = EventBus()
    await event_bus.start()
    health_checker = HealthChecker()
    await HealthHandler(health_checker).initialize(event_bus)

    d102 = SubscriptionManager(store, event_bus=event_bus)
    e7 = SubscriptionManager(store, event_bus=event_bus)
    everyone = SubscriptionManager(store, event_bus=event_bus)
    await d102.set_filter("d102")
    await e7.set_filter("e7")
    await everyone.set_filter("all")
    for manager in (d102, e7, everyone):
        await manager.wait_settled(timeout=1)

    composer = AnnouncementComposer(store, event_bus=event_bus)
    composer.draft = AnnouncementDraft(title="Fire Drill", body="3pm today", building="d102")
    assert (await composer.submit()).state is ComposerState.POSTED

    composer.draft.title = "Pool closed"
    composer.draft.body = "Maintenance"
    composer.draft.building = ""
    assert (await composer.submit()).state is ComposerState.POSTED

    await asyncio.sleep(0.05)
    await event_bus.drain()

    assert [a.title for a in d102.announcements] == ["Pool closed", "Fire Drill"]
    assert [a.title for a in e7.announcements] == ["Pool closed"]
    assert [a.title for a in everyone.announcements] == ["Pool closed"]
    assert all(m.state is SubscriptionState.ACTIVE for m in (d102, e7, everyone))
    assert health_checker.get_status() is HealthStatus.HEALTHY

    for manager in (d102, e7, everyone):
        await manager.detach()
    assert store.subscription_count == 0

    await event_bus.stop()


@pytest.mark.asyncio
async def test_outage_marks_health_degraded_and_viewer_keeps_list():
    """Test store outage surfaces as errors without losing visible announcements."""
    store = InMemoryAnnouncementStore()
    event_bus = EventBus()
    await event_bus.start()
    health_checker = HealthChecker(unhealthy_threshold=5)
    await HealthHandler(health_checker).initialize(event_bus)

    composer = AnnouncementComposer(
        store,
        draft=AnnouncementDraft(title="Laundry", body="Room B closed", building="D102"),
        event_bus=event_bus,
    )
    await composer.submit()

    viewer = SubscriptionManager(store, event_bus=event_bus)
    await viewer.set_filter("D102")
    await viewer.wait_settled(timeout=1)

    store.set_available(False)
    await store.interrupt(ConnectionError("network down"))
    composer.draft.title = "Retry me"
    composer.draft.body = "Later"
    status = await composer.submit()
    await asyncio.sleep(0.01)
    await event_bus.drain()

    assert status.state is ComposerState.SUBMISSION_ERROR
    assert composer.draft.title == "Retry me"
    assert viewer.state is SubscriptionState.ERROR
    assert [a.title for a in viewer.announcements] == ["Laundry"]
    assert health_checker.get_status() is HealthStatus.DEGRADED
    assert health_checker.consecutive_failures == 2

    await viewer.detach()
    await event_bus.stop()
