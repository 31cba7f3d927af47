"""Business logic services."""

from dormmate.services.composer_service import (
    AnnouncementComposer,
    ComposerState,
    ComposerStatus,
    new_draft,
    validate_draft,
)
from dormmate.services.health_service import HealthChecker, HealthStatus, health_checker
from dormmate.services.subscription_service import (
    SessionSnapshot,
    SubscriptionManager,
    SubscriptionState,
)

__all__ = [
    "AnnouncementComposer",
    "ComposerState",
    "ComposerStatus",
    "new_draft",
    "validate_draft",
    "HealthChecker",
    "HealthStatus",
    "health_checker",
    "SessionSnapshot",
    "SubscriptionManager",
    "SubscriptionState",
]
