"""Announcement store health tracking.

Health follows the outcome of store interactions reported on the event bus:
posts and delivered snapshots count as successes; failed submissions and
listener failures count as failures. A single failure degrades the service;
`unhealthy_threshold` consecutive failures mark it unhealthy until the next
success.
"""

from datetime import datetime
from enum import Enum

from dormmate.config import config


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthChecker:
    """Tracks whether the announcement store is reachable.

    The store counts as reachable while its most recent append or push
    delivery succeeded.
    """

    def __init__(self, unhealthy_threshold: int | None = None) -> None:
        """Initialize health checker.

        Args:
            unhealthy_threshold: Consecutive failures before unhealthy, defaults to config
        """
        self.start_time = datetime.now()
        self.store_connected = True
        self.consecutive_failures = 0
        self.unhealthy_threshold = unhealthy_threshold or config.health.unhealthy_threshold

    def set_store_status(self, connected: bool) -> None:
        """Record the outcome of a store append or subscription push.

        Args:
            connected: Whether the store call succeeded; a success resets the failure streak
        """
        if connected:
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
        self.store_connected = connected

    def get_status(self) -> HealthStatus:
        """Get current health status.

        Returns:
            UNHEALTHY at the failure threshold, DEGRADED after any failure,
            otherwise HEALTHY
        """
        if self.consecutive_failures >= self.unhealthy_threshold:
            return HealthStatus.UNHEALTHY
        if not self.store_connected:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def get_uptime(self) -> float:
        """Get application uptime in seconds."""
        return (datetime.now() - self.start_time).total_seconds()


health_checker = HealthChecker()
