"""Viewer filter to store query translation."""

from collections.abc import Iterable
from dataclasses import dataclass

from dormmate.models.announcement import ALL_BUILDINGS, Announcement, normalize_building


@dataclass(frozen=True)
class AnnouncementQuery:
    """Query descriptor: building in `buildings`, ordered by created_at."""

    building: str
    buildings: tuple[str, ...]
    order_by: str = "createdAt"
    descending: bool = True

    def matches(self, announcement: Announcement) -> bool:
        return announcement.building in self.buildings

    def apply(self, records: Iterable[Announcement]) -> list[Announcement]:
        """Evaluate the query against records held client-side.

        Args:
            records: Candidate announcements in any order

        Returns:
            Matching announcements, newest first when descending
        """
        matched = [record for record in records if self.matches(record)]
        matched.sort(key=lambda record: record.created_at, reverse=self.descending)
        return matched


def build_query(raw_building: str | None) -> AnnouncementQuery | None:
    """Build the announcements query for a viewer's building filter.

    An empty filter yields no query so the caller shows nothing rather than
    every announcement.

    Args:
        raw_building: Building filter as typed by the viewer

    Returns:
        Query descriptor, or None when the normalized filter is empty
    """
    building = normalize_building(raw_building)
    if not building:
        return None

    buildings = (building,) if building == ALL_BUILDINGS else (building, ALL_BUILDINGS)
    return AnnouncementQuery(building=building, buildings=buildings)
