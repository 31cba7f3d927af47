"""Announcement domain models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

ALL_BUILDINGS = "ALL"


def normalize_building(raw: str | None) -> str:
    """Trim and uppercase a building identifier.

    Args:
        raw: Building code as typed by a user, possibly None

    Returns:
        Normalized building code, empty string if nothing was given
    """
    return (raw or "").strip().upper()


@dataclass(frozen=True)
class NewAnnouncement:
    """Validated announcement ready for append; the store assigns id and created_at."""

    title: str
    body: str
    building: str = ALL_BUILDINGS
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    urgent: bool = False

    def to_document(self) -> dict[str, Any]:
        """Serialize to the store's document field names."""
        return {
            "title": self.title,
            "body": self.body,
            "building": self.building,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "urgent": self.urgent,
        }


@dataclass(frozen=True)
class Announcement:
    """Domain model for a stored announcement."""

    id: str
    title: str
    body: str
    building: str
    created_at: datetime
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    urgent: bool = False

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "Announcement":
        """Build an announcement from a store document.

        Args:
            doc_id: Store-assigned document ID
            data: Document fields using store field names

        Returns:
            Announcement instance
        """
        return cls(
            id=doc_id,
            title=data.get("title", ""),
            body=data.get("body", ""),
            building=data.get("building") or ALL_BUILDINGS,
            created_at=data["createdAt"],
            date=data.get("date", ""),
            start_time=data.get("startTime", ""),
            end_time=data.get("endTime", ""),
            urgent=data.get("urgent") is True,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "building": self.building,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "urgent": self.urgent,
            "createdAt": self.created_at.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.building}] {self.title}"


@dataclass
class AnnouncementDraft:
    """Editable staff form state."""

    title: str = ""
    body: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    urgent: bool = False
    building: str = ALL_BUILDINGS
