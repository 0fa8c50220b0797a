"""AquaWatch — core internal data models.

These are plain dataclasses with no framework dependencies.
Request bodies and stored JSON are converted to/from these at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from aquawatch.core.geo import GeoPoint


class ReportStatus(str, Enum):
    PENDING = "pending"
    FLAGGED = "flagged"
    VERIFIED = "verified"
    REJECTED = "rejected"


def as_utc(dt: datetime) -> datetime:
    """Treat naive timestamps as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _isoformat(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return as_utc(datetime.fromisoformat(value)) if value else None


@dataclass(frozen=True)
class ReportSummary:
    """The read-only slice of a report that clustering and grouping consume."""
    id: str
    location: GeoPoint
    created_at: datetime
    status: ReportStatus = ReportStatus.PENDING
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location": self.location.to_geojson(),
            "createdAt": self.created_at.isoformat(),
            "status": self.status.value,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ReportSubmission:
    """A citizen's new report, as received."""
    latitude: float
    longitude: float
    notes: str = ""
    photos: tuple[str, ...] = ()
    contamination_type: str | None = None
    reporter_id: str | None = None


@dataclass
class Report:
    id: str
    location: GeoPoint
    created_at: datetime
    updated_at: datetime
    status: ReportStatus = ReportStatus.PENDING
    notes: str = ""
    photos: list[str] = field(default_factory=list)
    reporter_id: str | None = None
    contamination_type: str | None = None
    assignee: str | None = None
    resolution_notes: str | None = None
    resolved_at: datetime | None = None

    def summary(self) -> ReportSummary:
        return ReportSummary(
            id=self.id,
            location=self.location,
            created_at=self.created_at,
            status=self.status,
            notes=self.notes,
        )

    def to_dict(self) -> dict:
        """JSON form, shared by the API and the on-disk snapshots."""
        return {
            "id": self.id,
            "location": self.location.to_geojson(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "status": self.status.value,
            "notes": self.notes,
            "photos": list(self.photos),
            "reporterId": self.reporter_id,
            "contaminationType": self.contamination_type,
            "assignee": self.assignee,
            "resolutionNotes": self.resolution_notes,
            "resolvedAt": _isoformat(self.resolved_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Report:
        lng, lat = data["location"]["coordinates"]
        return cls(
            id=data["id"],
            location=GeoPoint(longitude=lng, latitude=lat),
            created_at=_parse_ts(data["createdAt"]),
            updated_at=_parse_ts(data.get("updatedAt") or data["createdAt"]),
            status=ReportStatus(data.get("status", "pending")),
            notes=data.get("notes", ""),
            photos=list(data.get("photos", [])),
            reporter_id=data.get("reporterId"),
            contamination_type=data.get("contaminationType"),
            assignee=data.get("assignee"),
            resolution_notes=data.get("resolutionNotes"),
            resolved_at=_parse_ts(data.get("resolvedAt")),
        )


@dataclass(frozen=True)
class Comment:
    """A note left on a report during review."""
    id: str
    report_id: str
    content: str
    created_at: datetime
    author_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "reportId": self.report_id,
            "authorId": self.author_id,
            "content": self.content,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Comment:
        return cls(
            id=data["id"],
            report_id=data["reportId"],
            content=data["content"],
            created_at=_parse_ts(data["createdAt"]),
            author_id=data.get("authorId"),
        )
