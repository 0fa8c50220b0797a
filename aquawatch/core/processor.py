"""Report processor — validates submissions, triage transitions and comments.

This is the core write path. It depends on the ReportStorage protocol,
not a concrete implementation.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from aquawatch.core.geo import GeoPoint
from aquawatch.core.models import Comment, Report, ReportStatus

if TYPE_CHECKING:
    from aquawatch.core.models import ReportSubmission
    from aquawatch.core.stats import ServerStats
    from aquawatch.storage.base import ReportStorage

log = structlog.get_logger()

NOT_FOUND = "report not found"

# A resolution closes the report one way or the other.
RESOLVED_STATUSES = (ReportStatus.VERIFIED, ReportStatus.REJECTED)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ReportProcessor:
    """Accepts new reports and applies status, assignment and resolution changes."""

    def __init__(
        self,
        storage: ReportStorage,
        stats: ServerStats,
        *,
        max_notes_length: int = 2000,
        max_photos: int = 5,
    ) -> None:
        self._storage = storage
        self._stats = stats
        self._max_notes_length = max_notes_length
        self._max_photos = max_photos

    def _validate(self, sub: ReportSubmission) -> str:
        for name, value, bound in (("lat", sub.latitude, 90.0), ("lng", sub.longitude, 180.0)):
            if not math.isfinite(value) or abs(value) > bound:
                return f"{name} must be a number within [-{bound:g}, {bound:g}]"
        if len(sub.notes) > self._max_notes_length:
            return f"notes longer than {self._max_notes_length} characters"
        if len(sub.photos) > self._max_photos:
            return f"at most {self._max_photos} photos per report"
        return ""

    async def submit(self, sub: ReportSubmission) -> tuple[Report | None, str]:
        """Validate and store a new report. Returns (report, error_message)."""
        self._stats.record_submission(sub.reporter_id)

        error = self._validate(sub)
        if error:
            self._stats.record_rejected()
            log.info("report_rejected", reason=error)
            return None, error

        now = _now()
        report = Report(
            id=uuid.uuid4().hex,
            location=GeoPoint(longitude=sub.longitude, latitude=sub.latitude),
            created_at=now,
            updated_at=now,
            notes=sub.notes.strip(),
            photos=list(sub.photos),
            reporter_id=sub.reporter_id,
            contamination_type=sub.contamination_type,
        )
        await self._write(report, new=True)
        self._stats.record_stored()
        log.info("report_submitted", report_id=report.id,
                 lat=report.location.latitude, lng=report.location.longitude)
        return report, ""

    async def change_status(self, report_id: str, status: ReportStatus) -> tuple[Report | None, str]:
        report = await self._storage.get(report_id)
        if report is None:
            return None, NOT_FOUND

        previous = report.status
        report = replace(report, status=status, updated_at=_now())
        await self._write(report)
        self._stats.record_status_change()
        log.info("report_status_changed", report_id=report_id,
                 previous=previous.value, status=status.value)
        return report, ""

    async def assign(self, report_id: str, assignee: str) -> tuple[Report | None, str]:
        assignee = assignee.strip()
        if not assignee:
            return None, "assignee is required"

        report = await self._storage.get(report_id)
        if report is None:
            return None, NOT_FOUND

        report = replace(report, assignee=assignee, updated_at=_now())
        await self._write(report)
        log.info("report_assigned", report_id=report_id, assignee=assignee)
        return report, ""

    async def resolve(self, report_id: str, resolution_notes: str,
                      status: ReportStatus = ReportStatus.VERIFIED) -> tuple[Report | None, str]:
        if status not in RESOLVED_STATUSES:
            return None, "resolution status must be verified or rejected"

        report = await self._storage.get(report_id)
        if report is None:
            return None, NOT_FOUND

        now = _now()
        report = replace(
            report,
            status=status,
            resolution_notes=resolution_notes.strip(),
            resolved_at=now,
            updated_at=now,
        )
        await self._write(report)
        self._stats.record_status_change()
        log.info("report_resolved", report_id=report_id, status=status.value)
        return report, ""

    async def add_comment(self, report_id: str, content: str,
                          author_id: str | None = None) -> tuple[Comment | None, str]:
        content = content.strip()
        if not content:
            return None, "comment content is required"
        if len(content) > self._max_notes_length:
            return None, f"comment longer than {self._max_notes_length} characters"

        if await self._storage.get(report_id) is None:
            return None, NOT_FOUND

        comment = Comment(
            id=uuid.uuid4().hex,
            report_id=report_id,
            content=content,
            created_at=_now(),
            author_id=author_id,
        )
        try:
            await self._storage.add_comment(comment)
        except Exception:
            log.error("storage_write_failed", report_id=report_id, exc_info=True)
            self._stats.record_storage_error()
            raise
        self._stats.record_comment()
        log.info("comment_added", report_id=report_id, comment_id=comment.id)
        return comment, ""

    async def _write(self, report: Report, new: bool = False) -> None:
        try:
            if new:
                await self._storage.store(report)
            else:
                await self._storage.update(report)
        except Exception:
            log.error("storage_write_failed", report_id=report.id, exc_info=True)
            self._stats.record_storage_error()
            raise
