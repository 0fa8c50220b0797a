"""CSV export of report listings."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Iterator

from aquawatch.core.models import Report

EXPORT_COLUMNS = (
    "id",
    "createdAt",
    "updatedAt",
    "status",
    "lng",
    "lat",
    "contaminationType",
    "notes",
    "photos",
    "reporterId",
    "assignee",
    "resolutionNotes",
    "resolvedAt",
)


def _row(report: Report) -> list:
    return [
        report.id,
        report.created_at.isoformat(),
        report.updated_at.isoformat(),
        report.status.value,
        report.location.longitude,
        report.location.latitude,
        report.contamination_type or "",
        report.notes,
        " ".join(report.photos),
        report.reporter_id or "",
        report.assignee or "",
        report.resolution_notes or "",
        report.resolved_at.isoformat() if report.resolved_at else "",
    ]


def iter_csv(reports: Iterable[Report], chunk_rows: int = 500) -> Iterator[str]:
    """Yield the CSV text in chunks: header first, then ``chunk_rows`` rows at a time."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)

    pending = 0
    for report in reports:
        writer.writerow(_row(report))
        pending += 1
        if pending >= chunk_rows:
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate()
            pending = 0

    tail = buf.getvalue()
    if tail:
        yield tail
