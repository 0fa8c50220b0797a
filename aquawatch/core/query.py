"""Report query filter — turns request parameters into a storage predicate.

Pure translation and validation; no I/O. The resulting ReportFilter can be
evaluated in process (``matches``) or rendered as a document-store query
(``to_document_query``) for a Mongo-compatible backend.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from aquawatch.core.geo import BoundingBox, box_contains, parse_bbox
from aquawatch.core.models import ReportStatus, ReportSummary, Report, as_utc

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200
MAX_EXPORT_SIZE = 50_000


class InvalidStatusFilter(ValueError):
    """The status filter is not one of the known report statuses."""

    def __init__(self, value: str) -> None:
        allowed = ", ".join(s.value for s in ReportStatus)
        super().__init__(f"invalid status {value!r}, expected one of: {allowed}")
        self.value = value


def parse_status(raw: str | None) -> ReportStatus | None:
    if raw is None or not raw.strip():
        return None
    try:
        return ReportStatus(raw.strip())
    except ValueError:
        raise InvalidStatusFilter(raw) from None


@dataclass(frozen=True)
class ReportQueryParams:
    """Raw, optional filter parameters as they arrive from a request."""
    status: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    bbox: str | None = None
    page: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class ReportFilter:
    status: ReportStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    bbox: BoundingBox | None = None

    def with_status(self, status: ReportStatus | None) -> ReportFilter:
        return replace(self, status=status)

    def matches(self, report: Report | ReportSummary) -> bool:
        if self.status is not None and report.status != self.status:
            return False
        created = as_utc(report.created_at)
        if self.created_from is not None and created < self.created_from:
            return False
        if self.created_to is not None and created > self.created_to:
            return False
        if self.bbox is not None and not box_contains(self.bbox, report.location):
            return False
        return True

    def to_document_query(self) -> dict:
        query: dict = {}
        if self.status is not None:
            query["status"] = self.status.value
        if self.created_from is not None or self.created_to is not None:
            created: dict = {}
            if self.created_from is not None:
                created["$gte"] = self.created_from
            if self.created_to is not None:
                created["$lte"] = self.created_to
            query["createdAt"] = created
        if self.bbox is not None:
            query["location"] = {
                "$geoWithin": {
                    "$box": [
                        [self.bbox.min_lng, self.bbox.min_lat],
                        [self.bbox.max_lng, self.bbox.max_lat],
                    ],
                },
            }
        return query


@dataclass(frozen=True)
class ReportQuery:
    filter: ReportFilter
    skip: int
    limit: int
    page: int


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(max(value, lo), hi)


def build_report_query(params: ReportQueryParams,
                       *,
                       max_limit: int = MAX_PAGE_SIZE,
                       default_limit: int = DEFAULT_PAGE_SIZE) -> ReportQuery:
    """Validate filter params and compute pagination.

    Raises InvalidStatusFilter for an unknown status. A malformed bbox is
    dropped silently, and out-of-range page/limit values are clamped.
    """
    report_filter = ReportFilter(
        status=parse_status(params.status),
        created_from=as_utc(params.from_date) if params.from_date else None,
        created_to=as_utc(params.to_date) if params.to_date else None,
        bbox=parse_bbox(params.bbox),
    )

    limit = _clamp(params.limit if params.limit is not None else default_limit, 1, max_limit)
    page = max(params.page if params.page is not None else 1, 1)

    return ReportQuery(filter=report_filter, skip=(page - 1) * limit, limit=limit, page=page)
