"""Report API endpoints.

This is the thin FastAPI adapter. It parses requests into core structs,
calls the processor or the core computations, and shapes the JSON.
"""

from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from aquawatch.api.deps import (
    get_config,
    get_processor,
    get_stats,
    get_storage,
    report_query_params,
)
from aquawatch.config import AppConfig
from aquawatch.core.duplicates import day_bounds, find_duplicate_groups, reference_tz
from aquawatch.core.export import iter_csv
from aquawatch.core.grid import ZoomCellPolicy, cluster_markers
from aquawatch.core.models import Report, ReportStatus, ReportSubmission
from aquawatch.core.processor import NOT_FOUND, ReportProcessor
from aquawatch.core.query import ReportQueryParams, build_report_query
from aquawatch.core.stats import ServerStats
from aquawatch.storage.base import ReportStorage

router = APIRouter(prefix="/api/v1")


class ReportIn(BaseModel):
    """Payload for POST /reports."""
    model_config = ConfigDict(populate_by_name=True)

    lat: float
    lng: float
    notes: str = ""
    photos: list[str] = Field(default_factory=list)
    contamination_type: str | None = Field(default=None, alias="contaminationType")
    reporter_id: str | None = Field(default=None, alias="reporterId")


class CommentIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    author_id: str | None = Field(default=None, alias="authorId")


class StatusIn(BaseModel):
    status: ReportStatus


class AssignIn(BaseModel):
    assignee: str


class ResolveIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resolution_notes: str = Field(default="", alias="resolutionNotes")
    status: ReportStatus = ReportStatus.VERIFIED


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def _report_result(report: Report | None, error: str) -> JSONResponse:
    if report is None:
        return _error(error, 404 if error == NOT_FOUND else 422)
    return JSONResponse(content=report.to_dict())


@router.get("/reports")
async def list_reports(
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    """Return one page of reports, newest first."""
    query = build_report_query(
        params,
        max_limit=config.limits.max_page_size,
        default_limit=config.limits.default_page_size,
    )
    items = await storage.find(query.filter, skip=query.skip, limit=query.limit)
    total = await storage.count(query.filter)
    stats.record_query("list")

    return JSONResponse(content={
        "items": [r.to_dict() for r in items],
        "page": query.page,
        "pages": max(1, math.ceil(total / query.limit)),
        "total": total,
        "limit": query.limit,
    })


@router.get("/reports.csv")
async def export_reports(
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
    stats: ServerStats = Depends(get_stats),
) -> StreamingResponse:
    """Download the filtered reports as CSV, newest first."""
    query = build_report_query(
        params,
        max_limit=config.limits.max_export_size,
        default_limit=config.limits.max_export_size,
    )
    reports = await storage.find(query.filter, skip=query.skip, limit=query.limit)
    stats.record_query("export")

    return StreamingResponse(
        iter_csv(reports),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="reports.csv"'},
    )


@router.post("/reports")
async def create_report(
    body: ReportIn,
    processor: ReportProcessor = Depends(get_processor),
) -> JSONResponse:
    submission = ReportSubmission(
        latitude=body.lat,
        longitude=body.lng,
        notes=body.notes,
        photos=tuple(body.photos),
        contamination_type=body.contamination_type,
        reporter_id=body.reporter_id,
    )
    report, error = await processor.submit(submission)
    if report is None:
        return _error(error, 422)
    return JSONResponse(content=report.to_dict(), status_code=201)


@router.get("/reports/clusters")
async def get_clusters(
    zoom: float | None = Query(default=None),
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    """Return map markers for one page of reports, clustered by zoom level."""
    query = build_report_query(
        params,
        max_limit=config.limits.max_export_size,
        default_limit=config.limits.max_page_size,
    )
    reports = await storage.find(query.filter, skip=query.skip, limit=query.limit)

    policy = ZoomCellPolicy.from_pairs(
        config.clustering.zoom_thresholds, config.clustering.fallback_cell_size,
    )
    if zoom is None or not math.isfinite(zoom):
        zoom = config.clustering.default_zoom
    cell_size = policy.cell_size_for(zoom)
    items = cluster_markers([r.summary() for r in reports], cell_size)
    stats.record_query("clusters")

    return JSONResponse(content={
        "zoom": zoom,
        "cellSize": cell_size,
        "total": len(reports),
        "items": [item.to_dict() for item in items],
    })


@router.get("/reports/duplicates")
async def get_duplicates(
    day: date | None = Query(default=None),
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    """Propose groups of likely duplicate reports, oldest report first."""
    tz = reference_tz(config.duplicates.timezone)
    query = build_report_query(
        params,
        max_limit=config.limits.max_export_size,
        default_limit=config.limits.max_export_size,
    )
    report_filter = query.filter
    if day is not None:
        start, end = day_bounds(day, tz)
        last = end - timedelta(microseconds=1)
        # Narrow to the day without widening any from/to the caller gave.
        report_filter = replace(
            report_filter,
            created_from=max(start, report_filter.created_from or start),
            created_to=min(last, report_filter.created_to or last),
        )

    reports = await storage.find(report_filter, skip=query.skip, limit=query.limit,
                                 newest_first=False)
    groups = find_duplicate_groups(
        [r.summary() for r in reports],
        day,
        radius_m=config.duplicates.radius_m,
        tz=tz,
        same_day_only=config.duplicates.same_day_only,
    )
    stats.record_query("duplicates")

    return JSONResponse(content={
        "day": day.isoformat() if day else None,
        "radiusMeters": config.duplicates.radius_m,
        "scanned": len(reports),
        "groups": groups,
    })


@router.get("/reports/{report_id}")
async def get_report(
    report_id: str,
    storage: ReportStorage = Depends(get_storage),
) -> JSONResponse:
    report = await storage.get(report_id)
    return _report_result(report, NOT_FOUND)


@router.patch("/reports/{report_id}/status")
async def update_status(
    report_id: str,
    body: StatusIn,
    processor: ReportProcessor = Depends(get_processor),
) -> JSONResponse:
    report, error = await processor.change_status(report_id, body.status)
    return _report_result(report, error)


@router.patch("/reports/{report_id}/assign")
async def assign_report(
    report_id: str,
    body: AssignIn,
    processor: ReportProcessor = Depends(get_processor),
) -> JSONResponse:
    report, error = await processor.assign(report_id, body.assignee)
    return _report_result(report, error)


@router.patch("/reports/{report_id}/resolve")
async def resolve_report(
    report_id: str,
    body: ResolveIn,
    processor: ReportProcessor = Depends(get_processor),
) -> JSONResponse:
    report, error = await processor.resolve(report_id, body.resolution_notes, body.status)
    return _report_result(report, error)


@router.get("/reports/{report_id}/comments")
async def list_comments(
    report_id: str,
    storage: ReportStorage = Depends(get_storage),
) -> JSONResponse:
    if await storage.get(report_id) is None:
        return _error(NOT_FOUND, 404)
    comments = await storage.list_comments(report_id)
    return JSONResponse(content={"items": [c.to_dict() for c in comments]})


@router.post("/reports/{report_id}/comments")
async def add_comment(
    report_id: str,
    body: CommentIn,
    processor: ReportProcessor = Depends(get_processor),
) -> JSONResponse:
    comment, error = await processor.add_comment(report_id, body.content, body.author_id)
    if comment is None:
        return _error(error, 404 if error == NOT_FOUND else 422)
    return JSONResponse(content=comment.to_dict(), status_code=201)
