"""Analytics endpoints: hotspot grid, KPI counts and a plain-text summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from aquawatch.api.deps import get_config, get_stats, get_storage, report_query_params
from aquawatch.config import AppConfig
from aquawatch.core.hotspots import clamp_cell_size, compute_hotspots
from aquawatch.core.models import ReportStatus
from aquawatch.core.query import ReportFilter, ReportQueryParams, build_report_query
from aquawatch.core.stats import ServerStats
from aquawatch.storage.base import ReportStorage

router = APIRouter(prefix="/api/v1/analytics")


async def _status_counts(storage: ReportStorage, report_filter: ReportFilter) -> dict[str, int]:
    """Count per status; statuses excluded by the filter count as zero."""
    counts = {}
    for status in ReportStatus:
        if report_filter.status is None or report_filter.status == status:
            counts[status.value] = await storage.count(report_filter.with_status(status))
        else:
            counts[status.value] = 0
    return counts


@router.get("/hotspots")
async def get_hotspots(
    cell_size: float | None = Query(default=None, alias="cellSize"),
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    config: AppConfig = Depends(get_config),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    """Report density per grid cell over the filtered region.

    ``cellSize`` is clamped to the configured range instead of rejected.
    """
    query = build_report_query(
        params,
        max_limit=config.limits.max_export_size,
        default_limit=config.limits.max_export_size,
    )
    reports = await storage.find(query.filter, skip=query.skip, limit=query.limit)

    analytics = config.analytics
    requested = analytics.default_cell_size if cell_size is None else cell_size
    cell = clamp_cell_size(requested, analytics.min_cell_size, analytics.max_cell_size)
    cells = compute_hotspots(
        [r.summary() for r in reports],
        cell,
        min_cell_size=analytics.min_cell_size,
        max_cell_size=analytics.max_cell_size,
    )
    stats.record_query("hotspots")

    return JSONResponse(content={
        "cellSize": cell,
        "total": len(reports),
        "cells": [c.to_dict() for c in cells],
    })


@router.get("/kpis")
async def get_kpis(
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    """Total and per-status report counts for the current filter."""
    query = build_report_query(params)
    counts = await _status_counts(storage, query.filter)
    stats.record_query("kpis")
    return JSONResponse(content={"total": await storage.count(query.filter), **counts})


@router.get("/summary")
async def get_summary(
    params: ReportQueryParams = Depends(report_query_params),
    storage: ReportStorage = Depends(get_storage),
    stats: ServerStats = Depends(get_stats),
) -> JSONResponse:
    query = build_report_query(params)
    total = await storage.count(query.filter)
    counts = await _status_counts(storage, query.filter)
    stats.record_query("summary")

    if total == 0:
        text = "No reports match the current filters."
    else:
        parts = ", ".join(f"{n} {status}" for status, n in counts.items() if n)
        text = f"{total} report{'s' if total != 1 else ''} in view: {parts}."

    return JSONResponse(content={
        "provider": "local",
        "stats": {"total": total, "byStatus": counts},
        "summary": text,
    })
