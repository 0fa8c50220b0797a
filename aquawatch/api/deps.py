"""FastAPI dependencies.

Components live on ``app.state`` (set by ``create_app``); handlers pull
them from there rather than from module globals.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import Query, Request

from aquawatch.config import AppConfig
from aquawatch.core.processor import ReportProcessor
from aquawatch.core.query import ReportQueryParams
from aquawatch.core.stats import ServerStats
from aquawatch.storage.base import ReportStorage


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_storage(request: Request) -> ReportStorage:
    return request.app.state.storage


def get_stats(request: Request) -> ServerStats:
    return request.app.state.stats


def get_processor(request: Request) -> ReportProcessor:
    return request.app.state.processor


def report_query_params(
    status: str | None = Query(default=None),
    from_date: datetime | None = Query(default=None, alias="from"),
    to_date: datetime | None = Query(default=None, alias="to"),
    bbox: str | None = Query(default=None, description="minLng,minLat,maxLng,maxLat"),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
) -> ReportQueryParams:
    """Common report filter parameters, as a plain struct."""
    return ReportQueryParams(
        status=status,
        from_date=from_date,
        to_date=to_date,
        bbox=bbox,
        page=page,
        limit=limit,
    )
