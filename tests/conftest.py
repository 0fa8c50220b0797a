"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from aquawatch.config import AppConfig
from aquawatch.core.geo import GeoPoint
from aquawatch.core.models import Report, ReportStatus, ReportSummary
from aquawatch.main import create_app
from aquawatch.storage.file_storage import FileReportStorage


@pytest.fixture
def config(tmp_path):
    """An AppConfig pointing storage at a temp directory."""
    config = AppConfig()
    config.storage.base_dir = str(tmp_path / "data")
    config.logging.level = "warning"
    return config


@pytest.fixture
def storage(config):
    return FileReportStorage(base_dir=config.storage.base_dir)


@pytest.fixture
def app(config, storage):
    return create_app(config, storage)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def make_summary(report_id: str, lng: float, lat: float,
                 created_at: datetime | None = None,
                 status: ReportStatus = ReportStatus.PENDING) -> ReportSummary:
    return ReportSummary(
        id=report_id,
        location=GeoPoint(longitude=lng, latitude=lat),
        created_at=created_at or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        status=status,
    )


def make_report(report_id: str, lng: float, lat: float,
                created_at: datetime | None = None,
                status: ReportStatus = ReportStatus.PENDING,
                notes: str = "") -> Report:
    created_at = created_at or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return Report(
        id=report_id,
        location=GeoPoint(longitude=lng, latitude=lat),
        created_at=created_at,
        updated_at=created_at,
        status=status,
        notes=notes,
    )
