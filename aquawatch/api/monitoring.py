"""Health check and monitoring endpoints."""

from __future__ import annotations

import shutil

from fastapi import APIRouter, Depends

from aquawatch.api.deps import get_config, get_stats, get_storage
from aquawatch.config import AppConfig
from aquawatch.core.grid import ZoomCellPolicy
from aquawatch.core.stats import ServerStats
from aquawatch.storage.base import ReportStorage

router = APIRouter(prefix="/api/v1")


@router.get("/health")
async def health(
    storage: ReportStorage = Depends(get_storage),
    stats: ServerStats = Depends(get_stats),
    config: AppConfig = Depends(get_config),
) -> dict:
    """Basic health check."""
    try:
        disk = shutil.disk_usage(config.storage.base_dir)
        disk_free_gb = round(disk.free / (1024 ** 3), 1)
        storage_writable = True
    except OSError:
        disk_free_gb = -1
        storage_writable = False

    snapshot = stats.snapshot()
    return {
        "status": "ok",
        "version": "0.1.0",
        "uptime_seconds": snapshot["uptime_seconds"],
        "reports_indexed": len(storage),
        "storage_writable": storage_writable,
        "disk_free_gb": disk_free_gb,
    }


@router.get("/stats")
async def get_server_stats(stats: ServerStats = Depends(get_stats)) -> dict:
    """Counters since startup plus recent submission activity.

    The ``recent_activity`` section shows:
    - ``submissions``: reports received within the window
    - ``active_reporters``: distinct identified reporters within the window
    - ``window_seconds``: the window length
    """
    return stats.snapshot()


@router.get("/config")
async def get_client_config(config: AppConfig = Depends(get_config)) -> dict:
    """Configuration endpoint for the map client.

    The client calls this on startup to cluster markers and size hotspot
    requests the same way the server does.
    """
    policy = ZoomCellPolicy.from_pairs(
        config.clustering.zoom_thresholds, config.clustering.fallback_cell_size,
    )
    return {
        "zoom_cell_policy": policy.to_dict(),
        "hotspot_cell_size": {
            "default": config.analytics.default_cell_size,
            "min": config.analytics.min_cell_size,
            "max": config.analytics.max_cell_size,
        },
        "max_page_size": config.limits.max_page_size,
        "max_photos": config.limits.max_photos,
        "duplicate_radius_m": config.duplicates.radius_m,
    }
