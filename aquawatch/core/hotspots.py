"""Hotspot density aggregation over a uniform grid."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

import structlog

from aquawatch.core.geo import GeoPoint
from aquawatch.core.grid import bucket_points
from aquawatch.core.models import ReportSummary

log = structlog.get_logger()

MIN_CELL_SIZE = 0.01
MAX_CELL_SIZE = 1.0

_HALF = Decimal("0.5")


@dataclass(frozen=True)
class HotspotCell:
    count: int
    center: GeoPoint

    def to_dict(self) -> dict:
        return {"count": self.count, "center": self.center.to_dict()}


def clamp_cell_size(value: float,
                    lo: float = MIN_CELL_SIZE,
                    hi: float = MAX_CELL_SIZE) -> float:
    """Clamp a client-supplied cell size into [lo, hi]. Never raises."""
    if math.isnan(value):
        return lo
    return min(max(value, lo), hi)


def _cell_center(index: int, cell_size: float, limit: float) -> float:
    center = float((index + _HALF) * Decimal(repr(cell_size)))
    # Edge cells at the antimeridian or poles can spill past the valid range.
    return min(max(center, -limit), limit)


def compute_hotspots(reports: Iterable[ReportSummary],
                     cell_size: float,
                     *,
                     min_cell_size: float = MIN_CELL_SIZE,
                     max_cell_size: float = MAX_CELL_SIZE) -> list[HotspotCell]:
    """Count reports per populated grid cell.

    Each cell is positioned at the geometric center of its rectangle, not
    at the mean of the reports inside it.
    """
    cell = clamp_cell_size(cell_size, min_cell_size, max_cell_size)
    buckets = bucket_points(((r.location, r) for r in reports), cell)

    cells = [
        HotspotCell(
            count=len(members),
            center=GeoPoint(
                longitude=_cell_center(gx, cell, 180.0),
                latitude=_cell_center(gy, cell, 90.0),
            ),
        )
        for (gx, gy), members in buckets.items()
    ]
    log.debug("hotspots_computed", cell_size=cell, cells=len(cells))
    return cells
