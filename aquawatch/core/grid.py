"""Uniform grid bucketing and marker clustering.

Points are bucketed by (floor(lng / cell), floor(lat / cell)). The same
bucketer backs both hotspot aggregation and map marker clustering; each
caller picks its own cell size policy.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence, TypeVar

from aquawatch.core.geo import GeoPoint
from aquawatch.core.models import ReportSummary

T = TypeVar("T")

GridKey = tuple[int, int]

# (min_zoom, cell_size_deg), finest grid at the highest zoom.
DEFAULT_ZOOM_THRESHOLDS: tuple[tuple[int, float], ...] = (
    (14, 0.005),
    (12, 0.01),
    (10, 0.02),
)
DEFAULT_FALLBACK_CELL_SIZE = 0.05


def _cell_index(value: float, cell_size: float) -> int:
    # Divide the decimal forms: in binary, 10.02 / 0.01 is 1001.9999999999999.
    return math.floor(Decimal(repr(value)) / Decimal(repr(cell_size)))


def grid_key(point: GeoPoint, cell_size: float) -> GridKey:
    return (_cell_index(point.longitude, cell_size),
            _cell_index(point.latitude, cell_size))


def bucket_points(
    points: Iterable[tuple[GeoPoint, T]],
    cell_size: float,
) -> dict[GridKey, list[T]]:
    """Group payloads by the grid cell their point falls in.

    Payloads keep their input order within a bucket. The order of the
    buckets themselves is not meaningful. ``cell_size`` is used as given;
    clamping is the caller's job.
    """
    if not math.isfinite(cell_size) or cell_size <= 0:
        raise ValueError(f"cell_size must be a positive finite number, got {cell_size}")

    buckets: dict[GridKey, list[T]] = defaultdict(list)
    for point, payload in points:
        buckets[grid_key(point, cell_size)].append(payload)
    return dict(buckets)


@dataclass(frozen=True)
class ZoomCellPolicy:
    """Step function from map zoom level to clustering cell size."""
    thresholds: tuple[tuple[int, float], ...] = DEFAULT_ZOOM_THRESHOLDS
    fallback: float = DEFAULT_FALLBACK_CELL_SIZE

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence], fallback: float) -> ZoomCellPolicy:
        return cls(
            thresholds=tuple((int(z), float(size)) for z, size in pairs),
            fallback=float(fallback),
        )

    def cell_size_for(self, zoom: float) -> float:
        for min_zoom, cell_size in sorted(self.thresholds, reverse=True):
            if zoom >= min_zoom:
                return cell_size
        return self.fallback

    def to_dict(self) -> dict:
        return {
            "thresholds": [{"minZoom": z, "cellSize": s} for z, s in self.thresholds],
            "fallback": self.fallback,
        }


@dataclass(frozen=True)
class SingleMarker:
    report: ReportSummary

    def to_dict(self) -> dict:
        return {"type": "single", "report": self.report.to_dict()}


@dataclass(frozen=True)
class ClusterMarker:
    count: int
    centroid: GeoPoint
    members: tuple[ReportSummary, ...]

    def to_dict(self) -> dict:
        return {
            "type": "cluster",
            "count": self.count,
            "lng": self.centroid.longitude,
            "lat": self.centroid.latitude,
            "items": [m.to_dict() for m in self.members],
        }


ClusterItem = SingleMarker | ClusterMarker


def _centroid(points: Sequence[GeoPoint]) -> GeoPoint:
    n = len(points)
    return GeoPoint(
        longitude=sum(p.longitude for p in points) / n,
        latitude=sum(p.latitude for p in points) / n,
    )


def cluster_markers(reports: Iterable[ReportSummary], cell_size: float) -> list[ClusterItem]:
    """Reduce map markers: one marker per occupied grid cell.

    A cell holding a single report yields that report; otherwise a cluster
    positioned at the mean of its members' coordinates.
    """
    buckets = bucket_points(((r.location, r) for r in reports), cell_size)

    items: list[ClusterItem] = []
    for members in buckets.values():
        if len(members) == 1:
            items.append(SingleMarker(members[0]))
        else:
            items.append(ClusterMarker(
                count=len(members),
                centroid=_centroid([m.location for m in members]),
                members=tuple(members),
            ))
    return items
