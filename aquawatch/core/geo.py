"""Geo value types and planar distance helpers.

Distances here are deliberately approximate: raw (longitude, latitude)
degrees are treated as planar coordinates, with no latitude correction and
no great-circle math. That is good enough from city-block to city scale,
which is all the map clustering and duplicate review need.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog

log = structlog.get_logger()

# Equatorial approximation used to turn a radius in meters into degrees.
METERS_PER_DEGREE = 111_000.0


class InvalidBoundingBox(ValueError):
    """A bounding box that is not four finite numbers with min <= max."""


@dataclass(frozen=True)
class GeoPoint:
    longitude: float
    latitude: float

    def __post_init__(self) -> None:
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude {self.longitude} out of range [-180, 180]")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude {self.latitude} out of range [-90, 90]")

    def to_dict(self) -> dict:
        return {"lng": self.longitude, "lat": self.latitude}

    def to_geojson(self) -> dict:
        """GeoJSON Point, the shape stored reports carry their location in."""
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}


@dataclass(frozen=True)
class BoundingBox:
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def __post_init__(self) -> None:
        values = (self.min_lng, self.min_lat, self.max_lng, self.max_lat)
        if not all(math.isfinite(v) for v in values):
            raise InvalidBoundingBox(f"non-finite bbox value in {values}")
        if self.min_lng > self.max_lng or self.min_lat > self.max_lat:
            raise InvalidBoundingBox(f"bbox min exceeds max in {values}")

    def as_list(self) -> list[float]:
        return [self.min_lng, self.min_lat, self.max_lng, self.max_lat]


def distance_approx(a: GeoPoint, b: GeoPoint) -> float:
    """Planar Euclidean distance in degrees between two points."""
    return math.hypot(a.longitude - b.longitude, a.latitude - b.latitude)


def meters_to_degrees(meters: float) -> float:
    return meters / METERS_PER_DEGREE


def box_contains(box: BoundingBox, p: GeoPoint) -> bool:
    """Inclusive axis-aligned containment."""
    return (box.min_lng <= p.longitude <= box.max_lng
            and box.min_lat <= p.latitude <= box.max_lat)


def parse_bbox(raw: str | None) -> BoundingBox | None:
    """Parse "minLng,minLat,maxLng,maxLat" into a BoundingBox.

    Anything malformed yields None: a bad bbox drops the spatial filter
    instead of failing the request.
    """
    if raw is None or not raw.strip():
        return None

    parts = raw.split(",")
    if len(parts) != 4:
        log.debug("bbox_ignored", bbox=raw, reason="expected 4 values")
        return None

    try:
        return BoundingBox(*(float(p) for p in parts))
    except ValueError as exc:
        log.debug("bbox_ignored", bbox=raw, reason=str(exc))
        return None
