"""Tests for grid bucketing, the zoom policy and marker clustering."""

from __future__ import annotations

import random

import pytest

from aquawatch.core.geo import GeoPoint
from aquawatch.core.grid import (
    ClusterMarker,
    SingleMarker,
    ZoomCellPolicy,
    bucket_points,
    cluster_markers,
    grid_key,
)

from conftest import make_summary


def _points():
    rng = random.Random(42)
    return [
        (GeoPoint(longitude=rng.uniform(-74.0, -73.0), latitude=rng.uniform(45.0, 46.0)), i)
        for i in range(200)
    ]


def test_bucket_keys_use_floor():
    buckets = bucket_points([(GeoPoint(-0.5, 0.5), "a"), (GeoPoint(0.5, -0.5), "b")], 1.0)
    assert buckets == {(-1, 0): ["a"], (0, -1): ["b"]}


def test_grid_key_uses_decimal_division():
    assert grid_key(GeoPoint(10.02, 20.03), 0.01) == (1002, 2003)


def test_bucket_membership_independent_of_order():
    points = _points()
    shuffled = list(points)
    random.Random(7).shuffle(shuffled)

    a = bucket_points(points, 0.05)
    b = bucket_points(shuffled, 0.05)

    assert set(a) == set(b)
    for key in a:
        assert set(a[key]) == set(b[key])


def test_bucket_preserves_input_order_within_cell():
    points = [(GeoPoint(1.001, 1.001), "first"), (GeoPoint(1.002, 1.002), "second")]
    assert bucket_points(points, 0.01) == {(100, 100): ["first", "second"]}


def test_bucket_empty_input():
    assert bucket_points([], 0.01) == {}


@pytest.mark.parametrize("bad", [0.0, -0.1, float("nan"), float("inf")])
def test_bucket_rejects_unusable_cell_size(bad):
    with pytest.raises(ValueError):
        bucket_points([(GeoPoint(0.0, 0.0), 1)], bad)


@pytest.mark.parametrize("zoom,expected", [
    (18, 0.005),
    (14, 0.005),
    (13, 0.01),
    (12, 0.01),
    (11, 0.02),
    (10, 0.02),
    (9, 0.05),
    (0, 0.05),
])
def test_default_zoom_policy(zoom, expected):
    assert ZoomCellPolicy().cell_size_for(zoom) == expected


def test_zoom_policy_is_injectable():
    policy = ZoomCellPolicy.from_pairs([(5, 0.5), (8, 0.1)], fallback=2.0)
    assert policy.cell_size_for(9) == 0.1
    assert policy.cell_size_for(6) == 0.5
    assert policy.cell_size_for(1) == 2.0


def test_cluster_markers_single_and_cluster():
    a = make_summary("a", -73.5601, 45.5001)
    b = make_summary("b", -73.5603, 45.5003)
    far = make_summary("far", -73.2, 45.9)

    items = cluster_markers([a, b, far], 0.01)

    singles = [i for i in items if isinstance(i, SingleMarker)]
    clusters = [i for i in items if isinstance(i, ClusterMarker)]
    assert [s.report.id for s in singles] == ["far"]
    assert len(clusters) == 1

    cluster = clusters[0]
    assert cluster.count == 2
    assert [m.id for m in cluster.members] == ["a", "b"]
    # Centroid is the mean of member coordinates, not the cell center.
    assert cluster.centroid.longitude == pytest.approx(-73.5602)
    assert cluster.centroid.latitude == pytest.approx(45.5002)


def test_cluster_marker_serialization():
    a = make_summary("a", 1.0, 1.0)
    b = make_summary("b", 1.002, 1.004)
    (item,) = cluster_markers([a, b], 0.05)
    data = item.to_dict()
    assert data["type"] == "cluster"
    assert data["count"] == 2
    assert [i["id"] for i in data["items"]] == ["a", "b"]
    # Members use the same GeoJSON location shape as /reports items.
    assert data["items"][0]["location"] == {"type": "Point", "coordinates": [1.0, 1.0]}

    (single,) = cluster_markers([a], 0.05)
    assert single.to_dict()["report"]["location"]["coordinates"] == [1.0, 1.0]


def test_cluster_markers_empty():
    assert cluster_markers([], 0.01) == []
