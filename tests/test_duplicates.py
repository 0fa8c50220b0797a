"""Tests for duplicate report grouping."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from aquawatch.core.duplicates import day_bounds, find_duplicate_groups, reference_tz
from aquawatch.core.geo import meters_to_degrees

from conftest import make_summary

MAY_1 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
MAY_2 = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)


def test_exactly_at_radius_is_not_grouped():
    a = make_summary("a", 0.0, 0.0, MAY_1)
    b = make_summary("b", meters_to_degrees(200), 0.0, MAY_1)
    assert find_duplicate_groups([a, b]) == []


def test_just_inside_radius_is_grouped():
    a = make_summary("a", 0.0, 0.0, MAY_1)
    b = make_summary("b", meters_to_degrees(199.9), 0.0, MAY_1)
    assert find_duplicate_groups([a, b]) == [["a", "b"]]


def test_membership_is_tested_against_seed_only():
    a = make_summary("A", 0.0, 0.0, MAY_1)
    b = make_summary("B", meters_to_degrees(150), 0.0, MAY_1)
    c = make_summary("C", meters_to_degrees(300), 0.0, MAY_1)
    assert find_duplicate_groups([a, b, c]) == [["A", "B"]]


def test_result_depends_on_input_order():
    a = make_summary("A", 0.0, 0.0, MAY_1)
    b = make_summary("B", meters_to_degrees(150), 0.0, MAY_1)
    c = make_summary("C", meters_to_degrees(300), 0.0, MAY_1)
    # Seeding with B pulls in both neighbours.
    assert find_duplicate_groups([b, a, c]) == [["B", "A", "C"]]


def test_multiple_groups_and_isolated_points():
    near = meters_to_degrees(50)
    reports = [
        make_summary("x1", -73.60, 45.50, MAY_1),
        make_summary("y1", -73.50, 45.50, MAY_1),
        make_summary("lonely", -73.00, 45.00, MAY_1),
        make_summary("x2", -73.60 + near, 45.50, MAY_1),
        make_summary("y2", -73.50, 45.50 + near, MAY_1),
    ]
    assert find_duplicate_groups(reports) == [["x1", "x2"], ["y1", "y2"]]


def test_day_filter_restricts_input():
    a = make_summary("a", 1.0, 1.0, MAY_1)
    b = make_summary("b", 1.0, 1.0, MAY_1.replace(hour=23, minute=59))
    c = make_summary("c", 1.0, 1.0, MAY_2)
    assert find_duplicate_groups([a, b, c], date(2024, 5, 1)) == [["a", "b"]]
    assert find_duplicate_groups([a, b, c], date(2024, 5, 2)) == []


def test_same_day_required_without_day_filter():
    a = make_summary("a", 1.0, 1.0, MAY_1)
    b = make_summary("b", 1.0, 1.0, MAY_2)
    c = make_summary("c", 1.0, 1.0, MAY_2.replace(hour=15))
    assert find_duplicate_groups([a, b, c]) == [["b", "c"]]


def test_distance_only_mode_ignores_dates():
    a = make_summary("a", 1.0, 1.0, MAY_1)
    b = make_summary("b", 1.0, 1.0, MAY_2)
    assert find_duplicate_groups([a, b], same_day_only=False) == [["a", "b"]]


def test_days_follow_reference_timezone():
    montreal = timezone(timedelta(hours=-4))
    # 02:00 UTC on May 2 is still May 1 in Montreal.
    late = make_summary("late", 1.0, 1.0, datetime(2024, 5, 2, 2, 0, tzinfo=timezone.utc))
    early = make_summary("early", 1.0, 1.0, datetime(2024, 5, 1, 14, 0, tzinfo=timezone.utc))

    assert find_duplicate_groups([early, late], tz=montreal) == [["early", "late"]]
    assert find_duplicate_groups([early, late]) == []
    assert find_duplicate_groups([early, late], date(2024, 5, 1), tz=montreal) == [["early", "late"]]


def test_custom_radius():
    a = make_summary("a", 0.0, 0.0, MAY_1)
    b = make_summary("b", meters_to_degrees(500), 0.0, MAY_1)
    assert find_duplicate_groups([a, b]) == []
    assert find_duplicate_groups([a, b], radius_m=600) == [["a", "b"]]


def test_day_bounds():
    start, end = day_bounds(date(2024, 5, 1))
    assert start == datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert end == datetime(2024, 5, 2, tzinfo=timezone.utc)


def test_reference_tz():
    assert reference_tz("UTC") is timezone.utc


def test_empty_input():
    assert find_duplicate_groups([]) == []
    assert find_duplicate_groups([], date(2024, 5, 1)) == []
