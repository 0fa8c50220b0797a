"""Tests for ServerStats and recent activity tracking."""

from __future__ import annotations

import time

from aquawatch.core.stats import ServerStats


def test_initial_stats():
    stats = ServerStats()
    snap = stats.snapshot()
    assert snap["reports_received"] == 0
    assert snap["queries"] == {}
    assert snap["recent_activity"]["submissions"] == 0
    assert snap["recent_activity"]["active_reporters"] == 0


def test_record_submission():
    stats = ServerStats()
    stats.record_submission("user-a")
    stats.record_submission("user-b")
    stats.record_submission("user-a")
    stats.record_submission(None)

    snap = stats.snapshot()
    assert snap["reports_received"] == 4
    assert snap["recent_activity"]["submissions"] == 4
    assert snap["recent_activity"]["active_reporters"] == 2


def test_stale_submissions_pruned():
    """Submissions older than the active window drop out of recent activity."""
    stats = ServerStats(active_window_seconds=0.1)
    stats.record_submission("user-c")

    snap = stats.snapshot()
    assert snap["recent_activity"]["submissions"] == 1

    time.sleep(0.15)

    snap = stats.snapshot()
    assert snap["recent_activity"]["submissions"] == 0
    assert snap["recent_activity"]["active_reporters"] == 0
    # Lifetime counters are unaffected.
    assert snap["reports_received"] == 1


def test_stored_rejected_and_error_counters():
    stats = ServerStats()
    stats.record_stored(5)
    stats.record_rejected(2)
    stats.record_status_change()
    stats.record_storage_error()

    snap = stats.snapshot()
    assert snap["reports_stored"] == 5
    assert snap["reports_rejected"] == 2
    assert snap["status_changes"] == 1
    assert snap["storage_errors"] == 1


def test_query_counters():
    stats = ServerStats()
    stats.record_query("hotspots")
    stats.record_query("hotspots")
    stats.record_query("list")

    assert stats.snapshot()["queries"] == {"hotspots": 2, "list": 1}
