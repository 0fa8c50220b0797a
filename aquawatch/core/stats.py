"""Server statistics and recent-activity tracking.

Tracks in-memory counters and a sliding window of recent submissions.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque


class ServerStats:
    """Thread-safe server statistics.

    ``recent_submissions`` counts reports accepted within the last
    ``active_window_seconds``; ``active_reporters`` counts the distinct
    reporter ids behind them (anonymous submissions are not counted there).
    """

    def __init__(self, active_window_seconds: float = 3600.0) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._active_window = active_window_seconds

        # Counters
        self.reports_received: int = 0
        self.reports_stored: int = 0
        self.reports_rejected: int = 0
        self.status_changes: int = 0
        self.storage_errors: int = 0
        self.comments_added: int = 0
        self.queries: Counter[str] = Counter()

        # (time.monotonic(), reporter_id or None), oldest first
        self._recent: deque[tuple[float, str | None]] = deque()

    def record_submission(self, reporter_id: str | None = None) -> None:
        """Record that a report submission was received."""
        now = time.monotonic()
        with self._lock:
            self.reports_received += 1
            self._recent.append((now, reporter_id))

    def record_stored(self, count: int = 1) -> None:
        with self._lock:
            self.reports_stored += count

    def record_rejected(self, count: int = 1) -> None:
        with self._lock:
            self.reports_rejected += count

    def record_status_change(self) -> None:
        with self._lock:
            self.status_changes += 1

    def record_comment(self) -> None:
        with self._lock:
            self.comments_added += 1

    def record_storage_error(self) -> None:
        with self._lock:
            self.storage_errors += 1

    def record_query(self, kind: str) -> None:
        with self._lock:
            self.queries[kind] += 1

    def _prune_stale(self, now: float) -> None:
        """Drop submissions older than the active window. Caller holds lock."""
        cutoff = now - self._active_window
        while self._recent and self._recent[0][0] < cutoff:
            self._recent.popleft()

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        now_mono = time.monotonic()
        with self._lock:
            self._prune_stale(now_mono)
            reporters = {rid for _, rid in self._recent if rid}

            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "reports_received": self.reports_received,
                "reports_stored": self.reports_stored,
                "reports_rejected": self.reports_rejected,
                "status_changes": self.status_changes,
                "storage_errors": self.storage_errors,
                "comments_added": self.comments_added,
                "queries": dict(self.queries),
                "recent_activity": {
                    "submissions": len(self._recent),
                    "active_reporters": len(reporters),
                    "window_seconds": self._active_window,
                },
            }
