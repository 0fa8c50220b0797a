"""File-based storage implementation.

Every write appends a full JSON snapshot of the report to a JSON Lines file
partitioned by the report's creation day:

    base_dir/YYYY/MM/DD/reports.jsonl
    base_dir/YYYY/MM/DD/comments.jsonl

On startup all partitions are replayed in order and the last snapshot of
each report id wins. Comments are append-only and land in the partition of
the day they were written. Queries are answered from the in-memory index.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from aquawatch.core.models import Comment, Report

if TYPE_CHECKING:
    from aquawatch.core.query import ReportFilter

log = structlog.get_logger()

_REPORTS_FILE = "reports.jsonl"
_COMMENTS_FILE = "comments.jsonl"


class FileReportStorage:
    """ReportStorage backed by day-partitioned snapshot files on disk."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._reports: dict[str, Report] = {}
        self._comments: dict[str, list[Comment]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self._load()

    def __len__(self) -> int:
        return len(self._reports)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def _day_dir(self, dt: datetime) -> Path:
        """Return the partition directory for a day."""
        path = self._base_dir / f"{dt.year:04d}" / f"{dt.month:02d}" / f"{dt.day:02d}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _read_lines(self, filename: str, parse):
        """Yield parsed records from every partition, skipping unreadable lines."""
        files = sorted(self._base_dir.glob(f"*/*/*/{filename}"))
        skipped = 0
        for path in files:
            with open(path) as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        record = parse(json.loads(line))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                        skipped += 1
                        continue
                    yield record
        if skipped:
            log.warning("corrupt_lines_skipped", file=filename, skipped=skipped)

    def _load(self) -> None:
        for report in self._read_lines(_REPORTS_FILE, Report.from_dict):
            self._reports[report.id] = report
        comments = 0
        for comment in self._read_lines(_COMMENTS_FILE, Comment.from_dict):
            self._comments[comment.report_id].append(comment)
            comments += 1

        log.info("reports_loaded", count=len(self._reports), comments=comments)

    def _append(self, dt: datetime, filename: str, record: dict) -> None:
        path = self._day_dir(dt) / filename
        with open(path, "a") as f:
            f.write(json.dumps(record, separators=(",", ":")) + "\n")

    async def store(self, report: Report) -> None:
        """Store a new report."""
        async with self._lock:
            self._append(report.created_at, _REPORTS_FILE, report.to_dict())
            self._reports[report.id] = report
        log.debug("report_written", report_id=report.id)

    async def update(self, report: Report) -> None:
        """Persist a new snapshot of an existing report."""
        async with self._lock:
            if report.id not in self._reports:
                raise KeyError(report.id)
            self._append(report.created_at, _REPORTS_FILE, report.to_dict())
            self._reports[report.id] = report
        log.debug("report_updated", report_id=report.id)

    async def get(self, report_id: str) -> Report | None:
        return self._reports.get(report_id)

    async def find(
        self,
        report_filter: ReportFilter,
        skip: int = 0,
        limit: int | None = None,
        newest_first: bool = True,
    ) -> list[Report]:
        """Return matching reports ordered by creation time, then paged."""
        matches = [r for r in self._reports.values() if report_filter.matches(r)]
        matches.sort(key=lambda r: (r.created_at, r.id), reverse=newest_first)
        end = None if limit is None else skip + limit
        return matches[skip:end]

    async def count(self, report_filter: ReportFilter) -> int:
        return sum(1 for r in self._reports.values() if report_filter.matches(r))

    async def add_comment(self, comment: Comment) -> None:
        """Append a comment to an existing report."""
        async with self._lock:
            if comment.report_id not in self._reports:
                raise KeyError(comment.report_id)
            self._append(comment.created_at, _COMMENTS_FILE, comment.to_dict())
            self._comments[comment.report_id].append(comment)
        log.debug("comment_written", report_id=comment.report_id, comment_id=comment.id)

    async def list_comments(self, report_id: str) -> list[Comment]:
        """Comments on a report, oldest first."""
        return list(self._comments.get(report_id, []))
