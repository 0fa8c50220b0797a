"""Tests for the report processor."""

from __future__ import annotations

import pytest

from aquawatch.core.models import ReportStatus, ReportSubmission
from aquawatch.core.processor import NOT_FOUND, ReportProcessor
from aquawatch.core.stats import ServerStats


@pytest.fixture
def stats():
    return ServerStats()


@pytest.fixture
def processor(storage, stats):
    return ReportProcessor(storage=storage, stats=stats, max_notes_length=50, max_photos=2)


@pytest.mark.asyncio
async def test_submit_stores_pending_report(processor, storage, stats):
    report, error = await processor.submit(ReportSubmission(
        latitude=45.5, longitude=-73.5, notes="  oily film  ", photos=("img-1",),
        reporter_id="citizen-1",
    ))
    assert error == ""
    assert report.status is ReportStatus.PENDING
    assert report.notes == "oily film"
    assert report.location.longitude == -73.5
    assert await storage.get(report.id) == report

    snap = stats.snapshot()
    assert snap["reports_received"] == 1
    assert snap["reports_stored"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("sub,fragment", [
    (ReportSubmission(latitude=91.0, longitude=0.0), "lat"),
    (ReportSubmission(latitude=0.0, longitude=-180.5), "lng"),
    (ReportSubmission(latitude=float("nan"), longitude=0.0), "lat"),
    (ReportSubmission(latitude=0.0, longitude=0.0, notes="x" * 51), "notes"),
    (ReportSubmission(latitude=0.0, longitude=0.0, photos=("a", "b", "c")), "photos"),
])
async def test_submit_rejects_invalid(processor, storage, stats, sub, fragment):
    report, error = await processor.submit(sub)
    assert report is None
    assert fragment in error
    assert len(storage) == 0
    assert stats.snapshot()["reports_rejected"] == 1


@pytest.mark.asyncio
async def test_change_status(processor, storage):
    report, _ = await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    updated, error = await processor.change_status(report.id, ReportStatus.FLAGGED)
    assert error == ""
    assert updated.status is ReportStatus.FLAGGED
    assert (await storage.get(report.id)).status is ReportStatus.FLAGGED
    # The original snapshot is left untouched.
    assert report.status is ReportStatus.PENDING


@pytest.mark.asyncio
async def test_unknown_report(processor):
    assert await processor.change_status("nope", ReportStatus.FLAGGED) == (None, NOT_FOUND)
    assert await processor.assign("nope", "ngo-3") == (None, NOT_FOUND)
    assert await processor.resolve("nope", "done") == (None, NOT_FOUND)


@pytest.mark.asyncio
async def test_assign(processor):
    report, _ = await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    updated, error = await processor.assign(report.id, " ngo-3 ")
    assert error == ""
    assert updated.assignee == "ngo-3"

    _, error = await processor.assign(report.id, "   ")
    assert error == "assignee is required"


@pytest.mark.asyncio
async def test_resolve(processor):
    report, _ = await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    resolved, error = await processor.resolve(report.id, "lab confirmed E. coli")
    assert error == ""
    assert resolved.status is ReportStatus.VERIFIED
    assert resolved.resolution_notes == "lab confirmed E. coli"
    assert resolved.resolved_at is not None

    _, error = await processor.resolve(report.id, "", ReportStatus.PENDING)
    assert "verified or rejected" in error


class _BrokenDiskStorage:
    """Accepts reads, fails every write."""

    def __len__(self) -> int:
        return 0

    async def store(self, report):
        raise OSError("disk full")

    async def update(self, report):
        raise OSError("disk full")

    async def get(self, report_id):
        return None


@pytest.mark.asyncio
async def test_storage_failure_is_counted_and_raised(stats):
    processor = ReportProcessor(storage=_BrokenDiskStorage(), stats=stats)

    with pytest.raises(OSError):
        await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    snap = stats.snapshot()
    assert snap["storage_errors"] == 1
    assert snap["reports_received"] == 1
    assert snap["reports_stored"] == 0


@pytest.mark.asyncio
async def test_add_comment(processor, storage, stats):
    report, _ = await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    comment, error = await processor.add_comment(report.id, "  turbid again  ", author_id="ngo-3")
    assert error == ""
    assert comment.content == "turbid again"
    assert comment.author_id == "ngo-3"
    assert await storage.list_comments(report.id) == [comment]
    assert stats.snapshot()["comments_added"] == 1


@pytest.mark.asyncio
async def test_add_comment_rejects_invalid(processor, storage):
    report, _ = await processor.submit(ReportSubmission(latitude=1.0, longitude=1.0))

    assert await processor.add_comment(report.id, "  ") == (None, "comment content is required")
    _, error = await processor.add_comment(report.id, "x" * 51)
    assert "longer than 50" in error
    assert await processor.add_comment("nope", "hello") == (None, NOT_FOUND)
    assert await storage.list_comments(report.id) == []
