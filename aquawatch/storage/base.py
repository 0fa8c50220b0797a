"""Storage interface (port) for persisting and querying reports."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from aquawatch.core.models import Comment, Report
    from aquawatch.core.query import ReportFilter


class ReportStorage(Protocol):
    """Port: persists reports and their comments, answers filtered, paged queries."""

    def __len__(self) -> int: ...

    async def store(self, report: Report) -> None: ...

    async def update(self, report: Report) -> None: ...

    async def get(self, report_id: str) -> Report | None: ...

    async def find(
        self,
        report_filter: ReportFilter,
        skip: int = 0,
        limit: int | None = None,
        newest_first: bool = True,
    ) -> list[Report]: ...

    async def count(self, report_filter: ReportFilter) -> int: ...

    async def add_comment(self, comment: Comment) -> None: ...

    async def list_comments(self, report_id: str) -> list[Comment]: ...
