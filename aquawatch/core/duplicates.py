"""Duplicate report detection — groups same-day reports near each other.

Greedy single pass: the first unclaimed report (in input order) seeds a
group, and every later unclaimed report within DUPLICATE_RADIUS_M of the
seed joins it. Membership is always tested against the seed, never against
other members, so there is no chaining: with A-B and B-C close but A-C far,
only A and B are grouped. The result depends on input order, and the scan
is O(n^2) in the size of the (day-scoped) input.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Sequence
from zoneinfo import ZoneInfo

import structlog

from aquawatch.core.geo import distance_approx, meters_to_degrees
from aquawatch.core.models import ReportSummary, as_utc

log = structlog.get_logger()

# Two reports closer than this are candidate duplicates.
DUPLICATE_RADIUS_M = 200.0


def reference_tz(name: str) -> tzinfo:
    """Resolve the deployment's reference timezone by IANA name."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def day_bounds(day: date, tz: tzinfo = timezone.utc) -> tuple[datetime, datetime]:
    """Return [start, end) of a calendar day in the reference timezone, as UTC."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return as_utc(start), as_utc(end)


def _local_day(ts: datetime, tz: tzinfo) -> date:
    return as_utc(ts).astimezone(tz).date()


def find_duplicate_groups(
    reports: Sequence[ReportSummary],
    day: date | None = None,
    *,
    radius_m: float = DUPLICATE_RADIUS_M,
    tz: tzinfo = timezone.utc,
    same_day_only: bool = True,
) -> list[list[str]]:
    """Propose groups of report ids that likely describe the same incident.

    ``day`` restricts the input to one calendar day in ``tz``. Without it,
    ``same_day_only`` still keeps reports from different days apart; turning
    it off groups on distance alone.
    """
    if day is not None:
        start, end = day_bounds(day, tz)
        candidates = [r for r in reports if start <= as_utc(r.created_at) < end]
    else:
        candidates = list(reports)

    radius = meters_to_degrees(radius_m)
    days = [_local_day(r.created_at, tz) for r in candidates]
    claimed = [False] * len(candidates)
    groups: list[list[str]] = []

    for i, seed in enumerate(candidates):
        if claimed[i]:
            continue
        claimed[i] = True
        group = [seed.id]

        for j in range(i + 1, len(candidates)):
            if claimed[j]:
                continue
            if same_day_only and days[j] != days[i]:
                continue
            if distance_approx(seed.location, candidates[j].location) < radius:
                claimed[j] = True
                group.append(candidates[j].id)

        if len(group) >= 2:
            groups.append(group)

    log.debug("duplicate_groups_found", candidates=len(candidates),
              groups=len(groups), day=day.isoformat() if day else None)
    return groups
