"""Daily snapshot aggregation.

Each completed calendar day is represented by the last check run observed on
that day. A date's snapshot is written once and never revised, even if more
runs for that date show up later. Days whose runs were evicted from the
rolling history before aggregation ran are simply never captured.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable

from .dates import calendar_date
from .models import CheckRun, DailySnapshot, DailySummary

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAILY_SNAPSHOTS = 60


def derive_daily_snapshots(
    history: Iterable[CheckRun],
    existing_archive: Iterable[DailySnapshot],
    timezone: str,
    today: str,
    max_snapshots: int = DEFAULT_MAX_DAILY_SNAPSHOTS,
) -> list[DailySnapshot]:
    """Merge snapshots for completed days into the daily archive.

    Args:
        history: Check runs in any order.
        existing_archive: Previously recorded snapshots; these always win.
        timezone: IANA timezone used to bucket runs into calendar dates.
        today: Current date key (YYYY-MM-DD) in ``timezone``; this day and any
            later date are skipped because they are not complete.
        max_snapshots: Archive capacity; the oldest dates are dropped.

    Returns:
        The updated archive, newest date first.
    """
    archive: dict[str, DailySnapshot] = {}
    for snapshot in existing_archive:
        archive.setdefault(snapshot.calendar_date, snapshot)

    runs_by_day: dict[str, list[CheckRun]] = defaultdict(list)
    for run in history:
        runs_by_day[calendar_date(run.observed_at, timezone)].append(run)

    for day in sorted(runs_by_day):
        if day >= today or day in archive:
            continue
        latest = max(runs_by_day[day], key=lambda run: run.observed_at)
        archive[day] = DailySnapshot(
            calendar_date=day,
            observed_at=latest.observed_at,
            results=latest.results,
            summary=DailySummary.from_results(latest.results),
        )
        logger.info("Added daily snapshot for %s", day)

    ordered = sorted(archive.values(), key=lambda snapshot: snapshot.calendar_date, reverse=True)
    return ordered[:max_snapshots]
