"""Read-side view model for the status page.

Turns the persisted records (current run, daily archive, incident ledger)
into the overall badge, per-target uptime strips and the incident list. Only
reads; nothing here touches storage.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import Config
from .dates import previous_dates
from .models import CheckRun, DailySnapshot, Incident, Outcome, ProbeResult, format_instant

DEFAULT_STRIP_DAYS = 60


class StatusLevel(str, Enum):
    """Presentation-time status derived from the stored outcome."""

    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


class OverallLevel(str, Enum):
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    DOWN = "down"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class OverallStatus:
    level: OverallLevel
    label: str
    failing: tuple[str, ...] = ()


@dataclass(frozen=True)
class DayCell:
    """One day in a target's uptime strip."""

    date: str
    level: StatusLevel
    is_today: bool = False


@dataclass(frozen=True)
class IncidentGroup:
    date: str
    incidents: tuple[Incident, ...]


def status_level(result: ProbeResult | None) -> StatusLevel:
    """Derive UP/DEGRADED/DOWN from a stored result.

    A 4xx response only reaches the store as UP when the DOWN threshold is
    raised to 500; the page shows those as degraded.
    """
    if result is None:
        return StatusLevel.UNKNOWN
    if result.outcome is Outcome.DOWN:
        return StatusLevel.DOWN
    if result.status_code is not None and 400 <= result.status_code < 500:
        return StatusLevel.DEGRADED
    return StatusLevel.UP


def overall_status(run: CheckRun | None) -> OverallStatus:
    """Compute the overall badge from the latest run."""
    if run is None:
        return OverallStatus(OverallLevel.UNKNOWN, "Status unavailable")

    levels = [(result, status_level(result)) for result in run.results]
    failing = tuple(result.name for result, level in levels if level is StatusLevel.DOWN)

    if all(level is StatusLevel.UP for _, level in levels):
        return OverallStatus(OverallLevel.OPERATIONAL, "All Systems Operational")
    if failing:
        verb = "is" if len(failing) == 1 else "are"
        return OverallStatus(OverallLevel.DOWN, f"{', '.join(failing)} {verb} down", failing)
    return OverallStatus(OverallLevel.DEGRADED, "Degraded Performance")


def uptime_strip(
    current: ProbeResult,
    archive: Iterable[DailySnapshot],
    today: str,
    days: int = DEFAULT_STRIP_DAYS,
) -> list[DayCell]:
    """Build one target's uptime strip, oldest day first.

    Past days come from the daily archive (UNKNOWN when no snapshot exists or
    the target was not part of it); today comes from the current result.
    """
    by_date = {snapshot.calendar_date: snapshot for snapshot in archive}
    cells: list[DayCell] = []
    for day in previous_dates(today, days):
        if day == today:
            cells.append(DayCell(day, status_level(current), is_today=True))
            continue
        snapshot = by_date.get(day)
        result = snapshot.result_for(current.url) if snapshot is not None else None
        cells.append(DayCell(day, status_level(result)))
    return cells


def group_incidents(ledger: Iterable[Incident]) -> list[IncidentGroup]:
    """Group incidents by date, most recent date first.

    Within a date, ledger order (newest first) is kept.
    """
    groups: dict[str, list[Incident]] = {}
    for incident in ledger:
        groups.setdefault(incident.calendar_date, []).append(incident)
    return [IncidentGroup(day, tuple(groups[day])) for day in sorted(groups, reverse=True)]


def _strip_uptime(cells: Sequence[DayCell]) -> float | None:
    """Share of known days that were not DOWN, as a percentage."""
    known = [cell for cell in cells if cell.level is not StatusLevel.UNKNOWN]
    if not known:
        return None
    good = sum(1 for cell in known if cell.level is not StatusLevel.DOWN)
    return round(good / len(known) * 100, 2)


def build_dashboard(
    run: CheckRun | None,
    archive: Sequence[DailySnapshot],
    ledger: Sequence[Incident],
    config: Config,
    today: str,
) -> dict[str, Any]:
    """Assemble the JSON payload consumed by the dashboard page."""
    overall = overall_status(run)
    services = []
    if run is not None:
        for result in run.results:
            cells = uptime_strip(result, archive, today, days=config.dashboard.days)
            services.append({
                "name": result.name,
                "url": result.url,
                "level": status_level(result).value,
                "status_code": result.status_code,
                "status_text": result.status_text,
                "response_time_ms": result.response_time_ms,
                "error": result.error,
                "uptime_percent": _strip_uptime(cells),
                "days": [{"date": cell.date, "level": cell.level.value} for cell in cells],
            })

    return {
        "title": config.dashboard.title,
        "description": config.dashboard.description,
        "timezone": config.settings.timezone,
        "today": today,
        "last_updated": format_instant(run.observed_at) if run is not None else None,
        "overall": {
            "level": overall.level.value,
            "label": overall.label,
            "failing": list(overall.failing),
        },
        "services": services,
        "incidents": [
            {
                "date": group.date,
                "incidents": [
                    {
                        "name": incident.target_name,
                        "url": incident.target_url,
                        "status_code": incident.status_code,
                        "error": incident.error,
                        "observed_at": format_instant(incident.observed_at),
                    }
                    for incident in group.incidents
                ],
            }
            for group in group_incidents(ledger)
        ],
    }
