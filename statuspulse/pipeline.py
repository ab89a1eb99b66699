"""One status-check pipeline run: check, aggregate, persist."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .config import Config
from .daily import derive_daily_snapshots
from .dates import calendar_date
from .history import RollingHistory
from .incidents import record_incidents
from .models import CheckRun, DailySnapshot, Incident
from .monitor import run_checks
from .storage import StateStore

logger = logging.getLogger(__name__)

Checker = Callable[..., CheckRun]


@dataclass(frozen=True)
class PipelineResult:
    """Everything one run produced and committed."""

    run: CheckRun
    history: list[CheckRun]
    daily: list[DailySnapshot]
    incidents: list[Incident]
    new_snapshot_dates: list[str]
    new_incident_count: int

    @property
    def down_count(self) -> int:
        return sum(1 for r in self.run.results if not r.is_up)


def run_pipeline(config: Config, store: StateStore, checker: Checker = run_checks) -> PipelineResult:
    """Run all checks once and update every persisted record.

    Target downtime is data, not an error. Only a failure to persist state
    aborts the run. Records are written history, daily, incidents, then the
    current status, so a reader never sees a current run whose other records
    were not saved.

    Args:
        config: Loaded configuration.
        store: Persistence for the four status records.
        checker: Check-run function, replaceable for testing.

    Returns:
        PipelineResult describing the committed state.

    Raises:
        StorageError: If any record cannot be written.
    """
    settings = config.settings
    store.ensure_dir()

    logger.info(
        "Checking %d targets (timezone %s)",
        len(config.targets),
        settings.timezone,
    )
    run = checker(
        config.targets,
        concurrent=settings.concurrent,
        max_workers=settings.max_workers,
        down_status_threshold=settings.down_status_threshold,
    )

    history = RollingHistory(store.load_history(), capacity=settings.history_capacity)
    history.append(run)
    store.save_history(history.all())

    today = calendar_date(run.observed_at, settings.timezone)
    existing_daily = store.load_daily()
    known_dates = {snapshot.calendar_date for snapshot in existing_daily}
    daily = derive_daily_snapshots(
        history.all(),
        existing_daily,
        settings.timezone,
        today,
        max_snapshots=settings.daily_capacity,
    )
    store.save_daily(daily)
    new_dates = [snapshot.calendar_date for snapshot in daily if snapshot.calendar_date not in known_dates]

    existing_incidents = store.load_incidents()
    known_keys = {incident.key for incident in existing_incidents}
    incidents = record_incidents(
        run,
        existing_incidents,
        settings.timezone,
        max_incidents=settings.incident_capacity,
    )
    store.save_incidents(incidents)
    new_incident_count = sum(1 for incident in incidents if incident.key not in known_keys)

    store.save_current(run)

    result = PipelineResult(
        run=run,
        history=history.all(),
        daily=daily,
        incidents=incidents,
        new_snapshot_dates=new_dates,
        new_incident_count=new_incident_count,
    )
    logger.info(
        "Run complete: %d up, %d down, %d new incident(s), %d new daily snapshot(s)",
        len(run.results) - result.down_count,
        result.down_count,
        new_incident_count,
        len(new_dates),
    )
    return result
