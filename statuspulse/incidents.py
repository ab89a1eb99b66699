"""Incident ledger: one record per failing target per calendar day."""

import logging
from collections.abc import Iterable

from .dates import calendar_date
from .models import CheckRun, Incident, Outcome

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCIDENTS = 100


def record_incidents(
    run: CheckRun,
    existing_ledger: Iterable[Incident],
    timezone: str,
    max_incidents: int = DEFAULT_MAX_INCIDENTS,
) -> list[Incident]:
    """Add incidents for DOWN results that are not yet recorded for the day.

    The first failure of a target on a given date is the representative
    record; later failures on the same date are not merged or counted.

    Args:
        run: The check run to inspect.
        existing_ledger: Current ledger, newest first.
        timezone: IANA timezone used to compute the incident date.
        max_incidents: Ledger capacity; the oldest records are dropped.

    Returns:
        The updated ledger, newest first.
    """
    ledger = list(existing_ledger)
    day = calendar_date(run.observed_at, timezone)
    seen = {incident.key for incident in ledger}

    new_incidents: list[Incident] = []
    for result in run.results:
        if result.outcome is not Outcome.DOWN:
            continue
        if (result.url, day) in seen:
            continue
        seen.add((result.url, day))
        new_incidents.append(
            Incident(
                calendar_date=day,
                observed_at=run.observed_at,
                target_url=result.url,
                target_name=result.name,
                status_code=result.status_code,
                error=result.error or result.status_text,
                response_time_ms=result.response_time_ms,
            )
        )
        logger.info("Recorded incident for %s on %s", result.name, day)

    return (new_incidents + ledger)[:max_incidents]
