"""Data models for probe results, check runs, daily snapshots and incidents.

All records are immutable. ``to_dict`` produces the canonical JSON shape that
is persisted to disk; ``from_dict`` accepts that shape and also normalizes
older record layouts (camelCase keys, ``checks`` instead of ``results``,
epoch-millisecond timestamps) so the rest of the code only sees one schema.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Epoch values above this are treated as milliseconds (year 5138 in seconds).
_EPOCH_MS_CUTOFF = 100_000_000_000


class Outcome(str, Enum):
    """Persisted outcome of a single probe."""

    UP = "up"
    DOWN = "down"


def classify_status(status_code: int | None, down_status_threshold: int = 400) -> Outcome:
    """Classify an HTTP status code.

    Up iff a response was received with a status in [200, threshold).
    A missing status code means no response arrived.
    """
    if status_code is None:
        return Outcome.DOWN
    if 200 <= status_code < down_status_threshold:
        return Outcome.UP
    return Outcome.DOWN


def format_instant(instant: datetime) -> str:
    """Format an instant as an ISO 8601 UTC string with a trailing Z."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_instant(value: Any) -> datetime:
    """Parse an ISO string or an epoch number (seconds or milliseconds).

    Raises:
        ValueError: If the value cannot be interpreted as an instant.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                raise ValueError(f"Invalid timestamp: {value!r}")
            seconds = value / 1000 if abs(value) >= _EPOCH_MS_CUTOFF else value
            return datetime.fromtimestamp(seconds, UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    raise ValueError(f"Invalid timestamp: {value!r}")


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one HTTP check against one target.

    Attributes:
        name: Display name of the target.
        url: Target URL.
        outcome: UP or DOWN.
        status_code: HTTP status code, or None if no response was received.
        status_text: Reason phrase, or a short failure label.
        response_time_ms: Milliseconds from dispatch to completion or abort.
        error: Transport error description, None when a response arrived.
        observed_at: When the probe was dispatched (UTC).
    """

    name: str
    url: str
    outcome: Outcome
    status_code: int | None
    status_text: str
    response_time_ms: int
    error: str | None
    observed_at: datetime

    @property
    def is_up(self) -> bool:
        return self.outcome is Outcome.UP

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "outcome": self.outcome.value,
            "status_code": self.status_code,
            "status_text": self.status_text,
            "response_time_ms": self.response_time_ms,
            "error": self.error,
            "observed_at": format_instant(self.observed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_observed_at: datetime | None = None) -> "ProbeResult":
        """Build a ProbeResult from a persisted record.

        Args:
            data: Record dictionary.
            default_observed_at: Used when the record has no timestamp of its own
                (older layouts only timestamped the enclosing run).

        Raises:
            ValueError: If required fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError("Probe result must be an object")

        url = _first(data, "url")
        if not url:
            raise ValueError("Probe result is missing 'url'")

        status_code = _optional_int(_first(data, "status_code", "statusCode", "httpStatusCode"))
        raw_status = data.get("status")
        raw_outcome = _first(data, "outcome")
        # Some layouts store the HTTP code under "status", others "up"/"down".
        if isinstance(raw_status, int) and not isinstance(raw_status, bool):
            status_code = raw_status if status_code is None else status_code
        elif isinstance(raw_status, str) and raw_outcome is None:
            raw_outcome = raw_status
        if raw_outcome is None and "is_up" in data:
            raw_outcome = Outcome.UP.value if data["is_up"] else Outcome.DOWN.value

        if raw_outcome is None:
            outcome = classify_status(status_code)
        else:
            outcome = Outcome(str(raw_outcome).lower())

        raw_observed = _first(data, "observed_at", "observedAt", "checked_at", "timestamp")
        if raw_observed is None:
            if default_observed_at is None:
                raise ValueError("Probe result is missing a timestamp")
            observed_at = default_observed_at
        else:
            observed_at = parse_instant(raw_observed)

        error = _first(data, "error", "error_message")
        return cls(
            name=str(_first(data, "name", "url_name", "service", default=url)),
            url=str(url),
            outcome=outcome,
            status_code=status_code,
            status_text=str(_first(data, "status_text", "statusText", default="")),
            response_time_ms=int(_first(data, "response_time_ms", "responseTimeMs", "responseTime", default=0)),
            error=str(error) if error is not None else None,
            observed_at=observed_at,
        )


def _parse_results(raw: Any, observed_at: datetime) -> tuple[ProbeResult, ...]:
    if not isinstance(raw, list):
        raise ValueError("'results' must be a list")
    return tuple(ProbeResult.from_dict(item, default_observed_at=observed_at) for item in raw)


@dataclass(frozen=True)
class CheckRun:
    """One batch of probe results taken across all targets.

    ``observed_at`` is captured once at batch start and identifies the run.
    Results are in configuration order.
    """

    observed_at: datetime
    results: tuple[ProbeResult, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.results, tuple):
            object.__setattr__(self, "results", tuple(self.results))

    def to_dict(self) -> dict[str, Any]:
        return {
            "observed_at": format_instant(self.observed_at),
            "results": [r.to_dict() for r in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheckRun":
        if not isinstance(data, dict):
            raise ValueError("Check run must be an object")
        raw_observed = _first(data, "observed_at", "observedAt", "timestamp")
        if raw_observed is None:
            raise ValueError("Check run is missing 'observed_at'")
        observed_at = parse_instant(raw_observed)
        return cls(
            observed_at=observed_at,
            results=_parse_results(_first(data, "results", "checks", default=[]), observed_at),
        )


def _parse_ratio(value: Any) -> float:
    """Accept a 0-1 ratio or a legacy percentage string like "99.50%"."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            return float(text[:-1]) / 100
        return float(text)
    return float(value)


@dataclass(frozen=True)
class DailySummary:
    """Summary statistics for one daily snapshot."""

    total: int
    up: int
    down: int
    uptime_ratio: float
    avg_response_time_ms: float

    @classmethod
    def from_results(cls, results: tuple[ProbeResult, ...] | list[ProbeResult]) -> "DailySummary":
        """Summarize a single run's results. Empty input yields zeros."""
        total = len(results)
        up = sum(1 for r in results if r.outcome is Outcome.UP)
        if total == 0:
            return cls(total=0, up=0, down=0, uptime_ratio=0.0, avg_response_time_ms=0.0)
        return cls(
            total=total,
            up=up,
            down=total - up,
            uptime_ratio=up / total,
            avg_response_time_ms=sum(r.response_time_ms for r in results) / total,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "up": self.up,
            "down": self.down,
            "uptime_ratio": self.uptime_ratio,
            "avg_response_time_ms": self.avg_response_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailySummary":
        if not isinstance(data, dict):
            raise ValueError("Summary must be an object")
        total = int(data["total"])
        up = int(data["up"])
        return cls(
            total=total,
            up=up,
            down=int(_first(data, "down", default=total - up)),
            uptime_ratio=_parse_ratio(_first(data, "uptime_ratio", "uptimeRatio", "uptime", default=0.0)),
            avg_response_time_ms=float(
                _first(data, "avg_response_time_ms", "avgResponseTimeMs", "avgResponseTime", default=0.0)
            ),
        )


@dataclass(frozen=True)
class DailySnapshot:
    """The representative check run for one completed calendar day."""

    calendar_date: str
    observed_at: datetime
    results: tuple[ProbeResult, ...]
    summary: DailySummary

    def __post_init__(self) -> None:
        if not isinstance(self.results, tuple):
            object.__setattr__(self, "results", tuple(self.results))

    def result_for(self, url: str) -> ProbeResult | None:
        """Return this day's result for a target URL, if it was probed."""
        for result in self.results:
            if result.url == url:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "calendar_date": self.calendar_date,
            "observed_at": format_instant(self.observed_at),
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailySnapshot":
        if not isinstance(data, dict):
            raise ValueError("Daily snapshot must be an object")
        day = _first(data, "calendar_date", "calendarDate", "date")
        if not day:
            raise ValueError("Daily snapshot is missing 'calendar_date'")
        raw_observed = _first(data, "observed_at", "observedAt", "timestamp")
        if raw_observed is None:
            raise ValueError("Daily snapshot is missing 'observed_at'")
        observed_at = parse_instant(raw_observed)
        results = _parse_results(_first(data, "results", "checks", default=[]), observed_at)
        raw_summary = data.get("summary")
        summary = DailySummary.from_dict(raw_summary) if raw_summary else DailySummary.from_results(results)
        return cls(calendar_date=str(day), observed_at=observed_at, results=results, summary=summary)


@dataclass(frozen=True)
class Incident:
    """A recorded DOWN event, at most one per target per calendar day."""

    calendar_date: str
    observed_at: datetime
    target_url: str
    target_name: str
    status_code: int | None
    error: str
    response_time_ms: int

    @property
    def key(self) -> tuple[str, str]:
        """Deduplication key: (target URL, calendar date)."""
        return (self.target_url, self.calendar_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "calendar_date": self.calendar_date,
            "observed_at": format_instant(self.observed_at),
            "target_url": self.target_url,
            "target_name": self.target_name,
            "status_code": self.status_code,
            "error": self.error,
            "response_time_ms": self.response_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Incident":
        if not isinstance(data, dict):
            raise ValueError("Incident must be an object")
        day = _first(data, "calendar_date", "calendarDate", "date")
        url = _first(data, "target_url", "targetUrl", "url")
        if not day or not url:
            raise ValueError("Incident is missing 'calendar_date' or 'target_url'")
        raw_observed = _first(data, "observed_at", "observedAt", "timestamp")
        if raw_observed is None:
            raise ValueError("Incident is missing 'observed_at'")
        return cls(
            calendar_date=str(day),
            observed_at=parse_instant(raw_observed),
            target_url=str(url),
            target_name=str(_first(data, "target_name", "targetName", "name", "service", default=url)),
            status_code=_optional_int(_first(data, "status_code", "statusCode", "httpStatusCode")),
            error=str(_first(data, "error", default="")),
            response_time_ms=int(_first(data, "response_time_ms", "responseTimeMs", "responseTime", default=0)),
        )
