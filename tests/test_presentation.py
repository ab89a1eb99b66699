"""Tests for the status page view model."""

from datetime import UTC, datetime

import pytest

from statuspulse.config import Config, DashboardConfig, TargetConfig
from statuspulse.models import CheckRun, DailySnapshot, DailySummary, Incident, Outcome, ProbeResult
from statuspulse.presentation import (
    OverallLevel,
    StatusLevel,
    build_dashboard,
    group_incidents,
    overall_status,
    status_level,
    uptime_strip,
)

OBSERVED = datetime(2025, 10, 27, 12, 0, tzinfo=UTC)


def make_result(name: str, outcome: Outcome = Outcome.UP, status_code: int | None = 200) -> ProbeResult:
    return ProbeResult(
        name=name,
        url=f"https://{name.lower()}.example.com",
        outcome=outcome,
        status_code=status_code,
        status_text="",
        response_time_ms=50,
        error=None if status_code is not None else "Connection refused",
        observed_at=OBSERVED,
    )


def make_incident(name: str, day: str, hour: int = 12) -> Incident:
    return Incident(
        calendar_date=day,
        observed_at=datetime.fromisoformat(f"{day}T{hour:02d}:00:00+00:00"),
        target_url=f"https://{name.lower()}.example.com",
        target_name=name,
        status_code=None,
        error="Connection refused",
        response_time_ms=5,
    )


def snapshot(day: str, *results: ProbeResult) -> DailySnapshot:
    return DailySnapshot(day, OBSERVED, results, DailySummary.from_results(results))


class TestStatusLevel:
    """Tests for status_level."""

    def test_missing_result_is_unknown(self) -> None:
        """No result means UNKNOWN."""
        assert status_level(None) is StatusLevel.UNKNOWN

    def test_down_outcome(self) -> None:
        """Stored DOWN stays DOWN."""
        assert status_level(make_result("A", Outcome.DOWN, None)) is StatusLevel.DOWN

    def test_up_2xx(self) -> None:
        """UP with a 2xx is UP."""
        assert status_level(make_result("A")) is StatusLevel.UP

    def test_up_4xx_is_degraded(self) -> None:
        """UP with a 4xx (threshold 500) is shown as degraded."""
        assert status_level(make_result("A", Outcome.UP, 404)) is StatusLevel.DEGRADED


class TestOverallStatus:
    """Tests for overall_status."""

    def test_no_run_is_unknown(self) -> None:
        """Without a current run the badge is unknown."""
        assert overall_status(None).level is OverallLevel.UNKNOWN

    def test_all_up(self) -> None:
        """All UP is operational."""
        status = overall_status(CheckRun(OBSERVED, (make_result("A"), make_result("B"))))
        assert status.level is OverallLevel.OPERATIONAL
        assert status.label == "All Systems Operational"

    def test_single_down_names_target(self) -> None:
        """One DOWN target is named in the label."""
        status = overall_status(CheckRun(OBSERVED, (make_result("A"), make_result("B", Outcome.DOWN, None))))
        assert status.level is OverallLevel.DOWN
        assert status.label == "B is down"
        assert status.failing == ("B",)

    def test_several_down(self) -> None:
        """Several DOWN targets are listed in configuration order."""
        run = CheckRun(OBSERVED, (make_result("A", Outcome.DOWN, 500), make_result("B", Outcome.DOWN, None)))
        assert overall_status(run).label == "A, B are down"

    def test_degraded(self) -> None:
        """Degraded without DOWN is degraded performance."""
        run = CheckRun(OBSERVED, (make_result("A"), make_result("B", Outcome.UP, 429)))
        status = overall_status(run)
        assert status.level is OverallLevel.DEGRADED
        assert status.label == "Degraded Performance"


class TestUptimeStrip:
    """Tests for uptime_strip."""

    def test_cells_from_archive_and_current(self) -> None:
        """Past days read the archive; today reads the current result."""
        current = make_result("A", Outcome.DOWN, None)
        archive = [
            snapshot("2025-10-26", make_result("A")),
            snapshot("2025-10-25", make_result("B")),
        ]
        cells = uptime_strip(current, archive, "2025-10-27", days=4)

        assert [c.date for c in cells] == ["2025-10-24", "2025-10-25", "2025-10-26", "2025-10-27"]
        assert [c.level for c in cells] == [
            StatusLevel.UNKNOWN,  # no snapshot
            StatusLevel.UNKNOWN,  # target missing from snapshot
            StatusLevel.UP,
            StatusLevel.DOWN,
        ]
        assert cells[-1].is_today
        assert not cells[0].is_today

    def test_default_is_sixty_days(self) -> None:
        """The default strip covers sixty days."""
        assert len(uptime_strip(make_result("A"), [], "2025-10-27")) == 60


class TestGroupIncidents:
    """Tests for group_incidents."""

    def test_groups_by_date_newest_first(self) -> None:
        """Groups are ordered by date, newest first, keeping ledger order inside."""
        ledger = [
            make_incident("B", "2025-10-27", 9),
            make_incident("A", "2025-10-27", 8),
            make_incident("A", "2025-10-20"),
        ]
        groups = group_incidents(ledger)
        assert [g.date for g in groups] == ["2025-10-27", "2025-10-20"]
        assert [i.target_name for i in groups[0].incidents] == ["B", "A"]

    def test_empty_ledger(self) -> None:
        """No incidents means no groups."""
        assert group_incidents([]) == []


class TestBuildDashboard:
    """Tests for build_dashboard."""

    @pytest.fixture
    def config(self) -> Config:
        """Two-target config with a short strip."""
        return Config(
            targets=[
                TargetConfig(name="A", url="https://a.example.com"),
                TargetConfig(name="B", url="https://b.example.com"),
            ],
            dashboard=DashboardConfig(title="Example Status", days=3),
        )

    def test_payload(self, config: Config) -> None:
        """The payload carries overall status, services and incidents."""
        run = CheckRun(OBSERVED, (make_result("A"), make_result("B", Outcome.DOWN, None)))
        archive = [snapshot("2025-10-26", make_result("A"), make_result("B", Outcome.DOWN, 503))]
        ledger = [make_incident("B", "2025-10-27"), make_incident("B", "2025-10-26")]

        payload = build_dashboard(run, archive, ledger, config, "2025-10-27")

        assert payload["title"] == "Example Status"
        assert payload["last_updated"] == "2025-10-27T12:00:00Z"
        assert payload["overall"] == {"level": "down", "label": "B is down", "failing": ["B"]}

        service_a, service_b = payload["services"]
        assert service_a["level"] == "up"
        assert [d["level"] for d in service_a["days"]] == ["unknown", "up", "up"]
        assert service_a["uptime_percent"] == 100.0
        assert service_b["level"] == "down"
        assert service_b["error"] == "Connection refused"
        assert service_b["uptime_percent"] == 0.0

        assert [g["date"] for g in payload["incidents"]] == ["2025-10-27", "2025-10-26"]
        assert payload["incidents"][0]["incidents"][0]["name"] == "B"

    def test_no_run(self, config: Config) -> None:
        """Without a current run there are no services and the badge is unknown."""
        payload = build_dashboard(None, [], [], config, "2025-10-27")
        assert payload["services"] == []
        assert payload["overall"]["level"] == "unknown"
        assert payload["last_updated"] is None
