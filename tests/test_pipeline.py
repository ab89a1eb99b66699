"""Tests for the check-run pipeline."""

from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from statuspulse.config import Config, SettingsConfig, TargetConfig
from statuspulse.dates import calendar_date
from statuspulse.models import CheckRun, DailySnapshot, DailySummary, Outcome, ProbeResult
from statuspulse.pipeline import run_pipeline
from statuspulse.presentation import overall_status
from statuspulse.storage import StateStore, StorageError


@pytest.fixture
def config() -> Config:
    """Two targets, A and B."""
    return Config(
        targets=[
            TargetConfig(name="A", url="https://a.example.com"),
            TargetConfig(name="B", url="https://b.example.com"),
        ],
        settings=SettingsConfig(timezone="UTC", history_capacity=3),
    )


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    """Create a store in a temporary directory."""
    return StateStore(tmp_path / "data")


def scripted_checker(observed: list[datetime], down: set[str] = frozenset({"B"})):
    """Return a checker that replays the given run timestamps in order."""
    times = iter(observed)

    def checker(targets, **kwargs) -> CheckRun:
        observed_at = next(times)
        results = tuple(
            ProbeResult(
                name=t.name,
                url=t.url,
                outcome=Outcome.DOWN if t.name in down else Outcome.UP,
                status_code=None if t.name in down else 200,
                status_text="Connection error" if t.name in down else "OK",
                response_time_ms=20,
                error="Connection refused" if t.name in down else None,
                observed_at=observed_at,
            )
            for t in targets
        )
        return CheckRun(observed_at=observed_at, results=results)

    return checker


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_up_and_refused_scenario(self, config: Config, store: StateStore) -> None:
        """A always 200 and B refused: A UP, B DOWN, one incident for B today."""
        now = datetime.now(UTC)
        result = run_pipeline(config, store, checker=scripted_checker([now]))

        current = store.load_current()
        assert [r.outcome for r in current.results] == [Outcome.UP, Outcome.DOWN]
        assert overall_status(current).label == "B is down"

        incidents = store.load_incidents()
        assert len(incidents) == 1
        assert incidents[0].target_name == "B"
        assert incidents[0].calendar_date == calendar_date(now, "UTC")
        assert result.new_incident_count == 1
        assert result.down_count == 1

    def test_second_run_same_day_adds_no_incident(self, config: Config, store: StateStore) -> None:
        """Repeated failures on one date keep a single incident."""
        now = datetime(2025, 10, 27, 8, 0, tzinfo=UTC)
        checker = scripted_checker([now, now + timedelta(hours=1)])
        run_pipeline(config, store, checker=checker)
        result = run_pipeline(config, store, checker=checker)
        assert result.new_incident_count == 0
        assert len(store.load_incidents()) == 1

    def test_history_capacity(self, config: Config, store: StateStore) -> None:
        """Capacity 3 and four runs keep the three most recent."""
        start = datetime(2025, 10, 27, 8, 0, tzinfo=UTC)
        times = [start + timedelta(minutes=5 * i) for i in range(4)]
        checker = scripted_checker(times)
        for _ in times:
            run_pipeline(config, store, checker=checker)

        history = store.load_history()
        assert [run.observed_at for run in history] == list(reversed(times))[:3]

    def test_snapshot_for_previous_day(self, config: Config, store: StateStore) -> None:
        """Crossing midnight archives the previous day's last run."""
        evening = datetime(2025, 10, 26, 22, 0, tzinfo=UTC)
        last = datetime(2025, 10, 26, 23, 55, tzinfo=UTC)
        morning = datetime(2025, 10, 27, 0, 5, tzinfo=UTC)
        checker = scripted_checker([evening, last, morning])

        run_pipeline(config, store, checker=checker)
        run_pipeline(config, store, checker=checker)
        assert store.load_daily() == []

        result = run_pipeline(config, store, checker=checker)
        daily = store.load_daily()
        assert [s.calendar_date for s in daily] == ["2025-10-26"]
        assert daily[0].observed_at == last
        assert result.new_snapshot_dates == ["2025-10-26"]

    def test_existing_snapshot_untouched(self, config: Config, store: StateStore) -> None:
        """A pre-existing 2025-10-27 snapshot is never altered by later runs."""
        observed = datetime(2025, 10, 27, 6, 0, tzinfo=UTC)
        existing = DailySnapshot("2025-10-27", observed, (), DailySummary.from_results([]))
        store.save_daily([existing])

        late = datetime(2025, 10, 27, 23, 0, tzinfo=UTC)
        next_day = datetime(2025, 10, 28, 1, 0, tzinfo=UTC)
        checker = scripted_checker([late, next_day])
        run_pipeline(config, store, checker=checker)
        run_pipeline(config, store, checker=checker)

        assert store.load_daily() == [existing]

    def test_writes_all_state_files(self, config: Config, store: StateStore) -> None:
        """A run creates all four records, even when empty."""
        run_pipeline(config, store, checker=scripted_checker([datetime.now(UTC)], down=set()))
        for path in (store.current_path, store.history_path, store.daily_path, store.incidents_path):
            assert path.exists()
        assert store.load_incidents() == []

    def test_passes_settings_to_checker(self, store: StateStore) -> None:
        """Concurrency and threshold settings reach the checker."""
        config = Config(
            targets=[TargetConfig(name="A", url="https://a.example.com")],
            settings=SettingsConfig(concurrent=False, max_workers=2, down_status_threshold=500),
        )
        seen = {}
        inner = scripted_checker([datetime.now(UTC)], down=set())

        def checker(targets, **kwargs):
            seen.update(kwargs)
            return inner(targets, **kwargs)

        run_pipeline(config, store, checker=checker)
        assert seen == {"concurrent": False, "max_workers": 2, "down_status_threshold": 500}

    def test_write_failure_raises_storage_error(self, config: Config, store: StateStore) -> None:
        """A failed write aborts the run with StorageError."""
        with patch("statuspulse.storage.os.replace", side_effect=OSError("read-only file system")):
            with pytest.raises(StorageError):
                run_pipeline(config, store, checker=scripted_checker([datetime.now(UTC)]))

    def test_failed_incident_write_leaves_no_current_status(self, config: Config, store: StateStore) -> None:
        """The current record is only written once every other record has been saved."""
        with patch.object(store, "save_incidents", side_effect=StorageError("disk full")):
            with pytest.raises(StorageError):
                run_pipeline(config, store, checker=scripted_checker([datetime.now(UTC)]))
        assert store.history_path.exists()
        assert not store.current_path.exists()
        assert store.load_current() is None

    def test_failed_rerun_keeps_previous_current_status(self, config: Config, store: StateStore) -> None:
        """A run that fails to commit leaves the earlier current record in place."""
        first = datetime.now(UTC) - timedelta(minutes=5)
        checker = scripted_checker([first, first + timedelta(minutes=5)])
        run_pipeline(config, store, checker=checker)
        with patch.object(store, "save_daily", side_effect=StorageError("disk full")):
            with pytest.raises(StorageError):
                run_pipeline(config, store, checker=checker)
        assert store.load_current().observed_at == first
