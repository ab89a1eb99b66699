"""Tests for the command-line interface."""

from pathlib import Path
from unittest.mock import patch

import pytest
import requests

from statuspulse import main

REFUSED = requests.exceptions.ConnectionError("Connection refused")


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch) -> Path:
    """Run each test from an empty working directory, without touching root logging."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("statuspulse._setup_logging", lambda verbose=False: None)
    return tmp_path


class TestRunCommand:
    """Tests for `statuspulse run`."""

    def test_missing_config_uses_defaults_and_creates_files(self, workdir: Path) -> None:
        """Without a config file the default targets are checked and state is written."""
        with patch("statuspulse.monitor.requests.get", side_effect=REFUSED) as mock_get:
            main(["run", "-c", str(workdir / "absent.yaml")])

        assert mock_get.call_count == 2

        data_dir = workdir / "data"
        for name in ("status-results.json", "status-history.json", "status-day.json", "status-incidents.json"):
            assert (data_dir / name).exists()

    def test_down_targets_still_exit_zero(self, workdir: Path) -> None:
        """Target downtime does not cause a non-zero exit."""
        config = workdir / "config.yaml"
        config.write_text("targets:\n  - name: Main\n    url: https://example.com\n")
        with patch("statuspulse.monitor.requests.get", side_effect=REFUSED):
            main(["run", "-c", str(config)])
        assert (workdir / "data" / "status-incidents.json").exists()

    def test_invalid_config_exits_one(self, workdir: Path) -> None:
        """A ConfigError exits with status 1."""
        config = workdir / "config.yaml"
        config.write_text("targets: []\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "-c", str(config)])
        assert exc_info.value.code == 1

    def test_storage_failure_exits_one(self, workdir: Path) -> None:
        """A StorageError exits with status 1."""
        config = workdir / "config.yaml"
        blocker = workdir / "blocker"
        blocker.write_text("")
        config.write_text(
            f"targets:\n  - name: Main\n    url: https://example.com\nstorage:\n  data_dir: {blocker / 'data'}\n"
        )
        with patch("statuspulse.monitor.requests.get", side_effect=REFUSED):
            with pytest.raises(SystemExit) as exc_info:
                main(["run", "-c", str(config)])
        assert exc_info.value.code == 1


class TestInstallTimerCommand:
    """Tests for `statuspulse install-timer`."""

    def test_dry_run_prints_units(self, workdir: Path, capsys) -> None:
        """--dry-run prints both unit files and installs nothing."""
        main(["install-timer", "--dry-run", "--interval-minutes", "10"])
        out = capsys.readouterr().out
        assert "Type=oneshot" in out
        assert "OnUnitActiveSec=10min" in out
        assert "[Dry run]" in out

    def test_invalid_interval_exits_one(self, workdir: Path) -> None:
        """A zero interval exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["install-timer", "--dry-run", "--interval-minutes", "0"])
        assert exc_info.value.code == 1


class TestVersion:
    """Tests for --version."""

    def test_version_flag(self, capsys) -> None:
        """--version prints the package version and exits 0."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "statuspulse 0.1.0" in capsys.readouterr().out
