"""JSON flat-file persistence for status records.

The check-run process is the only writer. Each record is replaced as a whole
(temp file in the same directory, then ``os.replace``) so readers never see a
partially written file. Reads are forgiving: a missing or corrupt file is an
empty store, and malformed entries are skipped.
"""

import json
import logging
import os
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TypeVar

from .models import CheckRun, DailySnapshot, Incident

logger = logging.getLogger(__name__)

CURRENT_FILE = "status-results.json"
HISTORY_FILE = "status-history.json"
DAILY_FILE = "status-day.json"
INCIDENTS_FILE = "status-incidents.json"

T = TypeVar("T")


class StorageError(Exception):
    """Raised when a status record cannot be written."""

    pass


def read_json(path: Path) -> Any | None:
    """Read a JSON file, returning None if it is missing or unreadable."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        logger.warning("Could not read %s, treating as empty: %s", path, e)
        return None


def write_json_atomic(path: Path, data: Any) -> None:
    """Replace a JSON file atomically.

    Raises:
        StorageError: If the file cannot be written.
    """
    tmp_path: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Failed to write {path}: {e}") from e
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
    logger.debug("Written %s", path.name)


def _parse_entries(raw: Any, parse: Callable[[dict], T], path: Path) -> list[T]:
    """Parse a JSON array, skipping entries that fail to parse."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Expected a list in %s, treating as empty", path)
        return []

    entries: list[T] = []
    for index, item in enumerate(raw):
        try:
            entries.append(parse(item))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Skipping malformed entry %d in %s: %s", index, path.name, e)
    return entries


class StateStore:
    """Reads and writes the four status records in one data directory."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    @property
    def current_path(self) -> Path:
        return self.data_dir / CURRENT_FILE

    @property
    def history_path(self) -> Path:
        return self.data_dir / HISTORY_FILE

    @property
    def daily_path(self) -> Path:
        return self.data_dir / DAILY_FILE

    @property
    def incidents_path(self) -> Path:
        return self.data_dir / INCIDENTS_FILE

    def ensure_dir(self) -> None:
        """Create the data directory if needed.

        Raises:
            StorageError: If the directory cannot be created.
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create data directory {self.data_dir}: {e}") from e

    def load_current(self) -> CheckRun | None:
        """Return the latest check run, or None if unavailable."""
        raw = read_json(self.current_path)
        if raw is None:
            return None
        try:
            return CheckRun.from_dict(raw)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Malformed current status in %s: %s", self.current_path, e)
            return None

    def load_history(self) -> list[CheckRun]:
        return _parse_entries(read_json(self.history_path), CheckRun.from_dict, self.history_path)

    def load_daily(self) -> list[DailySnapshot]:
        return _parse_entries(read_json(self.daily_path), DailySnapshot.from_dict, self.daily_path)

    def load_incidents(self) -> list[Incident]:
        return _parse_entries(read_json(self.incidents_path), Incident.from_dict, self.incidents_path)

    def save_current(self, run: CheckRun) -> None:
        write_json_atomic(self.current_path, run.to_dict())

    def save_history(self, runs: Iterable[CheckRun]) -> None:
        write_json_atomic(self.history_path, [run.to_dict() for run in runs])

    def save_daily(self, snapshots: Iterable[DailySnapshot]) -> None:
        write_json_atomic(self.daily_path, [snapshot.to_dict() for snapshot in snapshots])

    def save_incidents(self, incidents: Iterable[Incident]) -> None:
        write_json_atomic(self.incidents_path, [incident.to_dict() for incident in incidents])
