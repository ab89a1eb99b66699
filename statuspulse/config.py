"""Configuration loader with type-safe dataclasses."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .dates import get_timezone

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


# Statuses at or above this value count as DOWN. 500 tolerates 4xx responses,
# which the dashboard then shows as degraded.
DOWN_STATUS_THRESHOLDS = (400, 500)

DEFAULT_TIMEOUT_MS = 10000
DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass(frozen=True)
class TargetConfig:
    """A monitored URL with display name and timeout."""

    name: str
    url: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("Target name cannot be empty")
        if not self.url:
            raise ConfigError(f"URL cannot be empty for '{self.name}'")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(f"URL must start with http:// or https:// for '{self.name}'")
        if self.timeout_ms < 1:
            raise ConfigError(f"Timeout must be a positive number of milliseconds for '{self.name}'")


# Used when no configuration file exists at all.
DEFAULT_TARGETS = [
    TargetConfig(name="AniList", url="https://anilist.co", timeout_ms=DEFAULT_TIMEOUT_MS),
    TargetConfig(name="Giscus", url="https://giscus.app", timeout_ms=DEFAULT_TIMEOUT_MS),
]


@dataclass(frozen=True)
class SettingsConfig:
    """Aggregation settings: timezone, store capacities and classification."""

    timezone: str = "UTC"
    history_capacity: int = 100
    daily_capacity: int = 60
    incident_capacity: int = 100
    down_status_threshold: int = 400
    concurrent: bool = True
    max_workers: int | None = None

    def __post_init__(self) -> None:
        try:
            get_timezone(self.timezone)
        except ValueError as e:
            raise ConfigError(str(e))
        if self.history_capacity < 1:
            raise ConfigError(f"history_capacity must be at least 1 (got {self.history_capacity})")
        if self.daily_capacity < 1:
            raise ConfigError(f"daily_capacity must be at least 1 (got {self.daily_capacity})")
        if self.incident_capacity < 1:
            raise ConfigError(f"incident_capacity must be at least 1 (got {self.incident_capacity})")
        if self.down_status_threshold not in DOWN_STATUS_THRESHOLDS:
            raise ConfigError(
                f"down_status_threshold must be one of {DOWN_STATUS_THRESHOLDS} (got {self.down_status_threshold})"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1 (got {self.max_workers})")


@dataclass(frozen=True)
class StorageConfig:
    """Location of the persisted JSON records."""

    data_dir: str = "./data"

    def __post_init__(self) -> None:
        if not self.data_dir:
            raise ConfigError("Storage data_dir cannot be empty")


@dataclass(frozen=True)
class ApiConfig:
    """Configuration for the dashboard HTTP server."""

    host: str = ""
    port: int = 8080

    def __post_init__(self) -> None:
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"API port must be between 1 and 65535, got {self.port}")


@dataclass(frozen=True)
class DashboardConfig:
    """Presentation settings for the status page."""

    title: str = "Service Status"
    description: str = "Real-time status monitoring for our services"
    poll_interval_seconds: int = 30
    retry_backoff_seconds: int = 5
    days: int = 60

    def __post_init__(self) -> None:
        if self.poll_interval_seconds < 1:
            raise ConfigError("Dashboard poll_interval_seconds must be at least 1")
        if self.retry_backoff_seconds < 1:
            raise ConfigError("Dashboard retry_backoff_seconds must be at least 1")
        if self.days < 1:
            raise ConfigError("Dashboard days must be at least 1")


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    targets: list[TargetConfig] = field(default_factory=lambda: list(DEFAULT_TARGETS))
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)

    def __post_init__(self) -> None:
        if not self.targets:
            raise ConfigError("At least one target must be configured")
        names = [t.name for t in self.targets]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ConfigError(f"Duplicate target names found: {duplicates}")


def _parse_target_config(data: dict, index: int) -> TargetConfig:
    """Parse a single target entry.

    ``timeout_ms`` is preferred; a bare ``timeout`` is read as milliseconds.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Target entry {index} must be a dictionary")

    name = data.get("name")
    url = data.get("url")

    if name is None:
        raise ConfigError(f"Target entry {index} is missing 'name' field")
    if url is None:
        raise ConfigError(f"Target entry {index} is missing 'url' field")

    timeout = data.get("timeout_ms", data.get("timeout", DEFAULT_TIMEOUT_MS))
    try:
        timeout_ms = int(timeout)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout for target '{name}': {timeout!r}")

    return TargetConfig(name=str(name), url=str(url), timeout_ms=timeout_ms)


def _int_setting(data: dict, default: int | None, *keys: str) -> int | None:
    for key in keys:
        if key in data and data[key] is not None:
            try:
                return int(data[key])
            except (TypeError, ValueError):
                raise ConfigError(f"Setting '{key}' must be an integer (got {data[key]!r})")
    return default


def _parse_settings_config(data: dict | None) -> SettingsConfig:
    """Parse the settings section, accepting legacy camelCase keys."""
    if data is None:
        return SettingsConfig()
    if not isinstance(data, dict):
        raise ConfigError("'settings' section must be a dictionary")

    return SettingsConfig(
        timezone=str(data.get("timezone", "UTC")),
        history_capacity=_int_setting(data, 100, "history_capacity", "maxHistoryChecks"),
        daily_capacity=_int_setting(data, 60, "daily_capacity", "maxDailySnapshots"),
        incident_capacity=_int_setting(data, 100, "incident_capacity", "maxIncidents"),
        down_status_threshold=_int_setting(data, 400, "down_status_threshold"),
        concurrent=bool(data.get("concurrent", True)),
        max_workers=_int_setting(data, None, "max_workers"),
    )


def _parse_storage_config(data: dict | None) -> StorageConfig:
    """Parse storage configuration section."""
    if data is None:
        return StorageConfig()
    if not isinstance(data, dict):
        raise ConfigError("'storage' section must be a dictionary")

    return StorageConfig(data_dir=str(data.get("data_dir", "./data")))


def _parse_api_config(data: dict | None) -> ApiConfig:
    """Parse API configuration section."""
    if data is None:
        return ApiConfig()
    if not isinstance(data, dict):
        raise ConfigError("'api' section must be a dictionary")

    return ApiConfig(
        host=str(data.get("host", "")),
        port=_int_setting(data, 8080, "port"),
    )


def _parse_dashboard_config(data: dict | None) -> DashboardConfig:
    """Parse dashboard configuration section."""
    if data is None:
        return DashboardConfig()
    if not isinstance(data, dict):
        raise ConfigError("'dashboard' section must be a dictionary")

    defaults = DashboardConfig()
    return DashboardConfig(
        title=str(data.get("title", defaults.title)),
        description=str(data.get("description", defaults.description)),
        poll_interval_seconds=_int_setting(data, defaults.poll_interval_seconds, "poll_interval_seconds"),
        retry_backoff_seconds=_int_setting(data, defaults.retry_backoff_seconds, "retry_backoff_seconds"),
        days=_int_setting(data, defaults.days, "days"),
    )


def _apply_env_overrides(config_data: dict) -> dict:
    """Apply environment variable overrides to configuration.

    Supported overrides:
    - STATUSPULSE_TIMEZONE: Override settings.timezone
    - STATUSPULSE_HISTORY_CAPACITY: Override settings.history_capacity
    - STATUSPULSE_DATA_DIR: Override storage.data_dir
    - STATUSPULSE_API_PORT: Override api.port
    """
    overrides = (
        ("STATUSPULSE_TIMEZONE", "settings", "timezone"),
        ("STATUSPULSE_HISTORY_CAPACITY", "settings", "history_capacity"),
        ("STATUSPULSE_DATA_DIR", "storage", "data_dir"),
        ("STATUSPULSE_API_PORT", "api", "port"),
    )
    for env_var, section, key in overrides:
        value = os.environ.get(env_var)
        if value is None:
            continue
        if config_data.get(section) is None:
            config_data[section] = {}
        # A non-dict section is reported by its parser.
        if isinstance(config_data[section], dict):
            config_data[section][key] = value

    return config_data


def _parse_config_data(data: dict) -> Config:
    """Build a Config from an already-loaded YAML document."""
    targets_data = None
    for key in ("targets", "sites", "services"):
        if data.get(key) is not None:
            targets_data = data[key]
            break

    if targets_data is None:
        raise ConfigError("Configuration must contain a 'targets' section")
    if not isinstance(targets_data, list):
        raise ConfigError("'targets' must be a list")

    targets = [_parse_target_config(entry, i) for i, entry in enumerate(targets_data)]

    return Config(
        targets=targets,
        settings=_parse_settings_config(data.get("settings")),
        storage=_parse_storage_config(data.get("storage")),
        api=_parse_api_config(data.get("api")),
        dashboard=_parse_dashboard_config(data.get("dashboard")),
    )


def default_config() -> Config:
    """Return the built-in configuration, with environment overrides applied."""
    targets = [{"name": t.name, "url": t.url, "timeout_ms": t.timeout_ms} for t in DEFAULT_TARGETS]
    return _parse_config_data(_apply_env_overrides({"targets": targets}))


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from a YAML (or JSON) file.

    A missing file is not an error: the built-in default targets are used.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file exists but cannot be read or is invalid.
    """
    path = Path(config_path)

    if not path.exists():
        logger.warning("Configuration file not found at %s, using built-in defaults", config_path)
        return default_config()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML dictionary")

    return _parse_config_data(_apply_env_overrides(data))
