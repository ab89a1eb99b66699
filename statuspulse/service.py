"""Systemd timer installation for statuspulse.

A oneshot service runs ``statuspulse run`` once; a timer fires it on a fixed
cadence. Scheduling lives outside the process.
"""

import getpass
import os
import subprocess
import sys
from pathlib import Path

SERVICE_NAME = "statuspulse"
SYSTEMD_DIR = Path("/etc/systemd/system")
SERVICE_PATH = SYSTEMD_DIR / f"{SERVICE_NAME}.service"
TIMER_PATH = SYSTEMD_DIR / f"{SERVICE_NAME}.timer"

DEFAULT_INTERVAL_MINUTES = 5

SERVICE_TEMPLATE = """\
[Unit]
Description=statuspulse status check run
After=network-online.target
Wants=network-online.target

[Service]
Type=oneshot
User={user}
WorkingDirectory={working_dir}
ExecStart={python_path} -m statuspulse run -c {config_path}
"""

TIMER_TEMPLATE = """\
[Unit]
Description=Run statuspulse every {interval} minutes

[Timer]
OnBootSec=1min
OnUnitActiveSec={interval}min
Persistent=true
Unit={service_name}.service

[Install]
WantedBy=timers.target
"""


def detect_paths() -> dict:
    """Detect default paths for service configuration."""
    return {
        "user": getpass.getuser(),
        "working_dir": os.getcwd(),
        "python_path": sys.executable,
    }


def generate_service_file(user: str, working_dir: str, python_path: str, config_path: str) -> str:
    """Generate the systemd oneshot service file content."""
    return SERVICE_TEMPLATE.format(
        user=user,
        working_dir=working_dir,
        python_path=python_path,
        config_path=config_path,
    )


def generate_timer_file(interval_minutes: int = DEFAULT_INTERVAL_MINUTES) -> str:
    """Generate the systemd timer file content.

    Raises:
        ValueError: If the interval is not a positive number of minutes.
    """
    if interval_minutes < 1:
        raise ValueError(f"interval must be at least 1 minute, got {interval_minutes}")
    return TIMER_TEMPLATE.format(interval=interval_minutes, service_name=SERVICE_NAME)


def install_timer(
    user: str,
    working_dir: str,
    python_path: str,
    config_path: str,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    enable: bool = False,
    dry_run: bool = False,
) -> bool:
    """Install the systemd service and timer files.

    Returns True if successful, False otherwise.
    """
    try:
        timer = generate_timer_file(interval_minutes)
    except ValueError as e:
        print(f"Error: {e}")
        return False
    service = generate_service_file(user, working_dir, python_path, config_path)

    for path, content in ((SERVICE_PATH, service), (TIMER_PATH, timer)):
        print(f"Generated {path.name}:")
        print("-" * 40)
        print(content)
        print("-" * 40)

    if dry_run:
        print("\n[Dry run] Unit files not installed.")
        return True

    if not _has_root_permissions():
        print(f"\nError: Cannot write to {SYSTEMD_DIR}")
        print("Run with sudo: sudo statuspulse install-timer")
        return False

    try:
        SERVICE_PATH.write_text(service)
        TIMER_PATH.write_text(timer)
        print(f"\nUnit files written to {SYSTEMD_DIR}")
    except OSError as e:
        print(f"\nError writing unit files: {e}")
        return False

    if not _run_systemctl("daemon-reload"):
        return False
    print("Systemd daemon reloaded")

    if enable:
        if not _run_systemctl("enable", "--now", f"{SERVICE_NAME}.timer"):
            return False
        print(f"Timer {SERVICE_NAME}.timer enabled and started")

    print("\nInstallation complete!")
    print("\nUseful commands:")
    print(f"  systemctl list-timers {SERVICE_NAME}.timer   # Next run")
    print(f"  sudo journalctl -u {SERVICE_NAME} -f        # View logs")
    print(f"  sudo systemctl start {SERVICE_NAME}          # Run a check now")

    return True


def _has_root_permissions() -> bool:
    """Check if we have root permissions."""
    return os.geteuid() == 0


def _run_systemctl(*args: str) -> bool:
    """Run a systemctl command."""
    cmd = ["systemctl", *args]
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
        return True
    except subprocess.CalledProcessError as e:
        print(f"Error running {' '.join(cmd)}: {e.stderr}")
        return False
    except FileNotFoundError:
        print("Error: systemctl not found. Is systemd installed?")
        return False
