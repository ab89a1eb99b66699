"""statuspulse - HTTP uptime checks with a static-file status page."""

import argparse
import logging
import signal
import sys
from threading import Event

__version__ = "0.1.0"

DEFAULT_CONFIG = "config.yaml"

# Global shutdown event for signal handlers
_shutdown_event: Event | None = None

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def _handle_shutdown(signum: int, frame: object) -> None:
    """Signal handler for graceful shutdown."""
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating shutdown...", sig_name)
    if _shutdown_event is not None:
        _shutdown_event.set()


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute the run command - one check run over all targets.

    Downtime of a target is reported in the status files, not in the exit
    code. Only configuration and storage failures exit non-zero.
    """
    _setup_logging(args.verbose)

    # Import here to allow logging setup first
    from .config import ConfigError, load_config
    from .pipeline import run_pipeline
    from .storage import StateStore, StorageError

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    store = StateStore(config.storage.data_dir)
    try:
        result = run_pipeline(config, store)
    except StorageError as e:
        logger.error("Storage error: %s", e)
        sys.exit(1)

    if result.down_count:
        logger.warning("%d of %d targets down", result.down_count, len(result.run.results))


def _cmd_serve(args: argparse.Namespace) -> None:
    """Execute the serve command - run the status page server."""
    global _shutdown_event

    _setup_logging(args.verbose)

    from .api import ApiError, ApiServer
    from .config import ConfigError, load_config
    from .storage import StateStore

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    _shutdown_event = Event()
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    server = ApiServer(config, StateStore(config.storage.data_dir))
    try:
        server.start()
    except ApiError as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)

    try:
        logger.info("Serving %s, waiting for shutdown signal...", config.storage.data_dir)
        _shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        server.stop()
        logger.info("Shutdown complete")


def _cmd_install_timer(args: argparse.Namespace) -> None:
    """Execute the install-timer command."""
    from pathlib import Path

    from .service import detect_paths, install_timer

    defaults = detect_paths()
    success = install_timer(
        user=args.user or defaults["user"],
        working_dir=args.working_dir or defaults["working_dir"],
        python_path=defaults["python_path"],
        config_path=str(Path(args.config).resolve()),
        interval_minutes=args.interval_minutes,
        enable=args.enable,
        dry_run=args.dry_run,
    )

    if not success:
        sys.exit(1)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the statuspulse package."""
    parser = argparse.ArgumentParser(
        description="statuspulse - HTTP uptime checks with a static-file status page"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"statuspulse {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # Run subcommand (default behavior)
    run_parser = subparsers.add_parser(
        "run",
        help="Check all targets once and update the status files (default)",
    )
    _add_common_arguments(run_parser)
    run_parser.set_defaults(func=_cmd_run)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the status page from the status files",
    )
    _add_common_arguments(serve_parser)
    serve_parser.set_defaults(func=_cmd_serve)

    install_parser = subparsers.add_parser(
        "install-timer",
        help="Install a systemd timer that runs checks periodically",
    )
    install_parser.add_argument(
        "-c", "--config",
        default=DEFAULT_CONFIG,
        help=f"Configuration file the timer passes to 'run' (default: {DEFAULT_CONFIG})",
    )
    install_parser.add_argument(
        "--interval-minutes",
        type=int,
        default=5,
        help="Minutes between check runs (default: 5)",
    )
    install_parser.add_argument(
        "--user",
        help="User to run the checks as (default: current user)",
    )
    install_parser.add_argument(
        "--working-dir",
        help="Working directory for the checks (default: current directory)",
    )
    install_parser.add_argument(
        "--enable",
        action="store_true",
        help="Enable and start the timer after installation",
    )
    install_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the unit files without installing",
    )
    install_parser.set_defaults(func=_cmd_install_timer)

    args = parser.parse_args(argv)

    # Default to 'run' if no command specified
    if args.command is None:
        args.config = DEFAULT_CONFIG
        args.verbose = False
        args.func = _cmd_run

    args.func(args)
