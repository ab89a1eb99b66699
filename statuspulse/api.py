"""HTTP server for the status page.

Serves the dashboard, its JSON payload, an SVG badge and the incident feed.
Only reads the persisted records; the check run is the sole writer.
"""

import json
import logging
import threading
from datetime import UTC, datetime
from html import escape
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from ._dashboard import render_dashboard_page
from ._rss import generate_incident_feed
from .config import Config
from .dates import calendar_date
from .presentation import OverallLevel, build_dashboard, overall_status, status_level
from .storage import StateStore

logger = logging.getLogger(__name__)

# Badge colors (shields.io palette)
BADGE_COLORS = {
    "up": "#4c1",
    "degraded": "#dfb317",
    "down": "#e05d44",
    "unknown": "#9f9f9f",
}

# Approximate width of one character at 11px Verdana
_BADGE_CHAR_WIDTH = 7
_BADGE_PADDING = 10


class ApiError(Exception):
    """Raised when an API operation fails."""

    pass


def _generate_badge_svg(label: str, state: str, style: str = "default") -> str:
    """Generate a shields.io-style SVG badge.

    Args:
        label: Left-hand text.
        state: One of up, degraded, down, unknown (case insensitive).
            Anything else renders as unknown.
        style: "default" for the gradient look, "flat" for a plain badge.

    Returns:
        SVG document as a string.
    """
    state = state.lower()
    color = BADGE_COLORS.get(state, BADGE_COLORS["unknown"])
    message = state.upper() if state in BADGE_COLORS else "UNKNOWN"

    label_width = len(label) * _BADGE_CHAR_WIDTH + _BADGE_PADDING
    # Leave room for the status dot on the right-hand side
    message_width = len(message) * _BADGE_CHAR_WIDTH + _BADGE_PADDING + 10
    width = label_width + message_width
    label_text = escape(label)
    aria = escape(f"{label}: {message}")

    if style == "flat":
        background = ""
        overlay = ""
    else:
        background = (
            '<linearGradient id="s" x2="0" y2="100%">'
            '<stop offset="0" stop-color="#bbb" stop-opacity=".1"/>'
            '<stop offset="1" stop-opacity=".1"/>'
            "</linearGradient>"
        )
        overlay = f'<rect width="{width}" height="20" fill="url(#s)"/>'

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" '
        f'role="img" aria-label="{aria}">'
        f"<title>{aria}</title>"
        f"{background}"
        f'<rect width="{label_width}" height="20" fill="#555"/>'
        f'<rect x="{label_width}" width="{message_width}" height="20" fill="{color}"/>'
        f"{overlay}"
        f'<circle cx="{label_width + 8}" cy="10" r="3" fill="#fff"/>'
        '<g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,sans-serif" font-size="11">'
        f'<text x="{label_width / 2}" y="14">{label_text}</text>'
        f'<text x="{label_width + 5 + message_width / 2}" y="14">{message}</text>'
        "</g>"
        "</svg>"
    )


class StatusHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the status page endpoints."""

    # Class-level references set by factory
    store: StateStore | None = None
    config: Config | None = None

    def log_message(self, format: str, *args: Any) -> None:
        """Override to use Python logging instead of stderr."""
        logger.debug("API %s - %s", self.address_string(), format % args)

    def _send(self, code: int, content_type: str, body: bytes, cache: str = "no-cache") -> None:
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", cache)
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, code: int, data: dict[str, Any]) -> None:
        """Send a JSON response with the given status code."""
        self._send(code, "application/json", json.dumps(data, indent=2).encode("utf-8"))

    def _send_error_json(self, code: int, message: str) -> None:
        """Send a JSON error response."""
        self._send_json(code, {"error": message})

    def do_GET(self) -> None:
        """Handle GET requests."""
        parts = urlsplit(self.path)
        query = parse_qs(parts.query)
        try:
            if parts.path == "/":
                self._handle_dashboard()
            elif parts.path == "/health":
                self._send_json(200, {"status": "ok"})
            elif parts.path == "/status":
                self._handle_status()
            elif parts.path == "/badge.svg":
                self._handle_badge(query)
            elif parts.path == "/incidents.rss":
                self._handle_feed()
            else:
                self._send_error_json(404, "Not found")
        except Exception as e:
            logger.exception("Error handling request: %s", e)
            self._send_error_json(500, "Internal server error")

    def _today(self) -> str:
        return calendar_date(datetime.now(UTC), self.config.settings.timezone)

    def _handle_dashboard(self) -> None:
        """Handle GET / endpoint - serve HTML dashboard."""
        html = render_dashboard_page(self.config.dashboard)
        self._send(200, "text/html; charset=utf-8", html.encode("utf-8"))

    def _handle_status(self) -> None:
        """Handle GET /status endpoint - the dashboard payload."""
        run = self.store.load_current()
        if run is None:
            self._send_error_json(503, "No status data available yet")
            return
        payload = build_dashboard(
            run,
            self.store.load_daily(),
            self.store.load_incidents(),
            self.config,
            self._today(),
        )
        self._send_json(200, payload)

    def _handle_badge(self, query: dict[str, list[str]]) -> None:
        """Handle GET /badge.svg endpoint.

        Without ?name= the badge shows the overall status. ?style=flat drops
        the gradient.
        """
        style = query.get("style", ["default"])[0]
        name = query.get("name", [None])[0]
        run = self.store.load_current()

        if name is None:
            overall = overall_status(run)
            state = "up" if overall.level is OverallLevel.OPERATIONAL else overall.level.value
            label = "status"
        else:
            if run is None:
                state = "unknown"
            else:
                result = next((r for r in run.results if r.name == name), None)
                if result is None:
                    self._send_error_json(404, f"Target '{name}' not found")
                    return
                state = status_level(result).value
            label = name

        svg = _generate_badge_svg(label, state, style=style)
        self._send(200, "image/svg+xml", svg.encode("utf-8"), cache="no-cache, max-age=0")

    def _handle_feed(self) -> None:
        """Handle GET /incidents.rss endpoint."""
        host = self.headers.get("Host")
        feed = generate_incident_feed(
            self.store.load_incidents(),
            title=f"{self.config.dashboard.title} - Incidents",
            description=self.config.dashboard.description,
            link=f"http://{host}/" if host else None,
        )
        self._send(200, "application/rss+xml; charset=utf-8", feed.encode("utf-8"))


def _create_handler_class(store: StateStore, config: Config) -> type:
    """Create a handler class with the store and config bound."""

    class BoundStatusHandler(StatusHandler):
        pass

    BoundStatusHandler.store = store
    BoundStatusHandler.config = config
    return BoundStatusHandler


class ApiServer:
    """Threaded HTTP server for the status page."""

    def __init__(self, config: Config, store: StateStore) -> None:
        """Initialize the API server.

        Args:
            config: Loaded configuration; ``config.api`` gives host and port.
            store: Read access to the persisted status records.
        """
        self.config = config
        self.store = store
        self._server: HTTPServer | None = None
        self._thread: threading.Thread | None = None
        self._shutdown_event = threading.Event()

    @property
    def port(self) -> int:
        """Bound port (differs from the configured one when it was 0)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self.config.api.port

    def start(self) -> None:
        """Start the API server in a background thread.

        Raises:
            ApiError: If the server fails to start.
        """
        if self._thread is not None and self._thread.is_alive():
            logger.warning("API server is already running")
            return

        api = self.config.api
        try:
            handler_class = _create_handler_class(self.store, self.config)
            self._server = HTTPServer((api.host, api.port), handler_class)
            self._server.timeout = 1.0  # Allow periodic shutdown checks
        except OSError as e:
            if e.errno in (98, 48):  # EADDRINUSE (Linux=98, macOS=48)
                raise ApiError(f"Port {api.port} is already in use") from e
            if e.errno == 13:  # EACCES
                raise ApiError(
                    f"Permission denied for port {api.port}. Ports below 1024 require root privileges."
                ) from e
            raise ApiError(f"Failed to start API server on port {api.port}: {e}") from e

        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._serve_forever,
            name="api-server",
            daemon=True,
        )
        self._thread.start()
        logger.info("API server started on port %d", self.port)

    def _serve_forever(self) -> None:
        """Server loop that checks for shutdown."""
        while not self._shutdown_event.is_set():
            if self._server:
                self._server.handle_request()

    def stop(self) -> None:
        """Stop the API server gracefully."""
        if self._thread is None:
            return

        logger.info("Stopping API server...")
        self._shutdown_event.set()

        if self._thread.is_alive():
            self._thread.join(timeout=5.0)

        if self._server:
            self._server.server_close()

        self._server = None
        self._thread = None
        logger.info("API server stopped")

    @property
    def is_running(self) -> bool:
        """Check if the server is running."""
        return self._thread is not None and self._thread.is_alive()
