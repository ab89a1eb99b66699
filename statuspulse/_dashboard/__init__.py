"""HTML dashboard for the status page.

This package contains the embedded HTML/CSS/JS dashboard served at the root endpoint.
The page is static HTML that fetches data dynamically via JavaScript from /status.
"""

from ..config import DashboardConfig
from ._css import CSS_STYLES
from ._html import build_html
from ._js_core import JS_CORE
from ._js_utils import JS_UTILS


def render_dashboard_page(config: DashboardConfig) -> str:
    """Assemble the complete dashboard page for the given settings."""
    return build_html(
        CSS_STYLES,
        JS_UTILS,
        JS_CORE,
        title=config.title,
        description=config.description,
        poll_interval_ms=config.poll_interval_seconds * 1000,
        retry_backoff_ms=config.retry_backoff_seconds * 1000,
    )


__all__ = ["render_dashboard_page"]
