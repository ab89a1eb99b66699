"""HTML template for the dashboard.

This module loads the HTML template from dashboard.html and provides
a function to build the complete page by substituting CSS, JavaScript and
the page settings.

The template is automatically reloaded when the file changes (hot-reload).
"""

from html import escape
from pathlib import Path
from string import Template

_TEMPLATE_PATH = Path(__file__).parent / "dashboard.html"

# Cache for template and its mtime
_template_cache: Template | None = None
_template_mtime: float = 0.0


def _get_template() -> Template:
    """Get the HTML template, reloading if the file changed.

    Returns:
        The current Template instance.
    """
    global _template_cache, _template_mtime

    current_mtime = _TEMPLATE_PATH.stat().st_mtime

    if _template_cache is None or current_mtime != _template_mtime:
        _template_cache = Template(_TEMPLATE_PATH.read_text(encoding="utf-8"))
        _template_mtime = current_mtime

    return _template_cache


def build_html(
    css: str,
    js_utils: str,
    js_core: str,
    title: str,
    description: str,
    poll_interval_ms: int,
    retry_backoff_ms: int,
) -> str:
    """Build the complete HTML dashboard from its components.

    Uses string.Template for safe substitution. Title and description are
    HTML-escaped; the intervals are inserted as JavaScript integers.
    """
    return _get_template().safe_substitute(
        css=css,
        js_utils=js_utils,
        js_core=js_core,
        title=escape(title),
        description=escape(description),
        poll_interval_ms=int(poll_interval_ms),
        retry_backoff_ms=int(retry_backoff_ms),
    )
