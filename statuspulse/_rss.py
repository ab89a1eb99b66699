"""RSS 2.0 feed generation for the incident ledger.

Lets users follow incidents from an RSS reader instead of polling the page.
"""

import io
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from datetime import UTC, datetime
from email.utils import format_datetime

from .models import Incident

DEFAULT_MAX_ITEMS = 20


def _format_rfc822(dt: datetime) -> str:
    """Format datetime as RFC 822 for RSS pubDate."""
    return format_datetime(dt.astimezone(UTC))


def _incident_to_description(incident: Incident) -> str:
    """Generate a human-readable description for an incident."""
    lines = [f"Date: {incident.calendar_date}"]
    if incident.status_code is not None:
        lines.append(f"HTTP Status: {incident.status_code}")
    lines.append(f"Response Time: {incident.response_time_ms}ms")
    if incident.error:
        lines.append(f"Error: {incident.error}")
    return "\n".join(lines)


def generate_incident_feed(
    incidents: Sequence[Incident],
    title: str,
    description: str,
    link: str | None = None,
    build_date: datetime | None = None,
    max_items: int = DEFAULT_MAX_ITEMS,
) -> str:
    """Generate an RSS 2.0 feed from the incident ledger.

    Args:
        incidents: Incident ledger, newest first.
        title: Channel title.
        description: Channel description.
        link: Optional link to the status page.
        build_date: Optional build date for the feed (defaults to now).
        max_items: Maximum number of items to include.

    Returns:
        RSS 2.0 XML string.
    """
    if build_date is None:
        build_date = datetime.now(UTC)

    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")

    ET.SubElement(channel, "title").text = title
    ET.SubElement(channel, "description").text = description
    if link:
        ET.SubElement(channel, "link").text = link
    ET.SubElement(channel, "lastBuildDate").text = _format_rfc822(build_date)
    ET.SubElement(channel, "generator").text = "statuspulse"

    ordered = sorted(incidents, key=lambda i: i.observed_at, reverse=True)
    for incident in ordered[:max_items]:
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = f"{incident.target_name}: DOWN on {incident.calendar_date}"
        ET.SubElement(item, "link").text = incident.target_url
        ET.SubElement(item, "description").text = _incident_to_description(incident)
        ET.SubElement(item, "pubDate").text = _format_rfc822(incident.observed_at)
        guid = ET.SubElement(item, "guid", isPermaLink="false")
        guid.text = f"{incident.target_url}#{incident.calendar_date}"

    tree = ET.ElementTree(rss)
    output = io.BytesIO()
    tree.write(output, encoding="utf-8", xml_declaration=True)
    return output.getvalue().decode("utf-8")
