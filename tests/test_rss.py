"""Tests for the incident RSS feed."""

from datetime import UTC, datetime
from xml.etree import ElementTree

import pytest

from statuspulse._rss import generate_incident_feed
from statuspulse.models import Incident


def make_incident(name: str, day: str, status_code: int | None = None) -> Incident:
    return Incident(
        calendar_date=day,
        observed_at=datetime.fromisoformat(f"{day}T09:30:00+00:00"),
        target_url=f"https://{name.lower()}.example.com",
        target_name=name,
        status_code=status_code,
        error="Connection refused" if status_code is None else "Service Unavailable",
        response_time_ms=12,
    )


@pytest.fixture
def build_date() -> datetime:
    """Fixed feed build date."""
    return datetime(2025, 10, 28, 0, 0, tzinfo=UTC)


class TestGenerateIncidentFeed:
    """Tests for generate_incident_feed."""

    def test_channel_metadata(self, build_date: datetime) -> None:
        """Channel has title, description, link and build date."""
        xml = generate_incident_feed([], "Status - Incidents", "All incidents", "http://status.local/", build_date)
        channel = ElementTree.fromstring(xml).find("channel")
        assert channel.findtext("title") == "Status - Incidents"
        assert channel.findtext("description") == "All incidents"
        assert channel.findtext("link") == "http://status.local/"
        assert channel.findtext("lastBuildDate") == "Tue, 28 Oct 2025 00:00:00 +0000"
        assert channel.findall("item") == []

    def test_items_newest_first(self, build_date: datetime) -> None:
        """Items are ordered by observation time, newest first."""
        incidents = [make_incident("A", "2025-10-20"), make_incident("B", "2025-10-27", 503)]
        channel = ElementTree.fromstring(generate_incident_feed(incidents, "t", "d", build_date=build_date)).find(
            "channel"
        )
        items = channel.findall("item")
        assert [i.findtext("title") for i in items] == [
            "B: DOWN on 2025-10-27",
            "A: DOWN on 2025-10-20",
        ]
        assert items[0].findtext("link") == "https://b.example.com"
        assert "HTTP Status: 503" in items[0].findtext("description")
        assert "Error: Connection refused" in items[1].findtext("description")

    def test_guid_is_stable_per_target_and_date(self, build_date: datetime) -> None:
        """The guid identifies the (target, date) pair."""
        xml = generate_incident_feed([make_incident("A", "2025-10-20")], "t", "d", build_date=build_date)
        guid = ElementTree.fromstring(xml).find("channel/item/guid")
        assert guid.text == "https://a.example.com#2025-10-20"
        assert guid.get("isPermaLink") == "false"

    def test_max_items(self, build_date: datetime) -> None:
        """The feed is capped at max_items."""
        incidents = [make_incident("A", f"2025-10-{day:02d}") for day in range(1, 11)]
        xml = generate_incident_feed(incidents, "t", "d", build_date=build_date, max_items=3)
        assert len(ElementTree.fromstring(xml).findall("channel/item")) == 3

    def test_escapes_markup(self, build_date: datetime) -> None:
        """Names with markup characters produce valid XML."""
        xml = generate_incident_feed([make_incident("A&B", "2025-10-20")], "<Status>", "d", build_date=build_date)
        channel = ElementTree.fromstring(xml).find("channel")
        assert channel.findtext("title") == "<Status>"
        assert channel.find("item").findtext("title") == "A&B: DOWN on 2025-10-20"
