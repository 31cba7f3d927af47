"""Test command line client."""

import httpx
from typer.testing import CliRunner

from dormmate.cli import main_cli
from dormmate.cli.main_cli import app, format_announcement

runner = CliRunner()


def test_format_announcement():
    """Test card rendering with urgency, time range and date fallback."""
    text = format_announcement(
        {
            "title": "Fire Drill",
            "body": "3pm today",
            "startTime": "3:00 pm",
            "endTime": "3:30 pm",
            "date": "",
            "urgent": True,
        }
    )

    assert text.splitlines() == [
        "[URGENT] Fire Drill  (3:00 pm - 3:30 pm)",
        "  MM/DD/YY",
        "  3pm today",
    ]


def test_post_command(monkeypatch):
    """Test post sends the draft and prints the new ID."""
    sent = {}

    def fake_post(url, json, timeout):
        sent["url"] = url
        sent["json"] = json
        return httpx.Response(201, json={"status": "posted", "id": "abc123", "message": "ok"})

    monkeypatch.setattr(main_cli.httpx, "post", fake_post)

    result = runner.invoke(
        app,
        ["post", "--title", "Fire Drill", "--body", "3pm today", "--building", "d102", "--urgent"],
    )

    assert result.exit_code == 0
    assert "Posted: abc123" in result.output
    assert sent["url"].endswith("/api/v1/announcements")
    assert sent["json"]["building"] == "d102"
    assert sent["json"]["urgent"] is True
    assert sent["json"]["startTime"] == "12:00 pm"


def test_post_command_validation_error(monkeypatch):
    """Test post exits non-zero and names missing fields."""

    def fake_post(url, json, timeout):
        return httpx.Response(
            422, json={"detail": {"status": "validation_error", "fields": ["title"]}}
        )

    monkeypatch.setattr(main_cli.httpx, "post", fake_post)

    result = runner.invoke(app, ["post", "--title", " ", "--body", "3pm today"])

    assert result.exit_code == 1
    assert "Missing: title" in result.output


def test_list_command(monkeypatch):
    """Test list prints announcements newest first."""

    def fake_get(url, params, timeout):
        assert params == {"building": "D102"}
        return httpx.Response(
            200,
            json={
                "building": "D102",
                "state": "active",
                "count": 2,
                "announcements": [
                    {"title": "Second", "body": "b", "date": "10/20/26", "urgent": False},
                    {"title": "First", "body": "a", "date": "10/19/26", "urgent": False},
                ],
                "error": None,
            },
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(main_cli.httpx, "get", fake_get)

    result = runner.invoke(app, ["list", "D102"])

    assert result.exit_code == 0
    assert result.output.index("Second") < result.output.index("First")


def test_list_command_empty(monkeypatch):
    """Test list reports when nothing is visible."""

    def fake_get(url, params, timeout):
        return httpx.Response(
            200,
            json={"building": "", "state": "idle", "count": 0, "announcements": [], "error": None},
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(main_cli.httpx, "get", fake_get)

    result = runner.invoke(app, ["list", " "])

    assert result.exit_code == 0
    assert "No announcements yet." in result.output
