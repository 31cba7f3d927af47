"""CLI for running the service and talking to it."""

from typing import Any

import httpx
import typer

from dormmate.config import config

app = typer.Typer(
    name="dormmate",
    help="Building-scoped announcements for dorm residents and staff",
)


def format_announcement(announcement: dict[str, Any]) -> str:
    """Render one announcement as a card-like text block.

    Args:
        announcement: Announcement as returned by the API

    Returns:
        Multi-line text
    """
    time_str = announcement.get("startTime") or ""
    if announcement.get("endTime"):
        time_str = f"{time_str} - {announcement['endTime']}"

    header = announcement.get("title", "")
    if time_str:
        header = f"{header}  ({time_str})"
    if announcement.get("urgent") is True:
        header = f"[URGENT] {header}"

    lines = [header, f"  {announcement.get('date') or 'MM/DD/YY'}"]
    if announcement.get("body"):
        lines.append(f"  {announcement['body']}")
    return "\n".join(lines)


def _api_url(path: str) -> str:
    return f"{config.api.base_url.rstrip('/')}/api/v1{path}"


@app.command("serve")
def serve(
    host: str = typer.Option(None, help="Bind address (default from config)"),
    port: int = typer.Option(None, help="Bind port (default from config)"),
) -> None:
    """Run the announcements API server."""
    import uvicorn

    uvicorn.run(
        "dormmate.main:app",
        host=host or config.api.host,
        port=port or config.api.port,
        log_config=None,
        access_log=False,
    )


@app.command("post")
def post_announcement(
    title: str = typer.Option(..., help="Announcement title"),
    body: str = typer.Option(..., help="Announcement details"),
    building: str = typer.Option(config.composer.default_building, help="Target building or ALL"),
    date: str = typer.Option(config.composer.default_date, help="Display date"),
    start_time: str = typer.Option(config.composer.default_start_time, help="Start time"),
    end_time: str = typer.Option(config.composer.default_end_time, help="End time"),
    urgent: bool = typer.Option(False, "--urgent/--normal", help="Mark as urgent"),
) -> None:
    """Post a new announcement."""
    payload = {
        "title": title,
        "body": body,
        "building": building,
        "date": date,
        "startTime": start_time,
        "endTime": end_time,
        "urgent": urgent,
    }

    try:
        response = httpx.post(
            _api_url("/announcements"), json=payload, timeout=config.api.request_timeout
        )
    except httpx.HTTPError as e:
        typer.echo(f"Could not reach {config.api.base_url}: {e}", err=True)
        raise typer.Exit(code=1) from e

    if response.status_code == 201:
        typer.echo(f"Posted: {response.json()['id']}")
        return

    if response.status_code == 422:
        detail = response.json().get("detail", {})
        fields = detail.get("fields", []) if isinstance(detail, dict) else []
        typer.echo(f"Missing: {', '.join(fields) or 'required fields'}", err=True)
        raise typer.Exit(code=1)

    typer.echo("Could not post the announcement. Please try again.", err=True)
    raise typer.Exit(code=1)


@app.command("list")
def list_announcements(
    building: str = typer.Argument(
        config.viewer.default_building, help="Your building code, e.g. D102"
    ),
) -> None:
    """Show announcements visible to a building, newest first."""
    try:
        response = httpx.get(
            _api_url("/announcements"),
            params={"building": building},
            timeout=config.api.request_timeout,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        typer.echo(f"Could not load announcements: {e}", err=True)
        raise typer.Exit(code=1) from e

    announcements = response.json()["announcements"]
    if not announcements:
        typer.echo("No announcements yet.")
        return

    for announcement in announcements:
        typer.echo(format_announcement(announcement))
        typer.echo("")


if __name__ == "__main__":
    app()
