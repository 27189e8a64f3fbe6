"""CreatorCompass CLI — watch live streams, list notifications, run the cron.

Usage:
    creatorcompass listen                        # Tail the notification stream
    creatorcompass listen --channel analytics    # Tail the analytics stream
    creatorcompass notifications --unread        # List unread notifications
    creatorcompass run-cron                      # Trigger scheduled notifications
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("CREATORCOMPASS_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(timeout: Optional[float] = 30.0) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the CreatorCompass backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=timeout)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Inside an already-running loop (e.g. CliRunner in async tests) the
    coroutine is offloaded to a worker thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _token(token: Optional[str]) -> str:
    """Resolve the access token from flag or CREATORCOMPASS_TOKEN env var."""
    tok = token or os.environ.get("CREATORCOMPASS_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set CREATORCOMPASS_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def parse_sse_line(line: str) -> Optional[dict]:
    """Decode one `data: {...}` line; anything else (blank, comments) → None."""
    if not line.startswith("data:"):
        return None
    try:
        return json.loads(line[5:].strip())
    except json.JSONDecodeError:
        return None


_FRAME_COLORS = {
    "connected": "green",
    "heartbeat": "bright_black",
    "notification": "cyan",
    "analytics-update": "magenta",
}


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="creatorcompass")
def main():
    """CreatorCompass — notifications and live analytics from the terminal."""


# ---------------------------------------------------------------------------
# creatorcompass listen
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--channel",
    type=click.Choice(["notifications", "analytics"]),
    default="notifications",
    show_default=True,
)
@click.option("--token", help="Access token (or set CREATORCOMPASS_TOKEN)")
@click.option("--show-heartbeats", is_flag=True, help="Print heartbeat frames too")
def listen(channel: str, token: Optional[str], show_heartbeats: bool):
    """Print frames from a live SSE stream until interrupted."""
    try:
        _run(_listen_impl(channel, _token(token), show_heartbeats))
    except KeyboardInterrupt:
        click.echo("Disconnected.")


async def _listen_impl(channel: str, token: str, show_heartbeats: bool):
    # No read timeout: the server only speaks every heartbeat interval
    async with _client(timeout=None) as c:
        async with c.stream("GET", f"/api/{channel}/sse", params={"token": token}) as r:
            if r.status_code != 200:
                await r.aread()
                click.secho(f"Stream refused ({r.status_code}): {r.text}", fg="red", err=True)
                sys.exit(1)

            async for line in r.aiter_lines():
                frame = parse_sse_line(line)
                if frame is None:
                    continue
                kind = frame.get("type", "?")
                if kind == "heartbeat" and not show_heartbeats:
                    continue
                click.secho(f"[{kind}] ", fg=_FRAME_COLORS.get(kind, "white"), nl=False)
                click.echo(json.dumps(frame, default=str))


# ---------------------------------------------------------------------------
# creatorcompass notifications
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Access token (or set CREATORCOMPASS_TOKEN)")
@click.option("--unread", is_flag=True, help="Only unread notifications")
@click.option("--limit", default=20, show_default=True)
def notifications(token: Optional[str], unread: bool, limit: int):
    """List your most recent notifications."""
    _run(_notifications_impl(_token(token), unread, limit))


async def _notifications_impl(token: str, unread: bool, limit: int):
    async with _client() as c:
        r = await c.get(
            "/api/notifications",
            params={"limit": limit, "unread_only": str(unread).lower()},
            headers={"Authorization": f"Bearer {token}"},
        )
        r.raise_for_status()
        data = r.json()

    items = data["notifications"]
    if not items:
        click.echo("No notifications.")
        return

    total = data["pagination"]["total"]
    click.secho(f"Notifications ({len(items)} of {total}):", bold=True)
    for n in items:
        marker = " " if n["is_read"] else click.style("●", fg="cyan")
        click.echo(f"  {marker} {n['icon']} {n['title']}  — {n['message']}")


# ---------------------------------------------------------------------------
# creatorcompass run-cron
# ---------------------------------------------------------------------------


@main.command("run-cron")
@click.option("--secret", help="Cron secret (or set CREATORCOMPASS_CRON_SECRET)")
def run_cron(secret: Optional[str]):
    """Trigger the scheduled notification jobs once."""
    secret = secret or os.environ.get("CREATORCOMPASS_CRON_SECRET")
    if not secret:
        click.secho(
            "Error: --secret required (or set CREATORCOMPASS_CRON_SECRET)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    _run(_run_cron_impl(secret))


async def _run_cron_impl(secret: str):
    async with _client() as c:
        r = await c.get(
            "/api/notifications/cron",
            headers={"Authorization": f"Bearer {secret}"},
        )
        if r.status_code == 401:
            click.secho("Cron secret rejected.", fg="red", err=True)
            sys.exit(1)
        r.raise_for_status()
        counts = r.json()["notifications"]

    click.secho("Scheduled notifications processed:", fg="green")
    for job, count in counts.items():
        click.echo(f"  {job:22s} {count}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
