"""Click CLI for running and exercising the job relay."""

from __future__ import annotations

import json
import logging
import sys

import click
import httpx

from jobrelay.config import RelaySettings


@click.group()
def cli() -> None:
    """Job notification relay CLI."""


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind.")
@click.option("--port", default=8080, show_default=True, type=int, help="Port to listen on.")
def serve(host: str, port: int) -> None:
    """Run the relay server with settings from the environment."""
    import uvicorn

    from jobrelay.audit.logger import AuditLogger
    from jobrelay.proxy.app import create_app

    settings = RelaySettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings, AuditLogger.from_settings(settings))
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


@cli.command("config")
def show_config() -> None:
    """Print the effective settings with the secret redacted."""
    settings = RelaySettings.from_env()
    click.echo(json.dumps(settings.redacted(), indent=2))


@cli.command()
@click.argument("url")
@click.option("--job-id", default="", help="Job identifier.")
@click.option("--player-name", default="", help="Player name.")
@click.option("--place-id", default="", help="Place identifier.")
@click.option("--webhook", default=None, help="Client-supplied webhook URL.")
@click.option("--api-key", envvar="SECRET_API_KEY", default=None, help="X-API-KEY header value.")
@click.option("--timeout", default=10.0, show_default=True, type=float, help="Seconds to wait.")
def send(
    url: str,
    job_id: str,
    player_name: str,
    place_id: str,
    webhook: str | None,
    api_key: str | None,
    timeout: float,
) -> None:
    """Post a job notification to a running relay at URL."""
    payload: dict[str, str] = {
        "job_id": job_id,
        "player_name": player_name,
        "place_id": place_id,
    }
    if webhook:
        payload["webhook"] = webhook
    headers = {"X-API-KEY": api_key} if api_key else {}

    try:
        resp = httpx.post(url, json=payload, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise click.ClickException(f"Request to relay failed: {exc}") from exc

    try:
        body = resp.json()
    except json.JSONDecodeError:
        raise click.ClickException(
            f"Relay returned non-JSON response (status {resp.status_code})",
        ) from None

    click.echo(json.dumps(body, indent=2))
    if not body.get("success"):
        sys.exit(1)
