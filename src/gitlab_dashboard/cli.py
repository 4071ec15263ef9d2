"""CLI entry point for the GitLab dashboard."""

import asyncio
import json
import logging
import os
import sys

import click
from dotenv import find_dotenv, load_dotenv

from gitlab_dashboard.config import Config, ConfigError, get_config
from gitlab_dashboard.core.aggregator import collect_dashboard
from gitlab_dashboard.web.app import dashboard_dict


def _load_config() -> Config:
    """Read and validate configuration, exiting with status 1 if it is incomplete."""
    try:
        return get_config().validate()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO)")
def main(log_level):
    """gldash - GitLab merge request dashboard"""
    found = load_dotenv(find_dotenv(usecwd=True))
    level = (log_level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not found:
        logging.getLogger(__name__).debug("No .env found")


# ── Dashboard Commands ───────────────────────────────────────────────────────


@main.command("serve")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to listen on (default: $PORT or 8080)")
def serve_command(host, port):
    """Serve the dashboard over HTTP."""
    from gitlab_dashboard.web.app import run_server

    config = _load_config()
    port = port or config.port
    click.echo(f"Starting dashboard at http://{host}:{port}")
    run_server(config, host=host, port=port)


@main.command("show")
@click.option("--json-output", "--json", is_flag=True, help="Output as JSON")
def show_command(json_output):
    """Run one aggregation cycle and print the result."""
    config = _load_config()
    dashboard = asyncio.run(collect_dashboard(config))

    if json_output:
        click.echo(json.dumps(dashboard_dict(dashboard), indent=2))
        return

    click.echo(f"Open merge requests ({len(dashboard.my_items)}):")
    if not dashboard.my_items:
        click.echo("  No open merge requests.")
    for item in dashboard.my_items:
        click.echo(f"  {_status_icon(item)} {item.reference}: {item.title} (by {item.author_name})")

    if config.teammates:
        click.echo(f"Team merge requests ({len(dashboard.team_items)}):")
        if not dashboard.team_items:
            click.echo("  No team merge requests.")
        for item in dashboard.team_items:
            click.echo(f"  {_status_icon(item)} {item.reference}: {item.title} (by {item.author_name})")

    click.echo(f"Todos ({len(dashboard.notifications)}):")
    if not dashboard.notifications:
        click.echo("  No pending todos.")
    for todo in dashboard.notifications:
        project = f"[{todo.project_name}] " if todo.project_name else ""
        click.echo(f"  - {project}{todo.target_title} ({todo.target_type}, {todo.action_name})")


@main.command("config")
def config_command():
    """Show the resolved configuration."""
    try:
        config = get_config()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    token = "********" if config.token else "(unset)"
    click.echo(f"GitLab:      {config.base_url or '(unset)'}")
    click.echo(f"Token:       {token}")
    click.echo(f"User:        {config.username or '(unset)'}")
    click.echo(f"Teammates:   {', '.join(config.teammates) or '(none)'}")
    click.echo(f"Port:        {config.port}")
    click.echo(f"Timeout:     {config.timeout}s")
    click.echo(f"Concurrency: {config.max_concurrency}")
    click.echo(f"Refresh:     {config.refresh_seconds}s")
    missing = config.missing()
    if missing:
        click.echo(f"Missing:     {', '.join(missing)}", err=True)
        sys.exit(1)


# ── Helpers ───────────────────────────────────────────────────────────────────


def _status_icon(item) -> str:
    if item.build_status is None:
        return "·"
    return {
        "success": "✓",
        "failed": "✗",
        "running": "●",
        "pending": "○",
        "canceled": "-",
    }.get(item.build_status.status, "?")


if __name__ == "__main__":
    main()
