"""Web dashboard for the GitLab merge request aggregator."""

import asyncio
import logging
from collections.abc import Awaitable

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from gitlab_dashboard.config import Config, get_config
from gitlab_dashboard.core.aggregator import collect_dashboard
from gitlab_dashboard.models import Dashboard, Notification, WorkItem
from gitlab_dashboard.web.dashboard import render_dashboard

logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.25


class ClientDisconnected(Exception):
    """The client went away before the dashboard was ready."""


async def run_while_connected(request: Request, work: Awaitable, poll_interval: float = DISCONNECT_POLL_SECONDS):
    """Await ``work``, cancelling it if the client disconnects first."""
    task = asyncio.ensure_future(work)

    async def watch():
        while not task.done():
            if await request.is_disconnected():
                task.cancel()
                return
            await asyncio.sleep(poll_interval)

    watcher = asyncio.ensure_future(watch())
    try:
        return await task
    except asyncio.CancelledError:
        if watcher.done() and task.cancelled():
            raise ClientDisconnected() from None
        raise
    finally:
        watcher.cancel()
        if not task.done():
            task.cancel()


async def _load_dashboard(request: Request) -> Dashboard:
    state = request.app.state
    return await run_while_connected(request, collect_dashboard(state.config, transport=state.transport))


# ── Handlers ──────────────────────────────────────────────────────────────────


async def index(request: Request):
    config = request.app.state.config
    try:
        dashboard = await _load_dashboard(request)
    except ClientDisconnected:
        logger.info("Client disconnected, dashboard cycle abandoned")
        return Response(status_code=499)
    return HTMLResponse(
        render_dashboard(dashboard, config.username, config.base_url, config.refresh_seconds)
    )


async def api_dashboard(request: Request):
    try:
        dashboard = await _load_dashboard(request)
    except ClientDisconnected:
        logger.info("Client disconnected, dashboard cycle abandoned")
        return Response(status_code=499)
    return JSONResponse(dashboard_dict(dashboard))


async def healthz(request: Request):
    return JSONResponse({"status": "ok"})


# ── Serialization ─────────────────────────────────────────────────────────────


def _work_item_dict(i: WorkItem) -> dict:
    status = i.build_status
    return {
        "id": i.id,
        "project_id": i.project_id,
        "iid": i.iid,
        "title": i.title,
        "web_url": i.web_url,
        "author": i.author_name,
        "reference": i.reference,
        "updated_at": i.updated_at.isoformat(),
        "build_status": (
            {"id": status.id, "status": status.status, "web_url": status.web_url} if status else None
        ),
    }


def _notification_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "action_name": n.action_name,
        "target_type": n.target_type,
        "target_title": n.target_title,
        "target_url": n.target_url,
        "project": n.project_name,
        "created_at": n.created_at.isoformat(),
    }


def dashboard_dict(d: Dashboard) -> dict:
    return {
        "merge_requests": [_work_item_dict(i) for i in d.my_items],
        "team_merge_requests": [_work_item_dict(i) for i in d.team_items],
        "todos": [_notification_dict(n) for n in d.notifications],
    }


# ── App ───────────────────────────────────────────────────────────────────────


def create_app(config: Config | None = None, transport=None) -> Starlette:
    """Build the app. Raises ConfigError if required settings are missing."""
    config = (config or get_config()).validate()
    routes = [
        Route("/", index),
        Route("/api/dashboard", api_dashboard),
        Route("/healthz", healthz),
    ]
    app = Starlette(routes=routes)
    app.state.config = config
    app.state.transport = transport
    return app


def run_server(config: Config, host: str = "127.0.0.1", port: int | None = None):
    app = create_app(config)
    uvicorn.run(app, host=host, port=port or config.port)
