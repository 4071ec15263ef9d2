"""GitLab REST API access for the dashboard queries."""

import asyncio
import logging
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Any

import httpx

from gitlab_dashboard.models import BuildStatus, Notification, WorkItem

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
PAGE_SIZE = 100


class GitLabError(Exception):
    """Raised when a GitLab request fails."""


class TransportError(GitLabError):
    """The request never got an HTTP response (refused, timed out, DNS)."""


class RemoteError(GitLabError):
    """GitLab answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int, reason: str):
        super().__init__(f"GET {url} -> {status_code} {reason}".rstrip())
        self.url = url
        self.status_code = status_code
        self.reason = reason


class DecodeError(GitLabError):
    """The response body is not the JSON shape we asked for."""


class GitLabClient:
    """Authenticated GET access to one GitLab instance.

    Every request goes through a semaphore, so ``max_concurrency`` bounds the
    number of in-flight requests for the lifetime of the client.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        max_concurrency: int = 8,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"PRIVATE-TOKEN": token, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @classmethod
    def from_config(cls, config, transport: httpx.AsyncBaseTransport | None = None) -> "GitLabClient":
        return cls(
            config.base_url,
            config.token,
            timeout=config.timeout,
            max_concurrency=config.max_concurrency,
            transport=transport,
        )

    async def __aenter__(self) -> "GitLabClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_json(self, path: str, params: dict | None = None) -> Any:
        """GET ``path`` and return the decoded JSON body.

        Raises TransportError, RemoteError or DecodeError.
        """
        url = API_PREFIX + path
        async with self._semaphore:
            logger.debug("GET %s %s", url, params or "")
            try:
                resp = await self._http.get(url, params=params)
            except httpx.DecodingError as e:
                raise DecodeError(f"GET {url} returned an undecodable body: {e}") from e
            except httpx.RequestError as e:
                raise TransportError(f"GET {url} failed: {e!r}") from e

        if resp.status_code >= 300:
            raise RemoteError(str(resp.request.url), resp.status_code, resp.reason_phrase)
        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"GET {url} returned invalid JSON: {e}") from e

    # ── Queries ───────────────────────────────────────────────────────────────

    async def list_merge_requests(self, **filters: str) -> list[WorkItem]:
        """Open merge requests matching an identity filter such as ``assignee_username``."""
        params = {
            "scope": "all",
            "state": "opened",
            "per_page": PAGE_SIZE,
            "include": "head_pipeline",
            **filters,
        }
        data = await self.get_json("/merge_requests", params)
        return [parse_merge_request(d) for d in _as_list(data, "merge requests")]

    async def latest_pipeline(self, project_id: int, iid: int) -> BuildStatus | None:
        """Most recent pipeline of a merge request, or None if it has none."""
        data = await self.get_json(
            f"/projects/{project_id}/merge_requests/{iid}/pipelines",
            {"per_page": 1},
        )
        pipelines = _as_list(data, "pipelines")
        if not pipelines:
            return None
        return parse_pipeline(pipelines[0])

    async def list_todos(self) -> list[Notification]:
        data = await self.get_json("/todos", {"state": "pending", "per_page": PAGE_SIZE})
        return [parse_todo(d) for d in _as_list(data, "todos")]


async def absorb(call: Awaitable, what: str, default: Any = None) -> Any:
    """Await one remote call, turning a GitLabError into ``default``.

    A failed sub-query contributes nothing to its cycle and is never retried.
    """
    try:
        return await call
    except GitLabError as e:
        logger.warning("%s failed, treating as empty: %s", what, e)
        return default


# ── JSON-to-model helpers ────────────────────────────────────────────────────


def _as_list(data: Any, what: str) -> list[dict]:
    if not isinstance(data, list) or not all(isinstance(d, dict) for d in data):
        raise DecodeError(f"expected a JSON array of {what}, got {type(data).__name__}")
    return data


def _parse_dt(val: Any) -> datetime:
    if not isinstance(val, str):
        raise DecodeError(f"expected an ISO 8601 timestamp, got {val!r}")
    try:
        dt = datetime.fromisoformat(val)
    except ValueError as e:
        raise DecodeError(f"bad timestamp {val!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _int(data: dict, key: str) -> int:
    val = data.get(key)
    if not isinstance(val, int) or isinstance(val, bool):
        raise DecodeError(f"expected integer {key!r}, got {val!r}")
    return val


def _str(data: Any, key: str) -> str:
    if not isinstance(data, dict):
        return ""
    val = data.get(key)
    return val if isinstance(val, str) else ""


def parse_pipeline(data: dict) -> BuildStatus:
    status = data.get("status")
    if not isinstance(status, str):
        raise DecodeError(f"pipeline without status: {data!r}")
    return BuildStatus(id=_int(data, "id"), status=status, web_url=_str(data, "web_url"))


def _inline_pipeline(head: Any) -> BuildStatus | None:
    # malformed counts as absent
    if not isinstance(head, dict):
        return None
    try:
        return parse_pipeline(head)
    except DecodeError:
        return None


def parse_merge_request(data: dict) -> WorkItem:
    return WorkItem(
        id=data.get("id") if isinstance(data.get("id"), int) else 0,
        project_id=_int(data, "project_id"),
        iid=_int(data, "iid"),
        title=_str(data, "title"),
        web_url=_str(data, "web_url"),
        author_name=_str(data.get("author"), "name"),
        reference=_str(data.get("references"), "full"),
        updated_at=_parse_dt(data.get("updated_at")),
        build_status=_inline_pipeline(data.get("head_pipeline")),
    )


def parse_todo(data: dict) -> Notification:
    target = data.get("target")
    project = data.get("project")
    return Notification(
        id=_int(data, "id"),
        action_name=_str(data, "action_name"),
        target_type=_str(data, "target_type"),
        target_title=_str(target, "title"),
        target_url=_str(target, "web_url") or _str(data, "target_url"),
        project_name=_str(project, "name"),
        created_at=_parse_dt(data.get("created_at")),
    )
