"""Shared fixtures: an in-memory GitLab behind httpx.MockTransport."""

import re

import httpx
import pytest

from gitlab_dashboard.config import Config

BASE_URL = "https://gitlab.example.com"

_PIPELINES_PATH = re.compile(r"/api/v4/projects/(\d+)/merge_requests/(\d+)/pipelines")
_IDENTITY_FILTERS = ("assignee_username", "reviewer_username", "author_username")


class FakeGitLab:
    """Serves canned JSON per query and records every request it sees.

    A canned payload may be a JSON-able value, an ``httpx.Response``, or a
    callable taking the request (used to raise transport errors).
    """

    def __init__(self):
        self.merge_requests: dict[tuple[str, str], object] = {}
        self.pipelines: dict[tuple[int, int], object] = {}
        self.todos: object = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        if path == "/api/v4/merge_requests":
            for name in _IDENTITY_FILTERS:
                if name in params:
                    return self._respond(request, self.merge_requests.get((name, params[name]), []))
            return httpx.Response(400, json={"message": "missing identity filter"})

        if m := _PIPELINES_PATH.fullmatch(path):
            return self._respond(request, self.pipelines.get((int(m[1]), int(m[2])), []))

        if path == "/api/v4/todos":
            return self._respond(request, self.todos)

        return httpx.Response(404, json={"message": "404 Not Found"})

    def _respond(self, request, payload) -> httpx.Response:
        if callable(payload):
            return payload(request)
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, path_fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if path_fragment in r.url.path]

    def listing_requests(self, identity_filter: str, username: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests_to("/api/v4/merge_requests")
            if r.url.params.get(identity_filter) == username
        ]


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def time_out(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


def corrupt_gzip(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        stream=httpx.ByteStream(b"not gzip at all"),
    )


def make_mr(
    project_id: int,
    iid: int,
    updated_at: str,
    title: str | None = None,
    author: str = "Alice",
    pipeline: dict | None = None,
) -> dict:
    return {
        "id": project_id * 1000 + iid,
        "iid": iid,
        "project_id": project_id,
        "title": title or f"MR {project_id}!{iid}",
        "web_url": f"{BASE_URL}/group/p{project_id}/-/merge_requests/{iid}",
        "updated_at": updated_at,
        "author": {"name": author},
        "references": {"full": f"group/p{project_id}!{iid}"},
        "head_pipeline": pipeline,
    }


def make_pipeline(pipeline_id: int, status: str = "success") -> dict:
    return {"id": pipeline_id, "status": status, "web_url": f"{BASE_URL}/-/pipelines/{pipeline_id}"}


def make_todo(todo_id: int, title: str = "Fix login", project: str | None = "backend") -> dict:
    return {
        "id": todo_id,
        "action_name": "review_requested",
        "target_type": "MergeRequest",
        "target": {"title": title, "web_url": f"{BASE_URL}/group/backend/-/merge_requests/{todo_id}"},
        "project": {"name": project} if project else None,
        "created_at": "2024-01-04T08:30:00.000Z",
    }


@pytest.fixture
def fake_gitlab():
    return FakeGitLab()


@pytest.fixture
def config():
    return Config(base_url=BASE_URL, token="glpat-secret", username="me", teammates=("bob", "carol"))
