"""Data models for the GitLab dashboard."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class BuildStatus:
    id: int
    status: str
    web_url: str = ""


@dataclass(frozen=True)
class WorkItem:
    """A merge request as listed by GitLab.

    ``id`` is the global id, which GitLab does not report consistently across
    endpoints; ``key`` is the identity used for deduplication.
    """

    id: int
    project_id: int
    iid: int
    title: str
    web_url: str
    author_name: str
    reference: str
    updated_at: datetime
    build_status: BuildStatus | None = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.project_id, self.iid)


@dataclass(frozen=True)
class Notification:
    id: int
    action_name: str
    target_type: str
    target_title: str
    target_url: str
    project_name: str
    created_at: datetime


@dataclass
class Dashboard:
    my_items: list[WorkItem] = field(default_factory=list)
    team_items: list[WorkItem] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
