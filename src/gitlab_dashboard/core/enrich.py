"""Attach pipeline status to merge requests that were listed without one."""

import asyncio
import logging
from dataclasses import replace

from gitlab_dashboard.integrations.gitlab import GitLabClient, absorb
from gitlab_dashboard.models import WorkItem

logger = logging.getLogger(__name__)


async def enrich(client: GitLabClient, items: list[WorkItem]) -> list[WorkItem]:
    """Return ``items`` in the same order, with build status filled in where possible.

    Items that already carry a status are passed through untouched. Every other
    item costs one pipeline lookup; a failed or empty lookup leaves it without
    status.
    """

    async def attach(item: WorkItem) -> WorkItem:
        if item.build_status is not None:
            return item
        status = await absorb(
            client.latest_pipeline(item.project_id, item.iid),
            f"pipeline lookup for {item.reference or item.key}",
        )
        if status is None:
            return item
        return replace(item, build_status=status)

    missing = sum(1 for i in items if i.build_status is None)
    if missing:
        logger.debug("Looking up pipelines for %d of %d merge requests", missing, len(items))
    return list(await asyncio.gather(*(attach(i) for i in items)))
