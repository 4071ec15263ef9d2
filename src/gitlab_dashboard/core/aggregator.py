"""One aggregation cycle: listings, merge, enrichment."""

import asyncio
import logging
from collections.abc import Sequence

import httpx

from gitlab_dashboard.config import Config
from gitlab_dashboard.core.enrich import enrich
from gitlab_dashboard.core.merge import merge_work_items
from gitlab_dashboard.integrations.gitlab import GitLabClient, absorb
from gitlab_dashboard.models import Dashboard

logger = logging.getLogger(__name__)


async def aggregate(client: GitLabClient, username: str, teammates: Sequence[str] = ()) -> Dashboard:
    """Build the dashboard for ``username`` and their teammates.

    All listings run concurrently. ``asyncio.gather`` returns results in
    argument order, so the merge sees them in query order (assignee before
    reviewer; per teammate, authored before assigned) however the requests
    complete.
    """
    my_queries = [
        absorb(client.list_merge_requests(assignee_username=username), f"assignee listing for {username}", []),
        absorb(client.list_merge_requests(reviewer_username=username), f"reviewer listing for {username}", []),
    ]
    team_queries = []
    for mate in teammates:
        team_queries.append(
            absorb(client.list_merge_requests(author_username=mate), f"author listing for {mate}", [])
        )
        team_queries.append(
            absorb(client.list_merge_requests(assignee_username=mate), f"assignee listing for {mate}", [])
        )
    todo_query = absorb(client.list_todos(), "todo listing", [])

    results = await asyncio.gather(*my_queries, *team_queries, todo_query)
    my_lists = results[: len(my_queries)]
    team_lists = results[len(my_queries) : -1]
    notifications = results[-1]

    my_items, team_items = await asyncio.gather(
        enrich(client, merge_work_items(my_lists)),
        enrich(client, merge_work_items(team_lists)),
    )

    logger.info(
        "Dashboard for %s: %d merge requests, %d team merge requests, %d todos",
        username,
        len(my_items),
        len(team_items),
        len(notifications),
    )
    return Dashboard(my_items=my_items, team_items=team_items, notifications=notifications)


async def collect_dashboard(config: Config, transport: httpx.AsyncBaseTransport | None = None) -> Dashboard:
    """Run one cycle against the configured GitLab with a fresh client."""
    async with GitLabClient.from_config(config, transport=transport) as client:
        return await aggregate(client, config.username, config.teammates)
