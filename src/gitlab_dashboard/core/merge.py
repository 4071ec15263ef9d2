"""Merging overlapping merge request listings."""

from collections.abc import Iterable, Sequence

from gitlab_dashboard.models import WorkItem


def merge_work_items(lists: Iterable[Sequence[WorkItem] | None] | None) -> list[WorkItem]:
    """Combine listings into one duplicate-free list, newest first.

    The first copy of each ``(project_id, iid)`` wins, even if a later listing
    has a fresher one. Items with equal ``updated_at`` keep their input order.
    """
    seen: set[tuple[int, int]] = set()
    merged: list[WorkItem] = []
    for items in lists or ():
        for item in items or ():
            if item.key in seen:
                continue
            seen.add(item.key)
            merged.append(item)

    # sorted() is stable under reverse=True, so ties stay in first-seen order
    return sorted(merged, key=lambda i: i.updated_at, reverse=True)
