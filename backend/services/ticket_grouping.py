"""Grouping, stats and sorting for parsed tickets.

Two layouts are supported:

- ``assignee``: assignee -> TicketBucket
- ``sprint``: sprint -> assignee -> TicketBucket

Mappings keep first-seen order, which is also the render order.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

STANDALONE = "standalone"
NO_SPRINT = "No Sprint"

SORT_FIELDS = (
    "key", "summary", "type", "status", "assignee",
    "priority", "created", "updated", "sprint",
)

# Lower rank sorts first in ascending order
_PRIORITY_RANKS = {
    "highest": 0,
    "blocker": 0,
    "critical": 1,
    "high": 2,
    "major": 2,
    "medium": 3,
    "normal": 3,
    "low": 5,
    "minor": 5,
    "lowest": 6,
    "trivial": 6,
}
_UNKNOWN_PRIORITY_RANK = 4

_ISSUE_KEY = re.compile(r"^([A-Za-z][A-Za-z0-9_]*)-(\d+)$")


@dataclass
class TicketBucket:
    """Stories and tasks belonging to one assignee."""

    user_stories: list = field(default_factory=list)
    tasks: list = field(default_factory=list)
    raw: list = field(default_factory=list)
    tasks_by_parent: dict = field(default_factory=dict)

    def add(self, ticket):
        self.raw.append(ticket)
        if is_story(ticket):
            self.user_stories.append(ticket)
        else:
            self.tasks.append(ticket)

    def link_tasks(self):
        """Attach tasks to the story in this bucket named by their parent key."""
        story_keys = {story.key for story in self.user_stories}
        linked = {}
        for task in self.tasks:
            parent = task.parent_key if task.parent_key in story_keys else STANDALONE
            linked.setdefault(parent, []).append(task)
        self.tasks_by_parent = linked
        return linked

    def to_dict(self) -> dict:
        return {
            "userStories": [t.to_dict() for t in self.user_stories],
            "tasks": [t.to_dict() for t in self.tasks],
            "tasksByParent": {
                parent: [t.key for t in tasks]
                for parent, tasks in self.tasks_by_parent.items()
            },
        }


def is_story(ticket) -> bool:
    return "story" in (ticket.type or "").lower()


def is_task(ticket) -> bool:
    return "task" in (ticket.type or "").lower()


def group_by_assignee(tickets: list) -> dict:
    """Group tickets into one bucket per assignee."""
    grouped = {}
    for ticket in tickets:
        assignee = ticket.assignee or "Unassigned"
        grouped.setdefault(assignee, TicketBucket()).add(ticket)

    for bucket in grouped.values():
        bucket.link_tasks()
    return grouped


def group_by_sprint(tickets: list) -> dict:
    """Group tickets by sprint, then by assignee within each sprint."""
    by_sprint = {}
    for ticket in tickets:
        by_sprint.setdefault(ticket.sprint or NO_SPRINT, []).append(ticket)

    return {
        sprint: group_by_assignee(sprint_tickets)
        for sprint, sprint_tickets in by_sprint.items()
    }


GROUPING_STRATEGIES = {
    "assignee": group_by_assignee,
    "sprint": group_by_sprint,
}


def group_tickets(tickets: list, strategy: str = "assignee") -> dict:
    """Group tickets using a named strategy from GROUPING_STRATEGIES."""
    try:
        grouper = GROUPING_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown grouping strategy: {strategy}")
    return grouper(tickets)


def iter_buckets(grouped: dict, strategy: str = "assignee"):
    """Yield (sprint, assignee, bucket); sprint is None for assignee grouping."""
    if strategy == "sprint":
        for sprint, assignees in grouped.items():
            for assignee, bucket in assignees.items():
                yield sprint, assignee, bucket
    else:
        for assignee, bucket in grouped.items():
            yield None, assignee, bucket


def compute_stats(tickets: list, grouped: dict, strategy: str = "assignee") -> dict:
    """Summary counts shown in the dashboard stat cards."""
    stats = {
        "totalTickets": len(tickets),
        "userStories": sum(1 for t in tickets if is_story(t)),
        "tasks": sum(1 for t in tickets if is_task(t)),
    }
    if strategy == "sprint":
        stats["sprints"] = len(grouped)
    else:
        stats["assignees"] = len(grouped)
    return stats


def parse_ticket_date(value: Optional[str]) -> Optional[datetime]:
    """Parse the date formats found in Jira feeds.

    Feeds use RFC 822 ("Mon, 15 Jan 2024 10:30:00 +0000"); fallbacks
    created at parse time are ISO 8601.
    """
    if not value:
        return None

    try:
        parsed = parsedate_to_datetime(value)
        if parsed is not None:
            return parsed
    except (TypeError, ValueError, IndexError):
        pass

    formats = [
        "%Y-%m-%dT%H:%M:%S.%f%z",
        "%Y-%m-%dT%H:%M:%S%z",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d"
    ]

    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _date_sort_key(value: Optional[str]):
    parsed = parse_ticket_date(value)
    if parsed is None:
        return (1, 0.0)
    if parsed.tzinfo is None:
        # Naive dates are treated as UTC so they compare with aware ones
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (0, parsed.timestamp())


def _key_sort_key(key: str):
    match = _ISSUE_KEY.match(key or "")
    if match:
        return (match.group(1).upper(), int(match.group(2)), "")
    return ((key or "").upper(), -1, key or "")


def _sort_key_for(field_name: str):
    if field_name == "priority":
        return lambda t: _PRIORITY_RANKS.get((t.priority or "").lower(), _UNKNOWN_PRIORITY_RANK)
    if field_name in ("created", "updated"):
        return lambda t: _date_sort_key(getattr(t, field_name))
    if field_name == "key":
        return lambda t: _key_sort_key(t.key)
    return lambda t: (getattr(t, field_name) or "").lower()


def sort_tickets(tickets: list, field_name: str, ascending: bool = True) -> list:
    """Return a new list sorted by one ticket field (stable)."""
    if field_name not in SORT_FIELDS:
        raise ValueError(
            f"Unknown sort field '{field_name}', expected one of: {', '.join(SORT_FIELDS)}"
        )
    return sorted(tickets, key=_sort_key_for(field_name), reverse=not ascending)
