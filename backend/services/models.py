"""Ticket and comment records extracted from a Jira XML feed."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Comment:
    """A comment attached to a ticket, kept in feed order."""

    author: str = "Unknown"
    body: str = ""
    id: Optional[str] = None
    created: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author": self.author,
            "created": self.created,
            "body": self.body,
        }


@dataclass
class Ticket:
    """One work item (story or task) from the feed."""

    key: str
    id: str = ""
    summary: str = ""
    description: str = ""
    type: str = "Task"
    status: str = "Unknown"
    assignee: str = "Unassigned"
    priority: str = "Medium"
    created: str = ""
    updated: str = ""
    parent_key: Optional[str] = None
    link: str = ""
    comments: list = field(default_factory=list)
    sprint: Optional[str] = None

    @property
    def last_comment(self) -> Optional[Comment]:
        return self.comments[-1] if self.comments else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "summary": self.summary,
            "description": self.description,
            "type": self.type,
            "status": self.status,
            "assignee": self.assignee,
            "priority": self.priority,
            "created": self.created,
            "updated": self.updated,
            "parentKey": self.parent_key,
            "link": self.link,
            "comments": [c.to_dict() for c in self.comments],
            "sprint": self.sprint,
        }
