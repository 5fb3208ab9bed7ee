"""Dashboard configuration supplied by the caller."""

from dataclasses import dataclass

GROUPING_CHOICES = ("assignee", "sprint")
DEFAULT_TITLE = "JIRA Sprint Dashboard"
DEFAULT_TIMEOUT = 30


@dataclass
class DashboardConfig:
    """Where to fetch the feed from and how to lay out the dashboard.

    Args:
        source_url: Jira XML feed URL (e.g. a saved filter's "XML" export)
        auth_token: Bearer token sent with the feed request
        grouping: "assignee" or "sprint" (sprint, then assignee)
        title: Heading shown in the overlay
        timeout: Request timeout in seconds
    """

    source_url: str
    auth_token: str
    grouping: str = "assignee"
    title: str = DEFAULT_TITLE
    timeout: int = DEFAULT_TIMEOUT

    def __post_init__(self):
        if self.grouping not in GROUPING_CHOICES:
            raise ValueError(
                f"Unknown grouping '{self.grouping}', expected one of: "
                f"{', '.join(GROUPING_CHOICES)}"
            )
