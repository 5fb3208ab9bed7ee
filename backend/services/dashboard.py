"""Dashboard controller: fetch, parse, group, render, re-sort."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

import requests

from services.config import DashboardConfig
from services.dashboard_renderer import render_dashboard, render_loading
from services.feed_parser import parse_feed
from services.jira_feed import JiraFeedClient
from services.page import DashboardPage
from services.ticket_grouping import (
    compute_stats,
    group_tickets,
    iter_buckets,
    sort_tickets,
)

logger = logging.getLogger(__name__)


@dataclass
class DashboardState:
    """Everything one render needs; replaced on every load or sort."""

    tickets: list = field(default_factory=list)
    grouped: dict = field(default_factory=dict)
    stats: dict = field(default_factory=dict)
    strategy: str = "assignee"
    sort_field: Optional[str] = None
    sort_ascending: bool = True

    def to_dict(self) -> dict:
        grouped = {}
        for sprint, name, bucket in iter_buckets(self.grouped, self.strategy):
            target = grouped if sprint is None else grouped.setdefault(sprint, {})
            target[name] = bucket.to_dict()

        return {
            "tickets": [t.to_dict() for t in self.tickets],
            "groupedTickets": grouped,
            "stats": self.stats,
            "grouping": self.strategy,
            "sort": {"field": self.sort_field, "ascending": self.sort_ascending},
        }


def build_state(tickets: list, strategy: str = "assignee",
                sort_field: Optional[str] = None, ascending: bool = True) -> DashboardState:
    """Group (and optionally sort) tickets into a fresh DashboardState."""
    if sort_field:
        tickets = sort_tickets(tickets, sort_field, ascending)
    else:
        tickets = list(tickets)

    grouped = group_tickets(tickets, strategy)
    return DashboardState(
        tickets=tickets,
        grouped=grouped,
        stats=compute_stats(tickets, grouped, strategy),
        strategy=strategy,
        sort_field=sort_field,
        sort_ascending=ascending
    )


def resort_state(state: DashboardState, sort_field: str) -> DashboardState:
    """Sort an existing state by a field, flipping direction on a repeat request."""
    ascending = True
    if state.sort_field == sort_field:
        ascending = not state.sort_ascending
    return build_state(state.tickets, state.strategy, sort_field, ascending)


class JiraDashboard:
    """Runs the dashboard pipeline for one config and owns its current state.

    One controller can be shared between requests; run() and the sort
    methods hold its lock while they replace the state and the overlay.
    """

    def __init__(self, config: DashboardConfig, page: Optional[DashboardPage] = None,
                 client: Optional[JiraFeedClient] = None,
                 sort_url: Optional[Callable[[str], str]] = None,
                 sort_field: Optional[str] = None, ascending: bool = True):
        self.config = config
        self.page = page or DashboardPage(title=config.title)
        self.client = client or JiraFeedClient(
            config.source_url, config.auth_token, timeout=config.timeout
        )
        self.sort_url = sort_url
        self.state = DashboardState(
            strategy=config.grouping,
            sort_field=sort_field,
            sort_ascending=ascending
        )
        self.last_error = None
        self._lock = threading.RLock()

    def load_tickets(self) -> list:
        """Fetch and parse the feed; a failed fetch yields no tickets."""
        self.last_error = None
        try:
            xml_text = self.client.fetch()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch Jira feed from {self.config.source_url}: {e}")
            self.last_error = e
            return []
        return parse_feed(xml_text)

    def render(self) -> str:
        """Render the current state and mount it, replacing any overlay."""
        fragment = render_dashboard(
            self.state,
            title=self.config.title,
            sort_url=self.sort_url
        )
        self.page.mount_overlay(fragment)
        return fragment

    def run(self) -> DashboardState:
        """Show the loading overlay, load the feed and render the dashboard."""
        with self._lock:
            self.page.mount_overlay(render_loading())
            tickets = self.load_tickets()
            self.state = build_state(
                tickets,
                self.config.grouping,
                self.state.sort_field,
                self.state.sort_ascending
            )
            logger.info(
                f"Rendering {len(tickets)} tickets grouped by {self.config.grouping}"
            )
            self.render()
            return self.state

    def sort_by(self, sort_field: str) -> DashboardState:
        """Re-sort the loaded tickets without refetching and re-render."""
        with self._lock:
            self.state = resort_state(self.state, sort_field)
            self.render()
            return self.state

    def sorted_page(self, sort_field: str) -> str:
        """Re-sort and return the page document from the same render."""
        with self._lock:
            self.sort_by(sort_field)
            return self.page.to_html()


def create_jira_dashboard(config: DashboardConfig, page: Optional[DashboardPage] = None) -> JiraDashboard:
    """Build a dashboard for the config, run it once and return it."""
    dashboard = JiraDashboard(config, page=page)
    dashboard.run()
    return dashboard
