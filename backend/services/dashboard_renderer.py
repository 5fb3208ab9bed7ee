"""Render dashboard state into the overlay HTML fragment."""

import os
from typing import Callable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from services.page import OVERLAY_ID
from services.ticket_grouping import SORT_FIELDS, STANDALONE, parse_ticket_date

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")

DEFAULT_COLOR = "#6b7280"


def status_color(status: str = "") -> str:
    """Badge colour for a workflow status."""
    status = (status or "").lower()
    if "done" in status or "closed" in status:
        return "#22c55e"
    if "progress" in status:
        return "#3b82f6"
    if "todo" in status or "to do" in status:
        return "#f59e0b"
    if "blocked" in status:
        return "#ef4444"
    return DEFAULT_COLOR


def priority_color(priority: str = "") -> str:
    """Badge colour for a priority name."""
    priority = (priority or "").lower()
    if "highest" in priority or "critical" in priority:
        return "#dc2626"
    if "high" in priority:
        return "#ea580c"
    if "medium" in priority:
        return "#ca8a04"
    if "low" in priority:
        return "#16a34a"
    return DEFAULT_COLOR


def format_date(value: Optional[str]) -> str:
    """Short display form of a feed date; unparseable input is shown as-is."""
    if not value:
        return ""
    parsed = parse_ticket_date(value)
    if parsed is None:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M")


def initials(name: str) -> str:
    """Up to two upper-case initials for the avatar."""
    parts = [p for p in (name or "").split(" ") if p]
    return "".join(p[0] for p in parts)[:2].upper()


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"])
    )
    env.filters["status_color"] = status_color
    env.filters["priority_color"] = priority_color
    env.filters["format_date"] = format_date
    env.filters["initials"] = initials
    env.globals["standalone_key"] = STANDALONE
    env.globals["overlay_id"] = OVERLAY_ID
    return env


_env = _build_environment()


def _stat_cards(stats: dict) -> list:
    cards = [
        {"name": "totalTickets", "label": "Total Tickets", "icon": "&#127915;", "color": "#3b82f6"},
        {"name": "userStories", "label": "User Stories", "icon": "&#128214;", "color": "#10b981"},
        {"name": "tasks", "label": "Tasks", "icon": "&#10003;", "color": "#f59e0b"},
    ]
    if "sprints" in stats:
        cards.append({"name": "sprints", "label": "Sprints", "icon": "&#128197;", "color": "#8b5cf6"})
    else:
        cards.append({"name": "assignees", "label": "Assignees", "icon": "&#128101;", "color": "#8b5cf6"})

    for card in cards:
        card["value"] = stats.get(card["name"], 0)
    return cards


def render_dashboard(state, title: str = "JIRA Sprint Dashboard",
                     sort_url: Optional[Callable[[str], str]] = None,
                     sortable: bool = True) -> str:
    """Render the dashboard overlay for a DashboardState.

    Args:
        state: DashboardState to render
        title: Overlay heading
        sort_url: Maps a sort field to the URL the sort button requests;
            without one there is nowhere to send a sort, so no sort bar
        sortable: Whether to show the sort bar
    """
    template = _env.get_template("dashboard_overlay.html")
    return template.render(
        state=state,
        title=title,
        stat_cards=_stat_cards(state.stats),
        sort_fields=SORT_FIELDS if sortable and sort_url else (),
        sort_url=sort_url
    )


def render_loading(heading: str = "Fetching JIRA Data",
                   message: str = "Processing JIRA XML response...") -> str:
    """Render the loading overlay shown while the feed is fetched."""
    template = _env.get_template("loading_overlay.html")
    return template.render(heading=heading, message=message)
