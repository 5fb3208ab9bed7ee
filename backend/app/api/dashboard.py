"""Dashboard API endpoints: JSON data and the HTML overlay page."""

import hashlib

from flask import Blueprint, Response, current_app, jsonify, request, url_for

from app.api.credentials import get_stored_feed_credentials
from services.config import DashboardConfig
from services.dashboard import JiraDashboard, build_state
from services.jira_feed import JiraFeedClient
from services.page import DashboardPage
from services.ticket_grouping import SORT_FIELDS

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

EXTENSION_KEY = "jira_dashboard"


def get_feed_credentials():
    """Extract feed credentials from request headers, falling back to local storage."""
    feed_url = request.headers.get("X-Jira-Feed-Url", "").strip()
    token = request.headers.get("X-Jira-Token")

    if feed_url and token:
        return feed_url, token

    return get_stored_feed_credentials()


def get_grouping():
    """Grouping strategy from query params, defaulting to the app config."""
    defaults = current_app.config["DASHBOARD_DEFAULTS"]
    return request.args.get("grouping", defaults["grouping"])


def get_sort():
    """Get optional sort field and direction from query params.

    Query params:
        - sort: Ticket field to sort by (e.g., "priority")
        - order: "asc" (default) or "desc"

    Returns:
        Tuple of (field or None, ascending)
    """
    sort_field = request.args.get("sort") or None
    ascending = request.args.get("order", "asc").lower() != "desc"
    return sort_field, ascending


def build_config(feed_url, token, grouping):
    """Build a DashboardConfig from request values and app defaults."""
    defaults = current_app.config["DASHBOARD_DEFAULTS"]
    return DashboardConfig(
        source_url=feed_url,
        auth_token=token,
        grouping=grouping,
        title=defaults["title"],
        timeout=defaults["timeout"]
    )


def _dashboard_key(feed_url, token):
    """Key loaded dashboards by feed and token so callers only see their own."""
    return feed_url, hashlib.sha256((token or "").encode("utf-8")).hexdigest()


def _loaded_dashboards():
    return current_app.extensions.setdefault(EXTENSION_KEY, {})


def _html_response(page):
    return Response(page.to_html(), mimetype="text/html")


@bp.route("", methods=["GET"])
def get_dashboard_data():
    """Get parsed and grouped tickets as JSON.

    Headers (or stored credentials):
        - X-Jira-Feed-Url: Jira XML feed URL
        - X-Jira-Token: Bearer token

    Query params:
        - grouping: "assignee" or "sprint"
        - sort: Optional ticket field to sort by
        - order: "asc" or "desc"

    Returns:
        - tickets, groupedTickets, stats, grouping, sort
    """
    feed_url, token = get_feed_credentials()

    if not feed_url:
        return jsonify({"error": "Missing Jira feed credentials"}), 401

    sort_field, ascending = get_sort()
    if sort_field and sort_field not in SORT_FIELDS:
        return jsonify({"error": f"Unknown sort field: {sort_field}"}), 400

    try:
        config = build_config(feed_url, token, get_grouping())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    client = JiraFeedClient(config.source_url, config.auth_token, timeout=config.timeout)
    service = JiraDashboard(config, client=client)
    tickets = service.load_tickets()

    if service.last_error is not None:
        return jsonify({"error": f"Failed to fetch Jira feed: {str(service.last_error)}"}), 502

    state = build_state(tickets, config.grouping, sort_field, ascending)
    return jsonify({"data": state.to_dict()})


@bp.route("/view", methods=["GET"])
def view_dashboard():
    """Fetch the feed and return a page with the dashboard overlay mounted.

    Query params:
        - grouping: "assignee" or "sprint"
        - sort: Optional ticket field to sort by
        - order: "asc" or "desc"

    A failed fetch still returns the page, with an empty dashboard.
    """
    feed_url, token = get_feed_credentials()

    if not feed_url:
        return jsonify({"error": "Missing Jira feed credentials"}), 401

    sort_field, ascending = get_sort()
    if sort_field and sort_field not in SORT_FIELDS:
        return jsonify({"error": f"Unknown sort field: {sort_field}"}), 400

    try:
        config = build_config(feed_url, token, get_grouping())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    dashboard = JiraDashboard(
        config,
        page=DashboardPage(title=config.title),
        client=JiraFeedClient(config.source_url, config.auth_token, timeout=config.timeout),
        sort_url=lambda field: url_for("dashboard.sort_dashboard", field=field),
        sort_field=sort_field,
        ascending=ascending
    )
    dashboard.run()
    _loaded_dashboards()[_dashboard_key(feed_url, token)] = dashboard

    return _html_response(dashboard.page)


@bp.route("/view/sort/<field>", methods=["GET"])
def sort_dashboard(field):
    """Re-sort the caller's last loaded dashboard without refetching the feed.

    Requesting the same field twice flips the sort direction.
    """
    feed_url, token = get_feed_credentials()

    if not feed_url:
        return jsonify({"error": "Missing Jira feed credentials"}), 401

    dashboard = _loaded_dashboards().get(_dashboard_key(feed_url, token))

    if dashboard is None:
        return jsonify({"error": "No dashboard loaded yet"}), 404

    if field not in SORT_FIELDS:
        return jsonify({"error": f"Unknown sort field: {field}"}), 400

    return Response(dashboard.sorted_page(field), mimetype="text/html")
