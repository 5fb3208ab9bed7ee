"""Local credentials storage API endpoints.

Stores the Jira feed URL and token in a local JSON file so the dashboard
page can be opened in a browser without sending custom headers.
This is intended for local development only - not for hosted deployments.
"""

import json
import os
from flask import Blueprint, request, jsonify

bp = Blueprint("credentials", __name__, url_prefix="/api/credentials")

# Store credentials in backend/config/ directory (already gitignored)
CREDENTIALS_FILE = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "config",
    "credentials.json"
)


def _ensure_config_dir():
    """Ensure the config directory exists."""
    config_dir = os.path.dirname(CREDENTIALS_FILE)
    if not os.path.exists(config_dir):
        os.makedirs(config_dir)


def _load_credentials():
    """Load credentials from file."""
    if not os.path.exists(CREDENTIALS_FILE):
        return {}
    try:
        with open(CREDENTIALS_FILE, "r") as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError):
        return {}


def _save_credentials(credentials):
    """Save credentials to file."""
    _ensure_config_dir()
    with open(CREDENTIALS_FILE, "w") as f:
        json.dump(credentials, f, indent=2)


def get_stored_feed_credentials():
    """Return (feed_url, token) from local storage, or (None, None)."""
    jira = _load_credentials().get("jira") or {}
    feed_url = jira.get("feedUrl")
    token = jira.get("token")
    if not feed_url or not token:
        return None, None
    return feed_url, token


@bp.route("", methods=["GET"])
def get_credentials():
    """Get stored credentials.

    Tokens are included since this is local-only storage.
    """
    credentials = _load_credentials()
    return jsonify({"data": credentials})


@bp.route("", methods=["POST"])
def save_credentials():
    """Save the feed credentials to local storage.

    Expects JSON body with:
        - jira: { feedUrl, token }
    """
    data = request.get_json(silent=True)

    if not data or "jira" not in data:
        return jsonify({"error": "Missing request body"}), 400

    jira = data["jira"] or {}
    if not jira.get("feedUrl") or not jira.get("token"):
        return jsonify({"error": "Missing required fields: feedUrl, token"}), 400

    credentials = _load_credentials()
    credentials["jira"] = {"feedUrl": jira["feedUrl"], "token": jira["token"]}
    _save_credentials(credentials)

    return jsonify({"data": credentials})


@bp.route("", methods=["DELETE"])
def clear_credentials():
    """Clear all stored credentials."""
    if os.path.exists(CREDENTIALS_FILE):
        os.remove(CREDENTIALS_FILE)

    return jsonify({"data": {"cleared": True}})
