"""Flask application factory."""

import json
import os
from flask import Flask
from flask_cors import CORS

from services.config import DEFAULT_TIMEOUT, DEFAULT_TITLE, GROUPING_CHOICES

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "..", "config", "dashboard-config.json"
)


def load_dashboard_config(app, config_path=None):
    """Load dashboard defaults (grouping, title, timeout) from the config file."""
    defaults = {
        "grouping": "assignee",
        "title": DEFAULT_TITLE,
        "timeout": DEFAULT_TIMEOUT,
    }
    config_path = config_path or DEFAULT_CONFIG_PATH

    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                config = json.load(f)

            if not isinstance(config, dict):
                raise ValueError("config root must be a JSON object")

            grouping = config.get("defaultGrouping", defaults["grouping"])
            if grouping in GROUPING_CHOICES:
                defaults["grouping"] = grouping
            else:
                app.logger.warning(f"Ignoring unknown defaultGrouping '{grouping}'")

            defaults["title"] = config.get("title", defaults["title"])
            defaults["timeout"] = int(config.get("requestTimeout", defaults["timeout"]))
            app.logger.info(f"Loaded dashboard config from {config_path}")
        except (json.JSONDecodeError, IOError, TypeError, ValueError) as e:
            app.logger.warning(f"Failed to load dashboard config: {e}")
    else:
        app.logger.info("No dashboard-config.json found, using defaults")

    app.config["DASHBOARD_DEFAULTS"] = defaults
    return defaults


def create_app(config_path=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": ["http://localhost:5173", "http://127.0.0.1:5173"],
            "methods": ["GET", "POST", "DELETE", "OPTIONS"],
            "allow_headers": [
                "Content-Type",
                "X-Jira-Feed-Url", "X-Jira-Token"
            ]
        }
    })

    # Register blueprints
    from app.api import credentials, dashboard
    app.register_blueprint(credentials.bp)
    app.register_blueprint(dashboard.bp)

    load_dashboard_config(app, config_path)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    return app
