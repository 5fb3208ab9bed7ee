"""Shared fixtures for Jira dashboard tests."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.models import Comment, Ticket


@pytest.fixture
def mock_feed_credentials():
    """Mock feed credentials for testing."""
    return {
        "feed_url": "https://test.atlassian.net/sr/jira.issueviews:searchrequest-xml/10000/SearchRequest-10000.xml",
        "token": "test-token-123"
    }


@pytest.fixture
def feed_headers(mock_feed_credentials):
    """Request headers carrying the feed credentials."""
    return {
        "X-Jira-Feed-Url": mock_feed_credentials["feed_url"],
        "X-Jira-Token": mock_feed_credentials["token"]
    }


@pytest.fixture
def sample_feed_xml():
    """Jira XML export with a story, a linked task, a standalone task and a bug."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<rss version="0.92">
<channel>
    <title>Jira</title>
    <item>
        <title>[PROJ-1] Checkout flow</title>
        <link>https://test.atlassian.net/browse/PROJ-1</link>
        <description>&amp;lt;p&amp;gt;Build the &amp;quot;checkout&amp;quot; page&amp;lt;/p&amp;gt;</description>
        <key id="10001">PROJ-1</key>
        <summary>Checkout flow</summary>
        <type id="10100">Story</type>
        <priority id="2">High</priority>
        <status id="3">In Progress</status>
        <assignee username="alice">Alice Smith</assignee>
        <reporter username="bob">Bob Jones</reporter>
        <created>Mon, 15 Jan 2024 10:30:00 +0000</created>
        <updated>Tue, 16 Jan 2024 09:00:00 +0000</updated>
        <comments>
            <comment id="501" author="bob" created="Tue, 16 Jan 2024 08:00:00 +0000">&amp;lt;b&amp;gt;Looks good&amp;lt;/b&amp;gt;</comment>
            <comment id="502" author="carol" created="Tue, 16 Jan 2024 08:30:00 +0000">Ship it &amp;amp; close &amp;quot;today&amp;quot;</comment>
        </comments>
        <customfields>
            <customfield id="customfield_10020" key="com.pyxis.greenhopper.jira:gh-sprint">
                <customfieldname>Sprint</customfieldname>
                <customfieldvalues>
                    <customfieldvalue>Sprint 4</customfieldvalue>
                    <customfieldvalue>Sprint 5</customfieldvalue>
                </customfieldvalues>
            </customfield>
        </customfields>
    </item>
    <item>
        <title>[PROJ-2] Payment API</title>
        <link>https://test.atlassian.net/browse/PROJ-2</link>
        <key id="10002">PROJ-2</key>
        <summary>Payment API</summary>
        <type id="10101">Task</type>
        <priority id="3">Medium</priority>
        <status id="1">To Do</status>
        <assignee username="alice">Alice Smith</assignee>
        <parent id="10001">PROJ-1</parent>
        <created>Mon, 15 Jan 2024 11:00:00 +0000</created>
        <updated>Mon, 15 Jan 2024 11:00:00 +0000</updated>
        <customfields>
            <customfield id="customfield_10020" key="com.pyxis.greenhopper.jira:gh-sprint">
                <customfieldname>Sprint</customfieldname>
                <customfieldvalues>
                    <customfieldvalue>Sprint 5</customfieldvalue>
                </customfieldvalues>
            </customfield>
        </customfields>
    </item>
    <item>
        <title>[PROJ-3] Update docs</title>
        <link>https://test.atlassian.net/browse/PROJ-3</link>
        <key id="10003">PROJ-3</key>
        <summary>Update docs</summary>
        <type id="10101">Task</type>
        <priority id="4">Low</priority>
        <status id="5">Done</status>
        <assignee username="-1">Unassigned</assignee>
        <created>Wed, 10 Jan 2024 10:00:00 +0000</created>
        <updated>Thu, 11 Jan 2024 10:00:00 +0000</updated>
    </item>
    <item>
        <title>[PROJ-4] Login fails on Safari</title>
        <link>https://test.atlassian.net/browse/PROJ-4</link>
        <key id="10004">PROJ-4</key>
        <summary>Login fails on Safari</summary>
        <type id="1">Bug</type>
        <priority id="1">Highest</priority>
        <status id="6">Blocked</status>
        <assignee username="bob">Bob Jones</assignee>
        <parent id="10999">PROJ-99</parent>
        <created>Fri, 12 Jan 2024 10:00:00 +0000</created>
        <updated>Fri, 12 Jan 2024 12:00:00 +0000</updated>
    </item>
</channel>
</rss>
"""


@pytest.fixture
def feed_with_bad_items():
    """Feed where one item has no key and no title."""
    return """<rss version="0.92"><channel>
    <item>
        <key>PROJ-10</key>
        <summary>Valid item</summary>
        <type>Story</type>
    </item>
    <item>
        <summary>No key anywhere</summary>
        <type>Task</type>
    </item>
    <item>
        <title>PROJ-11: Key from title</title>
        <type>Task</type>
    </item>
</channel></rss>"""


def make_ticket(key, type="Task", assignee="Alice", parent_key=None, sprint=None, **kwargs):
    """Build a Ticket with sensible defaults for grouping tests."""
    return Ticket(
        key=key,
        type=type,
        assignee=assignee,
        parent_key=parent_key,
        sprint=sprint,
        summary=kwargs.pop("summary", f"Summary of {key}"),
        link=kwargs.pop("link", f"https://test.atlassian.net/browse/{key}"),
        **kwargs
    )


@pytest.fixture
def ticket_factory():
    """Factory for Ticket objects."""
    return make_ticket


@pytest.fixture
def story_and_task():
    """PROJ-1 story and its PROJ-2 task, both assigned to Alice."""
    return [
        make_ticket("PROJ-1", type="Story", assignee="Alice"),
        make_ticket("PROJ-2", type="Task", assignee="Alice", parent_key="PROJ-1"),
    ]


@pytest.fixture
def sample_tickets():
    """Tickets across two sprints and three assignees."""
    return [
        make_ticket("PROJ-1", type="Story", assignee="Alice", sprint="Sprint 5",
                    priority="High", status="In Progress",
                    created="Mon, 15 Jan 2024 10:30:00 +0000",
                    comments=[Comment(author="bob", body="First", created="Tue, 16 Jan 2024 08:00:00 +0000")]),
        make_ticket("PROJ-2", type="Task", assignee="Alice", parent_key="PROJ-1", sprint="Sprint 5",
                    priority="Medium", created="Mon, 15 Jan 2024 11:00:00 +0000"),
        make_ticket("PROJ-10", type="User Story", assignee="Bob", sprint="Sprint 4",
                    priority="Low", created="Fri, 05 Jan 2024 09:00:00 +0000"),
        make_ticket("PROJ-3", type="Sub-task", assignee="Bob", parent_key="PROJ-10", sprint="Sprint 4",
                    priority="Highest", created="Sat, 06 Jan 2024 09:00:00 +0000"),
        make_ticket("PROJ-4", type="Bug", assignee="Carol", parent_key="PROJ-99",
                    priority="Critical", created="Sun, 07 Jan 2024 09:00:00 +0000"),
    ]


@pytest.fixture
def config_file(tmp_path):
    """Dashboard config file with non-default values."""
    path = tmp_path / "dashboard-config.json"
    path.write_text('{"defaultGrouping": "sprint", "title": "Team Board", "requestTimeout": 10}')
    return str(path)


@pytest.fixture
def credentials_file(tmp_path, monkeypatch):
    """Point local credentials storage at a temp file."""
    from app.api import credentials
    path = tmp_path / "config" / "credentials.json"
    monkeypatch.setattr(credentials, "CREDENTIALS_FILE", str(path))
    return path


@pytest.fixture
def app(tmp_path, credentials_file):
    """Create Flask test app."""
    from app import create_app
    app = create_app(config_path=str(tmp_path / "missing-config.json"))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
