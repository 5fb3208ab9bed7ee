"""Jira XML feed client."""

import logging

import requests

logger = logging.getLogger(__name__)


class JiraFeedClient:
    """Fetches the raw XML export of a Jira filter or search."""

    def __init__(self, feed_url: str, token: str, timeout: int = 30):
        self.feed_url = feed_url.strip()
        self.token = token
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/xml",
        }

    def fetch(self) -> str:
        """Fetch the feed and return the response body.

        Raises:
            requests.exceptions.RequestException: on connection errors,
                timeouts or a non-2xx response.
        """
        response = requests.get(
            self.feed_url,
            headers=self._headers(),
            timeout=self.timeout
        )
        response.raise_for_status()
        logger.info(f"Fetched Jira feed ({len(response.text)} chars) from {self.feed_url}")
        return response.text
