"""Browser page hosting the dashboard overlay."""

from markupsafe import Markup, escape

OVERLAY_ID = "jira-dashboard-popup"

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
</head>
<body>
{body}
{overlay}
</body>
</html>"""


class DashboardPage:
    """A page with a single overlay slot.

    Mounting an overlay replaces the previous one, so the page never holds
    more than one element with the overlay id.
    """

    def __init__(self, title: str = "Jira Dashboard", body: str = ""):
        self.title = title
        self.body = body
        self._overlay = None

    @property
    def overlay(self):
        return self._overlay

    @property
    def has_overlay(self) -> bool:
        return self._overlay is not None

    def mount_overlay(self, fragment: str):
        """Insert the overlay fragment, replacing any existing one."""
        if f'id="{OVERLAY_ID}"' not in fragment:
            raise ValueError(f"Overlay fragment must have id '{OVERLAY_ID}'")
        self._overlay = Markup(fragment)

    def remove_overlay(self):
        self._overlay = None

    def to_html(self) -> str:
        return _PAGE_TEMPLATE.format(
            title=escape(self.title),
            body=self.body,
            overlay=self._overlay or ""
        )
