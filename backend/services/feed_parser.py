"""Parse a Jira XML (RSS) export into Ticket records.

Jira's "XML view" of a filter is an RSS document with one ``<item>`` per
issue. Fields are read with documented fallbacks; a single malformed item is
logged and skipped so the rest of the feed still renders.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from lxml import etree

from services.models import Comment, Ticket

logger = logging.getLogger(__name__)

# Applied in this order; descriptions arrive double-encoded in most exports
_ENTITIES = [
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
]

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_BRACKET_KEY = re.compile(r"^\s*\[([^\]]+)\]\s*")
_COLON_PREFIX = re.compile(r"^[^:]*:\s*")
_SPRINT_NAME = re.compile(r"name=([^,\]]+)")


@dataclass
class ItemParseResult:
    """Outcome of parsing one ``<item>``: a ticket, or the reason it was skipped."""

    index: int
    ticket: Optional[Ticket] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.ticket is not None


def decode_entities(text: str) -> str:
    """Decode the four HTML entities Jira leaves in free-text fields."""
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def _local_name(element) -> str:
    if not isinstance(element.tag, str):
        return ""
    return etree.QName(element).localname


def _find(element, name: str):
    """First descendant with the given local name (document order)."""
    for child in element.iterdescendants():
        if _local_name(child) == name:
            return child
    return None


def _find_all(element, name: str) -> list:
    return [child for child in element.iterdescendants() if _local_name(child) == name]


def _text(element, name: str) -> str:
    found = _find(element, name)
    if found is None:
        return ""
    return "".join(found.itertext()).strip()


def _key_from_title(title: str) -> str:
    match = _BRACKET_KEY.match(title)
    if match:
        return match.group(1).strip()
    return title.split(":")[0].strip()


def _summary_from_title(title: str) -> str:
    if _BRACKET_KEY.match(title):
        return _BRACKET_KEY.sub("", title, count=1)
    return _COLON_PREFIX.sub("", title, count=1)


def _extract_sprint(item) -> Optional[str]:
    """Read the sprint name from the Sprint custom field, if present.

    Tickets carried over between sprints list every sprint; the last one is
    the current sprint.
    """
    for custom_field in _find_all(item, "customfield"):
        field_key = (custom_field.get("key") or "").lower()
        field_name = _text(custom_field, "customfieldname").lower()
        if field_name != "sprint" and "gh-sprint" not in field_key:
            continue

        values = [
            "".join(value.itertext()).strip()
            for value in _find_all(custom_field, "customfieldvalue")
        ]
        values = [v for v in values if v]
        if not values:
            return None

        sprint = values[-1]
        # Older servers serialize the whole Sprint object
        match = _SPRINT_NAME.search(sprint)
        return match.group(1).strip() if match else sprint

    return None


def _extract_comments(item) -> list:
    comments_node = _find(item, "comments")
    if comments_node is None:
        return []

    return [
        Comment(
            id=node.get("id") or None,
            author=node.get("author") or node.get("username") or "Unknown",
            created=node.get("created") or None,
            body=decode_entities("".join(node.itertext())).strip()
        )
        for node in _find_all(comments_node, "comment")
    ]


def parse_item(item, now: Optional[str] = None) -> Optional[Ticket]:
    """Build a Ticket from one ``<item>`` element.

    Returns None when no key can be resolved.
    """
    if now is None:
        now = datetime.now(timezone.utc).isoformat()

    title = _text(item, "title")
    key = _text(item, "key") or _key_from_title(title)
    if not key:
        return None

    description = decode_entities(_text(item, "description")).strip()
    pub_date = _text(item, "pubDate")

    return Ticket(
        id=_text(item, "guid") or _text(item, "link"),
        key=key,
        summary=_text(item, "summary") or _summary_from_title(title),
        description=description,
        type=_text(item, "type") or "Task",
        status=_text(item, "status") or "Unknown",
        assignee=_text(item, "assignee") or _text(item, "reporter") or "Unassigned",
        priority=_text(item, "priority") or "Medium",
        updated=_text(item, "updated") or pub_date or now,
        created=_text(item, "created") or pub_date or now,
        parent_key=_text(item, "parent") or None,
        link=_text(item, "link"),
        comments=_extract_comments(item),
        sprint=_extract_sprint(item)
    )


def _load_root(xml_text: str):
    if not xml_text or not xml_text.strip():
        return None

    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    # lxml refuses str input that still carries an encoding declaration
    cleaned = _XML_DECLARATION.sub("", xml_text, count=1)
    return etree.fromstring(cleaned, parser)


def parse_items(xml_text: str, now: Optional[str] = None) -> list:
    """Parse every ``<item>`` in the feed, one ItemParseResult per item."""
    try:
        root = _load_root(xml_text)
    except etree.XMLSyntaxError as e:
        logger.error(f"Jira feed is not parseable XML: {e}")
        return []

    if root is None:
        logger.error("Jira feed is empty or not parseable XML")
        return []

    items = [root] if _local_name(root) == "item" else _find_all(root, "item")

    results = []
    for index, item in enumerate(items):
        try:
            ticket = parse_item(item, now=now)
        except Exception as e:
            logger.warning(f"Failed to parse ticket at item {index}: {e}")
            results.append(ItemParseResult(index=index, error=str(e)))
            continue

        if ticket is None:
            logger.warning(f"Skipping item {index}: no issue key")
            results.append(ItemParseResult(index=index, error="missing key"))
            continue

        results.append(ItemParseResult(index=index, ticket=ticket))

    return results


def parse_feed(xml_text: str, now: Optional[str] = None) -> list:
    """Parse the feed into tickets in document order, skipping bad items."""
    results = parse_items(xml_text, now=now)
    tickets = [r.ticket for r in results if r.ok]
    skipped = len(results) - len(tickets)
    logger.info(f"Parsed {len(tickets)} tickets from feed ({skipped} skipped)")
    return tickets
