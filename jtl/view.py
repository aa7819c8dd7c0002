"""Shape a raw Jira issue into the flat TicketView used by templates."""

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from jtl.markdown import render_description
from jtl.models import TicketView

# +0000 → +00:00
_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def format_day(moment: datetime) -> str:
    """September 27, 2025"""
    return f"{moment:%B} {moment.day}, {moment.year}"


def format_moment(moment: datetime) -> str:
    """September 27, 2025, 10:30 AM"""
    return f"{format_day(moment)}, {moment:%I:%M %p}"


def format_timestamp(value: str | None) -> str:
    """Format a Jira ISO 8601 timestamp, keeping the offset it was sent with.

    Jira sends ``2025-09-27T10:30:00.000+0000``; anything unparseable is
    returned unchanged rather than dropped.
    """
    if not value or not isinstance(value, str):
        return ""
    try:
        moment = datetime.fromisoformat(_BASIC_OFFSET.sub(r"\1:\2", value.replace("Z", "+00:00")))
    except ValueError:
        return value
    return format_moment(moment)


def _name(obj: Any, key: str = "name") -> str:
    if isinstance(obj, Mapping):
        return str(obj.get(key) or "")
    return ""


def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, Mapping) else None


def _names(items: Any) -> list[str]:
    if not isinstance(items, list):
        return []
    return [name for name in (_name(item) for item in items) if name]


def ticket_view_from_issue(issue: Mapping[str, Any], base_url: str) -> TicketView:
    """Build a TicketView from a ``GET /rest/api/3/issue/{key}`` payload."""
    fields = issue.get("fields") or {}
    status = fields.get("status")
    assignee = fields.get("assignee")
    reporter = fields.get("reporter")
    key = issue.get("key") or ""
    labels = fields.get("labels")

    return TicketView(
        key=key,
        id=str(issue.get("id") or ""),
        summary=str(fields.get("summary") or ""),
        description=render_description(fields.get("description")),
        status=_name(status),
        status_category=_name(_get(status, "statusCategory")),
        assignee=_name(assignee, "displayName") or "Unassigned",
        assignee_email=_name(assignee, "emailAddress"),
        reporter=_name(reporter, "displayName"),
        reporter_email=_name(reporter, "emailAddress"),
        created=format_timestamp(fields.get("created")),
        updated=format_timestamp(fields.get("updated")),
        issue_type=_name(fields.get("issuetype")),
        priority=_name(fields.get("priority")),
        url=f"{base_url.rstrip('/')}/browse/{key}" if key else "",
        labels=[str(label) for label in labels if label] if isinstance(labels, list) else [],
        components=_names(fields.get("components")),
        fix_versions=_names(fields.get("fixVersions")),
        affected_versions=_names(fields.get("versions")),
    )
