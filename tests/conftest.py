"""Shared test fixtures."""

from pathlib import Path

import pytest

from jtl.models import TicketView

JTL_VARS = (
    "JTL_DEFAULT_PROFILE",
    "JTL_JIRA_BASE_URL",
    "JTL_JIRA_EMAIL",
    "JTL_JIRA_API_TOKEN",
    "JTL_TEMPLATE_DIR",
    "JTL_OUTPUT_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's .env and JTL_* variables out of the picture
    monkeypatch.chdir(tmp_path)
    for name in JTL_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def ticket_view() -> TicketView:
    return TicketView(
        key="TEST-123",
        id="12345",
        summary="Test ticket summary",
        description="Test ticket description",
        status="Open",
        statusCategory="To Do",
        assignee="John Doe",
        assigneeEmail="john@example.com",
        reporter="Jane Smith",
        reporterEmail="jane@example.com",
        created="September 27, 2025, 10:00 AM",
        updated="September 27, 2025, 02:00 PM",
        issueType="Bug",
        priority="High",
        labels=["frontend", "urgent"],
        components=["UI", "API"],
        fixVersions=["v2.1.0"],
        affectedVersions=["v2.0.0"],
        url="https://test.atlassian.net/browse/TEST-123",
    )


@pytest.fixture
def empty_view(ticket_view: TicketView) -> TicketView:
    return ticket_view.model_copy(
        update={"assignee": "", "assignee_email": "", "labels": [], "components": []},
    )


@pytest.fixture
def jira_issue() -> dict:
    """A GET /rest/api/3/issue/{key} payload."""
    return {
        "id": "10042",
        "key": "PROJ-42",
        "fields": {
            "summary": "Fix login bug",
            "description": {
                "type": "doc",
                "version": 1,
                "content": [
                    {
                        "type": "heading",
                        "attrs": {"level": 2},
                        "content": [{"type": "text", "text": "Steps"}],
                    },
                    {
                        "type": "paragraph",
                        "content": [
                            {"type": "text", "text": "Login "},
                            {"type": "text", "text": "fails", "marks": [{"type": "strong"}]},
                        ],
                    },
                ],
            },
            "status": {"name": "In Progress", "statusCategory": {"name": "In Progress"}},
            "assignee": {"displayName": "Ann Lee", "emailAddress": "ann@example.com"},
            "reporter": {"displayName": "Bo Chen", "emailAddress": "bo@example.com"},
            "created": "2025-09-27T10:30:00.000+0000",
            "updated": "2025-09-28T16:05:00.000+0000",
            "issuetype": {"name": "Bug"},
            "priority": {"name": "High"},
            "labels": ["auth", "web"],
            "components": [{"name": "Frontend"}],
            "fixVersions": [{"name": "2.1"}],
            "versions": [{"name": "2.0"}],
        },
    }
