"""Jira Cloud REST API v3 provider."""

import logging

import httpx

from jtl.models import TicketView
from jtl.providers.base import TicketSource
from jtl.settings import JtlSettings
from jtl.view import ticket_view_from_issue

logger = logging.getLogger(__name__)

API_PATH = "/rest/api/3"

ISSUE_FIELDS = [
    "summary",
    "description",
    "status",
    "assignee",
    "reporter",
    "created",
    "updated",
    "issuetype",
    "priority",
    "labels",
    "components",
    "fixVersions",
    "versions",
]

_STATUS_MESSAGES = {
    401: "Authentication failed. Please check your email and API token.",
    403: "Permission denied. You may not have access to this ticket.",
    404: "Ticket not found. Please check the ticket key.",
}


class JiraProvider(TicketSource):
    def __init__(self, settings: JtlSettings) -> None:
        if not (settings.jira_base_url and settings.jira_email and settings.jira_api_token):
            raise RuntimeError("jira_base_url, jira_email and jira_api_token are required")
        self.base_url = settings.jira_base_url.rstrip("/")
        self._auth = (settings.jira_email, settings.jira_api_token.get_secret_value())
        self._headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _get(self, path: str, params: dict | None = None) -> dict:
        logger.debug("GET %s%s", API_PATH, path)
        try:
            response = httpx.get(
                f"{self.base_url}{API_PATH}{path}",
                headers=self._headers,
                auth=self._auth,
                params=params or {},
                timeout=30,
            )
        except httpx.RequestError as exc:
            raise RuntimeError(
                "Unable to connect to Jira. Please check your network connection and Jira URL."
            ) from exc

        if response.is_error:
            raise RuntimeError(self._error_message(response))
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        status = response.status_code
        if status in _STATUS_MESSAGES:
            return _STATUS_MESSAGES[status]
        detail = response.reason_phrase
        try:
            messages = response.json().get("errorMessages") or []
        except (ValueError, AttributeError):
            messages = []
        if messages:
            detail = messages[0]
        return f"Jira API error ({status}): {detail}"

    def current_user(self) -> str:
        user = self._get("/myself")
        return user.get("displayName") or user.get("emailAddress") or ""

    def get_ticket(self, ticket_key: str) -> TicketView:
        try:
            issue = self._get(
                f"/issue/{ticket_key}",
                params={"expand": "names,schema", "fields": ",".join(ISSUE_FIELDS)},
            )
        except RuntimeError as exc:
            raise RuntimeError(f"Failed to fetch ticket {ticket_key}: {exc}") from exc
        return ticket_view_from_issue(issue, self.base_url)
