"""Shared pydantic models: the contract between the Jira client, the renderers and main.py."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TicketView(BaseModel):
    """Flat, default-filled view of a work item, used only for template rendering."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = ""
    id: str = ""
    summary: str = ""
    description: str = ""  # already rendered to markdown
    status: str = ""
    status_category: str = Field("", alias="statusCategory")
    assignee: str = "Unassigned"
    assignee_email: str = Field("", alias="assigneeEmail")
    reporter: str = ""
    reporter_email: str = Field("", alias="reporterEmail")
    created: str = ""
    updated: str = ""
    issue_type: str = Field("", alias="issueType")
    priority: str = ""
    url: str = ""
    labels: list[str] = []
    components: list[str] = []
    fix_versions: list[str] = Field([], alias="fixVersions")
    affected_versions: list[str] = Field([], alias="affectedVersions")

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_default(cls, value, info):
        # Null from the API must never leak through as "None"
        if value is None:
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return value

    def lookup(self) -> dict:
        """Return the camelCase mapping that template paths resolve against."""
        return self.model_dump(by_alias=True)


class RenderedOutput(BaseModel):
    """Final markdown plus where it is going to be written."""

    model_config = ConfigDict(frozen=True)

    markdown: str
    ticket_key: str
    template_name: str
    output_path: Path


class TemplateInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str  # file name, e.g. story.md
    display_name: str  # name without .md
    path: Path
