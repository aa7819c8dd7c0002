"""JTL CLI: all commands."""

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from jtl.files import build_output, list_templates, load_template, write_output
from jtl.providers.base import TicketSource
from jtl.providers.jira import JiraProvider
from jtl.settings import CONFIG_PATH, JtlSettings, _list_profiles, get_settings
from jtl.template import PLACEHOLDER_GROUPS, process_template

app = typer.Typer(help="jira-ticket-loader: render Jira tickets into markdown templates", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/jtl/config.toml"),
]

_TICKET_KEY = re.compile(r"^[A-Z][A-Z0-9_]*-\d+$", re.IGNORECASE)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Provider factory
# ---------------------------------------------------------------------------


def get_provider(profile: str | None = None) -> TicketSource:
    return JiraProvider(get_settings(profile=profile))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_ticket_key(raw: str) -> str:
    """Validate a PROJ-123 style key and return it upper-cased."""
    key = raw.strip()
    if not key:
        raise ValueError("Ticket key cannot be empty")
    if not _TICKET_KEY.match(key):
        raise ValueError("Invalid ticket key format. Expected format: PROJ-123")
    return key.upper()


def _fail(message: str) -> typer.Exit:
    rprint(f"[red]{escape(message)}[/red]")
    return typer.Exit(1)


def _read_config() -> tomlkit.TOMLDocument:
    """Parse the config file for editing; comments and ordering survive the round-trip."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.parse(CONFIG_PATH.read_text(encoding="utf-8"))


def _write_config(doc: tomlkit.TOMLDocument) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _render_ticket(
    provider: TicketSource,
    template_dir: Path,
    ticket: str,
    template: str,
    output_dir: Path,
    say: Callable[[str], None],
) -> Path:
    """Fetch one ticket, expand the template against it and write the result."""
    try:
        ticket_key = parse_ticket_key(ticket)
    except ValueError as exc:
        raise _fail(str(exc)) from exc
    if not template.endswith(".md"):
        raise _fail(f"Template file must be a markdown file (.md): {template}")

    try:
        template_text = load_template(template, template_dir)
        say(f"Using template: {escape(template)}")
        say(f"Fetching ticket: {ticket_key}...")
        view = provider.get_ticket(ticket_key)
    except RuntimeError as exc:
        raise _fail(str(exc)) from exc

    rendered = process_template(template_text, view)
    result = build_output(rendered, view.key or ticket_key, template, output_dir)
    try:
        path = write_output(result)
    except OSError as exc:
        raise _fail(f"Failed to save output: {exc}") from exc

    say(f"[green]✓[/green] [bold]{result.ticket_key}[/bold] {escape(view.summary)}")
    say(f"  Template: {escape(result.template_name)}")
    say(f"  Output:   {escape(str(path))}")
    return path


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("generate")
def generate(
    ticket: Annotated[str | None, typer.Option("--ticket", "-t", help="Jira ticket key (e.g. PROJ-123)")] = None,
    template: Annotated[
        str | None,
        typer.Option("--template", "-e", help="Template file path, or a name inside the template directory"),
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output directory")] = None,
    profile: ProfileOpt = None,
    silent: Annotated[bool, typer.Option("--silent", "-s", help="No progress output")] = False,
) -> None:
    """Fetch a ticket and render it through a markdown template.

    Without --ticket or --template the command runs interactively and offers
    to process further tickets once a file has been written.
    """
    settings = get_settings(profile=profile)
    interactive = ticket is None or template is None

    def say(message: str) -> None:
        if not silent:
            rprint(message)

    provider = get_provider(profile)
    try:
        say(f"[green]✓[/green] Connected to Jira as: {escape(provider.current_user())}")
    except RuntimeError as exc:
        raise _fail(str(exc)) from exc

    while True:
        if template is None:
            template = typer.prompt("Template file (e.g. ./templates/story.md)").strip()
        if ticket is None:
            ticket = typer.prompt("Jira ticket key (e.g. PROJ-123)")

        _render_ticket(provider, settings.template_dir, ticket, template, output or settings.output_dir, say)

        if not interactive or not typer.confirm("Process another ticket?", default=False):
            break
        ticket = template = None


@app.command("placeholders")
def placeholders() -> None:
    """List the placeholders and block directives templates can use."""
    table = Table(title="Template placeholders")
    table.add_column("Group", style="bold")
    table.add_column("Placeholder", style="cyan")

    for group, keys in PLACEHOLDER_GROUPS.items():
        for i, key in enumerate(keys):
            table.add_row(group if i == 0 else "", f"{{{{{key}}}}}")

    rprint(table)
    rprint("")
    rprint("[bold]Conditional blocks:[/bold] {{#if ticket.assignee}}...{{/if}}")
    rprint("[bold]Loop blocks:[/bold]        {{#each ticket.labels}}- {{this}}{{/each}}")


@app.command("templates")
def templates_cmd(
    directory: Annotated[
        Path | None,
        typer.Option("--dir", "-d", help="Template directory (default: template_dir from config)"),
    ] = None,
    profile: ProfileOpt = None,
) -> None:
    """List the markdown templates in the template directory."""
    template_dir = directory or get_settings(profile=profile).template_dir
    try:
        found = list_templates(template_dir)
    except RuntimeError as exc:
        raise _fail(str(exc)) from exc

    table = Table(title=f"Templates in {template_dir}")
    table.add_column("Name", style="cyan")
    table.add_column("File")
    table.add_column("Path", style="dim")

    for info in found:
        table.add_row(info.display_name, info.name, str(info.path))

    rprint(table)


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/jtl/config.toml.

    An existing config file must already define the profile; a missing file
    is created with just the default_profile key.
    """
    doc = _read_config()
    profiles = _list_profiles(doc)
    if CONFIG_PATH.exists() and profile not in profiles:
        raise _fail(f"Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")

    doc["default_profile"] = profile
    _write_config(doc)
    rprint(f'[green]✓[/green] Default profile set to "{escape(profile)}" in {escape(str(CONFIG_PATH))}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings(profile=profile)

    def mask(val: str | None) -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    table = Table(title="JTL Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or "[dim](not set)[/dim]")
    table.add_row("jira_base_url", settings.jira_base_url or "[dim](not set)[/dim]")
    table.add_row("jira_email", settings.jira_email or "[dim](not set)[/dim]")
    table.add_row(
        "jira_api_token",
        mask(settings.jira_api_token.get_secret_value() if settings.jira_api_token else None),
    )
    table.add_row("template_dir", str(settings.template_dir))
    table.add_row("output_dir", str(settings.output_dir))

    rprint(table)


@app.command("init")
def init_cmd() -> None:
    """Interactive first-time setup wizard."""
    rprint("[bold]JTL Setup Wizard[/bold]")
    rprint("")

    profile_name = typer.prompt("Profile name (e.g. work, client)").strip()
    if not profile_name:
        raise _fail("Profile name cannot be empty.")

    base_url = typer.prompt("Jira site URL (e.g. https://your-company.atlassian.net)").strip().rstrip("/")
    email = typer.prompt("Jira account email").strip()
    rprint("Create an API token at: https://id.atlassian.com/manage-profile/security/api-tokens")
    token = typer.prompt("Paste API token", hide_input=True).strip()
    template_dir = typer.prompt("Template directory", default="templates").strip()
    output_dir = typer.prompt("Output directory", default="output").strip()

    profile_config: dict = {
        "jira_base_url": base_url,
        "jira_email": email,
        "jira_api_token": token,
        "template_dir": template_dir,
        "output_dir": output_dir,
    }

    if typer.confirm("Check the connection now?", default=True):
        try:
            settings = JtlSettings(**profile_config)
            user = JiraProvider(settings).current_user()
            rprint(f"[green]✓[/green] Connected as {escape(user)}.")
        except RuntimeError as exc:
            rprint(f"[yellow]Warning:[/yellow] Could not connect: {escape(str(exc))}")

    set_as_default = typer.confirm(f"Set '{profile_name}' as default profile?", default=True)

    doc = _read_config()
    doc[profile_name] = profile_config
    if set_as_default:
        doc["default_profile"] = profile_name

    _write_config(doc)
    rprint(f"[green]✓[/green] Profile '{escape(profile_name)}' written to {escape(str(CONFIG_PATH))}")

    rprint("")
    config_show(profile=profile_name)
