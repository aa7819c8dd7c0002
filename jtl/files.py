"""Template discovery, loading, output naming and writing."""

from pathlib import Path

from jtl.models import RenderedOutput, TemplateInfo

TEMPLATE_SUFFIX = ".md"


def _strip_suffix(name: str) -> str:
    return name[: -len(TEMPLATE_SUFFIX)] if name.endswith(TEMPLATE_SUFFIX) else name


def output_filename(ticket_key: str, template_name: str) -> str:
    """Return the output file name for a ticket rendered with a template.

    PROJ-123 + templates/story.md → PROJ-123-story.md
    """
    return f"{ticket_key}-{_strip_suffix(Path(template_name).name)}{TEMPLATE_SUFFIX}"


def build_output(markdown: str, ticket_key: str, template_name: str, output_dir: Path) -> RenderedOutput:
    return RenderedOutput(
        markdown=markdown,
        ticket_key=ticket_key,
        template_name=template_name,
        output_path=output_dir / output_filename(ticket_key, template_name),
    )


def resolve_template_path(template_name: str, template_dir: Path) -> Path:
    """Names with a directory part are used as given; bare names live in template_dir."""
    candidate = Path(template_name)
    if candidate.is_absolute() or "/" in template_name or "\\" in template_name:
        return candidate.resolve()
    return template_dir / template_name


def load_template(template_name: str, template_dir: Path) -> str:
    path = resolve_template_path(template_name, template_dir)
    if not path.is_file():
        raise RuntimeError(f"Template not found: {path}")
    return path.read_text(encoding="utf-8")


def list_templates(template_dir: Path) -> list[TemplateInfo]:
    """Return the markdown templates in template_dir, sorted by file name."""
    if not template_dir.is_dir():
        raise RuntimeError(f"Template directory does not exist: {template_dir}")
    templates = [
        TemplateInfo(name=path.name, display_name=_strip_suffix(path.name), path=path)
        for path in sorted(template_dir.glob(f"*{TEMPLATE_SUFFIX}"))
        if path.is_file()
    ]
    if not templates:
        raise RuntimeError(f"No markdown templates found in: {template_dir}")
    return templates


def write_output(output: RenderedOutput) -> Path:
    output.output_path.parent.mkdir(parents=True, exist_ok=True)
    output.output_path.write_text(output.markdown, encoding="utf-8")
    return output.output_path
