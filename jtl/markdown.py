"""ADF → Markdown rendering.

Everything here is a pure function of its input: no parser instance, no
module state. ``render_description`` is the entry point used when building a
ticket view; it never raises.
"""

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from jtl.adf import (
    Blockquote,
    BulletList,
    CodeBlock,
    Doc,
    Emoji,
    HardBreak,
    Heading,
    InlineCard,
    Link,
    ListItem,
    Mark,
    Mention,
    OrderedList,
    Panel,
    Paragraph,
    Rule,
    Text,
    UnknownNode,
    parse_document,
)
from jtl.fallback import extract_text

logger = logging.getLogger(__name__)

PANEL_EMOJI = {
    "info": "ℹ️",
    "warning": "⚠️",
    "note": "📝",
    "error": "❌",
    "success": "✅",
}
DEFAULT_PANEL_EMOJI = "📌"

# Innermost first. Independent of the order marks appear on the node, so
# [strong, code] and [code, strong] both give **`x`**, and a link always wraps
# the already-decorated text.
_MARK_WRAPPERS = (
    ("code", "`{}`"),
    ("em", "*{}*"),
    ("strong", "**{}**"),
    ("strike", "~~{}~~"),
)


class RenderResult(BaseModel):
    """Outcome of a structured render attempt: markdown on success, error otherwise."""

    model_config = ConfigDict(frozen=True)

    markdown: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Inline nodes
# ---------------------------------------------------------------------------


def apply_marks(text: str, marks: Iterable[Mark]) -> str:
    if not text:
        return ""
    by_type: dict[str, Mark] = {}
    for mark in marks:
        by_type.setdefault(mark.type, mark)

    for kind, wrapper in _MARK_WRAPPERS:
        if kind in by_type:
            text = wrapper.format(text)
    if "link" in by_type:
        href = by_type["link"].attrs.get("href") or ""
        text = f"[{text}]({href})"
    return text


def _plain_text(node: Any) -> str:
    """Concatenated text of every leaf under node, formatting ignored."""
    text = getattr(node, "text", None)
    if isinstance(text, str) and text:
        return text
    return "".join(_plain_text(child) for child in getattr(node, "content", []))


def _render_inline_node(node: Any) -> str:
    match node:
        case Text():
            return apply_marks(node.text or "", node.marks)
        case HardBreak():
            return "\n"
        case Link():
            return f"[{render_inline(node.content)}]({node.attrs.href or ''})"
        case InlineCard():
            url = node.attrs.url or ""
            return f"[{node.attrs.title or url}]({url})"
        case Mention():
            return str(node.attrs.get("text") or f"@{node.attrs.get('id') or ''}")
        case Emoji():
            return str(node.attrs.get("text") or node.attrs.get("shortName") or "")
        case _:
            return _plain_text(node)


def render_inline(nodes: Iterable[Any]) -> str:
    return "".join(_render_inline_node(node) for node in nodes)


# ---------------------------------------------------------------------------
# Block nodes
# ---------------------------------------------------------------------------


def _quote(text: str) -> str:
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))


def _item_lines(item: ListItem, marker: str) -> list[str]:
    """One line for the item itself, then the flattened lines of any nested list."""
    parts: list[str] = []
    nested: list[str] = []
    for child in item.content:
        match child:
            case BulletList() | OrderedList():
                nested.extend(_list_lines(child))
            case Paragraph() | Heading():
                parts.append(render_inline(child.content))
            case _:
                parts.append(_render_inline_node(child))

    text = " ".join(part for part in parts if part)
    lines = [f"{marker}{text}"] if text or not nested else []
    return lines + nested


def _list_lines(node: BulletList | OrderedList) -> list[str]:
    marker = "- " if isinstance(node, BulletList) else "1. "
    lines: list[str] = []
    for child in node.content:
        if isinstance(child, ListItem):
            lines.extend(_item_lines(child, marker))
        else:
            lines.append(f"{marker}{_render_inline_node(child)}")
    return lines


def _render_panel(node: Panel) -> str:
    panel_type = node.attrs.panel_type or ""
    emoji = PANEL_EMOJI.get(panel_type, DEFAULT_PANEL_EMOJI)
    label = panel_type[:1].upper() + panel_type[1:] if panel_type else "Panel"
    header = f"> {emoji} **{label}**"
    body = render_blocks(node.content).rstrip()
    if not body:
        return f"{header}\n\n"
    return f"{header}\n{_quote(body)}\n\n"


def _render_block(node: Any) -> str:
    match node:
        case Paragraph():
            return render_inline(node.content) + "\n\n"
        case Heading():
            level = min(max(node.attrs.level or 1, 1), 6)
            return f"{'#' * level} {render_inline(node.content)}\n\n"
        case BulletList() | OrderedList():
            lines = _list_lines(node)
            return "\n".join(lines) + "\n\n" if lines else ""
        case ListItem():
            return "\n".join(_item_lines(node, "- ")) + "\n\n"
        case CodeBlock():
            language = node.attrs.language or ""
            code = "".join(_plain_text(child) for child in node.content)
            return f"```{language}\n{code}\n```\n\n"
        case Panel():
            return _render_panel(node)
        case Blockquote():
            body = render_blocks(node.content).rstrip()
            return f"{_quote(body)}\n\n" if body else ""
        case Rule():
            return "---\n\n"
        case Doc():
            return render_blocks(node.content)
        case UnknownNode():
            text = _plain_text(node)
            return f"{text}\n\n" if text else ""
        case _:
            return _render_inline_node(node)


def render_blocks(nodes: Iterable[Any]) -> str:
    return "".join(_render_block(node) for node in nodes)


def render_markdown(doc: Doc) -> str:
    """Render a typed document to markdown, trailing whitespace trimmed."""
    return render_blocks(doc.content).rstrip()


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def try_render(raw: Any) -> RenderResult:
    """Parse and render raw ADF JSON, reporting failure instead of raising."""
    try:
        doc = parse_document(raw)
        return RenderResult(markdown=render_markdown(doc))
    except (ValueError, TypeError, RecursionError) as exc:
        # pydantic.ValidationError is a ValueError
        return RenderResult(error=f"{type(exc).__name__}: {exc}")


def render_description(value: Any) -> str:
    """Turn a Jira description (markdown string or ADF tree) into markdown.

    Unsupported shapes give an empty string. An ADF tree that cannot be
    rendered is logged and reduced to its plain text.
    """
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and "content" in value:
        result = try_render(value)
        if result.ok:
            return result.markdown or ""
        logger.warning("Falling back to plain text for description: %s", result.error)
        return extract_text(value)
    return ""
