"""Directive template processing: placeholders, ``{{#if}}`` blocks, ``{{#each}}`` loops.

A template is scanned once into a tree of segments. Block openers and closers
are paired with an explicit stack, so nested blocks always close against
their own opener. The tree is then evaluated against a TicketView:

* ``{{ key }}``: value from the placeholder table, ``""`` for anything else.
* ``{{#if path}}…{{/if}}``: kept when ``path`` resolves to a truthy value.
* ``{{#each path}}…{{/each}}``: repeated per list element, ``{{ this }}``
  bound to the element.

Conditions and loops look at the view model, never at substituted text, and
substituted values are not scanned for directives.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from jtl.models import TicketView
from jtl.view import format_day, format_moment

logger = logging.getLogger(__name__)

PLACEHOLDER_GROUPS: dict[str, list[str]] = {
    "Basic Info": ["ticket.key", "ticket.id", "ticket.summary", "ticket.description", "ticket.url"],
    "Status & Type": ["ticket.status", "ticket.statusCategory", "ticket.issueType", "ticket.priority"],
    "People": ["ticket.assignee", "ticket.assigneeEmail", "ticket.reporter", "ticket.reporterEmail"],
    "Dates": ["ticket.created", "ticket.updated", "today", "now"],
    "Arrays": ["ticket.labels", "ticket.components", "ticket.fixVersions", "ticket.affectedVersions"],
}
PLACEHOLDERS: list[str] = [key for group in PLACEHOLDER_GROUPS.values() for key in group]

_TICKET_PREFIX = "ticket."

# {{#if path}} / {{#each path}} / {{/if}} / {{/each}} / {{ key }}
_DIRECTIVE = re.compile(
    r"\{\{\s*(?:"
    r"#(?P<open>if|each)\s+(?P<path>[^\s{}]+)"
    r"|/(?P<close>if|each)"
    r"|(?P<key>[^\s{}#/][^\s{}]*)"
    r")\s*\}\}"
)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()
_NO_ITEM: Any = _Missing()


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def resolve_path(data: Mapping[str, Any] | None, path: str) -> Any:
    """Walk a dotted path through nested mappings.

    A single leading ``ticket.`` is dropped. Any segment that cannot be
    followed yields MISSING.
    """
    if path.startswith(_TICKET_PREFIX):
        path = path[len(_TICKET_PREFIX) :]
    current: Any = data
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return MISSING if current is None else current


def is_truthy(value: Any) -> bool:
    """Defined, not an empty list, not an empty string."""
    if value is MISSING or value is None:
        return False
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return value != ""


# ---------------------------------------------------------------------------
# Placeholder table
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is MISSING or value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def placeholder_values(view: TicketView, now: datetime | None = None) -> dict[str, str]:
    """Every supported placeholder key mapped to the text it renders as."""
    moment = now or datetime.now()
    data = view.lookup()
    values = {key: _as_text(resolve_path(data, key)) for key in PLACEHOLDERS if key.startswith(_TICKET_PREFIX)}
    values["today"] = format_day(moment)
    values["now"] = format_moment(moment)
    return values


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


@dataclass
class _Block:
    kind: str  # "if" | "each"
    path: str
    opener: str  # raw opening tag, emitted literally if never closed
    children: list = field(default_factory=list)
    closer: str = ""


@dataclass
class _Placeholder:
    key: str


def _flatten_unclosed(block: _Block) -> list:
    logger.warning("Unclosed {{#%s %s}} left as literal text", block.kind, block.path)
    return [block.opener, *block.children]


def parse_template(template: str) -> list:
    """Split a template into text, placeholders and correctly paired blocks."""
    root = _Block(kind="root", path="", opener="")
    stack: list[_Block] = [root]
    position = 0

    for match in _DIRECTIVE.finditer(template):
        if match.start() > position:
            stack[-1].children.append(template[position : match.start()])
        position = match.end()
        raw = match.group(0)

        if match.group("open"):
            stack.append(_Block(kind=match.group("open"), path=match.group("path"), opener=raw))
        elif match.group("close"):
            kind = match.group("close")
            depth = next((i for i in range(len(stack) - 1, 0, -1) if stack[i].kind == kind), None)
            if depth is None:
                logger.warning("Unmatched {{/%s}} left as literal text", kind)
                stack[-1].children.append(raw)
                continue
            # Anything opened after the matching block never got closed
            while len(stack) - 1 > depth:
                orphan = stack.pop()
                stack[-1].children.extend(_flatten_unclosed(orphan))
            block = stack.pop()
            block.closer = raw
            stack[-1].children.append(block)
        else:
            stack[-1].children.append(_Placeholder(key=match.group("key")))

    if position < len(template):
        stack[-1].children.append(template[position:])
    while len(stack) > 1:
        orphan = stack.pop()
        stack[-1].children.extend(_flatten_unclosed(orphan))
    return root.children


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _evaluate(segments: list, data: Mapping[str, Any], values: Mapping[str, str], item: Any = _NO_ITEM) -> str:
    out: list[str] = []
    for segment in segments:
        if isinstance(segment, str):
            out.append(segment)
        elif isinstance(segment, _Placeholder):
            if segment.key == "this":
                out.append("" if item is _NO_ITEM else _as_text(item))
            else:
                out.append(values.get(segment.key, ""))
        elif segment.kind == "if":
            if is_truthy(resolve_path(data, segment.path)):
                out.append(_evaluate(segment.children, data, values, item))
        else:
            sequence = resolve_path(data, segment.path)
            if isinstance(sequence, (list, tuple)) and sequence:
                rendered = "".join(_evaluate(segment.children, data, values, element) for element in sequence)
                out.append(rendered.rstrip())
    return "".join(out)


def process_template(template: str, view: TicketView, now: datetime | None = None) -> str:
    """Expand a template against a ticket view.

    Never raises on template content: unknown keys render empty, missing paths
    are falsy, and unbalanced block tags come through as literal text.
    """
    return _evaluate(parse_template(template), view.lookup(), placeholder_values(view, now))
