"""Plain-text extraction from raw ADF JSON, used when the markdown renderer gives up."""

from typing import Any


def extract_text(node: Any) -> str:
    """Return the text leaves of a raw ADF tree, siblings joined by newlines.

    Works on untyped JSON and never raises: node types and marks are ignored,
    anything that is not a mapping contributes nothing. Walks with an explicit
    stack so very deep trees cannot hit the recursion limit.
    """
    # Each frame: (children still to visit, reversed; parts collected so far)
    root_parts: list[str] = []
    stack: list[tuple[list[Any], list[str]]] = [([node], root_parts)]

    while stack:
        pending, parts = stack[-1]
        if not pending:
            stack.pop()
            if stack:
                stack[-1][1].append("\n".join(parts))
            continue

        current = pending.pop()
        if not isinstance(current, dict):
            parts.append("")
            continue
        text = current.get("text")
        if isinstance(text, str) and text:
            parts.append(text)
            continue
        content = current.get("content")
        if isinstance(content, list) and content:
            stack.append((content[::-1], []))
        else:
            parts.append("")

    return "".join(root_parts)
