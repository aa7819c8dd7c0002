"""Typed Atlassian Document Format (ADF) nodes.

Raw ADF JSON is validated into a closed set of pydantic models. Node
selection goes through a callable discriminator on the ``type`` tag, so any
tag we do not know becomes an ``UnknownNode`` instead of a validation error.
Structurally broken input (a heading level that is not a number, content
that is not a list, ...) still raises ``ValidationError``; callers treat
that as "cannot render" and fall back to plain text.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, model_validator

KNOWN_TYPES = frozenset(
    {
        "doc",
        "paragraph",
        "heading",
        "bulletList",
        "orderedList",
        "listItem",
        "codeBlock",
        "blockquote",
        "panel",
        "text",
        "hardBreak",
        "link",
        "inlineCard",
        "rule",
        "mention",
        "emoji",
    }
)


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in KNOWN_TYPES else "unknown"


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # ADF producers emit "attrs": null / "content": null for empty nodes
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if not (k in ("attrs", "content", "marks") and v is None)}
        return data


class Mark(_Node):
    type: str
    attrs: dict[str, Any] = {}


class HeadingAttrs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    level: int | None = None


class CodeBlockAttrs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    language: str | None = None


class PanelAttrs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    panel_type: str | None = Field(None, alias="panelType")


class LinkAttrs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    href: str | None = None


class CardAttrs(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str | None = None
    title: str | None = None


class Text(_Node):
    type: Literal["text"]
    text: str | None = None
    marks: list[Mark] = []


class HardBreak(_Node):
    type: Literal["hardBreak"]


class Rule(_Node):
    type: Literal["rule"]


class Mention(_Node):
    type: Literal["mention"]
    attrs: dict[str, Any] = {}


class Emoji(_Node):
    type: Literal["emoji"]
    attrs: dict[str, Any] = {}


class InlineCard(_Node):
    type: Literal["inlineCard"]
    attrs: CardAttrs = CardAttrs()


class Link(_Node):
    type: Literal["link"]
    attrs: LinkAttrs = LinkAttrs()
    content: list["AdfNode"] = []


class Paragraph(_Node):
    type: Literal["paragraph"]
    content: list["AdfNode"] = []


class Heading(_Node):
    type: Literal["heading"]
    attrs: HeadingAttrs = HeadingAttrs()
    content: list["AdfNode"] = []


class ListItem(_Node):
    type: Literal["listItem"]
    content: list["AdfNode"] = []


class BulletList(_Node):
    type: Literal["bulletList"]
    content: list["AdfNode"] = []


class OrderedList(_Node):
    type: Literal["orderedList"]
    content: list["AdfNode"] = []


class CodeBlock(_Node):
    type: Literal["codeBlock"]
    attrs: CodeBlockAttrs = CodeBlockAttrs()
    content: list["AdfNode"] = []


class Blockquote(_Node):
    type: Literal["blockquote"]
    content: list["AdfNode"] = []


class Panel(_Node):
    type: Literal["panel"]
    attrs: PanelAttrs = PanelAttrs()
    content: list["AdfNode"] = []


class Doc(_Node):
    type: Literal["doc"] = "doc"
    content: list["AdfNode"] = []


class UnknownNode(_Node):
    """Any node type outside KNOWN_TYPES. Rendered as the text it contains."""

    type: Any = None
    text: str | None = None
    content: list["AdfNode"] = []


AdfNode = Annotated[
    Union[
        Annotated[Doc, Tag("doc")],
        Annotated[Paragraph, Tag("paragraph")],
        Annotated[Heading, Tag("heading")],
        Annotated[BulletList, Tag("bulletList")],
        Annotated[OrderedList, Tag("orderedList")],
        Annotated[ListItem, Tag("listItem")],
        Annotated[CodeBlock, Tag("codeBlock")],
        Annotated[Blockquote, Tag("blockquote")],
        Annotated[Panel, Tag("panel")],
        Annotated[Text, Tag("text")],
        Annotated[HardBreak, Tag("hardBreak")],
        Annotated[Link, Tag("link")],
        Annotated[InlineCard, Tag("inlineCard")],
        Annotated[Rule, Tag("rule")],
        Annotated[Mention, Tag("mention")],
        Annotated[Emoji, Tag("emoji")],
        Annotated[UnknownNode, Tag("unknown")],
    ],
    Discriminator(_node_tag),
]

_CONTAINERS = (
    Link,
    Paragraph,
    Heading,
    ListItem,
    BulletList,
    OrderedList,
    CodeBlock,
    Blockquote,
    Panel,
    Doc,
    UnknownNode,
)
for _model in _CONTAINERS:
    _model.model_rebuild()


def parse_document(raw: Any) -> Doc:
    """Validate raw ADF JSON into a typed tree.

    The root is always treated as a document, whatever its own ``type`` says,
    since Jira only ever hands us a top-level ``doc``.

    Raises:
        pydantic.ValidationError: if the tree is structurally malformed.
    """
    if isinstance(raw, dict):
        raw = {**raw, "type": "doc"}
    return Doc.model_validate(raw)
