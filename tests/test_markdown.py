"""Tests for ADF → markdown rendering."""

import logging

import pytest

from jtl.adf import Doc, Mark, Paragraph, Text, UnknownNode, parse_document
from jtl.markdown import apply_marks, render_description, render_markdown, try_render


def text(value: str, *marks: str | dict) -> dict:
    node: dict = {"type": "text", "text": value}
    if marks:
        node["marks"] = [m if isinstance(m, dict) else {"type": m} for m in marks]
    return node


def para(*content: dict) -> dict:
    return {"type": "paragraph", "content": list(content)}


def doc(*content: dict) -> dict:
    return {"type": "doc", "version": 1, "content": list(content)}


def render(raw: dict) -> str:
    return render_markdown(parse_document(raw))


def nested(kind: str, depth: int) -> dict:
    node: dict = para(text("leaf"))
    for _ in range(depth):
        node = {"type": kind, "content": [node]}
    return doc(node)


# ---------------------------------------------------------------------------
# parse_document
# ---------------------------------------------------------------------------


class TestParseDocument:
    def test_typed_tree(self) -> None:
        parsed = parse_document(doc(para(text("hi"))))
        assert isinstance(parsed, Doc)
        assert isinstance(parsed.content[0], Paragraph)
        assert isinstance(parsed.content[0].content[0], Text)

    def test_unknown_type_kept(self) -> None:
        parsed = parse_document(doc({"type": "mediaSingle", "content": [text("caption")]}))
        assert isinstance(parsed.content[0], UnknownNode)

    def test_null_attrs_and_content_dropped(self) -> None:
        parsed = parse_document(doc({"type": "paragraph", "attrs": None, "content": None}))
        assert parsed.content[0].content == []

    def test_root_type_ignored(self) -> None:
        parsed = parse_document({"type": "something", "content": [para(text("x"))]})
        assert isinstance(parsed, Doc)

    def test_structurally_broken_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_document(doc({"type": "heading", "attrs": {"level": "big"}, "content": []}))


# ---------------------------------------------------------------------------
# Marks
# ---------------------------------------------------------------------------


class TestApplyMarks:
    def test_single_marks(self) -> None:
        assert apply_marks("x", [Mark(type="strong")]) == "**x**"
        assert apply_marks("x", [Mark(type="em")]) == "*x*"
        assert apply_marks("x", [Mark(type="code")]) == "`x`"
        assert apply_marks("x", [Mark(type="strike")]) == "~~x~~"

    def test_fixed_precedence(self) -> None:
        assert apply_marks("x", [Mark(type="strong"), Mark(type="code")]) == "**`x`**"
        assert apply_marks("x", [Mark(type="code"), Mark(type="strong")]) == "**`x`**"
        assert apply_marks("x", [Mark(type="strong"), Mark(type="em")]) == "***x***"

    def test_link_outermost(self) -> None:
        marks = [Mark(type="link", attrs={"href": "https://a.b"}), Mark(type="strong")]
        assert apply_marks("x", marks) == "[**x**](https://a.b)"

    def test_duplicate_marks_applied_once(self) -> None:
        assert apply_marks("x", [Mark(type="strong"), Mark(type="strong")]) == "**x**"

    def test_unknown_mark_ignored(self) -> None:
        assert apply_marks("x", [Mark(type="textColor", attrs={"color": "#f00"})]) == "x"

    def test_empty_text(self) -> None:
        assert apply_marks("", [Mark(type="strong")]) == ""


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


class TestRenderBlocks:
    def test_heading(self) -> None:
        raw = doc({"type": "heading", "attrs": {"level": 1}, "content": [text("Title")]})
        assert render(raw) == "# Title"

    def test_heading_level_clamped(self) -> None:
        raw = doc({"type": "heading", "attrs": {"level": 9}, "content": [text("Deep")]})
        assert render(raw) == "###### Deep"

    def test_heading_without_attrs(self) -> None:
        assert render(doc({"type": "heading", "content": [text("T")]})) == "# T"

    def test_paragraphs_separated_by_blank_line(self) -> None:
        assert render(doc(para(text("one")), para(text("two")))) == "one\n\ntwo"

    def test_paragraph_with_marks(self) -> None:
        raw = doc(para(text("Hello "), text("bold", "strong"), text(" and "), text("it", "em")))
        assert render(raw) == "Hello **bold** and *it*"

    def test_hard_break(self) -> None:
        raw = doc(para(text("a"), {"type": "hardBreak"}, text("b")))
        assert render(raw) == "a\nb"

    def test_bullet_list(self) -> None:
        raw = doc(
            {
                "type": "bulletList",
                "content": [
                    {"type": "listItem", "content": [para(text("first"))]},
                    {"type": "listItem", "content": [para(text("second"))]},
                ],
            }
        )
        assert render(raw) == "- first\n- second"

    def test_ordered_list_uses_one_marker(self) -> None:
        raw = doc(
            {
                "type": "orderedList",
                "content": [
                    {"type": "listItem", "content": [para(text("a"))]},
                    {"type": "listItem", "content": [para(text("b"))]},
                ],
            }
        )
        assert render(raw) == "1. a\n1. b"

    def test_nested_list_flattened(self) -> None:
        inner = {"type": "bulletList", "content": [{"type": "listItem", "content": [para(text("child"))]}]}
        raw = doc({"type": "bulletList", "content": [{"type": "listItem", "content": [para(text("parent")), inner]}]})
        assert render(raw) == "- parent\n- child"

    def test_code_block(self) -> None:
        raw = doc({"type": "codeBlock", "attrs": {"language": "python"}, "content": [text("print(1)")]})
        assert render(raw) == "```python\nprint(1)\n```"

    def test_code_block_without_language(self) -> None:
        raw = doc({"type": "codeBlock", "content": [text("x = 1")]})
        assert render(raw) == "```\nx = 1\n```"

    def test_panel(self) -> None:
        raw = doc({"type": "panel", "attrs": {"panelType": "warning"}, "content": [para(text("Careful"))]})
        assert render(raw) == "> ⚠️ **Warning**\n> Careful"

    def test_panel_unknown_type(self) -> None:
        raw = doc({"type": "panel", "attrs": {"panelType": "custom"}, "content": [para(text("x"))]})
        assert render(raw) == "> 📌 **Custom**\n> x"

    def test_panel_multiple_paragraphs(self) -> None:
        raw = doc({"type": "panel", "attrs": {"panelType": "info"}, "content": [para(text("a")), para(text("b"))]})
        assert render(raw) == "> ℹ️ **Info**\n> a\n>\n> b"

    def test_blockquote(self) -> None:
        assert render(doc({"type": "blockquote", "content": [para(text("quoted"))]})) == "> quoted"

    def test_rule(self) -> None:
        assert render(doc(para(text("a")), {"type": "rule"}, para(text("b")))) == "a\n\n---\n\nb"

    def test_null_attr_values_use_defaults(self) -> None:
        raw = doc(
            {"type": "heading", "attrs": {"level": None}, "content": [text("T")]},
            para(
                {"type": "link", "attrs": {"href": None}, "content": [text("x")]},
                text(" "),
                {"type": "inlineCard", "attrs": {"url": None, "title": "Card"}},
                text(" "),
                {"type": "mention", "attrs": {"id": None}},
            ),
            {"type": "codeBlock", "attrs": {"language": None}, "content": [{"type": "text", "text": None}]},
        )
        assert render(raw) == "# T\n\n[x]() [Card]() @\n\n```\n\n```"

    def test_null_attr_stays_local(self) -> None:
        raw = doc(
            {"type": "heading", "attrs": {"level": None}, "content": [text("Steps")]},
            para(text("Login "), text("fails", "strong")),
        )
        assert render_description(raw) == "# Steps\n\nLogin **fails**"

    def test_inline_card(self) -> None:
        raw = doc(para({"type": "inlineCard", "attrs": {"url": "https://x.y/z"}}))
        assert render(raw) == "[https://x.y/z](https://x.y/z)"

    def test_link_node(self) -> None:
        raw = doc(para({"type": "link", "attrs": {"href": "https://x.y"}, "content": [text("site")]}))
        assert render(raw) == "[site](https://x.y)"

    def test_link_mark(self) -> None:
        raw = doc(para(text("docs", {"type": "link", "attrs": {"href": "https://d.io"}})))
        assert render(raw) == "[docs](https://d.io)"

    def test_mention_and_emoji(self) -> None:
        raw = doc(
            para(
                {"type": "mention", "attrs": {"id": "abc", "text": "@Ann"}},
                text(" "),
                {"type": "emoji", "attrs": {"shortName": ":smile:", "text": "😄"}},
            )
        )
        assert render(raw) == "@Ann 😄"

    def test_unknown_node_renders_text(self) -> None:
        raw = doc({"type": "mediaGroup", "content": [text("attachment")]})
        assert render(raw) == "attachment"

    def test_unknown_node_without_text_vanishes(self) -> None:
        assert render(doc({"type": "media", "attrs": {"id": "1"}}, para(text("after")))) == "after"

    def test_empty_doc(self) -> None:
        assert render(doc()) == ""

    def test_trailing_whitespace_trimmed(self) -> None:
        assert not render(doc(para(text("end")))).endswith("\n")


# ---------------------------------------------------------------------------
# try_render / render_description
# ---------------------------------------------------------------------------


class TestTryRender:
    def test_success(self) -> None:
        result = try_render(doc(para(text("ok"))))
        assert result.ok
        assert result.markdown == "ok"

    def test_failure_reports_error(self) -> None:
        result = try_render(doc({"type": "paragraph", "content": "not a list"}))
        assert not result.ok
        assert result.markdown is None
        assert result.error

    def test_render_recursion_reported(self) -> None:
        result = try_render(nested("blockquote", 250))
        assert not result.ok
        assert "RecursionError" in result.error

    def test_validation_depth_reported(self) -> None:
        result = try_render(nested("blockquote", 300))
        assert not result.ok
        assert "ValidationError" in result.error


class TestRenderDescription:
    def test_string_returned_unchanged(self) -> None:
        assert render_description("already *markdown*") == "already *markdown*"

    def test_empty_values(self) -> None:
        assert render_description(None) == ""
        assert render_description("") == ""
        assert render_description({}) == ""

    def test_unsupported_shapes(self) -> None:
        assert render_description(42) == ""
        assert render_description(["a"]) == ""
        assert render_description({"type": "doc"}) == ""

    def test_adf_rendered(self) -> None:
        raw = doc({"type": "heading", "attrs": {"level": 2}, "content": [text("Steps")]}, para(text("go")))
        assert render_description(raw) == "## Steps\n\ngo"

    def test_falls_back_to_plain_text(self, caplog: pytest.LogCaptureFixture) -> None:
        raw = doc(
            {"type": "heading", "attrs": {"level": "big"}, "content": [text("Title")]},
            para(text("body")),
        )
        with caplog.at_level(logging.WARNING, logger="jtl.markdown"):
            assert render_description(raw) == "Title\nbody"
        assert "Falling back" in caplog.text

    def test_never_raises_on_garbage(self) -> None:
        raw = {"content": [None, 3, {"type": "paragraph", "content": [{"type": "text", "text": None}]}]}
        assert isinstance(render_description(raw), str)

    @pytest.mark.parametrize("depth", [250, 300, 5000])
    def test_deep_tree_falls_back_to_leaf_text(self, depth: int) -> None:
        assert render_description(nested("blockquote", depth)) == "leaf"
