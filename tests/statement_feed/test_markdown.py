"""Tests for the markdown renderer."""

import pytest

from src.statement_feed.markdown import (
    NO_CONTENT_HTML,
    MarkdownRenderer,
    has_html_tags,
    render_body,
    render_markdown,
)


@pytest.mark.parametrize("value", [None, "", 42, ["# x"]])
def test_render_markdown_empty_or_non_string(value):
    assert render_markdown(value) == ""


def test_plain_paragraphs():
    assert render_markdown("First paragraph\n\nSecond paragraph") == "<p>First paragraph</p><p>Second paragraph</p>"


@pytest.mark.parametrize(
    "markdown,expected",
    [
        ("# Title", "<h1>Title</h1>"),
        ("## Section", "<h2>Section</h2>"),
        ("### Sub", "<h3>Sub</h3>"),
    ],
)
def test_headings(markdown, expected):
    assert render_markdown(markdown) == expected


def test_heading_followed_by_paragraph():
    html = render_markdown("# Title\nHello **world**")
    assert html == "<h1>Title</h1><p>Hello <strong>world</strong></p>"


def test_bold_and_italic():
    html = render_markdown("**bold** and *italic*")
    assert html == "<p><strong>bold</strong> and <em>italic</em></p>"


def test_bold_paragraph_is_still_wrapped():
    assert render_markdown("**Notice** follows").startswith("<p><strong>Notice</strong>")


def test_unordered_list():
    html = render_markdown("Intro\n- one\n- two\n\nAfter")
    assert "<p>Intro</p>" in html
    assert "<ul>" in html
    assert "<li>one</li>" in html
    assert "<li>two</li>" in html
    assert "</ul>" in html
    assert html.endswith("<p>After</p>")
    assert "<p><ul>" not in html


def test_list_open_at_end_is_closed():
    html = render_markdown("- only item")
    assert html.count("<ul>") == 1
    assert html.count("</ul>") == 1
    assert html.index("<ul>") < html.index("<li>only item</li>") < html.index("</ul>")


def test_fenced_code_block_is_escaped_and_not_formatted():
    html = render_markdown("```\n<b>**not bold**</b>\n```")
    assert html == "<pre><code>&lt;b&gt;**not bold**&lt;/b&gt;</code></pre>"


def test_fenced_code_block_between_paragraphs():
    html = render_markdown("Before\n\n```\nx = 1\n```\n\nAfter")
    assert html == "<p>Before</p><pre><code>x = 1</code></pre><p>After</p>"


def test_inline_code_is_escaped():
    assert render_markdown("Use `a<b` here") == "<p>Use <code>a&lt;b</code> here</p>"


def test_external_link_opens_new_tab():
    html = render_markdown("[Site](https://example.com/page)")
    assert '<a href="https://example.com/page" target="_blank" rel="noopener noreferrer">Site</a>' in html


def test_protocol_relative_link_is_external():
    assert 'target="_blank"' in render_markdown("[CDN](//cdn.example.com/x)")


def test_relative_link_same_tab():
    html = render_markdown("[About](/about)")
    assert '<a href="/about">About</a>' in html
    assert "target=" not in html


def test_hard_line_break():
    assert render_markdown("line one  \nline two") == "<p>line one<br>line two</p>"


def test_crlf_line_endings():
    assert render_markdown("First\r\n\r\nSecond") == "<p>First</p><p>Second</p>"


def test_renderer_instance_matches_module_helper():
    text = "## Head\n\n- a\n- b"
    assert MarkdownRenderer().render(text) == render_markdown(text)


@pytest.mark.parametrize("body", [None, "", 0, {"text": "x"}])
def test_render_body_no_content(body):
    assert render_body(body) == NO_CONTENT_HTML


def test_render_body_html_passthrough():
    body = "<p>Already <b>HTML</b></p>\n\n# not a heading"
    assert render_body(body) == body


def test_render_body_markdown():
    assert render_body("# Title") == "<h1>Title</h1>"


def test_has_html_tags():
    assert has_html_tags("<DIV>x</DIV>")
    assert has_html_tags("text <br> text")
    assert not has_html_tags("a < b > c")
    assert not has_html_tags("plain text")


def test_heading_list_and_emphasis_together():
    html = render_markdown("# Title\n\n- a\n- b\n\n**bold** and *italic*")
    assert html == (
        "<h1>Title</h1>"
        "<ul>\n<li>a</li>\n<li>b</li>\n</ul>"
        "<p><strong>bold</strong> and <em>italic</em></p>"
    )
    assert html.count("<ul>") == html.count("</ul>") == 1


def test_render_body_returns_script_markup_untouched():
    body = "<script>alert(1)</script><p>x</p>"
    assert render_body(body) == body
