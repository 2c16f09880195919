"""Markdown rendering for statement bodies.

Supports the small dialect statement authors actually use:

- headings (``#``, ``##``, ``###``)
- bold (``**text**``) and italic (``*text*``)
- links (``[text](url)``), external ones opening in a new tab
- unordered lists (``- item``)
- fenced code blocks and inline code spans
- hard line breaks (two trailing spaces)

Bodies that already contain HTML bypass markdown entirely and are returned
as-is; callers are responsible for sanitizing those beforehand.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from .parser_utils import escape_html

NO_CONTENT_HTML = "<p>내용이 없습니다.</p>"

EXTERNAL_PREFIXES = ("http://", "https://", "//")

HTML_TAG_RE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)


def has_html_tags(text: str) -> bool:
    """Return True when ``text`` contains anything that looks like an HTML tag."""
    return bool(HTML_TAG_RE.search(text))


def is_external_url(url: str) -> bool:
    return url.startswith(EXTERNAL_PREFIXES)


class MarkdownRenderer:
    """Renders the restricted markdown dialect to an HTML fragment."""

    CODE_BLOCK_RE = re.compile(r"```([\s\S]*?)```")
    INLINE_CODE_RE = re.compile(r"`([^`]+)`")
    BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
    ITALIC_RE = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
    LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
    HARD_BREAK_RE = re.compile(r"  \n(?!\n)")
    PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")
    BLOCK_START_RE = re.compile(r"^<(?:h[1-6]|ul|ol|pre|blockquote|div|table|p)\b", re.IGNORECASE)

    # Longest prefix first so "#" never claims a "##" line
    HEADING_PREFIXES = (("### ", "h3"), ("## ", "h2"), ("# ", "h1"))
    LIST_ITEM_PREFIX = "- "

    PLACEHOLDER = "\x00CODEBLOCK{index}\x00"

    def render(self, markdown: Any) -> str:
        if not markdown or not isinstance(markdown, str):
            return ""

        text = markdown.replace("\r\n", "\n")

        code_blocks: List[str] = []

        def stash_code(match: re.Match) -> str:
            code_blocks.append(escape_html(match.group(1).strip()))
            return self.PLACEHOLDER.format(index=len(code_blocks) - 1)

        text = self.CODE_BLOCK_RE.sub(stash_code, text)
        text = self.INLINE_CODE_RE.sub(lambda m: f"<code>{escape_html(m.group(1))}</code>", text)
        text = self._render_blocks(text)
        text = self.BOLD_RE.sub(r"<strong>\1</strong>", text)
        text = self.ITALIC_RE.sub(r"<em>\1</em>", text)
        text = self.LINK_RE.sub(self._render_link, text)
        text = self.HARD_BREAK_RE.sub("<br>", text)
        html = self._wrap_paragraphs(text, len(code_blocks))

        for index, code in enumerate(code_blocks):
            html = html.replace(self.PLACEHOLDER.format(index=index), f"<pre><code>{code}</code></pre>")

        return html

    def _render_blocks(self, text: str) -> str:
        """Line pass for headings and lists; block elements end up in their own chunk."""
        output: List[str] = []
        in_list = False

        def close_list() -> None:
            nonlocal in_list
            if in_list:
                output.extend(["</ul>", ""])
                in_list = False

        for line in text.split("\n"):
            trimmed = line.strip()

            if not trimmed:
                close_list()
                output.append("")
                continue

            heading = self._match_heading(trimmed)
            if heading is not None:
                close_list()
                output.extend([heading, ""])
                continue

            if trimmed.startswith(self.LIST_ITEM_PREFIX):
                if not in_list:
                    if output and output[-1]:
                        output.append("")
                    output.append("<ul>")
                    in_list = True
                output.append(f"<li>{trimmed[len(self.LIST_ITEM_PREFIX):]}</li>")
                continue

            close_list()
            output.append(line)

        close_list()
        return "\n".join(output)

    def _match_heading(self, trimmed: str) -> Optional[str]:
        for prefix, tag in self.HEADING_PREFIXES:
            if trimmed.startswith(prefix):
                return f"<{tag}>{trimmed[len(prefix):]}</{tag}>"
        return None

    @staticmethod
    def _render_link(match: re.Match) -> str:
        label, url = match.group(1), match.group(2)
        href = escape_html(url)
        if is_external_url(url):
            return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{label}</a>'
        return f'<a href="{href}">{label}</a>'

    def _wrap_paragraphs(self, text: str, code_block_count: int) -> str:
        standalone_code = {self.PLACEHOLDER.format(index=i) for i in range(code_block_count)}
        chunks = []
        for chunk in self.PARAGRAPH_SPLIT_RE.split(text):
            chunk = chunk.strip()
            if not chunk:
                continue
            if chunk in standalone_code or self.BLOCK_START_RE.match(chunk):
                chunks.append(chunk)
            else:
                chunks.append(f"<p>{chunk}</p>")
        return "".join(chunks)


_default_renderer = MarkdownRenderer()


def render_markdown(markdown: Any) -> str:
    """Render markdown to HTML; empty or non-string input renders as ``""``."""
    return _default_renderer.render(markdown)


def render_body(body: Any, renderer: MarkdownRenderer = _default_renderer) -> str:
    """Render a statement body.

    HTML-bearing bodies are detected as a whole document and returned
    untouched, even if they also contain markdown.
    """
    if not body or not isinstance(body, str):
        return NO_CONTENT_HTML
    if has_html_tags(body):
        return body
    return renderer.render(body)
