"""
Minimal, safe Markdown renderer for coach notes, plans and recipes.

Supports a deliberately small dialect:
- Headings (#, ##, ###)
- Paragraphs (consecutive lines merged, newlines become <br/>)
- Unordered lists (- or *), with [ ] / [x] checklist items
- Ordered lists (1. or 1-)
- Fenced code blocks (``` or ~~~)
- Inline `code`, ![images](url), [links](url), **bold** and *italic*

All raw text is HTML-escaped before any markup is injected. Inline rules run
over the escaped string, so user text can never open a tag of its own.
Rendering never raises: anything the dialect doesn't recognise is emitted
as escaped paragraph text.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


_FENCE_RE = re.compile(r"^\s*(```|~~~)\s*$")
_BLANK_RE = re.compile(r"^\s*$")
_HEADING_RE = re.compile(r"^(#{1,3})\s+(.*)$")
_UNORDERED_RE = re.compile(r"^\s*[-*]\s+(.*)$")
_ORDERED_RE = re.compile(r"^\s*\d+[.\-]\s+(.*)$")
_CHECKBOX_RE = re.compile(r"^\[( |x|X)\]\s+(.*)$")

# Inline patterns run against escaped text, so quotes appear as &quot;
_CODE_SPAN_RE = re.compile(r"`([^`]+?)`")
_IMAGE_RE = re.compile(
    r"!\[([^\]]*)\]\(((?:https?://|data:image/)[^\s)]+)(?:\s+&quot;(.*?)&quot;)?\)",
    re.IGNORECASE,
)
_LINK_RE = re.compile(
    r"\[([^\]]+)\]\((https?://[^\s)]+)(?:\s+&quot;(.*?)&quot;)?\)",
    re.IGNORECASE,
)
_BOLD_RE = re.compile(r"\*\*([^*]+?)\*\*")
_ITALIC_RE = re.compile(r"\*([^*]+?)\*")

# Placeholder delimiter for protected inline fragments. Stripped from input.
_STASH = "\x00"
_STASH_RE = re.compile(_STASH + r"(\d+)" + _STASH)


def escape_html(text: str) -> str:
    """Escape the five HTML-significant characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


class LineKind(Enum):
    """How a single source line is classified."""
    FENCE = "fence"
    BLANK = "blank"
    HEADING = "heading"
    UNORDERED = "unordered"
    ORDERED = "ordered"
    TEXT = "text"


def classify_line(line: str) -> LineKind:
    """
    Classify a line outside a code block.

    Order matters: a line like "- 1. item" is an unordered item, and
    "#### title" is plain text because only three heading levels exist.
    """
    if _FENCE_RE.match(line):
        return LineKind.FENCE
    if _BLANK_RE.match(line):
        return LineKind.BLANK
    if _HEADING_RE.match(line):
        return LineKind.HEADING
    if _UNORDERED_RE.match(line):
        return LineKind.UNORDERED
    if _ORDERED_RE.match(line):
        return LineKind.ORDERED
    return LineKind.TEXT


@dataclass
class MarkdownRenderer:
    """
    Line-by-line Markdown to HTML renderer.

    A single pass over the lines; each block consumes its own line and,
    for lists and paragraphs, the immediately following lines of the same
    kind. A blank line always ends the current block.
    """
    allow_images: bool = True
    checkbox_class: str = "md-check"
    ordered_list_class: str = "md-steps"
    link_class: str = "md-link"

    def render(self, text: str) -> str:
        lines = text.replace("\r\n", "\n").replace("\r", "\n").replace(_STASH, "").split("\n")
        html: list[str] = []
        i = 0
        n = len(lines)

        while i < n:
            line = lines[i]
            kind = classify_line(line)

            if kind is LineKind.FENCE:
                i = self._render_code_block(lines, i, html)
                continue

            if kind is LineKind.BLANK:
                html.append("\n")
                i += 1
                continue

            if kind is LineKind.HEADING:
                match = _HEADING_RE.match(line)
                level = len(match.group(1))
                html.append(f"<h{level}>{self.inline(match.group(2))}</h{level}>")
                i += 1
                continue

            if kind is LineKind.UNORDERED:
                items, i = self._collect(lines, i, LineKind.UNORDERED, _UNORDERED_RE)
                html.append("<ul>" + "".join(self._list_item(item) for item in items) + "</ul>")
                continue

            if kind is LineKind.ORDERED:
                items, i = self._collect(lines, i, LineKind.ORDERED, _ORDERED_RE)
                body = "".join(f"<li>{self.inline(item)}</li>" for item in items)
                html.append(f'<ol class="{self.ordered_list_class}">{body}</ol>')
                continue

            # Paragraph: this line plus following plain-text lines
            buf = [line]
            i += 1
            while i < n and classify_line(lines[i]) is LineKind.TEXT:
                buf.append(lines[i])
                i += 1
            html.append(self._paragraph(buf))

        return "".join(html)

    # -----------------------------------------------------------------------
    # Blocks
    # -----------------------------------------------------------------------

    def _render_code_block(self, lines: list[str], start: int, html: list[str]) -> int:
        """
        Emit a fenced code block starting at `start`; return the next index.

        The block closes on the next fence of the same kind. Without one,
        the rest of the input is code and the block is still closed.
        """
        fence = _FENCE_RE.match(lines[start]).group(1)
        buf: list[str] = []
        i = start + 1
        while i < len(lines):
            closing = _FENCE_RE.match(lines[i])
            if closing and closing.group(1) == fence:
                i += 1
                break
            buf.append(lines[i])
            i += 1
        code = escape_html("\n".join(buf))
        html.append(f"<pre><code>{code}</code></pre>")
        return i

    @staticmethod
    def _collect(
        lines: list[str],
        start: int,
        kind: LineKind,
        pattern: re.Pattern,
    ) -> tuple[list[str], int]:
        """Gather consecutive lines of one list kind, returning item bodies."""
        items: list[str] = []
        i = start
        while i < len(lines) and classify_line(lines[i]) is kind:
            items.append(pattern.match(lines[i]).group(1))
            i += 1
        return items, i

    def _list_item(self, body: str) -> str:
        checkbox = _CHECKBOX_RE.match(body)
        if checkbox:
            checked = " checked" if checkbox.group(1).lower() == "x" else ""
            label = self.inline(checkbox.group(2))
            return (
                f'<li><label class="{self.checkbox_class}">'
                f'<input type="checkbox" disabled{checked}/> {label}</label></li>'
            )
        return f"<li>{self.inline(body)}</li>"

    def _paragraph(self, buf: list[str]) -> str:
        return "<p>" + self.inline("\n".join(buf)).replace("\n", "<br/>") + "</p>"

    # -----------------------------------------------------------------------
    # Inline
    # -----------------------------------------------------------------------

    def inline(self, text: str) -> str:
        """
        Escape `text` and apply inline rules.

        Rule order is fixed: code spans, images, links, bold, italic.
        Code spans, images and links are stashed as soon as they are built
        so later rules can't rewrite their contents or attributes.
        Attribute values (src, href, alt, title) only ever hold plain text:
        a stashed fragment inside one collapses to its escaped text.
        """
        stash: list[tuple[str, str]] = []

        def keep(fragment: str, plain: str) -> str:
            stash.append((fragment, plain))
            return f"{_STASH}{len(stash) - 1}{_STASH}"

        def flatten(value: Optional[str]) -> Optional[str]:
            if not value:
                return value
            return _STASH_RE.sub(lambda m: stash[int(m.group(1))][1], value)

        def image(m: re.Match) -> str:
            alt, url, title = flatten(m.group(1)), flatten(m.group(2)), flatten(m.group(3))
            return keep(self._image(alt, url, title), alt)

        def link(m: re.Match) -> str:
            url, title = flatten(m.group(2)), flatten(m.group(3))
            return keep(self._link(m.group(1), url, title), flatten(m.group(1)))

        out = escape_html(text)
        out = _CODE_SPAN_RE.sub(lambda m: keep(f"<code>{m.group(1)}</code>", m.group(1)), out)
        if self.allow_images:
            out = _IMAGE_RE.sub(image, out)
        out = _LINK_RE.sub(link, out)
        out = _emphasis(out)

        # Stashed fragments can nest (link text holding a code span)
        while _STASH_RE.search(out):
            out = _STASH_RE.sub(lambda m: stash[int(m.group(1))][0], out)
        return out

    @staticmethod
    def _image(alt: str, url: str, title: Optional[str]) -> str:
        title_attr = f' title="{title}"' if title else ""
        return f'<img src="{url}" alt="{alt}"{title_attr} />'

    def _link(self, text: str, url: str, title: Optional[str]) -> str:
        title_attr = f' title="{title}"' if title else ""
        return (
            f'<a href="{url}" class="{self.link_class}" target="_blank" '
            f'rel="noopener noreferrer"{title_attr}>{_emphasis(text)}</a>'
        )


def _emphasis(text: str) -> str:
    # bold first so its asterisks are consumed before italic runs
    text = _BOLD_RE.sub(r"<strong>\1</strong>", text)
    return _ITALIC_RE.sub(r"<em>\1</em>", text)


_default_renderer = MarkdownRenderer()


def render(text: Optional[str], allow_images: bool = True) -> str:
    """
    Render Markdown text to an HTML string.

    The result is already escaped and safe to embed as trusted HTML; do not
    escape it again. `None` renders as an empty string.
    """
    if not text:
        return ""
    if allow_images:
        return _default_renderer.render(text)
    return MarkdownRenderer(allow_images=False).render(text)
