"""Plain text to draft HTML."""

from __future__ import annotations

import re

_HTML_TAG = re.compile(r"<(p|br|div|span|a|b|i|u|strong|em|ul|ol|li|table|h[1-6]|blockquote)\b[^>]*>", re.I)
_BLANK_LINES = re.compile(r"\n\s*\n")


def looks_like_html(text: str) -> bool:
    return bool(_HTML_TAG.search(text))


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def text_to_html(text: str) -> str:
    """Convert plain text to paragraph HTML.

    Text that already contains HTML tags passes through untouched.
    Blank lines separate paragraphs; single newlines become <br>.

    >>> text_to_html("line1\\nline2\\n\\nline3")
    '<p>line1<br>line2</p><p>line3</p>'
    """
    if not text:
        return ""
    if looks_like_html(text):
        return text

    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = [p for p in _BLANK_LINES.split(normalized) if p.strip()]
    rendered = []
    for paragraph in paragraphs:
        lines = [_escape(line) for line in paragraph.strip("\n").split("\n")]
        rendered.append("<p>" + "<br>".join(lines) + "</p>")
    return "".join(rendered)
