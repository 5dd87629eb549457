"""Minimal markdown-to-HTML renderer for generated reports.

Supports headings (``#``, ``##``, ``###``), ``**strong**``, ``*em*``,
paragraphs separated by blank lines and line breaks. Emphasis is paired
left to right within a line, strong first and then single markers over what
remains, so a single-marker pair may straddle a strong span the same way a
sequential regex substitution would. Text is HTML-escaped.
"""
from __future__ import annotations

import html
from typing import List, Optional, Tuple

_HEADING_MARKERS = (("### ", 3), ("## ", 2), ("# ", 1))

_TEXT = "text"
_TAG = "tag"

Token = Tuple[str, str]


def _match_heading(line: str) -> Optional[Tuple[int, str]]:
    for marker, level in _HEADING_MARKERS:
        if line.startswith(marker):
            return level, line[len(marker):]
    return None


def _strong_pass(line: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while True:
        start = line.find("**", position)
        if start == -1:
            break
        end = line.find("**", start + 2)
        if end == -1:
            break
        if start > position:
            tokens.append((_TEXT, line[position:start]))
        tokens.append((_TAG, "<strong>"))
        if end > start + 2:
            tokens.append((_TEXT, line[start + 2:end]))
        tokens.append((_TAG, "</strong>"))
        position = end + 2
    if position < len(line):
        tokens.append((_TEXT, line[position:]))
    return tokens


def _em_pass(tokens: List[Token]) -> str:
    remaining = sum(value.count("*") for kind, value in tokens if kind == _TEXT)
    is_open = False
    out: List[str] = []
    for kind, value in tokens:
        if kind == _TAG:
            out.append(value)
            continue
        chunk: List[str] = []
        for char in value:
            if char != "*":
                chunk.append(char)
                continue
            remaining -= 1
            if is_open:
                out.append(html.escape("".join(chunk), quote=False))
                out.append("</em>")
                chunk = []
                is_open = False
            elif remaining > 0:
                out.append(html.escape("".join(chunk), quote=False))
                out.append("<em>")
                chunk = []
                is_open = True
            else:
                chunk.append(char)
        out.append(html.escape("".join(chunk), quote=False))
    return "".join(out)


def render_inline(line: str) -> str:
    return _em_pass(_strong_pass(line))


def render(text: str) -> str:
    """Render report text to HTML markup. Never raises on malformed input."""
    if not text:
        return ""

    blocks: List[str] = []
    paragraph: List[str] = []

    def _flush() -> None:
        if paragraph:
            blocks.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()

    for line in text.replace("\r\n", "\n").split("\n"):
        heading = _match_heading(line)
        if heading is not None:
            _flush()
            level, content = heading
            blocks.append(f"<h{level}>{render_inline(content)}</h{level}>")
        elif line == "":
            _flush()
        else:
            paragraph.append(render_inline(line))
    _flush()
    return "".join(blocks)


__all__ = ["render", "render_inline"]
