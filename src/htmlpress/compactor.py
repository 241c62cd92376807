"""Whitespace and comment compaction passes."""

from __future__ import annotations

import re

from .scanner import NestingCounters, outside_foreign, scan_tags, split_lines

__all__ = [
    "collapse_whitespace",
    "compact_block_elements",
    "drop_empty_lines",
    "strip_empty_comments",
    "trim_lines",
]

_EMPTY_COMMENT = re.compile(r"<!--[ \t]*-->")
_LINE_WHITESPACE = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)
_NEWLINES = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"[ \t]+")
_EMPTY_LINE = re.compile(r"^$\n", re.MULTILINE)

# Elements whose surrounding whitespace never renders.
_BLOCK_ELEMENTS = (
    r"(?:area|base(?:font)?|blockquote|body|caption|center|cite|"
    r"col(?:group)?|dd|dir|div|dl|dt|fieldset|form|frame(?:set)?|"
    r"h[1-6]|head|hr|html|legend|li|link|map|menu|meta|"
    r"ol|opt(?:group|ion)|p|param|"
    r"t(?:able|body|head|d|h|r|foot|itle)|ul)"
)
_BLOCK_TAG = re.compile(rf"[ \t]*(</?{_BLOCK_ELEMENTS}\b[^>]*>)[ \t]*", re.IGNORECASE)


def strip_empty_comments(text: str) -> str:
    """Remove ``<!-- -->`` comments that hold nothing but blanks.

    Comments with content, conditional comments included, are kept.
    """

    return outside_foreign(text, lambda chunk: _EMPTY_COMMENT.sub("", chunk))


def trim_lines(text: str) -> str:
    """Strip leading and trailing spaces and tabs from every line."""

    return _LINE_WHITESPACE.sub("", text)


def compact_block_elements(text: str) -> str:
    """Drop spaces and tabs next to block-level tags."""

    return outside_foreign(text, lambda chunk: _BLOCK_TAG.sub(r"\1", chunk))


def _collapse(chunk: str) -> str:
    return _WHITESPACE.sub(" ", chunk)


def collapse_whitespace(text: str) -> str:
    """Squeeze newline runs to one ``\\n`` and blank runs to one space.

    Lines the running counters place inside ``<code>``, ``<pre>``,
    ``<script>`` or ``<style>`` keep their blanks.
    """

    text = _NEWLINES.sub("\n", text)
    counters = NestingCounters()
    lines: list[str] = []
    for line in split_lines(text):
        for event in scan_tags(line):
            counters.track(event)
        if not (counters.in_verbatim or counters.in_foreign):
            line = outside_foreign(line, _collapse)
        lines.append(line)
    return "\n".join(lines)


def drop_empty_lines(text: str) -> str:
    return _EMPTY_LINE.sub("", text)
