"""Non-validating tag scanner shared by the compaction passes.

No tree is built: nesting is approximated by integer counters that every pass
updates the same way, so whitespace collapsing and reindentation always agree
on which lines sit inside a protected region.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
import re

__all__ = [
    "NestingCounters",
    "SCRIPT_BLOCK",
    "STYLE_BLOCK",
    "TagEvent",
    "outside_foreign",
    "scan_tags",
    "split_lines",
]

TAG_SCAN = re.compile(r"<(/?)([a-z\-:]+)([^>]*?)>", re.IGNORECASE)
SCRIPT_BLOCK = re.compile(r"(<script\b[^>]*>)(.*?)(</script>)", re.IGNORECASE | re.DOTALL)
STYLE_BLOCK = re.compile(r"(<style\b[^>]*>)(.*?)(</style>)", re.IGNORECASE | re.DOTALL)
_FOREIGN_BLOCK = re.compile(
    r"<(?P<name>script|style)\b[^>]*>(?P<body>.*?)</(?P=name)>",
    re.IGNORECASE | re.DOTALL,
)

_COUNTED_TAGS = {
    "code": "in_code",
    "pre": "in_pre",
    "script": "in_script",
    "style": "in_style",
}


@dataclass(slots=True, frozen=True)
class TagEvent:
    """One ``<tag ...>`` occurrence found on a line."""

    name: str
    raw_attrs: str
    is_closing: bool
    is_self_closing_or_comment: bool


def scan_tags(line: str) -> Iterator[TagEvent]:
    """Yield a :class:`TagEvent` for every tag on *line*, in order."""

    for match in TAG_SCAN.finditer(line):
        raw = match.group(0)
        yield TagEvent(
            name=match.group(2).lower(),
            raw_attrs=match.group(3),
            is_closing=bool(match.group(1)),
            is_self_closing_or_comment=raw.startswith("<!") or raw.endswith("/>"),
        )


@dataclass(slots=True)
class NestingCounters:
    """Running open/close balance of the whitespace-sensitive elements."""

    in_code: int = 0
    in_pre: int = 0
    in_script: int = 0
    in_style: int = 0

    def track(self, event: TagEvent) -> None:
        attribute = _COUNTED_TAGS.get(event.name)
        if attribute is None:
            return
        current = getattr(self, attribute)
        if event.is_closing:
            setattr(self, attribute, max(current - 1, 0))
        else:
            setattr(self, attribute, current + 1)

    @property
    def in_verbatim(self) -> bool:
        return self.in_code > 0 or self.in_pre > 0

    @property
    def in_foreign(self) -> bool:
        return self.in_script > 0 or self.in_style > 0


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` and drop trailing empty lines."""

    lines = text.split("\n")
    while lines and not lines[-1]:
        lines.pop()
    return lines


def outside_foreign(text: str, transform: Callable[[str], str]) -> str:
    """Apply *transform* to *text* except inside script and style payloads.

    The opening and closing tags themselves are transformed; only complete
    ``<script>``/``<style>`` bodies are left untouched.
    """

    parts: list[str] = []
    position = 0
    for match in _FOREIGN_BLOCK.finditer(text):
        parts.append(transform(text[position : match.start("body")]))
        parts.append(match.group("body"))
        position = match.end("body")
    parts.append(transform(text[position:]))
    return "".join(parts)
