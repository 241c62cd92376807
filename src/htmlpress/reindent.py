"""Indentation derived from a running nesting depth."""

from __future__ import annotations

from .config import DEFAULT_INDENT_UNIT
from .scanner import NestingCounters, scan_tags, split_lines

__all__ = ["reindent"]


def reindent(text: str, indent_unit: str = DEFAULT_INDENT_UNIT) -> str:
    """Prefix every line with ``indent_unit`` times its nesting depth.

    The depth of a line is the smaller of the depth before and after its
    tags, so a line that only closes tags lines up with its opener.  Script
    and style bodies do not count as HTML nesting, and unbalanced closing tags
    clamp the depth at zero instead of failing.
    """

    level = 0
    counters = NestingCounters()
    result: list[str] = []

    for line in split_lines(text):
        pre_level = level

        for event in scan_tags(line):
            counters.track(event)
            if event.name in ("script", "style") and not event.is_closing:
                level += 1

            if event.is_self_closing_or_comment:
                continue
            if counters.in_foreign:
                continue

            if event.is_closing:
                level = max(level - 1, 0)
            else:
                level += 1

        indent_level = min(level, pre_level)
        # A verbatim block's placeholder line must not be pushed right.
        if counters.in_verbatim and level <= pre_level:
            indent_level = 0

        result.append(indent_unit * indent_level + line)

    return "\n".join(result)
