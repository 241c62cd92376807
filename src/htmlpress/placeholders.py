"""Verbatim region extraction for ``<pre>`` and ``<code>`` blocks."""

from __future__ import annotations

from dataclasses import dataclass, field
import re

__all__ = [
    "PlaceholderTable",
    "extract",
    "restore",
]

_BLOCK_PATTERNS = {
    kind: re.compile(rf"(<{kind}>)(.*?)(</{kind}>)", re.IGNORECASE | re.DOTALL)
    for kind in ("code", "pre")
}
_TOKEN_PATTERNS = {
    kind: re.compile(rf"##HTMLPRESS{kind.upper()}BLOCK(\d+)##")
    for kind in ("code", "pre")
}


def _token(kind: str, index: int) -> str:
    return f"##HTMLPRESS{kind.upper()}BLOCK{index}##"


def extract(kind: str, text: str) -> tuple[str, list[str]]:
    """Replace the body of every ``<kind>`` block with an indexed token.

    Only bare opening tags are matched and the match is lazy, so nested blocks
    of the same kind are not handled.
    """

    contents: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        contents.append(match.group(2))
        return f"{match.group(1)}{_token(kind, len(contents) - 1)}{match.group(3)}"

    return _BLOCK_PATTERNS[kind].sub(_replace, text), contents


def restore(kind: str, text: str, contents: list[str]) -> str:
    """Put the extracted bodies back in place of their tokens."""

    def _replace(match: re.Match[str]) -> str:
        index = int(match.group(1))
        if index >= len(contents):
            return match.group(0)
        return contents[index]

    return _TOKEN_PATTERNS[kind].sub(_replace, text)


@dataclass(slots=True)
class PlaceholderTable:
    """Side table of verbatim blocks for a single compaction run."""

    code_blocks: list[str] = field(default_factory=list)
    pre_blocks: list[str] = field(default_factory=list)

    def extract_all(self, text: str) -> str:
        text, self.pre_blocks = extract("pre", text)
        text, self.code_blocks = extract("code", text)
        return text

    def restore_all(self, text: str) -> str:
        # <code> bodies may carry <pre> tokens, never the other way round.
        text = restore("code", text, self.code_blocks)
        return restore("pre", text, self.pre_blocks)
