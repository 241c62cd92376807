"""Attribute whitespace and void element normalization."""

from __future__ import annotations

import re

from .scanner import outside_foreign

__all__ = [
    "VOID_ELEMENTS",
    "close_void_elements",
    "normalize_attributes",
]

# http://dev.w3.org/html5/spec/syntax.html#void-elements plus inline SVG path/rect.
VOID_ELEMENTS = (
    "area",
    "base",
    "br",
    "col",
    "command",
    "embed",
    "hr",
    "img",
    "input",
    "keygen",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
    "path",
    "rect",
)

_TAG_WITH_ATTRS = re.compile(r"<([a-z\-:]+)([^>]*?)(/*?)>", re.IGNORECASE)
_ATTR_NEWLINES = re.compile(r"\n+")
_ATTR_SPACES = re.compile(r" +")
_VOID_TAG = re.compile(
    rf"<({'|'.join(VOID_ELEMENTS)})(?=[\s/>])([^>]*?)/*>",
    re.IGNORECASE,
)


def _normalize_tag(match: re.Match[str]) -> str:
    name, attrs, slash = match.groups()
    attrs = _ATTR_SPACES.sub(" ", _ATTR_NEWLINES.sub(" ", attrs)).rstrip()
    return f"<{name}{attrs}{slash}>"


def normalize_attributes(text: str) -> str:
    """Collapse whitespace inside opening tags without touching their content."""

    return outside_foreign(text, lambda chunk: _TAG_WITH_ATTRS.sub(_normalize_tag, chunk))


def close_void_elements(text: str) -> str:
    """Rewrite void elements into the ``<tag .../>`` form."""

    return outside_foreign(text, lambda chunk: _VOID_TAG.sub(r"<\1\2/>", chunk))
