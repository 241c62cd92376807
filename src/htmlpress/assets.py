"""Inline ``<script>`` and ``<style>`` payload processing."""

from __future__ import annotations

from collections.abc import Callable
import re

from .scanner import SCRIPT_BLOCK, STYLE_BLOCK

__all__ = [
    "process_scripts",
    "process_styles",
]


def _process(pattern: re.Pattern[str], text: str, minify: Callable[[str], str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        opening, payload, closing = match.groups()
        return f"{opening}{minify(payload)}{closing}"

    return pattern.sub(_replace, text)


def process_scripts(text: str, minify: Callable[[str], str]) -> str:
    """Run every inline script body through *minify*, keeping its tags."""

    return _process(SCRIPT_BLOCK, text, minify)


def process_styles(text: str, minify: Callable[[str], str]) -> str:
    """Run every inline style body through *minify*, keeping its tags."""

    return _process(STYLE_BLOCK, text, minify)
