"""Compaction engine entry point.

``press`` is the only function the surrounding site generator calls: it takes
a rendered document and returns the compacted one.  The pipeline order is
fixed; reindentation needs the stable line boundaries left by whitespace
collapsing and must run before verbatim blocks are restored.

The engine only emits structlog events (debug events for cache traffic and
finished documents).  Hosts are expected to configure structlog, for example
with :func:`htmlpress.main.configure_logging`; structlog's unconfigured
defaults print every event, debug included, to stdout.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import json
from typing import Any

import structlog

from .assets import process_scripts, process_styles
from .cache import ContentCache
from .compactor import (
    collapse_whitespace,
    compact_block_elements,
    drop_empty_lines,
    strip_empty_comments,
    trim_lines,
)
from .config import PressOptions
from .errors import MinifierError
from .minifiers import minify_css, minify_js, resolve_css_minifier, resolve_js_minifier
from .normalizer import close_void_elements, normalize_attributes
from .placeholders import PlaceholderTable
from .reindent import reindent

__all__ = [
    "HtmlPress",
    "compress",
    "press",
]


def _read_source(source: Any) -> str:
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).decode("utf-8")
    if source is None:
        return ""
    return str(source)


@dataclass(slots=True)
class _PressRun:
    """State owned by a single ``press`` call."""

    degraded: bool = False

    def mark_degraded(self) -> None:
        self.degraded = True


class HtmlPress:
    """Compact HTML documents with one fixed set of options.

    An instance holds only read-only configuration, so it can be shared
    between threads.
    """

    def __init__(self, options: PressOptions | Mapping[str, Any] | None = None, **overrides: Any) -> None:
        if isinstance(options, PressOptions):
            self.options = options.with_overrides(**overrides) if overrides else options
        else:
            self.options = PressOptions.from_mapping(options, **overrides)

        self._logger = structlog.get_logger(__name__).bind(component="engine")
        self._js_minifier = resolve_js_minifier(self.options.js_minifier)
        self._css_minifier = resolve_css_minifier(
            self.options.css_minifier,
            binary=self.options.css_binary,
            targets=self.options.css_targets,
        )
        self._cache: ContentCache | None = None
        if self.options.cache_dir is not None:
            self._cache = ContentCache(self.options.cache_dir, policy=self.options.cache_key_policy)
        self._fingerprint = json.dumps(
            {
                "indent_unit": self.options.indent_unit,
                "js": self._js_minifier.name,
                "js_options": dict(self.options.js_minifier_options or {}),
                "css": getattr(self._css_minifier, "fingerprint", self._css_minifier.name),
            },
            sort_keys=True,
            default=str,
        )

    def press(self, source: Any) -> str:
        """Return the compacted form of *source* (text, bytes or a stream)."""

        text = _read_source(source)
        if not text:
            return ""

        if self._cache is not None:
            cached = self._cache.lookup("html", text, fingerprint=self._fingerprint)
            if cached is not None:
                return cached.decode("utf-8")

        try:
            out, degraded = self._compact(text)
        except MinifierError as exc:
            self._report(exc)
            raise

        # Documents with unminified CSS are not memoized.
        if self._cache is not None and not degraded:
            self._cache.store("html", text, out, fingerprint=self._fingerprint)
        self._logger.debug("document_pressed", input_chars=len(text), output_chars=len(out))
        return out

    compress = press

    def _compact(self, text: str) -> tuple[str, bool]:
        """Run the pipeline; also report whether any CSS was left unminified."""

        run = _PressRun()
        table = PlaceholderTable()
        out = table.extract_all(text)
        out = out.replace("\r", "")

        out = process_scripts(out, self._minify_js)
        out = process_styles(out, lambda payload: self._minify_css(payload, run))

        out = strip_empty_comments(out)
        out = trim_lines(out)
        out = compact_block_elements(out)
        out = collapse_whitespace(out)

        out = normalize_attributes(out)
        out = close_void_elements(out)
        out = drop_empty_lines(out)

        out = reindent(out, self.options.indent_unit)
        return table.restore_all(out), run.degraded

    def _minify_js(self, payload: str) -> str:
        return minify_js(
            payload,
            self.options.js_minifier_options,
            self._cache,
            minifier=self._js_minifier,
        )

    def _minify_css(self, payload: str, run: _PressRun) -> str:
        return minify_css(
            payload,
            self._cache,
            minifier=self._css_minifier,
            missing_policy=self.options.css_missing_policy,
            on_passthrough=run.mark_degraded,
        )

    def _report(self, error: MinifierError) -> None:
        if not self.options.logger:
            self._logger.error("minifier_failed", kind=error.kind, snippet=error.source)
            return
        self.options.logger.error(f"\n{error.kind} minifier problem with code snippet:\n---\n{error.source}\n---")


def press(source: Any, options: PressOptions | Mapping[str, Any] | None = None, **overrides: Any) -> str:
    """Compact *source* with *options* (see :class:`PressOptions`)."""

    return HtmlPress(options, **overrides).press(source)


def compress(source: Any, options: PressOptions | Mapping[str, Any] | None = None, **overrides: Any) -> str:
    """Alias of :func:`press` kept for older callers."""

    return press(source, options, **overrides)
