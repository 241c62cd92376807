"""Adapters around the JavaScript and CSS minifiers used for inline assets."""

from __future__ import annotations

from collections.abc import Callable, Mapping
import importlib
import importlib.util
import json
import os
from pathlib import Path
import shlex
import shutil
import subprocess
import tempfile
from typing import Any, Protocol

import structlog

from .cache import ContentCache
from .config import DEFAULT_CSS_TARGETS, MissingToolPolicy
from .errors import ConfigurationError, MinifierError, MinifierNotFoundError, PressError

__all__ = [
    "CssMinifier",
    "JsMinifier",
    "LightningCssMinifier",
    "PassthroughMinifier",
    "RcssminMinifier",
    "RjsminMinifier",
    "find_lightningcss",
    "minify_css",
    "minify_js",
    "resolve_css_minifier",
    "resolve_js_minifier",
]

logger = structlog.get_logger(__name__, component="minifiers")

LIGHTNINGCSS_BINARY = "lightningcss"
LIGHTNINGCSS_INSTALL_HINT = "Run 'npm install lightningcss-cli' (or install it globally) to provide the binary."


class JsMinifier(Protocol):
    """Strategy interface for JavaScript minification."""

    name: str

    def minify(self, source: str, options: Mapping[str, Any]) -> str: ...


class CssMinifier(Protocol):
    """Strategy interface for CSS minification."""

    name: str

    def minify(self, source: str) -> str: ...


def _library_available(module: str) -> bool:
    return importlib.util.find_spec(module) is not None


class PassthroughMinifier:
    """Return JavaScript unchanged; used when no minifier library is installed."""

    name = "passthrough"

    def minify(self, source: str, options: Mapping[str, Any]) -> str:
        return source


class RjsminMinifier:
    """Minify JavaScript in-process with :mod:`rjsmin`.

    ``options`` are forwarded as keyword arguments to ``rjsmin.jsmin`` (for
    instance ``keep_bang_comments``).
    """

    name = "rjsmin"

    def __init__(self) -> None:
        self._jsmin = importlib.import_module("rjsmin").jsmin

    def minify(self, source: str, options: Mapping[str, Any]) -> str:
        return self._jsmin(source, **dict(options))


class RcssminMinifier:
    """Minify CSS in-process with :mod:`rcssmin`."""

    name = "rcssmin"

    def __init__(self, *, keep_bang_comments: bool = False) -> None:
        self._cssmin = importlib.import_module("rcssmin").cssmin
        self.keep_bang_comments = keep_bang_comments

    @property
    def fingerprint(self) -> str:
        return f"{self.name}:keep_bang_comments={self.keep_bang_comments}"

    def minify(self, source: str) -> str:
        return self._cssmin(source, keep_bang_comments=self.keep_bang_comments)


def find_lightningcss(start: Path | None = None) -> Path | None:
    """Locate the Lightning CSS CLI on ``PATH`` or in a ``node_modules/.bin``."""

    found = shutil.which(LIGHTNINGCSS_BINARY)
    if found is not None:
        return Path(found)
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / "node_modules" / ".bin" / LIGHTNINGCSS_BINARY
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    return None


class LightningCssMinifier:
    """Minify CSS by shelling out to the Lightning CSS command line tool.

    Every invocation works inside its own temporary directory, which is
    removed on success, failure and exceptions alike.
    """

    name = "lightningcss"

    def __init__(
        self,
        binary: str | Path | None = None,
        *,
        targets: str = DEFAULT_CSS_TARGETS,
        minify: bool = True,
    ) -> None:
        self.binary = Path(binary) if binary is not None else None
        self.targets = targets
        self.minify_output = minify

    @property
    def fingerprint(self) -> str:
        return f"{self.name}:targets={self.targets}:minify={self.minify_output}"

    def locate(self) -> Path | None:
        if self.binary is not None:
            return self.binary if self.binary.is_file() else None
        return find_lightningcss()

    def command(self, binary: Path, source_path: Path, result_path: Path) -> list[str]:
        command = [str(binary)]
        if self.minify_output:
            command.append("--minify")
        command.extend(["--bundle", "--targets", self.targets, str(source_path), "-o", str(result_path)])
        return command

    def minify(self, source: str) -> str:
        binary = self.locate()
        if binary is None:
            expected = self.binary or LIGHTNINGCSS_BINARY
            raise MinifierNotFoundError(f"Lightning CSS binary not found at: {expected}\n{LIGHTNINGCSS_INSTALL_HINT}")

        with tempfile.TemporaryDirectory(prefix="htmlpress-css-") as workdir:
            source_path = Path(workdir) / "source.css"
            result_path = Path(workdir) / "result.css"
            source_path.write_text(source, encoding="utf-8")
            command = self.command(binary, source_path, result_path)
            try:
                completed = subprocess.run(command, capture_output=True, text=True, check=False)
            except OSError as exc:
                raise MinifierError(
                    f"Lightning CSS could not be started.\nCommand: {shlex.join(command)}\n{exc}",
                    kind="css",
                    source=source,
                ) from exc

            if completed.returncode != 0:
                message = f"Lightning CSS compression failed.\nCommand: {shlex.join(command)}\n"
                if completed.stderr:
                    message += f"Error output:\n{completed.stderr}"
                raise MinifierError(message, kind="css", source=source)
            return result_path.read_text(encoding="utf-8")


def resolve_js_minifier(choice: str | JsMinifier = "auto") -> JsMinifier:
    """Turn a strategy name into a JavaScript minifier.

    ``"auto"`` probes for :mod:`rjsmin` without importing it and falls back to
    :class:`PassthroughMinifier` when it is not installed.
    """

    if not isinstance(choice, str):
        return choice
    name = choice.strip().lower()
    if name == "auto":
        return RjsminMinifier() if _library_available("rjsmin") else PassthroughMinifier()
    if name == "passthrough":
        return PassthroughMinifier()
    if name == "rjsmin":
        if not _library_available("rjsmin"):
            raise ConfigurationError("rjsmin was requested but is not installed")
        return RjsminMinifier()
    raise ConfigurationError(f"Unknown JavaScript minifier: {choice}")


def resolve_css_minifier(
    choice: str | CssMinifier = "auto",
    *,
    binary: str | Path | None = None,
    targets: str = DEFAULT_CSS_TARGETS,
) -> CssMinifier:
    """Turn a strategy name into a CSS minifier.

    ``"auto"`` prefers Lightning CSS when its binary can be located and uses
    :mod:`rcssmin` otherwise.
    """

    if not isinstance(choice, str):
        return choice
    name = choice.strip().lower()
    lightning = LightningCssMinifier(binary, targets=targets)
    if name == "lightningcss":
        return lightning
    if name == "rcssmin":
        if not _library_available("rcssmin"):
            raise ConfigurationError("rcssmin was requested but is not installed")
        return RcssminMinifier()
    if name == "auto":
        if lightning.locate() is None and _library_available("rcssmin"):
            return RcssminMinifier()
        return lightning
    raise ConfigurationError(f"Unknown CSS minifier: {choice}")


def _as_cache(cache: ContentCache | str | Path | None) -> ContentCache | None:
    if cache is None or isinstance(cache, ContentCache):
        return cache
    return ContentCache(cache)


def minify_js(
    source: str,
    options: Mapping[str, Any] | None = None,
    cache: ContentCache | str | Path | None = None,
    *,
    minifier: JsMinifier | None = None,
) -> str:
    """Minify a JavaScript payload, consulting the ``js`` cache namespace.

    ``cache`` is a cache directory or a :class:`ContentCache`.  A single
    trailing ``;`` is dropped from fresh results.  With the passthrough
    strategy the source is returned as-is and nothing is cached.
    """

    minifier = minifier or resolve_js_minifier()
    if isinstance(minifier, PassthroughMinifier):
        return source

    options = dict(options or {})
    store = _as_cache(cache)
    fingerprint = f"{minifier.name}:{json.dumps(options, sort_keys=True, default=str)}"
    if store is not None:
        cached = store.lookup("js", source, fingerprint=fingerprint)
        if cached is not None:
            return cached.decode("utf-8")

    try:
        result = minifier.minify(source, options)
    except PressError:
        raise
    except Exception as exc:
        raise MinifierError(f"{minifier.name} failed to minify JavaScript: {exc}", kind="js", source=source) from exc

    if result.endswith(";"):
        result = result[:-1]
    if store is not None:
        store.store("js", source, result, fingerprint=fingerprint)
    return result


def minify_css(
    source: str,
    cache: ContentCache | str | Path | None = None,
    *,
    minifier: CssMinifier | None = None,
    missing_policy: MissingToolPolicy | str = MissingToolPolicy.RAISE,
    on_passthrough: Callable[[], None] | None = None,
) -> str:
    """Minify a CSS payload, consulting the ``css`` cache namespace.

    When the minifier binary is missing and *missing_policy* is
    ``"passthrough"`` the CSS is returned unminified (and not cached), and
    *on_passthrough* is called so the caller can avoid caching whatever it
    builds from the result.
    """

    minifier = minifier or resolve_css_minifier()
    store = _as_cache(cache)
    fingerprint = getattr(minifier, "fingerprint", minifier.name)
    if store is not None:
        cached = store.lookup("css", source, fingerprint=fingerprint)
        if cached is not None:
            return cached.decode("utf-8")

    try:
        result = minifier.minify(source)
    except MinifierNotFoundError as exc:
        if MissingToolPolicy(missing_policy) is MissingToolPolicy.RAISE:
            raise
        logger.warning("css_binary_missing", minifier=minifier.name, detail=str(exc))
        if on_passthrough is not None:
            on_passthrough()
        return source
    except PressError:
        raise
    except Exception as exc:
        raise MinifierError(f"{minifier.name} failed to minify CSS: {exc}", kind="css", source=source) from exc

    if store is not None:
        store.store("css", source, result, fingerprint=fingerprint)
    return result
