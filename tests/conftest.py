"""Pytest configuration for shared fixtures and path setup."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
candidate_str = str(SRC)
if candidate_str not in sys.path:
    sys.path.insert(0, candidate_str)


class RecordingLogger:
    """Collects messages passed to ``error``."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)


class CountingJsMinifier:
    """Deterministic JavaScript minifier stub that counts invocations."""

    name = "counting"

    def __init__(self) -> None:
        self.calls = 0

    def minify(self, source: str, options) -> str:
        self.calls += 1
        return " ".join(source.split()) + ";"


class SqueezingCssMinifier:
    """CSS minifier stub that strips blanks and counts invocations."""

    name = "squeeze"

    def __init__(self) -> None:
        self.calls = 0

    def minify(self, source: str) -> str:
        self.calls += 1
        return "".join(source.split())


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def js_minifier() -> CountingJsMinifier:
    return CountingJsMinifier()


@pytest.fixture
def css_minifier() -> SqueezingCssMinifier:
    return SqueezingCssMinifier()
