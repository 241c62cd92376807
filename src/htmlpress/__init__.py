"""Markup compaction for rendered HTML documents."""

from .config import CacheKeyPolicy, MissingToolPolicy, PressOptions
from .engine import HtmlPress, compress, press
from .errors import ConfigurationError, MinifierError, MinifierNotFoundError, PressError

__version__ = "0.1.0"

__all__ = [
    "CacheKeyPolicy",
    "ConfigurationError",
    "HtmlPress",
    "MinifierError",
    "MinifierNotFoundError",
    "MissingToolPolicy",
    "PressError",
    "PressOptions",
    "compress",
    "press",
]
