"""Content-addressed on-disk cache for compaction results.

Entries live at ``<root>/<kind>/<sha1-hex>`` and hold the output bytes and
nothing else.  Values are pure functions of their keys, so entries are never
expired and concurrent writers racing on the same key are harmless; each write
still lands through a rename so readers never observe a partial file.
"""

from __future__ import annotations

from contextlib import suppress
import hashlib
import os
from pathlib import Path
import re
import tempfile

import structlog

from .config import CacheKeyPolicy

__all__ = [
    "ContentCache",
    "cache_key",
    "lookup",
    "store",
]

logger = structlog.get_logger(__name__, component="cache")

_SAFE_KIND = re.compile(r"^[a-z0-9_-]+$")


def _normalise_data(data: bytes | str) -> bytes:
    return data if isinstance(data, bytes) else data.encode("utf-8")


def cache_key(
    data: bytes | str,
    *,
    fingerprint: str = "",
    policy: CacheKeyPolicy = CacheKeyPolicy.CONTENT,
) -> str:
    """Return the hex SHA-1 key for *data*.

    With :attr:`CacheKeyPolicy.CONTENT` only the payload is hashed, so a new
    minifier version or different minifier options reuse earlier entries.
    :attr:`CacheKeyPolicy.CONTENT_AND_OPTIONS` mixes *fingerprint* in first.
    """

    digest = hashlib.sha1()
    if policy is CacheKeyPolicy.CONTENT_AND_OPTIONS and fingerprint:
        digest.update(fingerprint.encode("utf-8"))
        digest.update(b"\0")
    digest.update(_normalise_data(data))
    return digest.hexdigest()


class ContentCache:
    """Durable store mapping ``(kind, sha1(input))`` to output bytes."""

    def __init__(self, root: str | Path, *, policy: CacheKeyPolicy | str = CacheKeyPolicy.CONTENT) -> None:
        self.root = Path(root)
        self.policy = CacheKeyPolicy(policy)

    def path_for(self, kind: str, data: bytes | str, *, fingerprint: str = "") -> Path:
        """Return the file that holds (or would hold) the entry for *data*."""

        if not _SAFE_KIND.match(kind):
            raise ValueError(f"Invalid cache kind: {kind!r}")
        return self.root / kind / cache_key(data, fingerprint=fingerprint, policy=self.policy)

    def lookup(self, kind: str, data: bytes | str, *, fingerprint: str = "") -> bytes | None:
        """Return the cached output for *data*, or ``None`` on a miss."""

        path = self.path_for(kind, data, fingerprint=fingerprint)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            logger.debug("cache_miss", kind=kind, digest=path.name)
            return None
        logger.debug("cache_hit", kind=kind, digest=path.name)
        return payload

    def store(self, kind: str, data: bytes | str, output: bytes | str, *, fingerprint: str = "") -> Path:
        """Persist *output* as the entry for *data* and return its path."""

        path = self.path_for(kind, data, fingerprint=fingerprint)
        path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(_normalise_data(output))
            os.replace(temp_name, path)
        except BaseException:
            with suppress(FileNotFoundError):
                os.unlink(temp_name)
            raise
        logger.debug("cache_store", kind=kind, digest=path.name)
        return path


def lookup(cache_dir: str | Path | None, kind: str, data: bytes | str) -> bytes | None:
    """Return the cached output for *data* under *cache_dir*, if any."""

    if cache_dir is None:
        return None
    return ContentCache(cache_dir).lookup(kind, data)


def store(cache_dir: str | Path | None, kind: str, data: bytes | str, output: bytes | str) -> Path | None:
    """Write *output* for *data* under *cache_dir*; a no-op without a cache."""

    if cache_dir is None:
        return None
    return ContentCache(cache_dir).store(kind, data, output)
