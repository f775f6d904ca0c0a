"""Disk-based caching of produced snapshots.

Uses :mod:`diskcache` to persist snapshot JSON on the filesystem with a
configurable time-to-live (TTL), so parsing the same document twice skips
resolution the second time.

Cache keys are SHA-256 hashes of the specgraph version and the document's
canonical JSON (sorted keys), so key order and whitespace in the source
file never cause a miss, and upgrading specgraph never serves a snapshot
produced by an older resolver.

See Also:
    :class:`~specgraph.models.CacheConfig` -- the Pydantic model that
    controls ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Optional

import diskcache

from specgraph import __version__
from specgraph.models import CacheConfig


class SnapshotCache:
    """Disk-backed cache of snapshot dicts keyed by document content.

    Args:
        cache_dir: Root directory for the cache.  A ``snapshots/``
            subdirectory is created inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).

    Example::

        from specgraph.cache import SnapshotCache
        from specgraph.models import CacheConfig

        cache = SnapshotCache("/tmp/specgraph-cache", CacheConfig(ttl_seconds=300))
        cache.set(document, snapshot.to_dict())
        hit = cache.get(document)
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        if config.enabled:
            self._cache = diskcache.Cache(str(Path(cache_dir) / "snapshots"))

    @property
    def enabled(self) -> bool:
        return self._cache is not None

    def get(self, document: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Return the cached snapshot dict for *document*, or ``None``."""
        if self._cache is None:
            return None
        return self._cache.get(self.make_key(document))

    def set(self, document: dict[str, Any], snapshot: dict[str, Any]) -> None:
        """Store *snapshot* (see :meth:`~specgraph.snapshot.Snapshot.to_dict`) for *document*."""
        if self._cache is None:
            return
        self._cache.set(self.make_key(document), snapshot, expire=self._config.ttl_seconds)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()

    @staticmethod
    def make_key(document: dict[str, Any]) -> str:
        """Generate a cache key from the specgraph version and canonical document JSON."""
        raw = __version__ + "|" + json.dumps(document, sort_keys=True, default=str)
        return hashlib.sha256(raw.encode()).hexdigest()
