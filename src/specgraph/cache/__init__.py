"""Disk-based snapshot caching for specgraph.

This package provides :class:`SnapshotCache`, which stores the snapshot
produced for a document using :mod:`diskcache`. Entries are keyed by the
document's content with a configurable TTL.

The cache is consumed by ``specgraph parse`` and is controlled by the
``cache`` section of the global configuration
(:class:`~specgraph.models.CacheConfig`).
"""

from specgraph.cache.cache import SnapshotCache

__all__ = ["SnapshotCache"]
