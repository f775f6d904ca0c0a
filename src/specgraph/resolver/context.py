"""Per-parse resolution state shared by the resolver modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from specgraph.resolver.registry import Namespace, ReferenceRegistry


class ResolutionContext:
    """Registry, breadcrumb and active namespace for one ``parse_schema`` run.

    A fresh context is built for every parse, so nothing leaks between two
    documents parsed by the same :class:`~specgraph.graph.TypeGraph`.

    Attributes:
        document: The (deep-copied) root document being resolved.
        registry: Canonical name registry for this run.
        namespace: Key space used for registrations in the current phase.
    """

    def __init__(self, document: dict[str, Any], registry: ReferenceRegistry | None = None):
        self.document = document
        self.registry = registry if registry is not None else ReferenceRegistry()
        self.namespace = Namespace.NAMED
        self._crumbs: list[str] = []

    @property
    def location(self) -> str:
        """Dotted breadcrumb of the node being resolved (``paths./pets.get``)."""
        return ".".join(self._crumbs)

    def located(self, name: str | None) -> str:
        """Return the breadcrumb extended with *name*, unless it already ends there."""
        if not name or (self._crumbs and self._crumbs[-1] == name):
            return self.location
        return f"{self.location}.{name}" if self._crumbs else name

    @contextmanager
    def at(self, *segments: str) -> Iterator[None]:
        """Descend into *segments* for the duration of the block."""
        depth = len(self._crumbs)
        self._crumbs.extend(str(s) for s in segments)
        try:
            yield
        finally:
            del self._crumbs[depth:]

    @contextmanager
    def relocated(self, *segments: str) -> Iterator[None]:
        """Replace the breadcrumb with *segments* for the duration of the block."""
        saved = self._crumbs
        self._crumbs = [str(s) for s in segments]
        try:
            yield
        finally:
            self._crumbs = saved

    @contextmanager
    def phase(self, namespace: Namespace) -> Iterator[None]:
        """Register into *namespace* for the duration of the block."""
        saved = self.namespace
        self.namespace = namespace
        try:
            yield
        finally:
            self.namespace = saved
