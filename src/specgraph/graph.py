"""The :class:`TypeGraph` facade: subscribe, parse, replay.

Typical usage::

    import asyncio
    from specgraph import TypeGraph
    from specgraph.models import EntityKind
    from specgraph.resolver import load_document

    graph = TypeGraph()
    graph.on(EntityKind.SCHEMA, lambda model: print(model.name))
    snapshot = asyncio.run(graph.parse_schema(load_document("api.yaml"), "api.yaml"))
    print(snapshot.to_json())
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Union

from specgraph.events import EventEmitter, Listener
from specgraph.exceptions import MalformedSchemaError
from specgraph.models import EntityKind, Method, Model, Path
from specgraph.resolver.context import ResolutionContext
from specgraph.resolver.loader import validate_openapi_version
from specgraph.resolver.registry import ReferenceRegistry, Resolved
from specgraph.resolver.walker import Arena, walk
from specgraph.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _copy_document(document: dict[str, Any]) -> dict[str, Any]:
    try:
        return json.loads(json.dumps(document, default=str))
    except ValueError as exc:
        raise MalformedSchemaError(f"Document cannot be copied: {exc}") from exc


class TypeGraph:
    """Resolve OpenAPI 3.x documents into a graph of named models.

    One instance may parse many documents while keeping the listeners
    registered with :meth:`on`. Every :meth:`parse_schema` call resolves into
    its own registry and snapshot, which replace the instance attributes
    only once the walk completes; a failed parse leaves them untouched.

    Attributes:
        registry: Canonical names of the last completed parse (or loaded
            snapshot).
        methods: Id -> :class:`Method` of the last completed parse.
        paths: Name -> :class:`Path` of the last completed parse.
    """

    def __init__(self) -> None:
        self.emitter = EventEmitter()
        self.registry = ReferenceRegistry()
        self.methods: dict[str, Method] = {}
        self.paths: dict[str, Path] = {}
        self._snapshot = Snapshot()

    def on(self, category: Union[EntityKind, str], listener: Listener) -> None:
        """Subscribe *listener* to entities emitted under *category*."""
        self.emitter.on(category, listener)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def reference_map(self) -> dict[str, Model]:
        return self.registry.reference_map

    async def parse_schema(self, document: Any, source: Optional[str] = None) -> Snapshot:
        """Resolve *document* and emit every entity to the listeners.

        The input mapping is deep-copied first and never mutated. A listener
        exception or resolution error aborts the walk; nothing after the
        failing entity is emitted.

        Args:
            document: The parsed OpenAPI document.
            source: Where the document came from, for error messages.

        Returns:
            The :class:`Snapshot` of everything emitted.

        Raises:
            DocumentVersionError: If the document is not OpenAPI 3.x.
            MissingReferenceError: For a dangling local reference.
            MalformedSchemaError: For a structurally invalid node.
        """
        version = validate_openapi_version(document, source)
        logger.debug("Parsing OpenAPI %s document %s", version, source or "<memory>")

        registry = ReferenceRegistry()
        emitter = self.emitter.fork()
        emitter.snapshot.reference_map = registry.reference_map

        ctx = ResolutionContext(_copy_document(document), registry)
        arena: Arena = await walk(ctx, emitter)

        self.registry = registry
        self._snapshot = emitter.snapshot
        self.methods = arena.methods
        self.paths = arena.paths

        logger.debug(
            "Resolved %d models, %d methods, %d paths",
            len(registry), len(arena.methods), len(arena.paths),
        )
        return emitter.snapshot

    async def load_parsed(self, snapshot: Union[Snapshot, dict[str, Any]], emit: bool = True) -> Snapshot:
        """Adopt a previously produced snapshot, replaying it when *emit* is set.

        Raises:
            DocumentLoadError: If *snapshot* is a dict that is not a snapshot.
        """
        if not isinstance(snapshot, Snapshot):
            snapshot = Snapshot.from_dict(snapshot)

        registry = ReferenceRegistry()
        registry.restore(snapshot.reference_map)
        self.registry = registry
        self._snapshot = snapshot
        self.methods = {method.id: method for method in snapshot.get(EntityKind.METHOD)}
        self.paths = {path.name: path for path in snapshot.get(EntityKind.PATH)}

        if emit:
            await self.emitter.replay(snapshot)
        return snapshot

    def resolve_schema_type(self, name: str) -> Optional[Resolved]:
        """Return the :class:`Resolved` pair for a canonical name or declared key."""
        return self.registry.resolve(name)
