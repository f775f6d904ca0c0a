"""specgraph -- resolve OpenAPI 3.x documents into a named graph of type models.

This package turns a raw OpenAPI document into a deduplicated set of
intermediate models (schemas, parameters, responses, request bodies,
methods and paths) that downstream code generators subscribe to. The
resolver never emits source text itself; generators register listeners and
receive finalized entities one at a time.

Typical usage::

    import asyncio
    from specgraph import TypeGraph
    from specgraph.models import EntityKind

    graph = TypeGraph()
    graph.on(EntityKind.SCHEMA, lambda model: print(model.name))
    asyncio.run(graph.parse_schema(document, "openapi.yaml"))

Modules:
    graph: The :class:`TypeGraph` facade (listeners, parse, replay).
    resolver: Registry, schema resolver, operation parser and path walker.
    events: Category-scoped synchronous event delivery.
    snapshot: Interchange snapshot (de)serialisation.
    models: Pydantic entity and configuration models.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from specgraph.graph import TypeGraph  # noqa: E402

__all__ = ["TypeGraph", "__version__"]
