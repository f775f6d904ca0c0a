"""The ``specgraph parse`` command.

Loads an OpenAPI document, resolves it with a
:class:`~specgraph.graph.TypeGraph` whose emitter the discovered generators
subscribe to, and writes the resulting snapshot JSON to a file or stdout.

With ``--replay`` the input is a snapshot produced earlier: it is loaded and
redelivered to the generators without touching the resolver.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer

from specgraph.exceptions import SpecgraphError
from specgraph.graph import TypeGraph
from specgraph.models import GlobalConfig
from specgraph.output import debug, error, get_output, success, warning
from specgraph.snapshot import Snapshot


def fail(exc: SpecgraphError) -> typer.Exit:
    """Report *exc* on stderr and return the matching :class:`typer.Exit`."""
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def parse_document(source: str) -> tuple[dict[str, Any], TypeGraph]:
    """Load and resolve *source* with a listener-free graph.

    Raises:
        SpecgraphError: Any load or resolution failure.
    """
    from specgraph.resolver import load_document

    document = load_document(source)
    graph = TypeGraph()
    asyncio.run(graph.parse_schema(document, source))
    return document, graph


def _parse_with_cache(
    graph: TypeGraph,
    source: str,
    config: GlobalConfig,
) -> dict[str, Any]:
    from specgraph.cache import SnapshotCache
    from specgraph.config import get_cache_dir
    from specgraph.resolver import load_document

    document = load_document(source)
    cache = SnapshotCache(get_cache_dir(), config.cache)
    if not cache.enabled:
        debug("Snapshot cache disabled")
    try:
        cached = cache.get(document)
        if cached is not None:
            debug(f"Snapshot cache hit for {source}")
            asyncio.run(graph.load_parsed(cached))
            return cached

        snapshot = asyncio.run(graph.parse_schema(document, source))
        data = snapshot.to_dict()
        cache.set(document, data)
        return data
    finally:
        cache.close()


def parse_command(
    source: str = typer.Argument(
        ..., metavar="INPUT", help="Document path, URL, or '-' for stdin."
    ),
    output_path: Optional[Path] = typer.Argument(
        None, metavar="[OUTPUT]", help="Snapshot file to write (default: stdout)."
    ),
    replay: bool = typer.Option(
        False, "--replay", help="Treat INPUT as a snapshot and redeliver it to generators."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Bypass the snapshot cache."
    ),
) -> None:
    """Resolve an OpenAPI 3.x document into a snapshot.

    Every discovered generator subscribes its listeners before the walk, so
    the generators see each entity as it is resolved.

    Example::

        specgraph parse api.yaml snapshot.json
        curl -s https://example.com/openapi.json | specgraph parse - > snapshot.json
        specgraph parse --replay snapshot.json
    """
    from specgraph.config import atomic_write, resolve_config
    from specgraph.generators import GeneratorManager

    try:
        config = resolve_config(cli_no_cache=no_cache)
        manager = GeneratorManager()
        loaded = manager.discover(config)
        debug(f"Loaded generators: {', '.join(loaded) or '(none)'}")

        graph = TypeGraph()
        manager.register_all(graph.emitter)
        try:
            if replay:
                snapshot = Snapshot.load(source)
                if not len(manager):
                    warning("No generators installed; the replayed entities have no listeners")
                asyncio.run(graph.load_parsed(snapshot))
                success(f"Replayed {len(snapshot)} entities to {len(manager)} generator(s)")
                return

            data = _parse_with_cache(graph, source, config)
        finally:
            manager.cleanup()
    except SpecgraphError as exc:
        raise fail(exc) from None

    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output_path is None:
        get_output().print_data(text)
        return

    atomic_write(output_path, text + "\n")
    success(f"Wrote {len(graph.reference_map)} models to {output_path}")
