"""Generator manager -- discovery, loading, and lifecycle management.

The entry-point group used for discovery is ``specgraph.generators``.
Third-party packages register generators by declaring an entry point under
this group in their ``pyproject.toml``::

    [project.entry-points."specgraph.generators"]
    typescript = "my_package.generator:TypeScriptGenerator"
"""

from __future__ import annotations

import importlib.metadata
import logging

from specgraph.events import EventEmitter
from specgraph.exceptions import GeneratorError
from specgraph.generators.base import Generator
from specgraph.models import GlobalConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "specgraph.generators"
"""The entry-point group name used for generator discovery."""


class GeneratorManager:
    """Discovers, loads, and manages the lifecycle of generators.

    The *enabled* and *disabled* lists in
    :class:`~specgraph.models.GeneratorsConfig` act as an explicit
    allowlist/blocklist. When *enabled* is non-empty only those generators
    are loaded; otherwise all discovered generators that are **not** in
    *disabled* are loaded.

    Example:
        Typical usage::

            manager = GeneratorManager()
            manager.discover(global_config)
            manager.register_all(graph.emitter)
            await graph.parse_schema(document)
            manager.cleanup()
    """

    def __init__(self) -> None:
        self._generators: dict[str, Generator] = {}

    def __len__(self) -> int:
        return len(self._generators)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, config: GlobalConfig) -> list[str]:
        """Discover and load generators via Python entry points.

        Args:
            config: The global configuration whose ``generators.enabled`` and
                ``generators.disabled`` lists control which generators load.

        Returns:
            The names of the generators that were successfully loaded.
            Generators that fail to import or initialise are logged as
            warnings and skipped.

        Raises:
            GeneratorError: If two entry points share a name.
        """
        loaded_names: list[str] = []
        enabled_set = set(config.generators.enabled)
        disabled_set = set(config.generators.disabled)

        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            name = ep.name

            if enabled_set and name not in enabled_set:
                logger.debug("Generator '%s' not in enabled list, skipping", name)
                continue
            if name in disabled_set:
                logger.debug("Generator '%s' is disabled, skipping", name)
                continue
            if name in self._generators:
                raise GeneratorError(f"Generator '{name}' is already loaded")

            try:
                generator_cls = ep.load()
                generator: Generator = generator_cls()
                self.load_generator(name, generator, config)
            except GeneratorError:
                raise
            except Exception as exc:
                logger.warning("Failed to load generator '%s': %s", name, exc)
                continue
            loaded_names.append(name)

        return loaded_names

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_generator(self, name: str, generator: Generator, config: GlobalConfig) -> None:
        """Initialise *generator* and register it under *name*.

        Raises:
            GeneratorError: If a generator with the same *name* is already loaded.
        """
        if name in self._generators:
            raise GeneratorError(f"Generator '{name}' is already loaded")

        generator.on_init(config)
        self._generators[name] = generator
        logger.info("Loaded generator '%s' v%s", name, generator.version)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def list_generators(self) -> list[dict[str, str]]:
        """List loaded generators as ``name``/``version``/``description`` dicts."""
        return [
            {
                "name": generator.name,
                "version": generator.version,
                "description": generator.description,
            }
            for generator in self._generators.values()
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register_all(self, emitter: EventEmitter) -> None:
        """Let every loaded generator subscribe its listeners on *emitter*."""
        for name, generator in self._generators.items():
            generator.register(emitter)
            logger.debug("Generator '%s' registered its listeners", name)

    def cleanup(self) -> None:
        """Clean up all loaded generators and reset internal state.

        Exceptions from individual generators are logged so that one
        generator's failure does not prevent the others from flushing.
        """
        for name, generator in self._generators.items():
            try:
                generator.cleanup()
            except Exception as exc:
                logger.warning("Error cleaning up generator '%s': %s", name, exc)
        self._generators.clear()
