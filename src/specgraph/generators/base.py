"""Abstract base class for specgraph generator plugins.

A generator turns resolved entities into something else -- source files,
documentation, metrics -- by subscribing listeners to the
:class:`~specgraph.events.EventEmitter`. The resolver knows nothing about
what generators produce.

Generators are registered as entry points in the ``specgraph.generators``
group and discovered at runtime by
:class:`~specgraph.generators.manager.GeneratorManager`.

Example:
    Minimal generator implementation::

        class ModelNames(Generator):
            @property
            def name(self) -> str:
                return "model-names"

            def register(self, emitter):
                emitter.on(EntityKind.MODEL, lambda model: print(model.name))
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from specgraph.events import EventEmitter
from specgraph.models import GlobalConfig


class Generator(ABC):
    """Base class for all specgraph generators.

    The generator lifecycle is:

    1. Instantiation -- the :class:`GeneratorManager` calls the no-arg constructor.
    2. :meth:`on_init` -- called once with the global configuration.
    3. :meth:`register` -- called once per emitter the generator should
       listen to, before parsing or replay starts.
    4. :meth:`cleanup` -- called once after the last entity was delivered.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique generator name used for discovery and logging."""
        ...

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    def on_init(self, config: GlobalConfig) -> None:
        """Called once when the generator is loaded.

        Generator-specific settings can be read from ``config.model_extra``.
        """

    @abstractmethod
    def register(self, emitter: EventEmitter) -> None:
        """Subscribe this generator's listeners on *emitter*."""
        ...

    def cleanup(self) -> None:
        """Called once after the walk or replay finished; flush output here."""
