"""Generator plugins -- discovery and lifecycle of entity consumers.

Third-party packages register generators by declaring an entry point in the
``specgraph.generators`` group. At runtime, :class:`GeneratorManager`
discovers and loads those entry points and lets each :class:`Generator`
subscribe listeners on the :class:`~specgraph.events.EventEmitter`.
"""

from specgraph.generators.base import Generator
from specgraph.generators.manager import ENTRY_POINT_GROUP, GeneratorManager

__all__ = ["ENTRY_POINT_GROUP", "Generator", "GeneratorManager"]
