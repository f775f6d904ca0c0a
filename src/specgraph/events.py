"""Category-scoped delivery of resolved entities to listeners.

Listeners subscribe to an :class:`~specgraph.models.EntityKind` category with
:meth:`EventEmitter.on`. They may be plain callables or coroutine functions;
a listener's return value is awaited when it is awaitable, before the next
listener runs, so at most one entity is in flight at a time.

Exceptions raised by a listener are not caught: they propagate out of
:meth:`EventEmitter.emit` and abort the walk that triggered them.

Example::

    emitter = EventEmitter()
    emitter.on(EntityKind.METHOD, lambda method: print(method.name))

    async def write_model(model):
        await sink.write(model)

    emitter.on("MODEL", write_model)
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Iterable
from typing import Any, Callable, Optional, Union

from specgraph.models import EntityKind
from specgraph.snapshot import Snapshot

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Union[None, Awaitable[None]]]


class EventEmitter:
    """Publish entities to listeners and record them in a :class:`Snapshot`."""

    def __init__(self, listeners: Optional[dict[EntityKind, list[Listener]]] = None) -> None:
        self._listeners: dict[EntityKind, list[Listener]] = listeners if listeners is not None else {}
        self.snapshot = Snapshot()

    def on(self, category: Union[EntityKind, str], listener: Listener) -> None:
        """Subscribe *listener* to *category*.

        Raises:
            ValueError: If *category* is not an :class:`EntityKind` value.
        """
        self._listeners.setdefault(EntityKind(category), []).append(listener)

    def listeners(self, category: Union[EntityKind, str]) -> list[Listener]:
        return list(self._listeners.get(EntityKind(category), []))

    def fork(self) -> EventEmitter:
        """Return an emitter sharing these subscriptions that records into a fresh snapshot."""
        return EventEmitter(self._listeners)

    async def emit(self, categories: Iterable[Union[EntityKind, str]], entity: Any) -> None:
        """Record *entity* under each category, then deliver it."""
        for category in categories:
            category = EntityKind(category)
            self.snapshot.record(category, entity)
            await self._deliver(category, entity)

    async def replay(self, snapshot: Snapshot) -> None:
        """Redeliver every recorded entity, category by category."""
        for category, entities in snapshot.categories():
            logger.debug("Replaying %d %s entities", len(entities), category.value)
            for entity in entities:
                await self._deliver(category, entity)

    async def _deliver(self, category: EntityKind, entity: Any) -> None:
        for listener in self._listeners.get(category, []):
            result = listener(entity)
            if inspect.isawaitable(result):
                await result
