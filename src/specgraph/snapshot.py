"""Interchange snapshot of one parse run.

A :class:`Snapshot` records every emitted entity under the category it was
emitted with, in emission order, plus the registry's reference map. Its JSON
form is::

    {
      "METHOD": [...],
      "PATH": [...],
      "SCHEMA": [...],
      "MODEL": [...],
      "referenceMap": {"Widget": {...}}
    }

Loading a snapshot and replaying it through
:meth:`~specgraph.events.EventEmitter.replay` delivers the same entities to
listeners without parsing the document again.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path as FilePath
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from specgraph.exceptions import DocumentLoadError
from specgraph.models import EntityKind, Method, Model, Path

REFERENCE_MAP_KEY = "referenceMap"

Entity = Union[Method, Path, Model]

_ENTITY_TYPES: dict[EntityKind, type[BaseModel]] = {
    EntityKind.METHOD: Method,
    EntityKind.PATH: Path,
}


def dump_entity(entity: BaseModel) -> dict[str, Any]:
    """Serialise an entity to its camelCase JSON-compatible form."""
    return entity.model_dump(mode="json", by_alias=True, exclude_none=True)


class Snapshot:
    """Category-keyed record of emitted entities.

    Attributes:
        events: Category -> entities, both in first-emission order.
        reference_map: Canonical name -> registered model.
    """

    def __init__(
        self,
        events: Optional[dict[EntityKind, list[Any]]] = None,
        reference_map: Optional[dict[str, Model]] = None,
    ):
        self.events: dict[EntityKind, list[Any]] = events if events is not None else {}
        self.reference_map: dict[str, Model] = reference_map if reference_map is not None else {}

    def record(self, category: EntityKind, entity: Any) -> None:
        self.events.setdefault(EntityKind(category), []).append(entity)

    def get(self, category: Union[EntityKind, str]) -> list[Any]:
        """Return the entities recorded under *category* (empty if none)."""
        return self.events.get(EntityKind(category), [])

    def categories(self) -> Iterator[tuple[EntityKind, list[Any]]]:
        yield from self.events.items()

    def __len__(self) -> int:
        return sum(len(entities) for entities in self.events.values())

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            category.value: [dump_entity(entity) for entity in entities]
            for category, entities in self.events.items()
        }
        data[REFERENCE_MAP_KEY] = {name: dump_entity(model) for name, model in self.reference_map.items()}
        return data

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        """Rebuild a snapshot from its JSON form.

        Raises:
            DocumentLoadError: If *data* is not a snapshot.
        """
        if not isinstance(data, dict):
            raise DocumentLoadError("Snapshot must be a JSON object")

        events: dict[EntityKind, list[Any]] = {}
        reference_map: dict[str, Model] = {}
        try:
            for key, items in data.items():
                if key == REFERENCE_MAP_KEY:
                    reference_map = {name: Model.model_validate(item) for name, item in items.items()}
                    continue
                try:
                    category = EntityKind(key)
                except ValueError:
                    raise DocumentLoadError(f"Unknown snapshot category '{key}'") from None
                entity_type = _ENTITY_TYPES.get(category, Model)
                events[category] = [entity_type.model_validate(item) for item in items]
        except (ValidationError, AttributeError, TypeError) as exc:
            raise DocumentLoadError(f"Invalid snapshot: {exc}") from exc

        return cls(events, reference_map)

    @classmethod
    def load(cls, path: Union[str, FilePath]) -> Snapshot:
        """Read a snapshot JSON file.

        Raises:
            DocumentLoadError: If the file cannot be read or is not a snapshot.
        """
        file_path = FilePath(path)
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise DocumentLoadError(f"Failed to read snapshot {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise DocumentLoadError(f"Invalid snapshot JSON in {path}: {exc}") from exc
        return cls.from_dict(data)
