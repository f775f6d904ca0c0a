"""Canonical name registry for resolved models.

The :class:`ReferenceRegistry` answers one question for the rest of the
resolver: *has this shape already been resolved, and under what name?*

Two key spaces are kept apart:

* the **named** index maps declared keys (``#/components/schemas/Pet``,
  synthesized aggregate names) to canonical names;
* the **structural** index maps a content hash of an anonymous node to the
  canonical name of the first model registered with that content.

A named component therefore never merges with a byte-identical inline
schema, while two identical inline literals collapse into one model.
"""

from __future__ import annotations

import enum
import hashlib
import json
import logging
from typing import Any, NamedTuple, Optional, Union

from specgraph.exceptions import MissingReferenceError
from specgraph.models import EntityKind, Model, Ref
from specgraph.resolver.keywords import extract_validations
from specgraph.resolver.pointer import is_local_ref

logger = logging.getLogger(__name__)


class Namespace(str, enum.Enum):
    """Key space used when registering a model with :meth:`ReferenceRegistry.assert_ref`."""

    NAMED = "named"
    STRUCTURAL = "structural"


class Resolved(NamedTuple):
    """A :class:`Ref` together with the model it points to.

    ``model`` is ``None`` for remote references, which are never resolved
    locally.
    """

    ref: Ref
    model: Optional[Model]


def content_key(node: Any) -> str:
    """Return the sha256 hex digest of *node*'s canonical JSON form.

    Key order does not matter: ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}``
    hash identically.
    """
    payload = json.dumps(node, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode()).hexdigest()


class ReferenceRegistry:
    """Canonical name <-> content mapping for one parse run.

    Example::

        registry = ReferenceRegistry()
        ref = registry.reserve("#/components/schemas/Pet", "Pet")
        registry.lookup_ref("#/components/schemas/Pet")   # Ref(name="Pet")
        registry.resolve("Pet")                           # None until registered
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        """Forget every reservation and registered model.

        Fresh containers are created, so a :attr:`reference_map` handed out
        earlier keeps its content.
        """
        self._named: dict[str, str] = {}
        self._structural: dict[str, str] = {}
        self._models: dict[str, Model] = {}
        self._taken: set[str] = set()

    def restore(self, models: dict[str, Model]) -> None:
        """Replace all state with previously registered *models* (from a snapshot)."""
        self.reset()
        for name, model in models.items():
            self._models[name] = model
            self._taken.add(name)

    @property
    def reference_map(self) -> dict[str, Model]:
        """Canonical name -> registered :class:`Model`, in registration order."""
        return self._models

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._models)

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def is_taken(self, name: str) -> bool:
        """Return ``True`` if *name* is reserved or registered."""
        return name in self._taken

    def free_name(self, name: str) -> str:
        """Return *name*, or the first free ``<name>2``, ``<name>3``... variant, without claiming it."""
        candidate = name
        suffix = 2
        while candidate in self._taken:
            candidate = f"{name}{suffix}"
            suffix += 1
        return candidate

    def claim_name(self, name: str) -> str:
        """Claim *name*, or the first free ``<name>2``, ``<name>3``... variant."""
        candidate = self.free_name(name)
        self._taken.add(candidate)
        return candidate

    def reserve(self, key: str, name: str) -> Ref:
        """Map the declared *key* to a fresh canonical name before resolving it.

        Reserving first lets self- and mutually-referencing components point
        at each other while their content is still being resolved.
        """
        existing = self._named.get(key)
        if existing is not None:
            return Ref(name=existing)

        canonical = self.claim_name(name)
        self._named[key] = canonical
        logger.debug("Reserved '%s' as '%s'", key, canonical)
        return Ref(name=canonical)

    def alias(self, key: str, name: str) -> None:
        """Point the declared *key* at the existing canonical *name*."""
        self._named[key] = name

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def lookup_ref(self, key: str) -> Optional[Ref]:
        """Return the :class:`Ref` a declared key or canonical name maps to.

        Answers for reserved keys whose model is not registered yet.
        """
        name = self._named.get(key)
        if name is None and key in self._models:
            name = key
        return Ref(name=name) if name is not None else None

    def find_structural(self, node: Any) -> Optional[Ref]:
        """Return the Ref of an already-registered model with identical content."""
        name = self._structural.get(content_key(node))
        if name is None or name not in self._models:
            return None
        return Ref(name=name)

    def resolve(self, key: Union[str, Ref]) -> Optional[Resolved]:
        """Resolve a canonical name, declared key or :class:`Ref` to its model.

        Returns:
            A :class:`Resolved` pair, or ``None`` when nothing is registered
            under *key* (yet).
        """
        if isinstance(key, Ref):
            if key.is_remote:
                return Resolved(key, None)
            key = key.name

        name = key if key in self._models else self._named.get(key, key)
        model = self._models.get(name)
        if model is None:
            return None
        return Resolved(Ref(name=name), model)

    def require(self, key: Union[str, Ref], location: str = "") -> Resolved:
        """Like :meth:`resolve`, but raise when nothing is registered.

        Raises:
            MissingReferenceError: If *key* does not resolve to a model.
        """
        resolved = self.resolve(key)
        if resolved is None:
            raise MissingReferenceError(key.name if isinstance(key, Ref) else key, location)
        return resolved

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def assert_ref(
        self,
        raw: Any,
        parsed: Union[Model, Ref],
        name_hint: Optional[str] = None,
        namespace: Namespace = Namespace.STRUCTURAL,
        location: str = "",
    ) -> Resolved:
        """Register *parsed* (resolved from *raw*) or return its existing entry.

        Args:
            raw: The source node *parsed* was resolved from.
            parsed: A resolved :class:`Model`, or a :class:`Ref` when the
                resolver short-circuited on a reference or duplicate.
            name_hint: Declared key for the :attr:`Namespace.NAMED` index.
                Defaults to ``parsed.name``.
            namespace: Which index to key the model in.
            location: Breadcrumb used in error messages.

        Returns:
            The canonical :class:`Resolved` pair.

        Raises:
            MissingReferenceError: If *parsed* or *raw* is a local reference
                that was never registered.
        """
        if isinstance(parsed, Ref):
            return self.require(parsed, location)

        if isinstance(raw, dict) and isinstance(raw.get("$ref"), str):
            ref_string = raw["$ref"]
            if not is_local_ref(ref_string):
                return Resolved(Ref(name=ref_string, kind=EntityKind.REMOTE_REF), None)
            return self.require(ref_string, location)

        if namespace is Namespace.NAMED:
            index = self._named
            key = name_hint or parsed.name
        else:
            index = self._structural
            key = content_key(raw)

        name = index.get(key)
        if name is not None and name in self._models:
            return Resolved(Ref(name=name), self._models[name])

        if name is None:
            name = self.claim_name(parsed.name)
            index[key] = name

        parsed.name = name
        validations, extras = extract_validations(parsed.source_schema)
        parsed.validations = {**parsed.validations, **validations}
        parsed.extras = {**parsed.extras, **extras}
        self._models[name] = parsed
        logger.debug("Registered %s model '%s' (%s)", parsed.kind.value, name, namespace.value)
        return Resolved(Ref(name=name), parsed)
