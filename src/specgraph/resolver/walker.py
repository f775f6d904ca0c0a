"""Walk a document's components and paths, emitting resolved entities.

The walk runs in three phases:

1. **Collection** (named namespace) -- every component key of the supported
   sections is reserved first, then each component is resolved and
   registered under its declared name. Reserving up front is what lets
   components reference each other, cyclically or not, in any order.
2. **Operations** (structural namespace) -- paths are visited in document
   order and their operations in :class:`~specgraph.models.HTTPMethod`
   order. Each :class:`~specgraph.models.Method` is emitted as soon as it is
   assembled; the owning :class:`~specgraph.models.Path` follows its methods.
3. **Models** -- every registered model is emitted under its own kind and
   the ``MODEL`` catch-all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from specgraph.events import EventEmitter
from specgraph.exceptions import MalformedSchemaError, MissingReferenceError
from specgraph.models import EntityKind, HTTPMethod, Method, Model, ParameterLocation, Path, Ref
from specgraph.resolver.context import ResolutionContext
from specgraph.resolver.keywords import COMPONENT_SECTIONS
from specgraph.resolver.naming import method_name
from specgraph.resolver.operations import (
    build_param_object,
    deref,
    merge_parameters,
    resolve_parameter,
    resolve_parameters,
    resolve_request_bodies,
    resolve_responses,
)
from specgraph.resolver.registry import Namespace
from specgraph.resolver.schema import NodeKind, resolve_node

logger = logging.getLogger(__name__)

_SECTION_HINTS = {
    "responses": NodeKind.RESPONSE,
    "requestBodies": NodeKind.REQUEST_BODY,
}


@dataclass
class Arena:
    """Id-keyed tables of the methods and paths produced by one walk."""

    methods: dict[str, Method] = field(default_factory=dict)
    paths: dict[str, Path] = field(default_factory=dict)


def component_key(section: str, name: str) -> str:
    """Return the ``$ref`` string of a component (``#/components/schemas/Pet``)."""
    escaped = name.replace("~", "~0").replace("/", "~1")
    return f"#/components/{section}/{escaped}"


async def walk(ctx: ResolutionContext, emitter: EventEmitter) -> Arena:
    """Resolve the whole document in *ctx* and emit every entity.

    Raises:
        MalformedSchemaError: For structurally invalid nodes.
        MissingReferenceError: For dangling local references.
    """
    with ctx.phase(Namespace.NAMED):
        collect_components(ctx)

    arena = Arena()
    with ctx.phase(Namespace.STRUCTURAL):
        await walk_paths(ctx, emitter, arena)

    for model in list(ctx.registry.reference_map.values()):
        await emitter.emit([model.kind, EntityKind.MODEL], model)

    return arena


# ----------------------------------------------------------------------
# Phase 1: components
# ----------------------------------------------------------------------


def _sections(ctx: ResolutionContext) -> dict[str, dict[str, Any]]:
    components = ctx.document.get("components") or {}
    if not isinstance(components, dict):
        raise MalformedSchemaError("'components' must be a mapping", "components")

    for section in components:
        if section not in COMPONENT_SECTIONS:
            logger.debug("Skipping unsupported component section '%s'", section)

    sections: dict[str, dict[str, Any]] = {}
    for section in COMPONENT_SECTIONS:
        entries = components.get(section)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            raise MalformedSchemaError(f"'components.{section}' must be a mapping", f"components.{section}")
        sections[section] = entries
    return sections


def collect_components(ctx: ResolutionContext) -> None:
    """Reserve, resolve and register every supported component."""
    sections = _sections(ctx)

    for section, entries in sections.items():
        for name in entries:
            canonical = name
            if ctx.registry.is_taken(canonical):
                canonical = f"{name}{COMPONENT_SECTIONS[section]}"
            ctx.registry.reserve(component_key(section, name), canonical)

    resolved: list[tuple[str, Any, Model]] = []
    aliases: list[tuple[str, Any, Ref]] = []
    for section, entries in sections.items():
        for name, node in entries.items():
            key = component_key(section, name)
            canonical = ctx.registry.lookup_ref(key).name
            with ctx.relocated("components", section, name):
                parsed = _resolve_component(ctx, section, name, node, canonical)
            if isinstance(parsed, Ref):
                aliases.append((key, node, parsed))
            else:
                resolved.append((key, node, parsed))

    for key, node, model in resolved:
        ctx.registry.assert_ref(node, model, key, Namespace.NAMED, model.location or "")

    _register_aliases(ctx, aliases)


def _resolve_component(
    ctx: ResolutionContext, section: str, name: str, node: Any, canonical: str
) -> Model | Ref:
    if section == "headers" and isinstance(node, dict) and "$ref" not in node:
        header = {**node, "name": name, "in": ParameterLocation.HEADER.value}
        return resolve_parameter(ctx, header, canonical)
    return resolve_node(ctx, node, canonical, hint=_SECTION_HINTS.get(section))


def _register_aliases(ctx: ResolutionContext, aliases: list[tuple[str, Any, Ref]]) -> None:
    """Register components that are a bare ``$ref`` to another model.

    A local alias becomes a copy of its target under the alias's own name;
    chains of aliases are followed until no further progress is made.
    """
    pending = aliases
    while pending:
        remaining: list[tuple[str, Any, Ref]] = []
        for key, node, ref in pending:
            canonical = ctx.registry.lookup_ref(key).name
            location = f"components.{key.split('/')[2]}.{canonical}"
            if ref.is_remote:
                alias = Model(
                    name=canonical,
                    source_schema=node,
                    location=location,
                    type=ref.name,
                    subtype="object",
                )
                alias.dependencies = [ref]
            else:
                target = ctx.registry.resolve(ref)
                if target is None:
                    remaining.append((key, node, ref))
                    continue
                alias = target.model.model_copy(deep=True, update={"name": canonical, "location": location})
            ctx.registry.assert_ref(None, alias, key, Namespace.NAMED, location)

        if len(remaining) == len(pending):
            key, _, ref = remaining[0]
            raise MissingReferenceError(ref.name, key)
        pending = remaining


# ----------------------------------------------------------------------
# Phase 2: paths and operations
# ----------------------------------------------------------------------


async def walk_paths(ctx: ResolutionContext, emitter: EventEmitter, arena: Arena) -> None:
    """Assemble and emit every method, then its path, in document order."""
    paths = ctx.document.get("paths") or {}
    if not isinstance(paths, dict):
        raise MalformedSchemaError("'paths' must be a mapping", "paths")

    taken: set[str] = set()
    for path_name, item in paths.items():
        with ctx.relocated("paths", path_name):
            item = deref(ctx, item)
            path = Path(
                name=path_name,
                summary=item.get("summary"),
                description=item.get("description"),
            )

            for verb in HTTPMethod:
                operation = item.get(verb.value)
                if operation is None:
                    continue
                with ctx.at(verb.value):
                    method = build_method(ctx, verb, path_name, item, operation, taken)
                path.methods.append(method.id)
                arena.methods[method.id] = method
                await emitter.emit([EntityKind.METHOD], method)

            arena.paths[path_name] = path
            await emitter.emit([EntityKind.PATH], path)


def _unique_method_name(name: str, taken: set[str]) -> str:
    candidate = name
    suffix = 2
    while candidate in taken:
        candidate = f"{name}{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def build_method(
    ctx: ResolutionContext,
    verb: HTTPMethod,
    path_name: str,
    item: dict[str, Any],
    operation: Any,
    taken: set[str],
) -> Method:
    """Resolve one operation into a :class:`Method`.

    Args:
        ctx: The active resolution context, located at the operation.
        verb: The operation's HTTP method.
        path_name: The templated path owning the operation.
        item: The path item, for path-level parameters.
        operation: The raw operation object.
        taken: Method names already used in this walk.
    """
    if not isinstance(operation, dict):
        raise MalformedSchemaError("Operation must be a mapping", ctx.location)

    operation_id = operation.get("operationId")
    name = _unique_method_name(method_name(operation_id, verb.value, path_name), taken)
    tags = list(operation.get("tags") or [])
    tag = tags[0] if tags else None

    params = merge_parameters(ctx, item.get("parameters") or [], operation.get("parameters") or [])
    grouped = resolve_parameters(ctx, params)

    if "security" in operation:
        security = operation["security"] or []
    else:
        security = ctx.document.get("security") or []

    method = Method(
        name=name,
        verb=verb,
        path=path_name,
        operation_id=operation_id,
        summary=operation.get("summary"),
        description=operation.get("description"),
        tags=tags,
        deprecated=bool(operation.get("deprecated", False)),
        security=security,
        path_params=grouped[ParameterLocation.PATH],
        query_params=grouped[ParameterLocation.QUERY],
        header_params=grouped[ParameterLocation.HEADER],
    )
    method.path_object = build_param_object(ctx, method.path_params, f"{name}Path")
    method.query_object = build_param_object(ctx, method.query_params, f"{name}Query")
    method.header_object = build_param_object(ctx, method.header_params, f"{name}Headers")

    method.responses = resolve_responses(ctx, operation.get("responses") or {}, tag, path_name, verb.value)
    if operation.get("requestBody") is not None:
        method.request_bodies = resolve_request_bodies(
            ctx, operation["requestBody"], tag, path_name, verb.value
        )

    logger.debug("Resolved %s %s as '%s'", verb.value.upper(), path_name, name)
    return method
