"""Recursive-descent conversion of raw schema nodes into models.

:func:`resolve_node` is the single entry point. It classifies a node into a
:class:`NodeKind` and dispatches to the handler registered for that kind:

* ``REFERENCE`` -- ``$ref`` nodes become :class:`~specgraph.models.Ref`
  handles without touching the target's content.
* ``SECURITY_SCHEME`` -- ``http``/``apiKey``/``oauth2``/``openIdConnect``.
* ``SCHEMA`` -- everything else: arrays, maps, objects, combinators and
  simple typed schemas.

Parameters, component responses and request bodies are handled in
:mod:`specgraph.resolver.operations`, which registers its handlers into the
same table.

Dependencies discovered anywhere below a top-level node are appended to a
single accumulator owned by that node, so nested models always carry an
empty ``dependencies`` list.
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Optional, Union

from specgraph.exceptions import MalformedSchemaError
from specgraph.models import EntityKind, Model, Ref, SchemaField
from specgraph.resolver.context import ResolutionContext
from specgraph.resolver.keywords import (
    COMBINATORS,
    PRIMITIVE_TYPES,
    SECURITY_TYPES,
    extract_validations,
)
from specgraph.resolver.naming import camel_case, nested_name, upper_first
from specgraph.resolver.pointer import is_local_ref, pointer_segments, resolve_pointer
from specgraph.resolver.registry import Namespace

Resolution = Union[Model, Ref]
Handler = Callable[..., Resolution]


class NodeKind(str, enum.Enum):
    """Closed set of node shapes the resolver knows how to handle."""

    REFERENCE = "reference"
    SECURITY_SCHEME = "security_scheme"
    PARAMETER = "parameter"
    RESPONSE = "response"
    REQUEST_BODY = "request_body"
    SCHEMA = "schema"


_HANDLERS: dict[NodeKind, Handler] = {}

_COMBINATOR_ATTRS = {"allOf": ("all_of", "AllOf"), "anyOf": ("any_of", "AnyOf"), "oneOf": ("one_of", "OneOf")}


def handles(kind: NodeKind) -> Callable[[Handler], Handler]:
    """Register the decorated function as the handler for *kind*."""

    def decorator(func: Handler) -> Handler:
        _HANDLERS[kind] = func
        return func

    return decorator


def classify(node: dict[str, Any], hint: Optional[NodeKind] = None) -> NodeKind:
    """Return the :class:`NodeKind` of a mapping node.

    *hint* only matters for response and request-body objects, which have
    no distinguishing keys of their own.
    """
    if "$ref" in node:
        return NodeKind.REFERENCE
    if isinstance(node.get("type"), str) and node["type"] in SECURITY_TYPES:
        return NodeKind.SECURITY_SCHEME
    if "name" in node and "in" in node:
        return NodeKind.PARAMETER
    if hint in (NodeKind.RESPONSE, NodeKind.REQUEST_BODY):
        return hint
    return NodeKind.SCHEMA


def resolve_node(
    ctx: ResolutionContext,
    node: Any,
    name: str,
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
    hint: Optional[NodeKind] = None,
) -> Resolution:
    """Resolve *node* into a :class:`Model` or a :class:`Ref`.

    Args:
        ctx: The active resolution context.
        node: The raw node.
        name: Name given to the resulting model (a synthetic name for
            anonymous nodes, the declared name for components).
        deps: Dependency accumulator of the owning top-level model. ``None``
            makes the resulting model the owner of a fresh accumulator.
        required: Property names the enclosing schema marks as required.
        hint: Node kind to assume for response and request-body objects.

    Raises:
        MalformedSchemaError: If *node* is not a mapping or is structurally
            invalid.
        MissingReferenceError: If a local ``$ref`` cannot be followed.
    """
    if not isinstance(node, dict):
        raise MalformedSchemaError(
            f"Expected a mapping for '{name}', got {type(node).__name__}",
            ctx.located(name),
        )
    return _HANDLERS[classify(node, hint)](ctx, node, name, deps, required)


def collapse_type(node: dict[str, Any]) -> tuple[Optional[str], bool]:
    """Return ``(type, nullable)`` for *node*, collapsing OAS 3.1 type arrays.

    Example::

        >>> collapse_type({"type": ["string", "null"]})
        ('string', True)
    """
    schema_type = node.get("type")
    if isinstance(schema_type, list):
        non_null = [t for t in schema_type if t != "null"]
        nullable = len(non_null) < len(schema_type)
        if non_null:
            return str(non_null[0]), nullable
        return ("null" if nullable else None), nullable
    if isinstance(schema_type, str):
        return schema_type, False
    return None, False


def is_primitive(node: Any) -> bool:
    """Return ``True`` for a non-reference node with a primitive ``type``."""
    if not isinstance(node, dict) or "$ref" in node:
        return False
    return collapse_type(node)[0] in PRIMITIVE_TYPES


def _claim(ctx: ResolutionContext, sub: Resolution) -> None:
    if isinstance(sub, Model):
        ctx.registry.claim_name(sub.name)


def _resolve_member(
    ctx: ResolutionContext,
    node: Any,
    name: str,
    acc: list,
    required: Optional[set[str]] = None,
) -> Resolution:
    """Resolve an anonymous member under the first free variant of *name*.

    Nested models are embedded rather than registered, but their names are
    still claimed so no declared or later model can take them.
    """
    sub = resolve_node(ctx, node, ctx.registry.free_name(name), acc, required)
    _claim(ctx, sub)
    return sub


# ----------------------------------------------------------------------
# References
# ----------------------------------------------------------------------


def _pointer_name(ref: str) -> str:
    segments = [s for s in pointer_segments(ref) if s not in ("schema", "content")]
    for segment in reversed(segments):
        name = camel_case(segment.replace("/", " ").replace(".", " "), True)
        name = "".join(ch for ch in name if ch.isalnum() or ch == "_")
        if name and not name[0].isdigit():
            return name
    return "Ref"


@handles(NodeKind.REFERENCE)
def resolve_reference(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str = "",
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Ref:
    """Turn a ``$ref`` node into a :class:`Ref`.

    Component references answer from the registry immediately, even while
    the target is still being resolved, which is what makes reference cycles
    terminate. Other local pointers are followed once and registered under
    the pointer string; anything that is not a local pointer becomes a
    ``REMOTE_REF`` carrying the literal reference.
    """
    ref = node["$ref"]
    if not isinstance(ref, str):
        raise MalformedSchemaError("'$ref' must be a string", ctx.location)

    if not is_local_ref(ref):
        return Ref(name=ref, kind=EntityKind.REMOTE_REF)

    known = ctx.registry.lookup_ref(ref)
    if known is not None:
        return known

    target = resolve_pointer(ref, ctx.document, ctx.location)
    reserved = ctx.registry.reserve(ref, _pointer_name(ref))
    with ctx.relocated(*pointer_segments(ref)):
        parsed = resolve_node(ctx, target, reserved.name)
    if isinstance(parsed, Ref):
        if not parsed.is_remote:
            ctx.registry.alias(ref, parsed.name)
        return parsed

    return ctx.registry.assert_ref(target, parsed, ref, Namespace.NAMED, ctx.location).ref


# ----------------------------------------------------------------------
# Security schemes
# ----------------------------------------------------------------------


@handles(NodeKind.SECURITY_SCHEME)
def resolve_security_scheme(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str = "",
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Model:
    """Build a ``SECURITY_SCHEME`` model; ``type`` is the scheme type."""
    name = name or f"Auth{upper_first(node['type'])}"
    return Model(
        name=name,
        kind=EntityKind.SECURITY_SCHEME,
        source_schema=node,
        location=ctx.located(name),
        type=node["type"],
        description=node.get("description"),
    )


# ----------------------------------------------------------------------
# Schemas
# ----------------------------------------------------------------------


@handles(NodeKind.SCHEMA)
def resolve_schema_object(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str,
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Resolution:
    """Resolve a schema object.

    During the structural phase an already-registered node with identical
    content short-circuits to its :class:`Ref`.

    Raises:
        MalformedSchemaError: For an array without ``items`` or a malformed
            ``properties``/combinator section.
    """
    if ctx.namespace is Namespace.STRUCTURAL:
        existing = ctx.registry.find_structural(node)
        if existing is not None:
            return existing

    acc: list = [] if deps is None else deps
    validations, extras = extract_validations(node)
    schema_type, nullable = collapse_type(node)
    if nullable:
        validations["nullable"] = True

    model = Model(
        name=name,
        source_schema=node,
        location=ctx.located(name),
        description=node.get("description"),
        validations=validations,
        extras=extras,
    )
    if deps is None:
        model.dependencies = acc
    if "default" in node:
        model.default = node["default"]

    if schema_type == "array":
        return _resolve_array(ctx, node, model, acc)

    additional = node.get("additionalProperties")
    if additional is True:
        model.extras["additionalProperties"] = True
    elif isinstance(additional, dict):
        with ctx.at("additionalProperties"):
            extra = _resolve_member(ctx, additional, f"{name}Extras", acc)
        model.extras["additionalProperties"] = extra.name
        acc.append(extra)

    if not any(key in node for key in ("properties", *COMBINATORS)):
        if schema_type is None:
            return model
        if schema_type != "object":
            model.type = schema_type
        model.subtype = node.get("format")
        if "enum" in node:
            model.enum = node["enum"]
        return model

    required_set = set(required or ())
    if isinstance(node.get("required"), list):
        required_set.update(node["required"])

    _resolve_properties(ctx, node, model, acc, required_set)
    _resolve_combinators(ctx, node, model, acc, required_set)
    return model


def _resolve_array(ctx: ResolutionContext, node: dict[str, Any], model: Model, acc: list) -> Model:
    items = node.get("items")
    if items is None:
        raise MalformedSchemaError(f"Array schema '{model.name}' has no 'items'", model.location)

    with ctx.at("items"):
        item = resolve_node(ctx, items, ctx.registry.free_name(f"{model.name}Items"), acc)

    model.array = True
    if isinstance(item, Model) and item.type in PRIMITIVE_TYPES:
        model.type = item.type
        model.subtype = item.subtype
        if item.enum is not None:
            model.enum = item.enum
    else:
        model.type = item.name
        _claim(ctx, item)
        acc.append(item)
    return model


def _resolve_properties(
    ctx: ResolutionContext,
    node: dict[str, Any],
    model: Model,
    acc: list,
    required: set[str],
) -> None:
    properties = node.get("properties") or {}
    if not isinstance(properties, dict):
        raise MalformedSchemaError(f"'properties' of '{model.name}' must be a mapping", model.location)

    for prop_name, prop in properties.items():
        with ctx.at("properties", prop_name):
            model.fields.append(_resolve_field(ctx, prop, prop_name, model.name, acc, required))


def _resolve_field(
    ctx: ResolutionContext,
    prop: Any,
    prop_name: str,
    parent: str,
    acc: list,
    required: set[str],
) -> SchemaField:
    if not isinstance(prop, dict):
        raise MalformedSchemaError(
            f"Property '{prop_name}' of '{parent}' must be a mapping", ctx.location
        )

    prop_type, nullable = collapse_type(prop)
    field = SchemaField(
        name=prop_name,
        type=prop_type,
        subtype=prop.get("format"),
        description=prop.get("description"),
    )
    if "default" in prop:
        field.default = prop["default"]

    if "$ref" in prop:
        ref = resolve_reference(ctx, prop)
        acc.append(ref)
        field.type = ref.name
        field.subtype = "object"
        field.kind = ref.kind
    elif prop_type == "array" and is_primitive(prop.get("items")):
        items = prop["items"]
        field.type = collapse_type(items)[0]
        field.subtype = items.get("format")
        if "enum" in items and "enum" not in prop:
            field.enum = items["enum"]
    elif prop_type in ("array", "object", None):
        target = prop.get("items") if prop_type == "array" else prop
        if target is None:
            raise MalformedSchemaError(f"Array property '{prop_name}' has no 'items'", ctx.location)
        sub = _resolve_member(ctx, target, nested_name(parent, prop_name), acc)
        field.type = sub.name
        field.kind = sub.kind
        field.subtype = "object"
        acc.append(sub)

    if prop_type == "array":
        field.array = True
    if "enum" in prop:
        field.enum = prop["enum"]

    if "$ref" not in prop:
        validations, extras = extract_validations(prop)
        field.validations.update(validations)
        field.extras.update(extras)
    if nullable:
        field.validations["nullable"] = True
    if prop_name in required:
        field.required = True
        field.validations["required"] = True

    return field


def _resolve_combinators(
    ctx: ResolutionContext,
    node: dict[str, Any],
    model: Model,
    acc: list,
    required: set[str],
) -> None:
    for keyword in COMBINATORS:
        branches = node.get(keyword)
        if branches is None:
            continue
        if not isinstance(branches, list):
            raise MalformedSchemaError(f"'{keyword}' of '{model.name}' must be a list", model.location)

        attr, label = _COMBINATOR_ATTRS[keyword]
        resolved: list[Resolution] = []
        for index, branch in enumerate(branches):
            with ctx.at(keyword, str(index)):
                sub = _resolve_member(ctx, branch, f"{model.name}{label}{index}", acc, required)
            if isinstance(sub, Ref):
                acc.append(sub)
            resolved.append(sub)
        setattr(model, attr, resolved)
