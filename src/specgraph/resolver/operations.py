"""Resolve operation-level constructs: parameters, responses and request bodies.

Inner schemas are delegated to :func:`~specgraph.resolver.schema.resolve_node`;
this module decides naming, registration and how each construct is attached
to its :class:`~specgraph.models.Method`.

Parameter merging follows OpenAPI 3.x semantics: path-level parameters
provide defaults, and operation-level parameters override them when they share
the same ``name`` and ``in`` values.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from specgraph.exceptions import MalformedSchemaError, MissingReferenceError
from specgraph.models import (
    PARAMETER_KINDS,
    EntityKind,
    Model,
    ParameterLocation,
    Ref,
    RequestBodyEntity,
    ResponseEntity,
    SchemaField,
)
from specgraph.resolver.context import ResolutionContext
from specgraph.resolver.naming import parameter_name, response_name
from specgraph.resolver.pointer import is_local_ref, resolve_pointer
from specgraph.resolver.registry import Namespace, content_key
from specgraph.resolver.schema import (
    NodeKind,
    collapse_type,
    handles,
    is_primitive,
    resolve_node,
    resolve_reference,
)

logger = logging.getLogger(__name__)

# (type, payload, array) of a response or request-body payload.
Payload = tuple[Optional[str], Optional[Ref], Optional[bool]]


def deref(ctx: ResolutionContext, node: Any) -> dict[str, Any]:
    """Return the node a ``$ref`` points to, or *node* itself.

    Registered components answer with their source node; other local
    pointers are followed in the document.

    Raises:
        MissingReferenceError: For remote or dangling references.
    """
    if not isinstance(node, dict):
        raise MalformedSchemaError(f"Expected a mapping, got {type(node).__name__}", ctx.location)
    if "$ref" not in node:
        return node

    ref = node["$ref"]
    if not isinstance(ref, str) or not is_local_ref(ref):
        raise MissingReferenceError(str(ref), ctx.location)

    resolved = ctx.registry.resolve(ref)
    if resolved is not None and isinstance(resolved.model.source_schema, dict):
        return resolved.model.source_schema
    return deref(ctx, resolve_pointer(ref, ctx.document, ctx.location))


# ----------------------------------------------------------------------
# Parameters
# ----------------------------------------------------------------------


def _parameter_schema(node: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Return a parameter's ``schema``, or its first ``content`` media schema."""
    if isinstance(node.get("schema"), dict):
        return node["schema"]
    for media in (node.get("content") or {}).values():
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    return None


def _parameter_location(ctx: ResolutionContext, node: dict[str, Any]) -> ParameterLocation:
    try:
        return ParameterLocation(node.get("in"))
    except ValueError:
        raise MalformedSchemaError(
            f"Parameter '{node.get('name')}' has unknown location '{node.get('in')}'",
            ctx.location,
        ) from None


def _is_object_shaped(model: Model) -> bool:
    if model.array:
        return False
    combinators = (model.all_of, model.any_of, model.one_of)
    return bool(model.fields) or any(c is not None for c in combinators) or "additionalProperties" in model.extras


@handles(NodeKind.PARAMETER)
def resolve_parameter(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str = "",
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Model:
    """Resolve a parameter object into a parameter-kind :class:`Model`.

    Primitive and array schemas are copied inline onto the parameter. An
    object-shaped schema is registered as a model of its own and referenced
    through ``type`` and a single dependency.
    """
    location = _parameter_location(ctx, node)
    name = name or parameter_name(location.value, str(node["name"]))
    model = Model(
        name=name,
        kind=PARAMETER_KINDS.get(location, EntityKind.PARAMETER),
        source_schema=node,
        location=ctx.located(name),
        description=node.get("description"),
    )

    schema = _parameter_schema(node)
    if schema is not None:
        parsed = resolve_node(ctx, schema, f"{name}Schema")
        if isinstance(parsed, Ref):
            model.type = parsed.name
            model.subtype = "object"
            model.dependencies = [parsed]
        elif not _is_object_shaped(parsed):
            model.type = parsed.type
            model.subtype = parsed.subtype
            model.array = parsed.array
            model.enum = parsed.enum
            if "default" in parsed.model_fields_set:
                model.default = parsed.default
            model.validations = dict(parsed.validations)
            model.extras = dict(parsed.extras)
            model.dependencies = list(parsed.dependencies)
        else:
            ref = ctx.registry.assert_ref(schema, parsed, location=ctx.location).ref
            model.type = ref.name
            model.subtype = "object"
            model.dependencies = [ref]

    if node.get("required"):
        model.validations["required"] = True
    return model


def merge_parameters(
    ctx: ResolutionContext,
    path_params: list[Any],
    op_params: list[Any],
) -> list[Any]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field); references are followed to find them.

    Returns:
        The merged list of raw parameter nodes, path-level ones first.
    """

    def key(param: Any) -> tuple[str, str]:
        ref = param.get("$ref") if isinstance(param, dict) else None
        if isinstance(ref, str) and not is_local_ref(ref):
            return ref, ""
        target = deref(ctx, param)
        return str(target.get("name", "")), str(target.get("in", ""))

    overridden = {key(param) for param in op_params}
    merged = [param for param in path_params if key(param) not in overridden]
    merged.extend(op_params)
    return merged


def resolve_parameters(
    ctx: ResolutionContext,
    params: list[Any],
) -> dict[ParameterLocation, list[Ref]]:
    """Resolve and register each parameter, grouped by location.

    Cookie parameters are resolved and registered but not grouped.
    """
    grouped: dict[ParameterLocation, list[Ref]] = {
        ParameterLocation.PATH: [],
        ParameterLocation.QUERY: [],
        ParameterLocation.HEADER: [],
    }

    for index, param in enumerate(params):
        with ctx.at("parameters", str(index)):
            if isinstance(param, dict) and "$ref" not in param and not ("name" in param and "in" in param):
                raise MalformedSchemaError("Parameter must declare 'name' and 'in'", ctx.location)

            parsed = resolve_node(ctx, param, "", hint=NodeKind.PARAMETER)
            resolved = ctx.registry.assert_ref(param, parsed, location=ctx.location)
            if resolved.model is None:
                logger.warning("Skipping remote parameter '%s' at %s", resolved.ref.name, ctx.location)
                continue

            location = _parameter_location(ctx, resolved.model.source_schema)
            if location in grouped:
                grouped[location].append(resolved.ref)
            else:
                logger.debug("Parameter '%s' in %s is not grouped", resolved.ref.name, location.value)

    return grouped


def build_param_object(ctx: ResolutionContext, params: list[Ref], name: str) -> Optional[Ref]:
    """Synthesize the ``METHOD_PARAM`` aggregate of *params* named *name*.

    Each field is re-read from the registered parameter model; every
    parameter's dependencies are forwarded to the aggregate.

    Returns:
        A :class:`Ref` to the registered aggregate, or ``None`` when
        *params* is empty.
    """
    if not params:
        return None

    fields: list[SchemaField] = []
    dependencies: list = []
    for ref in params:
        model = ctx.registry.require(ref, ctx.location).model
        source = model.source_schema or {}
        schema = _parameter_schema(source) or {}
        items = schema.get("items") if isinstance(schema.get("items"), dict) else {}

        field = SchemaField(
            name=str(source.get("name", model.name)),
            kind=model.kind,
            type=model.type,
            subtype=model.subtype or schema.get("format") or items.get("format"),
            enum=model.enum or schema.get("enum"),
            array=model.array,
            required=bool(source.get("required")),
            description=model.description,
            validations=dict(model.validations),
            extras=dict(model.extras),
        )
        if "default" in model.model_fields_set:
            field.default = model.default
        fields.append(field)
        dependencies.extend(model.dependencies)

    aggregate = Model(name=name, kind=EntityKind.METHOD_PARAM, fields=fields)
    aggregate.dependencies = dependencies
    return ctx.registry.assert_ref(None, aggregate, name, Namespace.NAMED, ctx.location).ref


# ----------------------------------------------------------------------
# Response and request-body objects
# ----------------------------------------------------------------------


def resolve_headers(ctx: ResolutionContext, headers: Any) -> dict[str, Ref]:
    """Resolve a response's ``headers`` map as header parameters."""
    if not headers:
        return {}
    if not isinstance(headers, dict):
        raise MalformedSchemaError("'headers' must be a mapping", ctx.location)

    result: dict[str, Ref] = {}
    for header_name, header in headers.items():
        with ctx.at("headers", header_name):
            if isinstance(header, dict) and "$ref" in header:
                result[header_name] = resolve_reference(ctx, header)
                continue
            if not isinstance(header, dict):
                raise MalformedSchemaError(f"Header '{header_name}' must be a mapping", ctx.location)

            node = {**header, "name": header_name, "in": ParameterLocation.HEADER.value}
            parsed = resolve_parameter(ctx, node)
            result[header_name] = ctx.registry.assert_ref(node, parsed, location=ctx.location).ref
    return result


def _resolve_component_body(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str,
    kind: EntityKind,
) -> Model:
    model = Model(
        name=name,
        kind=kind,
        source_schema=node,
        location=ctx.located(name),
        description=node.get("description"),
    )
    if node.get("required"):
        model.validations["required"] = True

    with ctx.at(name):
        headers = resolve_headers(ctx, node.get("headers"))
    if headers:
        model.extras["headers"] = {header: ref.name for header, ref in headers.items()}
    return model


@handles(NodeKind.RESPONSE)
def resolve_response_object(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str,
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Model:
    """Resolve a component response into a ``RESPONSE`` model.

    Content payloads are resolved where the response is used, so that each
    operation names its own payload.
    """
    return _resolve_component_body(ctx, node, name, EntityKind.RESPONSE)


@handles(NodeKind.REQUEST_BODY)
def resolve_request_body_object(
    ctx: ResolutionContext,
    node: dict[str, Any],
    name: str,
    deps: Optional[list] = None,
    required: Optional[set[str]] = None,
) -> Model:
    """Resolve a component request body into a ``REQUEST_BODY`` model."""
    return _resolve_component_body(ctx, node, name, EntityKind.REQUEST_BODY)


# ----------------------------------------------------------------------
# Operation responses and request bodies
# ----------------------------------------------------------------------


def resolve_payload(ctx: ResolutionContext, schema: Any, name: str) -> Payload:
    """Resolve a media-type schema into ``(type, payload, array)``.

    Primitive payloads short-circuit without registration. Array payloads
    resolve their item type and set ``array``; everything else registers
    through the structural namespace.
    """
    if schema is None:
        return None, None, None
    if is_primitive(schema):
        return collapse_type(schema)[0], None, None

    if isinstance(schema, dict) and "$ref" not in schema and collapse_type(schema)[0] == "array":
        items = schema.get("items")
        if items is None:
            raise MalformedSchemaError(f"Array payload '{name}' has no 'items'", ctx.location)
        if is_primitive(items):
            return collapse_type(items)[0], None, True
        with ctx.at("items"):
            parsed = resolve_node(ctx, items, name)
            ref = ctx.registry.assert_ref(items, parsed, location=ctx.location).ref
        return ref.name, ref, True

    parsed = resolve_node(ctx, schema, name)
    ref = ctx.registry.assert_ref(schema, parsed, location=ctx.location).ref
    return ref.name, ref, None


def resolve_responses(
    ctx: ResolutionContext,
    responses: Any,
    tag: Optional[str],
    path: str,
    verb: str,
) -> list[ResponseEntity]:
    """Resolve an operation's ``responses`` map.

    One :class:`ResponseEntity` is produced per status and content type; a
    response without content yields a single entity without payload.
    """
    if not isinstance(responses, dict):
        raise MalformedSchemaError("'responses' must be a mapping", ctx.location)

    entities: list[ResponseEntity] = []
    for status, response in responses.items():
        status = str(status)
        with ctx.at("responses", status):
            node = deref(ctx, response)
            headers = resolve_headers(ctx, node.get("headers"))
            content = node.get("content")

            if not content:
                entities.append(
                    ResponseEntity(
                        name=response_name(tag, path, verb, None, status),
                        status=status,
                        headers=headers,
                        description=node.get("description"),
                    )
                )
                continue

            for content_type, media in content.items():
                if not isinstance(media, dict):
                    raise MalformedSchemaError(f"Media type '{content_type}' must be a mapping", ctx.location)
                name = response_name(tag, path, verb, content_type, status)
                with ctx.at("content", content_type):
                    payload_type, payload, array = resolve_payload(ctx, media.get("schema"), name)
                entities.append(
                    ResponseEntity(
                        name=name,
                        status=status,
                        type=payload_type,
                        payload=payload,
                        array=array,
                        headers=dict(headers),
                        description=node.get("description"),
                        content_type=content_type,
                    )
                )

    return entities


def resolve_request_bodies(
    ctx: ResolutionContext,
    body: Any,
    tag: Optional[str],
    path: str,
    verb: str,
) -> list[RequestBodyEntity]:
    """Resolve an operation's ``requestBody``.

    Raises:
        MalformedSchemaError: If the content types declare more than one
            distinct schema.
    """
    with ctx.at("requestBody"):
        node = deref(ctx, body)
        content = node.get("content") or {}
        if not isinstance(content, dict):
            raise MalformedSchemaError("'content' must be a mapping", ctx.location)

        shapes = {
            content_key(media.get("schema") if isinstance(media, dict) else media)
            for media in content.values()
        }
        if len(shapes) > 1:
            raise MalformedSchemaError(
                f"Request body declares {len(shapes)} distinct content shapes; only one is supported",
                ctx.location,
            )

        entities: list[RequestBodyEntity] = []
        shared: Optional[Payload] = None
        for content_type, media in content.items():
            if not isinstance(media, dict):
                raise MalformedSchemaError(f"Media type '{content_type}' must be a mapping", ctx.location)
            name = response_name(tag, path, verb, content_type)
            if shared is None:
                with ctx.at("content", content_type):
                    shared = resolve_payload(ctx, media.get("schema"), name)

            payload_type, payload, array = shared
            entities.append(
                RequestBodyEntity(
                    name=name,
                    type=payload_type,
                    payload=payload,
                    array=array,
                    required=bool(node.get("required")),
                    description=node.get("description"),
                    content_type=content_type,
                )
            )

    return entities
