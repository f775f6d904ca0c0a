"""Canonical Pydantic models shared across all specgraph modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Resolver output models** -- produced by the resolver and delivered to
generators through :mod:`specgraph.events`:
    :class:`EntityKind`, :class:`HTTPMethod`, :class:`ParameterLocation`,
    :class:`Ref`, :class:`Model`, :class:`SchemaField`,
    :class:`ResponseEntity`, :class:`RequestBodyEntity`, :class:`Method`
    and :class:`Path`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`CacheConfig`, :class:`GeneratorsConfig`
    and :class:`GlobalConfig`.

Resolver output models serialise with camelCase aliases (``sourceSchema``,
``allOf``, ``pathParams``...) so snapshots stay readable by generators
written in other languages; Python code may populate them by field name.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    SerializerFunctionWrapHandler,
    Tag,
    computed_field,
    model_serializer,
)
from pydantic.alias_generators import to_camel


# --- Enumerations ---


class EntityKind(str, enum.Enum):
    """Kind tag carried by every resolved entity.

    The same values double as event categories in
    :class:`~specgraph.events.EventEmitter`. ``MODEL`` is a catch-all
    category only: no entity carries it as its own kind.
    """

    REF = "REF"
    REMOTE_REF = "REMOTE_REF"
    PATH = "PATH"
    METHOD = "METHOD"
    SCHEMA = "SCHEMA"
    MODEL = "MODEL"
    PARAMETER = "PARAMETER"
    QUERY_PARAMETER = "QUERY_PARAMETER"
    HEADER_PARAMETER = "HEADER_PARAMETER"
    PATH_PARAMETER = "PATH_PARAMETER"
    SECURITY_SCHEME = "SECURITY_SCHEME"
    RESPONSE = "RESPONSE"
    REQUEST_BODY = "REQUEST_BODY"
    PRIMITIVE = "PRIMITIVE"
    METHOD_PARAM = "METHOD_PARAM"


REF_KINDS = frozenset({EntityKind.REF, EntityKind.REMOTE_REF})


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects.

    Declaration order is the order in which the walker visits operations,
    so regenerating from the same document is reproducible.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


PARAMETER_KINDS = {
    ParameterLocation.PATH: EntityKind.PATH_PARAMETER,
    ParameterLocation.QUERY: EntityKind.QUERY_PARAMETER,
    ParameterLocation.HEADER: EntityKind.HEADER_PARAMETER,
}


# --- Resolver output models ---


class _Entity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _Defaulted(_Entity):
    """Entity carrying a schema ``default``.

    An explicit ``default: null`` is kept in dumps made with ``exclude_none``.
    """

    @model_serializer(mode="wrap")
    def _keep_null_default(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.default is None and "default" in self.model_fields_set:
            data["default"] = None
        return data


class Ref(_Entity):
    """Lightweight handle to a registered :class:`Model`.

    A ``REF`` always resolves through the registry to exactly one model; a
    ``REMOTE_REF`` keeps the literal reference string (another file or URL)
    and is never resolved locally.
    """

    name: str
    kind: EntityKind = EntityKind.REF

    @property
    def is_remote(self) -> bool:
        return self.kind == EntityKind.REMOTE_REF


class SchemaField(_Defaulted):
    """A named member of an object-shaped :class:`Model`.

    ``type`` is either a primitive literal (``"string"``, ``"integer"``...)
    or the canonical name of another model. ``subtype`` carries the
    OpenAPI ``format`` for primitives and ``"object"`` for model types.
    """

    name: str
    kind: EntityKind = EntityKind.SCHEMA
    type: Optional[str] = None
    subtype: Optional[str] = None
    enum: Optional[list[Any]] = None
    array: Optional[bool] = None
    required: bool = False
    default: Any = None
    description: Optional[str] = None
    validations: dict[str, Any] = Field(default_factory=dict)
    extras: dict[str, Any] = Field(default_factory=dict)


class Model(_Defaulted):
    """A resolved schema-shaped entity.

    Covers schemas, parameters, component responses and request bodies,
    security schemes and synthesized aggregate parameter objects; ``kind``
    tells them apart.

    ``dependencies`` lists the :class:`Ref` handles and embedded nested
    models this one structurally requires. Nested and combinator-branch
    models carry an empty list: their own dependencies are forwarded to the
    top-level model that owns them.
    """

    name: str
    kind: EntityKind = EntityKind.SCHEMA
    source_schema: Any = None
    location: Optional[str] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    array: Optional[bool] = None
    enum: Optional[list[Any]] = None
    default: Any = None
    description: Optional[str] = None
    validations: dict[str, Any] = Field(default_factory=dict)
    extras: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[ModelOrRef] = Field(default_factory=list)
    fields: list[SchemaField] = Field(default_factory=list)
    all_of: Optional[list[ModelOrRef]] = None
    any_of: Optional[list[ModelOrRef]] = None
    one_of: Optional[list[ModelOrRef]] = None


def _model_or_ref_tag(value: Any) -> str:
    kind = value.get("kind") if isinstance(value, dict) else getattr(value, "kind", None)
    return "ref" if kind in ("REF", "REMOTE_REF") else "model"


ModelOrRef = Annotated[
    Union[Annotated[Ref, Tag("ref")], Annotated[Model, Tag("model")]],
    Discriminator(_model_or_ref_tag),
]


class ResponseEntity(_Entity):
    """One response of a :class:`Method` for a single status and content type.

    ``payload`` is ``None`` for primitive and empty bodies, in which case
    ``type`` holds the primitive literal (or ``None``).
    """

    name: str
    kind: EntityKind = EntityKind.RESPONSE
    status: str
    type: Optional[str] = None
    payload: Optional[Ref] = None
    array: Optional[bool] = None
    headers: dict[str, Ref] = Field(default_factory=dict)
    description: Optional[str] = None
    content_type: Optional[str] = None


class RequestBodyEntity(_Entity):
    """The request body of a :class:`Method` for a single content type."""

    name: str
    kind: EntityKind = EntityKind.REQUEST_BODY
    type: Optional[str] = None
    payload: Optional[Ref] = None
    array: Optional[bool] = None
    required: bool = False
    description: Optional[str] = None
    content_type: Optional[str] = None


def method_id(verb: HTTPMethod | str, path: str) -> str:
    """Return the arena id of the operation *verb* on *path* (``"get /pets"``)."""
    value = verb.value if isinstance(verb, HTTPMethod) else str(verb)
    return f"{value} {path}"


class Method(_Entity):
    """A single resolved operation (one URL path + HTTP verb pair).

    ``path`` is the owning :class:`Path`'s name rather than an embedded
    object, so a method and its path never form a reference cycle.
    """

    name: str
    kind: EntityKind = EntityKind.METHOD
    verb: HTTPMethod
    path: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False
    security: list[dict[str, list[str]]] = Field(default_factory=list)
    path_params: list[Ref] = Field(default_factory=list)
    query_params: list[Ref] = Field(default_factory=list)
    header_params: list[Ref] = Field(default_factory=list)
    path_object: Optional[Ref] = None
    query_object: Optional[Ref] = None
    header_object: Optional[Ref] = None
    responses: list[ResponseEntity] = Field(default_factory=list)
    request_bodies: list[RequestBodyEntity] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def id(self) -> str:
        return method_id(self.verb, self.path)


class Path(_Entity):
    """A path item; ``methods`` holds the ids of its :class:`Method` records."""

    name: str
    kind: EntityKind = EntityKind.PATH
    summary: Optional[str] = None
    description: Optional[str] = None
    methods: list[str] = Field(default_factory=list)


Model.model_rebuild()


# --- Configuration models ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class CacheConfig(BaseModel):
    """Snapshot cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Cache produced snapshots")
    ttl_seconds: int = Field(default=86400, description="Cache TTL in seconds")


class GeneratorsConfig(BaseModel):
    """Explicit generator allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration read from ``~/.config/specgraph/config.json``.

    Loaded by :func:`~specgraph.config.load_global_config`; the file is
    edited by hand. Generators may read their own keys from ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    generators: GeneratorsConfig = Field(default_factory=GeneratorsConfig)
