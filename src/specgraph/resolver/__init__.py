"""OpenAPI resolver -- turn a raw document into a deduplicated graph of models.

Sub-modules, leaves first:

* :mod:`~specgraph.resolver.registry` -- canonical name <-> content mapping
  with separate named and structural key spaces.
* :mod:`~specgraph.resolver.schema` -- recursive resolution of schema nodes,
  references and security schemes.
* :mod:`~specgraph.resolver.operations` -- parameters, responses, request
  bodies and the per-method parameter aggregates.
* :mod:`~specgraph.resolver.walker` -- the three-phase walk over components
  and paths that emits every entity.
* :mod:`~specgraph.resolver.loader` -- I/O layer (URL, file, stdin) plus
  format detection and version validation.

Most callers go through :class:`~specgraph.graph.TypeGraph` instead of
using these modules directly.
"""

from specgraph.resolver.context import ResolutionContext
from specgraph.resolver.loader import load_document, validate_openapi_version
from specgraph.resolver.operations import resolve_parameter, resolve_request_bodies, resolve_responses
from specgraph.resolver.registry import Namespace, ReferenceRegistry, Resolved
from specgraph.resolver.schema import NodeKind, resolve_node
from specgraph.resolver.walker import walk

__all__ = [
    "Namespace",
    "NodeKind",
    "ReferenceRegistry",
    "ResolutionContext",
    "Resolved",
    "load_document",
    "resolve_node",
    "resolve_parameter",
    "resolve_request_bodies",
    "resolve_responses",
    "validate_openapi_version",
    "walk",
]
