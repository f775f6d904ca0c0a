"""Navigate local JSON Reference pointers inside an OpenAPI document.

Component references (``#/components/schemas/Pet``) are answered by the
:class:`~specgraph.resolver.registry.ReferenceRegistry` directly. Any other
local pointer, for example one into a path's inline response schema, is
followed here so the target node can be resolved like an inline schema.

The single public function is :func:`resolve_pointer`.
"""

from __future__ import annotations

from typing import Any

from specgraph.exceptions import MissingReferenceError


def is_local_ref(ref: str) -> bool:
    """Return ``True`` for references resolved within the document (``#``, ``.``, ``/``)."""
    return bool(ref) and ref[0] in ".#/"


def pointer_segments(ref: str) -> list[str]:
    """Split a ``#/a/b`` pointer into unescaped segments (RFC 6901).

    Example::

        >>> pointer_segments("#/paths/~1pets/get")
        ['paths', '/pets', 'get']
    """
    path_str = ref.split("#", 1)[1] if "#" in ref else ref
    path_str = path_str.lstrip("/")
    if not path_str:
        return []
    return [
        segment.replace("~1", "/").replace("~0", "~")
        for segment in path_str.split("/")
    ]


def resolve_pointer(ref: str, root: dict[str, Any], location: str = "") -> Any:
    """Resolve a single ``$ref`` pointer string against the root document.

    Only same-document pointers are handled (``#/...``); a pointer that
    names another file cannot be navigated and is reported as missing.

    Args:
        ref: The ``$ref`` string (e.g., ``"#/paths/~1pets/get/responses/200"``).
        root: The root document to resolve against.
        location: Breadcrumb of the referencing node, for error messages.

    Returns:
        The value found at the referenced path.

    Raises:
        MissingReferenceError: If the pointer is not a same-document pointer
            or any segment does not exist in the document.
    """
    if not ref.startswith("#"):
        raise MissingReferenceError(ref, location)

    current: Any = root
    for segment in pointer_segments(ref):
        if isinstance(current, dict):
            if segment not in current:
                raise MissingReferenceError(ref, location)
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise MissingReferenceError(ref, location) from exc
        else:
            raise MissingReferenceError(ref, location)

    return current
