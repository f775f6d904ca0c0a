"""Synthetic names for anonymous types, responses and operations.

Every name produced here is a pure function of the document, so parsing the
same document twice yields identical model names and generated code stays
stable across re-runs.
"""

from __future__ import annotations

import re
from typing import Optional

_CAMEL_RE = re.compile(r"^([A-Z])|[\s\-_](\w)", re.ASCII)
_CONTENT_TYPE_RE = re.compile(r"[^a-zA-Z0-9]+([a-z])?")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\s\-]+")
_NON_IDENT_RE = re.compile(r"\W+", re.ASCII)


def camel_case(text: Optional[str], first_capital: bool = False) -> str:
    """Convert space, dash or underscore separated *text* to camelCase.

    Example::

        >>> camel_case("path id")
        'pathId'
        >>> camel_case("list_pets", first_capital=True)
        'ListPets'
        >>> camel_case("ListPets")
        'listPets'
    """
    if not text:
        return ""
    if first_capital:
        text = " " + text

    return _CAMEL_RE.sub(
        lambda m: m.group(2).upper() if m.group(2) else m.group(1).lower(), text
    )


def upper_first(name: str) -> str:
    """Upper-case the first character of *name*, leaving the rest untouched."""
    return name[:1].upper() + name[1:]


def _content_type_part(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    spaced = _CONTENT_TYPE_RE.sub(
        lambda m: m.group(1).upper() if m.group(1) else " ", content_type
    )
    return camel_case(spaced, first_capital=True).strip()


def last_path_segment(path: str) -> str:
    """Return the last non-empty segment of *path* with template braces removed."""
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return ""
    return segments[-1].replace("{", "").replace("}", "")


def response_name(
    tag: Optional[str],
    path: str,
    verb: Optional[str],
    content_type: Optional[str],
    status: Optional[str] = None,
) -> str:
    """Build the deterministic name of a response or request-body payload.

    Parts are the primary tag, the last path segment, the HTTP verb, the
    sanitised content type and the status code, in that order. Empty parts
    are skipped and repeated parts are kept once.

    Example::

        >>> response_name("widgets", "/widgets/{id}", "get", "application/json", "200")
        'WidgetsIdGetApplicationJson200'
        >>> response_name(None, "/widgets", "post", "application/json")
        'WidgetsPostApplicationJson'
    """
    parts = [
        camel_case(tag, True),
        camel_case(last_path_segment(path), True),
        camel_case(verb, True),
        _content_type_part(content_type),
        camel_case(status, True),
    ]
    unique = dict.fromkeys(part for part in parts if part)
    return _NON_IDENT_RE.sub("", "".join(unique))


def method_name(operation_id: Optional[str], verb: str, path: str) -> str:
    """Name an operation after its ``operationId``, or its verb and path.

    Example::

        >>> method_name("listPets", "get", "/pets")
        'ListPets'
        >>> method_name(None, "get", "/widgets/{id}")
        'GetWidgetsId'
    """
    if operation_id:
        source = operation_id
    else:
        segments = [seg.strip("{}") for seg in path.split("/") if seg]
        source = " ".join([verb, *segments])

    name = camel_case(_NON_WORD_RE.sub(" ", source), True)
    return _NON_IDENT_RE.sub("", name)


def parameter_name(location: str, name: str) -> str:
    """Name an inline parameter model after its location and declared name.

    Example::

        >>> parameter_name("path", "id")
        'PathId'
        >>> parameter_name("header", "X-Request-ID")
        'HeaderXRequestID'
    """
    return _NON_IDENT_RE.sub("", camel_case(f"{location} {name}", True))


def nested_name(parent: str, member: str) -> str:
    """Name a nested model after its parent and the member holding it.

    Example::

        >>> nested_name("Widget", "owner")
        'WidgetOwner'
        >>> nested_name("Widget", "x-meta")
        'WidgetXmeta'
    """
    return parent + _NON_IDENT_RE.sub("", upper_first(member))
