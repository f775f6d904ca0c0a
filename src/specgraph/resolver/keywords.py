"""OpenAPI keyword tables and the validations/extras split.

A schema node's keys fall into three groups:

* **validations** -- the closed allow-list in :data:`VALIDATION_KEYWORDS`;
  generators turn these into constraints or decorators.
* **structural** -- keys in :data:`OMIT_FROM_EXTRAS`, which the resolver
  handles with dedicated logic (types, items, properties, combinators...).
* **extras** -- everything else, including vendor ``x-`` extensions, copied
  verbatim so generators can act on data the resolver knows nothing about.
"""

from __future__ import annotations

from typing import Any

VALIDATION_KEYWORDS = frozenset({
    "multipleOf",
    "maximum",
    "exclusiveMaximum",
    "minimum",
    "exclusiveMinimum",
    "maxLength",
    "minLength",
    "pattern",
    "maxItems",
    "minItems",
    "uniqueItems",
    "maxContains",
    "minContains",
    "maxProperties",
    "minProperties",
    "required",
    "dependentRequired",
    "nullable",
})

OMIT_FROM_EXTRAS = frozenset({
    "type",
    "format",
    "schema",
    "items",
    "$ref",
    "properties",
    "default",
    "enum",
    "description",
    "additionalProperties",
    "allOf",
    "anyOf",
    "oneOf",
})

PRIMITIVE_TYPES = frozenset({"integer", "number", "string", "boolean", "null"})

SECURITY_TYPES = frozenset({"http", "apiKey", "oauth2", "openIdConnect"})

COMBINATORS = ("allOf", "anyOf", "oneOf")

# Component sections resolved during collection, with the suffix used to
# disambiguate a name already claimed by an earlier section.
COMPONENT_SECTIONS = {
    "schemas": "Schema",
    "responses": "Response",
    "parameters": "Parameter",
    "requestBodies": "RequestBody",
    "headers": "Header",
    "securitySchemes": "SecurityScheme",
}


def extract_validations(schema: Any) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split *schema*'s keys into a ``(validations, extras)`` pair.

    ``x-nullable`` is honoured as ``nullable`` and a boolean
    ``required: true`` (as found on parameter objects) becomes a
    ``required`` validation.

    Example::

        >>> extract_validations({"type": "string", "maxLength": 5, "x-go-type": "ID"})
        ({'maxLength': 5}, {'x-go-type': 'ID'})
    """
    validations: dict[str, Any] = {}
    extras: dict[str, Any] = {}

    if not isinstance(schema, dict):
        return validations, extras

    if "nullable" in schema:
        validations["nullable"] = schema["nullable"]
    if "x-nullable" in schema:
        validations["nullable"] = schema["x-nullable"]

    for key, value in schema.items():
        if key in OMIT_FROM_EXTRAS:
            continue
        if key in VALIDATION_KEYWORDS:
            validations[key] = value
        else:
            extras[key] = value

    if schema.get("required") is True:
        validations["required"] = True

    return validations, extras
