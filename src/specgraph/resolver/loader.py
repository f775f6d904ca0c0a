"""Load API description documents from a URL, local file, or stdin.

JSON and YAML are both accepted with automatic format detection. The loader
only turns bytes into a mapping; :func:`validate_openapi_version` is the
single gate deciding whether the resolver accepts the document.

The public functions are:

* :func:`load_document` -- Load and parse a document from any supported source.
* :func:`parse_content` -- Parse an already-read JSON or YAML string.
* :func:`validate_openapi_version` -- Check and return the ``openapi``
  version string, rejecting Swagger 2.x and anything that is not 3.x.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specgraph.exceptions import DocumentLoadError, DocumentVersionError


def load_document(source: str) -> dict[str, Any]:
    """Load a document from URL, file path, or stdin (``'-'``).

    Args:
        source: A URL (http/https), file path, or ``'-'`` for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        DocumentLoadError: If the source cannot be read or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise DocumentLoadError("No input received from stdin")

    return parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DocumentLoadError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DocumentLoadError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentLoadError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read {path}: {exc}") from exc

    if not content.strip():
        raise DocumentLoadError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return parse_content(content, hint=hint)


def parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless *hint* is ``'yaml'``; a ``'json'`` hint
    disables the YAML fallback.

    Raises:
        DocumentLoadError: If the content cannot be parsed, or does not
            hold a mapping at the top level.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise DocumentLoadError(f"Invalid JSON: {exc}") from exc
        else:
            return _require_mapping(result)

    try:
        result = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        yaml_error = exc
    else:
        return _require_mapping(result)

    msg = "Failed to parse document as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise DocumentLoadError(msg)


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DocumentLoadError(f"Document must be a JSON/YAML object (got {kind})")
    return result


def validate_openapi_version(document: Any, source: Optional[str] = None) -> str:
    """Validate and return the OpenAPI version string.

    Any ``3.x`` version is accepted.

    Args:
        document: The parsed document.
        source: Where the document came from, for the error message.

    Returns:
        The OpenAPI version string (e.g. ``'3.0.3'``, ``'3.1.0'``).

    Raises:
        DocumentVersionError: If the version is missing, not 3.x, or the
            document is a Swagger 2.x description.
    """
    if not isinstance(document, dict):
        raise DocumentVersionError(None, source)

    if "swagger" in document:
        swagger_ver = str(document["swagger"])
        raise DocumentVersionError(
            swagger_ver,
            source,
            message=(
                f"Swagger {swagger_ver} is not supported. "
                "Only OpenAPI 3.x documents can be parsed. "
                "Consider converting with https://converter.swagger.io"
            ),
        )

    version = document.get("openapi")
    if not isinstance(version, str) or not version.startswith("3."):
        raise DocumentVersionError(None if version is None else str(version), source)

    return version
