"""Exception hierarchy for specgraph.

All exceptions inherit from :class:`SpecgraphError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgraph.exit_codes`.
The top-level error handler in :func:`specgraph.app.main` catches
``SpecgraphError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Resolution errors are never retried: a single deterministic pass over a
static document produces the same outcome every time.

Subclass hierarchy::

    SpecgraphError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- DocumentLoadError      (exit 3)
    +-- DocumentVersionError   (exit 4)
    +-- MissingReferenceError  (exit 5)
    +-- MalformedSchemaError   (exit 6)
    +-- GeneratorError         (exit 10)
    +-- ConfigError            (exit 1)
"""

from __future__ import annotations

from typing import Optional

from specgraph.exit_codes import (
    EXIT_DOCUMENT_UNREADABLE,
    EXIT_GENERATOR_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MALFORMED_SCHEMA,
    EXIT_MISSING_REFERENCE,
    EXIT_UNSUPPORTED_VERSION,
)


class SpecgraphError(Exception):
    """Base exception for all specgraph errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specgraph.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgraphError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class DocumentLoadError(SpecgraphError):
    """Raised when the input document cannot be read or decoded."""

    exit_code = EXIT_DOCUMENT_UNREADABLE


class DocumentVersionError(SpecgraphError):
    """Raised when the document does not declare an ``openapi: 3.x`` version.

    Attributes:
        version: The offending ``openapi`` (or ``swagger``) value, ``None``
            when the field is missing altogether.
        source: Where the document came from (file path, URL, ``stdin``).
    """

    exit_code = EXIT_UNSUPPORTED_VERSION

    def __init__(self, version: Optional[str], source: Optional[str] = None, message: str | None = None):
        self.version = version
        self.source = source
        if message is None:
            message = f"Invalid schema - only 3.x is supported: '{version}'"
            if source:
                message += f", {source}"
        super().__init__(message)


class _LocatedError(SpecgraphError):
    """Base for errors raised mid-resolution that carry the dotted breadcrumb."""

    def __init__(self, message: str, location: str = ""):
        self.location = location
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)


class MissingReferenceError(_LocatedError):
    """Raised when a ``$ref`` (or a response/body reference) cannot be resolved.

    Attributes:
        ref: The dangling reference string.
        location: Dotted breadcrumb of the node holding the reference.
    """

    exit_code = EXIT_MISSING_REFERENCE

    def __init__(self, ref: str, location: str = ""):
        self.ref = ref
        super().__init__(f"Cannot resolve reference '{ref}'", location)


class MalformedSchemaError(_LocatedError):
    """Raised for structurally invalid nodes.

    Examples are an array schema without ``items``, a node that is not a
    mapping, or a request body declaring several distinct content shapes.
    """

    exit_code = EXIT_MALFORMED_SCHEMA


class GeneratorError(SpecgraphError):
    """Raised when a generator plugin cannot be loaded or is registered twice."""

    exit_code = EXIT_GENERATOR_ERROR


class ConfigError(SpecgraphError):
    """Raised for configuration problems (unreadable or invalid ``config.json``)."""

    exit_code = EXIT_GENERIC_FAILURE
