"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgraph.exceptions.SpecgraphError` subclass.
Build scripts can inspect the exit code to tell an unreadable document
from a document that failed resolution without parsing stderr.

Example::

    $ specgraph parse api.yaml out.json
    $ echo $?
    5   # EXIT_MISSING_REFERENCE -- a $ref points nowhere
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_DOCUMENT_UNREADABLE = 3
"""The input document could not be read or decoded as JSON/YAML."""

EXIT_UNSUPPORTED_VERSION = 4
"""The document does not declare a supported ``openapi: 3.x`` version."""

EXIT_MISSING_REFERENCE = 5
"""A ``$ref`` could not be resolved against the document."""

EXIT_MALFORMED_SCHEMA = 6
"""A schema node is structurally invalid (e.g. array without ``items``)."""

EXIT_GENERATOR_ERROR = 10
"""A generator plugin failed to load or initialise."""
