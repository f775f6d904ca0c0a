"""Built-in CLI sub-commands for specgraph.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~specgraph.commands.parse` -- resolve a document into a snapshot,
  or replay an existing snapshot to the installed generators.
* :mod:`~specgraph.commands.inspect` -- tabular views of the models,
  methods and paths a document resolves to.
* :mod:`~specgraph.commands.generators` -- list discovered generator
  plugins.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``inspect``) or a plain callback function
registered directly on the root app (for single commands like ``parse``).
"""
