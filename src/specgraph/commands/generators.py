"""The ``specgraph generators`` command -- list discovered generator plugins."""

from __future__ import annotations

from specgraph.commands.parse import fail
from specgraph.exceptions import SpecgraphError
from specgraph.output import get_output, info, suggest


def generators_command() -> None:
    """List the generators that would run during ``specgraph parse``.

    Honours the ``generators.enabled`` / ``generators.disabled`` lists from
    the global config.
    """
    from specgraph.config import resolve_config
    from specgraph.generators import ENTRY_POINT_GROUP, GeneratorManager

    manager = GeneratorManager()
    try:
        manager.discover(resolve_config())
        generators = manager.list_generators()
    except SpecgraphError as exc:
        raise fail(exc) from None
    finally:
        manager.cleanup()

    if not generators:
        info("No generators installed.")
        suggest(f"Register one under the '{ENTRY_POINT_GROUP}' entry-point group.")
        return

    rows = [[g["name"], g["version"], g["description"] or "-"] for g in generators]
    get_output().print_table(["Name", "Version", "Description"], rows, title="Generators")
