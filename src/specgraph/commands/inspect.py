"""Inspect commands -- examine what a document resolves to.

Provides the ``specgraph inspect`` sub-command group with read-only views of
one parse run: the registered models, the resolved methods and the paths.
Each sub-command loads and resolves the document, then prints a table in
the active output format.
"""

from __future__ import annotations

import typer

from specgraph.commands.parse import fail, parse_document
from specgraph.exceptions import SpecgraphError
from specgraph.graph import TypeGraph
from specgraph.models import Method, Model
from specgraph.output import get_output, info


inspect_app = typer.Typer(no_args_is_help=True)


def _resolve(source: str) -> TypeGraph:
    try:
        _, graph = parse_document(source)
    except SpecgraphError as exc:
        raise fail(exc) from None
    return graph


def _type_label(model: Model) -> str:
    label = model.type or "-"
    if model.array:
        label += "[]"
    return label


def _method_responses(method: Method) -> str:
    parts = []
    for response in method.responses:
        target = response.payload.name if response.payload is not None else response.type
        parts.append(f"{response.status}:{target}" if target else response.status)
    return ", ".join(dict.fromkeys(parts)) or "-"


@inspect_app.command("models")
def inspect_models(
    source: str = typer.Argument(..., metavar="INPUT", help="Document path, URL, or '-'."),
) -> None:
    """List every registered model with its kind, type and dependency count.

    Example::

        specgraph inspect models api.yaml
        specgraph --json inspect models api.yaml
    """
    graph = _resolve(source)
    if not graph.reference_map:
        info("No models resolved from this document.")
        return

    headers = ["Model", "Kind", "Type", "Fields", "Dependencies"]
    rows: list[list[str]] = []
    for name, model in graph.reference_map.items():
        rows.append([
            name,
            model.kind.value,
            _type_label(model),
            str(len(model.fields)),
            str(len(model.dependencies)),
        ])

    get_output().print_table(headers, rows, title=f"Models ({len(rows)})")


@inspect_app.command("methods")
def inspect_methods(
    source: str = typer.Argument(..., metavar="INPUT", help="Document path, URL, or '-'."),
) -> None:
    """List every resolved method with its parameters and responses.

    Example::

        specgraph inspect methods api.yaml
    """
    graph = _resolve(source)
    if not graph.methods:
        info("No operations defined in this document.")
        return

    headers = ["Method", "Verb", "Path", "Params", "Body", "Responses"]
    rows: list[list[str]] = []
    for method in graph.methods.values():
        params = len(method.path_params) + len(method.query_params) + len(method.header_params)
        bodies = sorted({body.payload.name if body.payload else (body.type or "-") for body in method.request_bodies})
        rows.append([
            method.name,
            method.verb.value.upper(),
            method.path,
            str(params),
            ", ".join(bodies) or "-",
            _method_responses(method),
        ])

    get_output().print_table(headers, rows, title=f"Methods ({len(rows)})")


@inspect_app.command("paths")
def inspect_paths(
    source: str = typer.Argument(..., metavar="INPUT", help="Document path, URL, or '-'."),
) -> None:
    """List every path with the verbs it declares.

    Example::

        specgraph inspect paths api.yaml
    """
    graph = _resolve(source)
    if not graph.paths:
        info("No paths defined in this document.")
        return

    headers = ["Path", "Verbs", "Summary"]
    rows: list[list[str]] = []
    for path in graph.paths.values():
        verbs = [graph.methods[method_id].verb.value.upper() for method_id in path.methods]
        rows.append([path.name, " ".join(verbs), path.summary or "-"])

    get_output().print_table(headers, rows, title=f"Paths ({len(rows)})")
