"""Shared test fixtures for specgraph.

Provides reusable fixtures for loading document fixtures, building small
in-memory documents, isolating the XDG directories and managing output
state. These fixtures are automatically discovered by pytest and available
to all test modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Optional

import pytest

from specgraph.graph import TypeGraph
from specgraph.output import reset_output
from specgraph.snapshot import Snapshot


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_document(
    paths: Optional[dict[str, Any]] = None,
    schemas: Optional[dict[str, Any]] = None,
    **components: Any,
) -> dict[str, Any]:
    """Build a minimal OpenAPI 3.0 document from *paths* and component sections."""
    sections = dict(components)
    if schemas is not None:
        sections["schemas"] = schemas
    document: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0.0"},
        "paths": paths or {},
    }
    if sections:
        document["components"] = sections
    return document


def json_response(schema: dict[str, Any], status: str = "200") -> dict[str, Any]:
    """Return a ``responses`` map with one ``application/json`` response."""
    return {
        status: {
            "description": "OK",
            "content": {"application/json": {"schema": schema}},
        }
    }


def parse(document: dict[str, Any], graph: Optional[TypeGraph] = None) -> tuple[TypeGraph, Snapshot]:
    """Parse *document* synchronously and return the graph and its snapshot."""
    graph = graph or TypeGraph()
    snapshot = asyncio.run(graph.parse_schema(document, "test.json"))
    return graph, snapshot


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _restore_specgraph_logger() -> None:
    """Undo ``configure_logging`` so caplog sees records in later tests."""
    logger = logging.getLogger("specgraph")
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def widgets_path() -> Path:
    return FIXTURES_DIR / "widgets.json"


@pytest.fixture
def widgets_raw(widgets_path: Path) -> dict[str, Any]:
    """Load the raw widgets document."""
    with open(widgets_path) as f:
        return json.load(f)


@pytest.fixture
def widgets_parsed(widgets_raw: dict[str, Any]) -> tuple[TypeGraph, Snapshot]:
    """The widgets document parsed by a listener-free graph."""
    return parse(widgets_raw)


# ---------------------------------------------------------------------------
# Isolated environment
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory at *tmp_path* so no test touches the real home."""
    monkeypatch.setattr("specgraph.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("SPECGRAPH_CACHE", raising=False)
    return tmp_path
