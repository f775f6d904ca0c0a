"""Tests for the specgraph.graph.TypeGraph facade."""

from __future__ import annotations

import asyncio
import copy
import json
from collections import Counter
from typing import Any

import pytest

from conftest import make_document, parse
from specgraph.exceptions import (
    DocumentLoadError,
    DocumentVersionError,
    MalformedSchemaError,
    MissingReferenceError,
)
from specgraph.graph import TypeGraph
from specgraph.models import EntityKind, Ref
from specgraph.snapshot import Snapshot, dump_entity


def _record_all(graph: TypeGraph) -> dict[EntityKind, Counter]:
    """Subscribe to every category, counting serialised entities."""
    seen: dict[EntityKind, Counter] = {kind: Counter() for kind in EntityKind}
    for kind in EntityKind:
        graph.on(kind, lambda entity, kind=kind: seen[kind].update([json.dumps(dump_entity(entity), sort_keys=True)]))
    return seen


class TestParseSchema:
    def test_returns_snapshot_of_emissions(self, widgets_raw: dict[str, Any]) -> None:
        graph = TypeGraph()
        seen = _record_all(graph)
        snapshot = asyncio.run(graph.parse_schema(widgets_raw, "widgets.json"))

        assert snapshot is graph.snapshot
        assert sum(sum(c.values()) for c in seen.values()) == len(snapshot)
        assert snapshot.reference_map is graph.reference_map

    def test_document_is_not_mutated(self, widgets_raw: dict[str, Any]) -> None:
        before = copy.deepcopy(widgets_raw)
        parse(widgets_raw)
        assert widgets_raw == before

    def test_swagger_is_rejected(self) -> None:
        with pytest.raises(DocumentVersionError, match="converter.swagger.io"):
            parse({"swagger": "2.0", "paths": {}})

    def test_listeners_survive_between_parses(self, widgets_raw: dict[str, Any]) -> None:
        graph = TypeGraph()
        paths: list[str] = []
        graph.on(EntityKind.PATH, lambda p: paths.append(p.name))

        parse(widgets_raw, graph)
        parse(make_document({"/other": {"get": {"responses": {}}}}), graph)

        assert paths == ["/widgets", "/widgets/{id}", "/other"]

    def test_reparse_starts_from_empty_registry(self, widgets_raw: dict[str, Any]) -> None:
        graph, first = parse(widgets_raw)
        _, second = parse(make_document(schemas={"Solo": {"type": "string"}}), graph)

        assert list(graph.reference_map) == ["Solo"]
        assert "Widget" in first.reference_map
        assert "Widget" not in second.reference_map
        assert graph.methods == {}

    def test_same_document_resolves_identically(self, widgets_raw: dict[str, Any]) -> None:
        _, first = parse(widgets_raw)
        _, second = parse(widgets_raw)
        assert first.to_dict() == second.to_dict()

    def test_overlapping_parses_keep_separate_state(self) -> None:
        graph = TypeGraph()

        async def slow_listener(method: Any) -> None:
            await asyncio.sleep(0)

        graph.on(EntityKind.METHOD, slow_listener)
        alpha = make_document({"/alpha": {"get": {"responses": {}}}}, schemas={"Alpha": {"type": "string"}})
        beta = make_document({"/beta": {"get": {"responses": {}}}}, schemas={"Beta": {"type": "string"}})

        async def run() -> list[Snapshot]:
            return await asyncio.gather(graph.parse_schema(alpha), graph.parse_schema(beta))

        first, second = asyncio.run(run())

        assert list(first.reference_map) == ["Alpha"]
        assert [m.name for m in first.get(EntityKind.MODEL)] == ["Alpha"]
        assert [p.name for p in first.get(EntityKind.PATH)] == ["/alpha"]
        assert list(second.reference_map) == ["Beta"]
        assert [m.name for m in second.get(EntityKind.MODEL)] == ["Beta"]
        assert [p.name for p in second.get(EntityKind.PATH)] == ["/beta"]


class TestFailedParse:
    def test_listener_error_aborts_walk(self, widgets_raw: dict[str, Any]) -> None:
        graph = TypeGraph()
        seen = _record_all(graph)

        def boom(method: Any) -> None:
            raise RuntimeError("generator failed")

        graph.on(EntityKind.METHOD, boom)
        with pytest.raises(RuntimeError, match="generator failed"):
            parse(widgets_raw, graph)

        assert sum(seen[EntityKind.METHOD].values()) == 1
        assert not seen[EntityKind.PATH]
        assert not seen[EntityKind.MODEL]

    def test_resolution_error_aborts_walk(self) -> None:
        graph = TypeGraph()
        seen = _record_all(graph)
        document = make_document({
            "/ok": {"get": {"responses": {}}},
            "/broken": {"get": {"responses": {"200": {"$ref": "#/components/responses/Gone"}}}},
        })

        with pytest.raises(MissingReferenceError):
            parse(document, graph)

        assert sum(seen[EntityKind.PATH].values()) == 1
        assert not seen[EntityKind.MODEL]

    def test_failed_parse_keeps_previous_result(self, widgets_raw: dict[str, Any]) -> None:
        graph, snapshot = parse(widgets_raw)
        reference_map, methods = graph.reference_map, graph.methods
        broken = make_document(schemas={"A": {"type": "object", "properties": {"b": {"$ref": "#/components/schemas/B"}}}})

        with pytest.raises(MissingReferenceError):
            parse(broken, graph)

        assert graph.snapshot is snapshot
        assert graph.reference_map is reference_map
        assert graph.methods is methods

    def test_failed_first_parse_exposes_nothing(self) -> None:
        graph = TypeGraph()
        broken = make_document(schemas={"List": {"type": "array"}})

        with pytest.raises(MalformedSchemaError):
            parse(broken, graph)

        assert len(graph.snapshot) == 0
        assert graph.reference_map == {}


class TestResolveSchemaType:
    def test_by_name_and_key(self, widgets_parsed: tuple[TypeGraph, Snapshot]) -> None:
        graph, _ = widgets_parsed
        by_name = graph.resolve_schema_type("Widget")
        by_key = graph.resolve_schema_type("#/components/schemas/Widget")
        assert by_name.model is by_key.model
        assert by_key.ref == Ref(name="Widget")

    def test_unknown(self, widgets_parsed: tuple[TypeGraph, Snapshot]) -> None:
        graph, _ = widgets_parsed
        assert graph.resolve_schema_type("Nope") is None


class TestLoadParsed:
    def test_replay_matches_parse(self, widgets_raw: dict[str, Any]) -> None:
        parser = TypeGraph()
        parsed = _record_all(parser)
        snapshot = asyncio.run(parser.parse_schema(widgets_raw))

        replayer = TypeGraph()
        replayed = _record_all(replayer)
        asyncio.run(replayer.load_parsed(json.loads(snapshot.to_json())))

        assert replayed == parsed

    def test_without_emit(self, widgets_parsed: tuple[TypeGraph, Snapshot]) -> None:
        _, snapshot = widgets_parsed
        graph = TypeGraph()
        calls: list[Any] = []
        graph.on(EntityKind.MODEL, calls.append)

        asyncio.run(graph.load_parsed(snapshot, emit=False))

        assert calls == []
        assert graph.snapshot is snapshot
        assert set(graph.methods) == {"get /widgets", "post /widgets", "get /widgets/{id}"}
        assert graph.paths["/widgets"].methods == ["get /widgets", "post /widgets"]
        assert graph.resolve_schema_type("Owner").model.name == "Owner"

    def test_invalid_snapshot(self) -> None:
        with pytest.raises(DocumentLoadError):
            asyncio.run(TypeGraph().load_parsed({"NOT_A_CATEGORY": []}))
