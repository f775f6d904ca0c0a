"""Tests for specgraph.resolver.walker -- component collection and path walk."""

from __future__ import annotations

from typing import Any

import pytest

from conftest import json_response, make_document, parse
from specgraph.exceptions import MalformedSchemaError, MissingReferenceError
from specgraph.graph import TypeGraph
from specgraph.models import EntityKind, Model, Ref
from specgraph.resolver.walker import component_key
from specgraph.snapshot import Snapshot


OBJECT_X = {"type": "object", "properties": {"x": {"type": "string"}}}


def _ref(name: str, section: str = "schemas") -> dict[str, str]:
    return {"$ref": f"#/components/{section}/{name}"}


class TestComponentKey:
    def test_plain(self) -> None:
        assert component_key("schemas", "Pet") == "#/components/schemas/Pet"

    def test_escapes(self) -> None:
        assert component_key("schemas", "a/b~c") == "#/components/schemas/a~1b~0c"


# ---------------------------------------------------------------------------
# Phase 1: components
# ---------------------------------------------------------------------------


class TestCollectComponents:
    def test_structurally_identical_components_stay_distinct(self) -> None:
        graph, _ = parse(make_document(schemas={"A": dict(OBJECT_X), "B": dict(OBJECT_X)}))
        assert {"A", "B"} <= set(graph.reference_map)
        assert graph.reference_map["A"] is not graph.reference_map["B"]

    def test_mutual_references_terminate(self) -> None:
        graph, _ = parse(make_document(schemas={
            "A": {"type": "object", "properties": {"b": _ref("B")}},
            "B": {"type": "object", "properties": {"a": _ref("A")}},
        }))
        assert graph.reference_map["A"].dependencies == [Ref(name="B")]
        assert graph.reference_map["B"].dependencies == [Ref(name="A")]

    def test_self_reference_terminates(self) -> None:
        graph, _ = parse(make_document(schemas={
            "Node": {"type": "object", "properties": {"children": {"type": "array", "items": _ref("Node")}}},
        }))
        field = graph.reference_map["Node"].fields[0]
        assert (field.type, field.array, field.kind) == ("Node", True, EntityKind.REF)

    def test_cross_section_collision_gets_section_suffix(self) -> None:
        graph, _ = parse(make_document(
            schemas={"Limit": {"type": "integer"}},
            parameters={"Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}},
        ))
        assert graph.reference_map["Limit"].kind is EntityKind.SCHEMA
        assert graph.reference_map["LimitParameter"].kind is EntityKind.QUERY_PARAMETER

    def test_nested_models_never_reuse_component_names(self) -> None:
        graph, snapshot = parse(make_document(schemas={
            "Widget": {"type": "object", "properties": {"owner": {"type": "object", "properties": {"id": {"type": "string"}}}}},
            "WidgetOwner": {"type": "object", "properties": {"email": {"type": "string"}}},
        }))

        names = []
        for model in snapshot.get(EntityKind.MODEL):
            names.append(model.name)
            names.extend(dep.name for dep in model.dependencies if isinstance(dep, Model))
        assert len(names) == len(set(names)) == 3

        owner = graph.reference_map["Widget"].fields[0]
        assert owner.type == "WidgetOwner2"
        assert [f.name for f in graph.reference_map["WidgetOwner"].fields] == ["email"]

    def test_alias_component_is_a_copy(self) -> None:
        graph, _ = parse(make_document(schemas={"Pet": dict(OBJECT_X), "Animal": _ref("Pet")}))
        animal = graph.reference_map["Animal"]
        assert animal.name == "Animal"
        assert [f.name for f in animal.fields] == ["x"]
        assert animal is not graph.reference_map["Pet"]

    def test_alias_chain_declared_out_of_order(self) -> None:
        graph, _ = parse(make_document(schemas={
            "C": _ref("B"),
            "B": _ref("A"),
            "A": dict(OBJECT_X),
        }))
        assert [f.name for f in graph.reference_map["C"].fields] == ["x"]
        assert graph.resolve_schema_type("#/components/schemas/C").ref == Ref(name="C")

    def test_remote_alias(self) -> None:
        graph, _ = parse(make_document(schemas={"Thing": {"$ref": "common.yaml#/Thing"}}))
        thing = graph.reference_map["Thing"]
        assert thing.type == "common.yaml#/Thing"
        assert thing.dependencies == [Ref(name="common.yaml#/Thing", kind=EntityKind.REMOTE_REF)]

    def test_dangling_component_reference(self) -> None:
        doc = make_document(schemas={"Broken": {"type": "object", "properties": {"x": _ref("Nope")}}})
        with pytest.raises(MissingReferenceError) as exc_info:
            parse(doc)
        assert exc_info.value.ref == "#/components/schemas/Nope"
        assert exc_info.value.location == "components.schemas.Broken.properties.x"

    def test_security_schemes_and_headers(self) -> None:
        graph, _ = parse(make_document(
            securitySchemes={"apiKey": {"type": "apiKey", "name": "X-Key", "in": "header"}},
            headers={"X-Rate-Limit": {"schema": {"type": "integer"}}},
        ))
        assert graph.reference_map["apiKey"].kind is EntityKind.SECURITY_SCHEME
        header = graph.reference_map["X-Rate-Limit"]
        assert (header.kind, header.type) == (EntityKind.HEADER_PARAMETER, "integer")

    def test_unsupported_sections_are_skipped(self) -> None:
        graph, _ = parse(make_document(examples={"One": {"value": 1}}, links={"L": {}}))
        assert len(graph.reference_map) == 0

    def test_components_must_be_mapping(self) -> None:
        doc = make_document()
        doc["components"] = ["schemas"]
        with pytest.raises(MalformedSchemaError, match="'components' must be a mapping"):
            parse(doc)


# ---------------------------------------------------------------------------
# Phase 2: paths
# ---------------------------------------------------------------------------


class TestWalkPaths:
    def test_widget_by_id(self, widgets_parsed: tuple[TypeGraph, Snapshot]) -> None:
        graph, snapshot = widgets_parsed
        methods = [m for m in snapshot.get(EntityKind.METHOD) if m.path == "/widgets/{id}"]
        assert len(methods) == 1
        method = methods[0]

        assert method.name == "GetWidgetsId"
        assert method.path_params == [Ref(name="PathId")]
        ok = method.responses[0]
        assert (ok.status, ok.type, ok.payload) == ("200", "Widget", Ref(name="Widget"))

        aggregate = graph.reference_map[method.path_object.name]
        assert aggregate.name == "GetWidgetsIdPath"
        assert [(f.name, f.required) for f in aggregate.fields] == [("id", True)]

    def test_emission_order(self, widgets_raw: dict[str, Any]) -> None:
        seen: list[tuple[str, str]] = []
        graph = TypeGraph()
        graph.on(EntityKind.METHOD, lambda m: seen.append(("METHOD", m.name)))
        graph.on(EntityKind.PATH, lambda p: seen.append(("PATH", p.name)))
        graph.on(EntityKind.MODEL, lambda m: seen.append(("MODEL", m.name)))
        parse(widgets_raw, graph)

        assert seen[:5] == [
            ("METHOD", "ListWidgets"),
            ("METHOD", "CreateWidget"),
            ("PATH", "/widgets"),
            ("METHOD", "GetWidgetsId"),
            ("PATH", "/widgets/{id}"),
        ]
        assert {category for category, _ in seen[5:]} == {"MODEL"}
        assert [name for _, name in seen[5:]] == list(graph.reference_map)

    def test_models_emitted_under_own_kind(self, widgets_parsed: tuple[TypeGraph, Snapshot]) -> None:
        graph, snapshot = widgets_parsed
        assert len(snapshot.get(EntityKind.MODEL)) == len(graph.reference_map)
        assert [m.name for m in snapshot.get(EntityKind.SCHEMA)][:3] == ["Widget", "Owner", "Tags"]
        assert [m.name for m in snapshot.get(EntityKind.SECURITY_SCHEME)] == ["bearer"]
        assert {m.name for m in snapshot.get(EntityKind.METHOD_PARAM)} == {
            "ListWidgetsQuery",
            "ListWidgetsHeaders",
            "GetWidgetsIdPath",
        }

    def test_path_lists_method_ids_in_verb_order(self) -> None:
        doc = make_document({
            "/items": {
                "post": {"responses": {"201": {"description": "created"}}},
                "get": {"responses": {"200": {"description": "ok"}}},
                "summary": "Items",
            }
        })
        graph, _ = parse(doc)
        path = graph.paths["/items"]
        assert path.methods == ["get /items", "post /items"]
        assert path.summary == "Items"

    def test_method_names_are_unique(self) -> None:
        doc = make_document({
            "/a": {"get": {"operationId": "fetch", "responses": {}}},
            "/b": {"get": {"operationId": "fetch", "responses": {}}},
        })
        graph, _ = parse(doc)
        assert [m.name for m in graph.methods.values()] == ["Fetch", "Fetch2"]

    def test_security_inherited_or_overridden(self, widgets_raw: dict[str, Any]) -> None:
        widgets_raw["paths"]["/widgets"]["post"]["security"] = []
        graph, _ = parse(widgets_raw)
        assert graph.methods["get /widgets"].security == [{"bearer": []}]
        assert graph.methods["post /widgets"].security == []

    def test_identical_inline_schemas_share_a_ref(self) -> None:
        schema = {"type": "object", "properties": {"ok": {"type": "boolean"}}}
        doc = make_document({
            "/a": {"get": {"responses": json_response(dict(schema))}},
            "/b": {"get": {"responses": json_response(dict(schema))}},
        })
        graph, _ = parse(doc)
        first = graph.methods["get /a"].responses[0].payload
        second = graph.methods["get /b"].responses[0].payload
        assert first == second == Ref(name="AGetApplicationJson200")

    def test_inline_schema_never_merges_with_component(self) -> None:
        doc = make_document(
            {"/a": {"get": {"responses": json_response(dict(OBJECT_X))}}},
            schemas={"Named": dict(OBJECT_X)},
        )
        graph, _ = parse(doc)
        payload = graph.methods["get /a"].responses[0].payload
        assert payload.name != "Named"
        assert isinstance(graph.reference_map[payload.name], Model)

    def test_operation_must_be_mapping(self) -> None:
        doc = make_document({"/a": {"get": "nope"}})
        with pytest.raises(MalformedSchemaError, match="Operation must be a mapping") as exc_info:
            parse(doc)
        assert exc_info.value.location == "paths./a.get"
