"""Tests for specgraph.resolver.keywords -- the validations/extras split."""

from __future__ import annotations

from specgraph.resolver.keywords import extract_validations


class TestExtractValidations:
    def test_splits_validations_from_extras(self) -> None:
        validations, extras = extract_validations(
            {"type": "string", "maxLength": 5, "pattern": "^a", "x-go-type": "ID"}
        )
        assert validations == {"maxLength": 5, "pattern": "^a"}
        assert extras == {"x-go-type": "ID"}

    def test_structural_keys_are_dropped(self) -> None:
        validations, extras = extract_validations({
            "type": "object",
            "properties": {},
            "items": {},
            "allOf": [],
            "enum": ["a"],
            "default": "a",
            "description": "d",
            "format": "uuid",
        })
        assert validations == {}
        assert extras == {}

    def test_x_nullable_becomes_nullable(self) -> None:
        validations, extras = extract_validations({"x-nullable": True})
        assert validations == {"nullable": True}
        assert extras == {"x-nullable": True}

    def test_required_list_kept_verbatim(self) -> None:
        validations, _ = extract_validations({"required": ["id", "name"]})
        assert validations == {"required": ["id", "name"]}

    def test_parameter_required_flag(self) -> None:
        validations, extras = extract_validations({"name": "id", "in": "path", "required": True})
        assert validations == {"required": True}
        assert extras == {"name": "id", "in": "path"}

    def test_unknown_keywords_go_to_extras(self) -> None:
        _, extras = extract_validations({"readOnly": True, "example": 3})
        assert extras == {"readOnly": True, "example": 3}

    def test_non_mapping(self) -> None:
        assert extract_validations(None) == ({}, {})
        assert extract_validations(True) == ({}, {})
