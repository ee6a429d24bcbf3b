from __future__ import annotations

import datetime as dt

import pytest

from matchreel.bindings import (
    DEFAULT_SCHEMAS,
    MATCH_TYPE,
    PRIMARY_TYPES,
    EntitySchema,
    SchemaRegistry,
    bind,
)
from matchreel.errors import DescriptorError, StructuralMismatchError
from matchreel.models import Match, Resolution, Team, VideoFileSource


class TestFieldBinding:
    def test_attribute_accessors_by_default(self) -> None:
        binding = bind("home_team", Team)
        match = Match()

        assert binding.is_unset(match)
        binding.assign(match, Team("Arsenal"))
        assert binding.getter(match) == Team("Arsenal")
        assert not binding.is_unset(match)

    def test_custom_accessors_and_default(self) -> None:
        store = {}
        binding = bind(
            "label",
            str,
            setter=lambda entity, value: entity.__setitem__("label", value),
            getter=lambda entity: entity.get("label", ""),
            default="",
        )

        assert binding.is_unset(store)
        binding.assign(store, "x")
        assert store == {"label": "x"}
        assert not binding.is_unset(store)


class TestEntitySchema:
    def test_create_returns_fresh_instances(self) -> None:
        schema = DEFAULT_SCHEMAS.require(MATCH_TYPE)
        assert schema.create() is not schema.create()
        assert isinstance(schema.create(), Match)

    def test_binding_table_declares_expected_types(self) -> None:
        schema = DEFAULT_SCHEMAS.require("video_file_source")
        assert schema.binding_for("resolution").expected_type is Resolution
        assert schema.binding_for("date") is None

    def test_match_date_is_a_date(self) -> None:
        assert DEFAULT_SCHEMAS.require(MATCH_TYPE).binding_for("date").expected_type is dt.date

    def test_duplicate_field_rejected(self) -> None:
        with pytest.raises(DescriptorError, match="declared twice"):
            EntitySchema.declare("x", dict, bind("a", str), bind("a", int))


class TestSchemaRegistry:
    def test_default_registry_covers_every_type(self) -> None:
        assert set(DEFAULT_SCHEMAS) == {"match", "highlight", "video_file_source", "video_file", "url"}
        assert set(PRIMARY_TYPES) <= set(DEFAULT_SCHEMAS)

    def test_require_unknown_type(self) -> None:
        with pytest.raises(DescriptorError, match="known types"):
            DEFAULT_SCHEMAS.require("stadium")

    def test_with_schema_returns_copy(self) -> None:
        replacement = EntitySchema.declare("video_file_source", VideoFileSource, bind("channel", str))
        registry = DEFAULT_SCHEMAS.with_schema(replacement)

        assert registry.require("video_file_source") is replacement
        assert DEFAULT_SCHEMAS.require("video_file_source") is not replacement
        assert "match" in registry

    def test_empty_registry(self) -> None:
        assert SchemaRegistry().get("match") is None


class TestStructuralMismatchError:
    def test_short_text_kept_verbatim(self) -> None:
        error = StructuralMismatchError("match", ["(x)"], "short_text")
        assert error.text_preview == "short_text"
        assert "(x)" in str(error)

    def test_long_text_truncated(self) -> None:
        error = StructuralMismatchError("match", [], "a_b" * 100)
        assert error.text_preview == ("ab" * 64) + "..."
