"""
Unit tests for the schema data model.
"""

import dataclasses

import pytest

from xml_mapper import FieldMapping, MappingType, Schema, SchemaError


class TestMappingType:
    """Tests for MappingType parsing."""

    def test_parse_from_name(self):
        """Test that type names convert case-insensitively"""
        assert MappingType.parse("text") is MappingType.TEXT
        assert MappingType.parse("INTEGER") is MappingType.INTEGER
        assert MappingType.parse(MappingType.MANY) is MappingType.MANY

    def test_unknown_name_raises(self):
        """Test that unknown type names are rejected with the available types"""
        with pytest.raises(SchemaError) as exc_info:
            MappingType.parse("length")

        assert "length" in str(exc_info.value)
        assert "exists" in str(exc_info.value)


class TestFieldMapping:
    """Tests for FieldMapping."""

    def test_defaults_to_empty_options(self):
        """Test that a mapping without options has no after_map or mapper"""
        mapping = FieldMapping(MappingType.TEXT, "title", "title")

        assert mapping.after_map is None
        assert mapping.mapper is None
        assert mapping.to_dict() == {
            "type": "text",
            "path": "title",
            "key": "title",
            "options": {},
        }

    def test_default_options_are_empty_and_read_only(self):
        """Test that default options are an empty read-only mapping"""
        mapping = FieldMapping(MappingType.TEXT, "t", "t")

        assert dict(mapping.options) == {}
        with pytest.raises(TypeError):
            mapping.options["after_map"] = "upper"

    def test_supplied_options_are_frozen(self):
        """Test that a plain dict of options is copied into a read-only mapping"""
        options = {"after_map": "upper"}
        mapping = FieldMapping(MappingType.TEXT, "title", "title", options)
        options["after_map"] = "lower"

        assert mapping.after_map == "upper"
        with pytest.raises(TypeError):
            mapping.options["after_map"] = "strip"

    def test_type_name_is_parsed(self):
        """Test that a type given by name is converted to MappingType"""
        mapping = FieldMapping("Integer", "track_number", "track_number")

        assert mapping.type is MappingType.INTEGER

    def test_unknown_type_name_raises(self):
        """Test that an unknown type name is rejected at construction"""
        with pytest.raises(SchemaError):
            FieldMapping("length", "title", "title")

    def test_is_immutable(self):
        """Test that mapping fields cannot be reassigned"""
        mapping = FieldMapping(MappingType.TEXT, "title", "title")

        with pytest.raises(dataclasses.FrozenInstanceError):
            mapping.key = "other"

    def test_option_accessors(self):
        """Test that after_map and mapper read from options"""
        nested = Schema()
        mapping = FieldMapping(
            MappingType.MANY,
            "tracks/track",
            "tracks",
            {"mapper": nested, "after_map": "copy"},
        )

        assert mapping.mapper is nested
        assert mapping.after_map == "copy"


class TestSchema:
    """Tests for Schema."""

    def test_mappings_are_stored_as_tuple(self):
        """Test that a list of mappings is frozen into a tuple"""
        schema = Schema(mappings=[FieldMapping(MappingType.TEXT, "title", "title")])

        assert isinstance(schema.mappings, tuple)
        assert schema.keys == ["title"]
        assert len(schema) == 1

    def test_many_requires_nested_schema(self):
        """Test that a many mapping without a Schema mapper is rejected"""
        with pytest.raises(SchemaError):
            Schema(mappings=[FieldMapping(MappingType.MANY, "tracks/track", "tracks")])

    def test_with_after_map_replaces_hook(self):
        """Test that with_after_map returns a copy with only the new hook"""

        def first(attributes):
            attributes["first"] = True

        def second(attributes):
            attributes["second"] = True

        schema = Schema(after_map=first)
        replaced = schema.with_after_map(second)

        assert schema.after_map is first
        assert replaced.after_map is second
        assert replaced.mappings == schema.mappings
