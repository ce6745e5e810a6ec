"""Declarative-schema XML document mapper.

This package converts XML documents into attribute dictionaries, driven by an
ordered list of field mappings describing where a value lives (XPath), how to
coerce it, and under which key to store it.

Usage:
    from xml_mapper import SchemaBuilder, XmlMapper

    album = SchemaBuilder("album")
    album.text("title", "artist_name")
    album.integer("track_number")
    with album.many({"tracks/track": "tracks"}) as track:
        track.integer("track_number")
        track.text("title")

    attributes = XmlMapper().attributes_from_xml(album.build(), xml_text)

Configuration-driven schemas:
    from xml_mapper import schema_from_config

    schema = schema_from_config({"mappings": [{"type": "text", "key": "title"}]})
"""

from xml_mapper.base import AfterMapHook, FieldMapping, MappingType, Schema
from xml_mapper.builder import SchemaBuilder, build_schema
from xml_mapper.coercion import string_to_boolean, string_to_integer
from xml_mapper.config_loader import (
    clear_config_cache,
    load_config_from_s3,
    load_schema,
    resolve_schema_config,
    schema_from_config,
)
from xml_mapper.errors import (
    CoercionError,
    DocumentParseError,
    DocumentReadError,
    PathExpressionError,
    SchemaCycleError,
    SchemaError,
    TransformNotFoundError,
    XmlMapperError,
)
from xml_mapper.resolver import (
    XML_PATH_KEY,
    XmlMapper,
    attributes_from_xml,
    attributes_from_xml_path,
)

__all__ = [
    "AfterMapHook",
    "FieldMapping",
    "MappingType",
    "Schema",
    "SchemaBuilder",
    "build_schema",
    "string_to_boolean",
    "string_to_integer",
    "XmlMapper",
    "XML_PATH_KEY",
    "attributes_from_xml",
    "attributes_from_xml_path",
    "schema_from_config",
    "load_schema",
    "load_config_from_s3",
    "resolve_schema_config",
    "clear_config_cache",
    "XmlMapperError",
    "SchemaError",
    "SchemaCycleError",
    "CoercionError",
    "TransformNotFoundError",
    "PathExpressionError",
    "DocumentReadError",
    "DocumentParseError",
]
