"""Configuration-driven schemas.

Schemas can be described as plain data (JSON documents, dicts) instead of
SchemaBuilder calls, so mapping definitions can live outside the code. A
definition may be inline, stored in S3, or both (S3 base + inline overrides).

Example configuration:
    {
        "mappings": [
            {"type": "text", "key": "title"},
            {"type": "text", "path": "artist_name", "key": "artist", "after_map": "upper"},
            {"within": "rights", "mappings": [
                {"type": "exists", "path": "country[.='DE']", "key": "allows_streaming"}
            ]},
            {"type": "many", "path": "tracks/track", "key": "tracks", "mapper": {
                "mappings": [
                    {"type": "integer", "key": "track_number"},
                    {"type": "text", "key": "title"}
                ]
            }}
        ]
    }

Usage:
    from xml_mapper.config_loader import load_schema

    # In a handler:
    schema = load_schema({
        "config_s3_path": "mapper-configs/album.json",
        "config": {...}  # Optional inline overrides
    })
"""

import json
import os
from functools import lru_cache
from typing import Any

from botocore.exceptions import ClientError
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from xml_mapper.base import AfterMapHook, MappingType, Schema
from xml_mapper.builder import SchemaBuilder
from xml_mapper.errors import SchemaError
from xml_mapper.xml_utils import get_s3_client, parse_s3_uri

CONFIG_BUCKET_ENV = "XML_MAPPER_CONFIG_BUCKET"


class MappingDefinition(BaseModel):
    """One field mapping. ``path`` defaults to ``key``."""

    model_config = ConfigDict(extra="forbid")

    type: MappingType
    key: str
    path: str | None = None
    after_map: str | None = None
    mapper: "SchemaDefinition | None" = None

    @field_validator("type", mode="before")
    @classmethod
    def lowercase_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_mapper(self):
        if self.type is MappingType.MANY and self.mapper is None:
            raise ValueError(f"Mapping '{self.key}' of type 'many' requires a mapper")
        if self.type is not MappingType.MANY and self.mapper is not None:
            raise ValueError(
                f"Mapping '{self.key}' has a mapper but type '{self.type.value}'"
            )
        return self


class ScopeDefinition(BaseModel):
    """A ``within`` block prefixing every path declared inside it."""

    model_config = ConfigDict(extra="forbid")

    within: str
    mappings: list["MappingDefinition | ScopeDefinition"] = Field(
        default_factory=list
    )


class SchemaDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mappings: list[MappingDefinition | ScopeDefinition] = Field(default_factory=list)


MappingDefinition.model_rebuild()
ScopeDefinition.model_rebuild()
SchemaDefinition.model_rebuild()


def _add_definitions(
    builder: SchemaBuilder,
    entries: list[MappingDefinition | ScopeDefinition],
) -> None:
    for entry in entries:
        if isinstance(entry, ScopeDefinition):
            with builder.within(entry.within):
                _add_definitions(builder, entry.mappings)
            continue

        options: dict[str, Any] = {}
        if entry.after_map:
            options["after_map"] = entry.after_map
        if entry.mapper is not None:
            child = SchemaBuilder(f"{builder.name}.{entry.key}")
            _add_definitions(child, entry.mapper.mappings)
            options["mapper"] = child
        builder.add_mapping(entry.type, {entry.path or entry.key: entry.key}, **options)


def schema_from_config(
    config: dict[str, Any] | SchemaDefinition,
    after_map: AfterMapHook | None = None,
    name: str = "schema",
) -> Schema:
    """Build a Schema from a configuration document.

    Args:
        config: Parsed configuration (see module docstring)
        after_map: Optional post-process hook for the top-level schema
        name: Label used in error messages

    Returns:
        The immutable Schema

    Raises:
        SchemaError: If the configuration does not describe a valid schema
    """
    if isinstance(config, SchemaDefinition):
        definition = config
    else:
        try:
            definition = SchemaDefinition.model_validate(config)
        except ValidationError as e:
            raise SchemaError("Invalid schema configuration", str(e)) from e

    builder = SchemaBuilder(name)
    _add_definitions(builder, definition.mappings)
    if after_map is not None:
        builder.after_map(after_map)
    return builder.build()


@lru_cache(maxsize=10)
def load_config_from_s3(bucket: str, key: str) -> dict[str, Any]:
    """Fetch a JSON schema definition from S3.

    Results are memoized per (bucket, key) for the life of the process, so
    warm invocations reuse the parsed definition. Failed loads are not cached.

    Raises:
        ValueError: If the object is missing, unreadable, or not valid JSON
    """
    try:
        s3 = get_s3_client()
        response = s3.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read().decode("utf-8")
        return json.loads(content)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        if error_code in ("NoSuchKey", "404"):
            raise ValueError(
                f"Configuration file not found: s3://{bucket}/{key}"
            ) from e
        raise ValueError(
            f"Failed to load configuration from s3://{bucket}/{key}: {e}"
        ) from e
    except json.JSONDecodeError as e:
        raise ValueError(
            f"Invalid JSON in configuration file s3://{bucket}/{key}: {e}"
        ) from e


def resolve_schema_config(node_config: dict[str, Any]) -> dict[str, Any]:
    """Resolve a schema configuration from inline and/or S3 sources.

    Configuration resolution order:
    1. If config_s3_path is provided, load base config from S3
    2. If inline config is provided, merge it on top (overrides S3 values)
    3. Return the merged configuration

    ``config_s3_path`` is either a full ``s3://bucket/key`` URI or a key in
    the bucket named by the XML_MAPPER_CONFIG_BUCKET environment variable.

    Args:
        node_config: {"config_s3_path": "...", "config": {...}}

    Returns:
        Resolved configuration dictionary

    Raises:
        ValueError: If an S3 key is given without XML_MAPPER_CONFIG_BUCKET,
                   or if the S3 config file is not found or invalid
    """
    inline_config = node_config.get("config", {})
    s3_path = node_config.get("config_s3_path")

    if not s3_path:
        return inline_config

    location = parse_s3_uri(s3_path)
    if location is None:
        bucket = os.environ.get(CONFIG_BUCKET_ENV)
        if not bucket:
            raise ValueError(
                f"{CONFIG_BUCKET_ENV} environment variable not set. "
                "Cannot load configuration from S3."
            )
        location = (bucket, s3_path)

    s3_config = load_config_from_s3(*location)

    # Merge: inline config overrides S3 config
    if inline_config:
        merged_config = dict(s3_config)
        merged_config.update(inline_config)
        return merged_config

    return s3_config


def load_schema(
    node_config: dict[str, Any], after_map: AfterMapHook | None = None
) -> Schema:
    """Resolve a node's schema configuration and build the Schema."""
    return schema_from_config(resolve_schema_config(node_config), after_map=after_map)


def clear_config_cache() -> None:
    """Forget memoized S3 schema definitions so the next load refetches them."""
    load_config_from_s3.cache_clear()
