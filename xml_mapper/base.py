"""Core data structures for XML field mapping.

This module defines the immutable values the resolver consumes. Schemas are
built once (by the SchemaBuilder or from configuration) and can then be shared
across any number of resolution calls, threads, and parent schemas.

Key Classes:
    MappingType: The extraction/coercion kind of a field mapping
    FieldMapping: One extraction rule (type, path, key, options)
    Schema: Ordered field mappings plus an optional post-process hook
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any

from xml_mapper.errors import SchemaError

# Signature of a post-process hook: receives the resolved attributes and
# mutates them in place. The return value is ignored.
AfterMapHook = Callable[[dict[str, Any]], None]

EMPTY_OPTIONS: Mapping[str, Any] = MappingProxyType({})


class MappingType(Enum):
    """How a matched node is turned into a value.

    TEXT: Stripped text content of the first match
    INTEGER: Base-10 integer parsed from the first match
    BOOLEAN: String-to-boolean conversion of the first match
    EXISTS: True if anything matched, False otherwise
    MANY: Nested schema resolved against every match
    """

    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    EXISTS = "exists"
    MANY = "many"

    @classmethod
    def parse(cls, value: "MappingType | str") -> "MappingType":
        """Convert a type name into a MappingType.

        Args:
            value: A MappingType or its string value (case-insensitive)

        Returns:
            The matching MappingType

        Raises:
            SchemaError: If the name is not a known mapping type
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            available = ", ".join(t.value for t in cls)
            raise SchemaError(
                f"Unknown mapping type: '{value}'", f"available types: {available}"
            ) from None


@dataclass(frozen=True)
class FieldMapping:
    """A single extraction rule.

    Attributes:
        type: Kind of extraction/coercion to apply; names are parsed
        path: XPath expression evaluated relative to the context node
        key: Key under which the value is stored in the output dictionary
        options: Read-only modifiers; "after_map" names a value transform and
            "mapper" holds the nested Schema for MANY mappings
    """

    type: MappingType
    path: str
    key: str
    options: Mapping[str, Any] = field(default_factory=lambda: EMPTY_OPTIONS)

    def __post_init__(self):
        object.__setattr__(self, "type", MappingType.parse(self.type))
        # Already-frozen options are kept as-is so mappings can share them
        if not isinstance(self.options, MappingProxyType):
            object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @property
    def after_map(self) -> str | None:
        return self.options.get("after_map")

    @property
    def mapper(self) -> "Schema | None":
        return self.options.get("mapper")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for inspection and logging.

        Returns:
            Dictionary with type as its string value
        """
        return {
            "type": self.type.value,
            "path": self.path,
            "key": self.key,
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class Schema:
    """An ordered list of field mappings plus an optional post-process hook.

    Attributes:
        mappings: Field mappings, applied in order
        after_map: Hook run once on the resolved attributes, after all mappings
    """

    mappings: tuple[FieldMapping, ...] = ()
    after_map: AfterMapHook | None = None

    def __post_init__(self):
        object.__setattr__(self, "mappings", tuple(self.mappings))
        for mapping in self.mappings:
            if mapping.type is MappingType.MANY and not isinstance(
                mapping.mapper, Schema
            ):
                raise SchemaError(
                    f"Mapping for key '{mapping.key}' has type 'many' "
                    "but no nested schema",
                    "pass mapper=<Schema>",
                )

    def with_after_map(self, hook: AfterMapHook | None) -> "Schema":
        """Return a copy of this schema carrying ``hook`` instead of the current one."""
        return replace(self, after_map=hook)

    @property
    def keys(self) -> list[str]:
        return [mapping.key for mapping in self.mappings]

    def __len__(self) -> int:
        return len(self.mappings)
