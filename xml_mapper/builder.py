"""Schema construction DSL.

SchemaBuilder collects field mappings from terse calls and produces an
immutable Schema. It is the only mutable piece of the package; once built,
the Schema no longer depends on the builder.

Example:
    >>> album = SchemaBuilder("album")
    >>> album.text("title", "artist_name")
    >>> album.integer("track_number")
    >>> with album.within("rights"):
    ...     album.exists({"country[.='DE']": "allows_streaming"})
    >>> with album.many({"tracks/track": "tracks"}) as track:
    ...     track.integer("track_number")
    ...     track.text("title")
    >>> @album.after_map
    ... def add_upc(attributes):
    ...     attributes["upc"] = "1234"
    >>> schema = album.build()
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from xml_mapper.base import AfterMapHook, FieldMapping, MappingType, Schema
from xml_mapper.errors import SchemaCycleError, SchemaError

PATH_SEPARATOR = "/"

Target = str | Mapping[str, str]


@dataclass
class _PendingMapping:
    type: MappingType
    path: str
    key: str
    # Shared by every mapping emitted from one add_mapping call
    options: dict[str, Any]


def expand_targets(targets: tuple[Target, ...]) -> list[tuple[str, str]]:
    """Turn DSL targets into (path, key) pairs.

    A bare string is both the path and the key; a mapping contributes one
    pair per item.

    Examples:
        >>> expand_targets(("first_name", {"name": "artist_name"}))
        [('first_name', 'first_name'), ('name', 'artist_name')]
    """
    pairs: list[tuple[str, str]] = []
    for target in targets:
        if isinstance(target, str):
            pairs.append((target, target))
        elif isinstance(target, Mapping):
            pairs.extend((str(path), str(key)) for path, key in target.items())
        else:
            raise SchemaError(
                f"Invalid mapping target: {target!r}",
                "expected a key string or a {path: key} mapping",
            )
    if not pairs:
        raise SchemaError("At least one mapping target is required")
    return pairs


class SchemaBuilder:
    """Mutable builder for Schema values.

    Attributes:
        name: Label used in cycle error messages
    """

    def __init__(self, name: str = "schema"):
        self.name = name
        self._pending: list[_PendingMapping] = []
        self._prefixes: list[str] = []
        self._after_map: AfterMapHook | None = None

    def __enter__(self) -> "SchemaBuilder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def __repr__(self) -> str:
        return f"SchemaBuilder(name={self.name!r}, mappings={len(self._pending)})"

    def add_mapping(
        self, type: MappingType | str, *targets: Target, **options: Any
    ) -> None:
        """Add one field mapping per target.

        Args:
            type: Mapping type or its name ("text", "integer", ...)
            *targets: Bare keys and/or {path: key} mappings
            **options: Shared by all emitted mappings. Recognized keys are
                ``after_map`` (transform name) and ``mapper`` (Schema or
                SchemaBuilder, required for "many")

        Raises:
            SchemaError: On an unknown type, an invalid target, or a "many"
                mapping without a mapper
        """
        mapping_type = MappingType.parse(type)
        mapper = options.get("mapper")
        if mapping_type is MappingType.MANY and not isinstance(
            mapper, (Schema, SchemaBuilder)
        ):
            raise SchemaError(
                "Mappings of type 'many' require a nested schema",
                "pass mapper=<Schema or SchemaBuilder>",
            )

        shared_options = dict(options)
        for path, key in expand_targets(targets):
            self._pending.append(
                _PendingMapping(
                    type=mapping_type,
                    path=self._compose_path(path),
                    key=key,
                    options=shared_options,
                )
            )

    def text(self, *targets: Target, **options: Any) -> None:
        self.add_mapping(MappingType.TEXT, *targets, **options)

    def integer(self, *targets: Target, **options: Any) -> None:
        self.add_mapping(MappingType.INTEGER, *targets, **options)

    def boolean(self, *targets: Target, **options: Any) -> None:
        self.add_mapping(MappingType.BOOLEAN, *targets, **options)

    def exists(self, *targets: Target, **options: Any) -> None:
        self.add_mapping(MappingType.EXISTS, *targets, **options)

    def many(
        self,
        target: Target,
        mapper: "Schema | SchemaBuilder | None" = None,
        **options: Any,
    ) -> "Schema | SchemaBuilder":
        """Add a "many" mapping and return its nested mapper.

        When ``mapper`` is omitted a fresh child builder is created and
        returned, so it can be filled in afterwards or used as a context
        manager. Its paths are relative to each matched node; enclosing
        ``within`` prefixes do not apply to it.
        """
        if mapper is None:
            keys = [key for _, key in expand_targets((target,))]
            mapper = SchemaBuilder(f"{self.name}.{keys[0]}")
        self.add_mapping(MappingType.MANY, target, mapper=mapper, **options)
        return mapper

    @contextmanager
    def within(self, prefix: str) -> Iterator["SchemaBuilder"]:
        """Prefix every path declared inside the block with ``prefix``.

        Scopes nest; sibling scopes are independent.
        """
        self._prefixes.append(prefix.strip(PATH_SEPARATOR))
        try:
            yield self
        finally:
            self._prefixes.pop()

    def after_map(self, hook: AfterMapHook) -> AfterMapHook:
        """Register the post-process hook, replacing any previous one.

        Returns the hook unchanged so this can be used as a decorator.
        """
        self._after_map = hook
        return hook

    @property
    def after_map_hook(self) -> AfterMapHook | None:
        return self._after_map

    def build(self) -> Schema:
        """Produce the immutable Schema.

        Raises:
            SchemaCycleError: If this builder is reachable from its own
                nested mappers
        """
        return self._build(stack=[])

    def _build(self, stack: list["SchemaBuilder"]) -> Schema:
        if any(builder is self for builder in stack):
            raise SchemaCycleError([b.name for b in stack] + [self.name])
        stack = stack + [self]

        frozen_options: dict[int, Mapping[str, Any]] = {}
        mappings: list[FieldMapping] = []
        for pending in self._pending:
            options_id = id(pending.options)
            if options_id not in frozen_options:
                frozen_options[options_id] = self._freeze_options(
                    pending.options, stack
                )
            mappings.append(
                FieldMapping(
                    type=pending.type,
                    path=pending.path,
                    key=pending.key,
                    options=frozen_options[options_id],
                )
            )

        return Schema(mappings=tuple(mappings), after_map=self._after_map)

    @staticmethod
    def _freeze_options(
        options: dict[str, Any], stack: list["SchemaBuilder"]
    ) -> Mapping[str, Any]:
        frozen = dict(options)
        mapper = frozen.get("mapper")
        if isinstance(mapper, SchemaBuilder):
            frozen["mapper"] = mapper._build(stack)
        return MappingProxyType(frozen)

    def _compose_path(self, path: str) -> str:
        return PATH_SEPARATOR.join([p for p in self._prefixes if p] + [path])


def build_schema(*mappings: FieldMapping, after_map: AfterMapHook | None = None) -> Schema:
    """Create a Schema directly from FieldMapping values."""
    return Schema(mappings=mappings, after_map=after_map)
