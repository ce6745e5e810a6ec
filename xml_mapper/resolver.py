"""Schema-driven resolution of XML documents into attribute dictionaries.

XmlMapper applies a Schema to a document node:

1. Each field mapping is evaluated in order against the node
2. The first match (document order) is coerced according to the mapping type;
   "exists" only checks for a match and "many" resolves its nested schema
   against every match
3. The optional after_map transform is applied to the value
4. The value is stored under the mapping key, overwriting earlier values
5. The schema's post-process hook runs once on the finished dictionary

The mapper holds no per-call state, so one instance (and one Schema) can
resolve many documents, including from several threads at once.
"""

import copy
import inspect
import os
import time
from collections.abc import Callable, Mapping
from typing import Any

from aws_lambda_powertools import Logger

from xml_mapper.base import FieldMapping, MappingType, Schema
from xml_mapper.coercion import coerce
from xml_mapper.errors import PathExpressionError, TransformNotFoundError
from xml_mapper.xml_utils import (
    is_node,
    load_document,
    node_text,
    query_nodes,
    to_context_node,
)

logger = Logger(service="xml-mapper", child=True)

# Key added by attributes_from_xml_path holding the document location
XML_PATH_KEY = "xml_path"

Transform = Callable[[Any], Any]


class XmlMapper:
    """Resolves schemas against XML documents.

    Transforms named by a mapping's ``after_map`` option are looked up first
    on the extracted value itself (a zero-argument method such as ``upper``),
    then in this mapper's transform registry.

    Attributes:
        transforms: Named value transforms, called as ``func(value)``
        strict: Raise CoercionError / TransformNotFoundError instead of
            falling back to None / the unchanged value

    Example:
        >>> mapper = XmlMapper(transforms={"double": lambda v: str(v) * 2})
        >>> builder = SchemaBuilder()
        >>> builder.text("artist_name", after_map="double")
        >>> mapper.attributes_from_xml(
        ...     builder.build(), "<album><artist_name>Mos Def</artist_name></album>"
        ... )
        {'artist_name': 'Mos DefMos Def'}
    """

    def __init__(
        self,
        transforms: Mapping[str, Transform] | None = None,
        strict: bool = False,
    ):
        self.transforms: dict[str, Transform] = dict(transforms or {})
        self.strict = strict

    def register_transform(self, name: str, func: Transform) -> Transform:
        """Register (or replace) a named transform and return it."""
        self.transforms[name] = func
        return func

    def attributes_from_xml(
        self, schema: Schema, source: Any
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Resolve ``schema`` against one document or a sequence of documents.

        Args:
            schema: Schema to apply
            source: XML text, an lxml element or element tree, or a list/tuple
                of those

        Returns:
            One attribute dictionary for a single source, or a list of
            dictionaries in input order for a sequence

        Raises:
            DocumentParseError: If XML text is not well-formed
            TypeError: If a source is of an unsupported kind
        """
        if isinstance(source, (list, tuple)):
            return [self.resolve(schema, to_context_node(item)) for item in source]
        return self.resolve(schema, to_context_node(source))

    def attributes_from_xml_path(
        self, schema: Schema, path: str | os.PathLike
    ) -> dict[str, Any]:
        """Read, parse and resolve the document at ``path``.

        The returned dictionary always carries the original location under
        ``xml_path``, set after resolution (it replaces any mapped value for
        that key).

        Args:
            schema: Schema to apply
            path: Local file path or ``s3://bucket/key`` URI

        Returns:
            Attribute dictionary

        Raises:
            DocumentReadError: If the document cannot be read
            DocumentParseError: If the document is not well-formed XML
        """
        start_time = time.perf_counter()
        attributes = self.resolve(schema, load_document(path))
        attributes[XML_PATH_KEY] = str(path)

        logger.debug(
            "Resolved document",
            extra={
                "xml_path": str(path),
                "key_count": len(attributes),
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
            },
        )
        return attributes

    def resolve(self, schema: Schema, node: Any) -> dict[str, Any]:
        """Apply every mapping of ``schema`` to ``node``, then its hook.

        Args:
            schema: Schema to apply
            node: Context element for relative paths

        Returns:
            A new attribute dictionary
        """
        attributes: dict[str, Any] = {}
        for mapping in schema.mappings:
            attributes[mapping.key] = self.value_for_mapping(mapping, node)

        if schema.after_map is not None:
            schema.after_map(attributes)

        return attributes

    def value_for_mapping(self, mapping: FieldMapping, node: Any) -> Any:
        """Extract, coerce and transform the value of a single mapping."""
        matches = query_nodes(node, mapping.path)

        if mapping.type is MappingType.EXISTS:
            value: Any = bool(matches)
        elif mapping.type is MappingType.MANY:
            value = self._resolve_many(mapping, matches)
        else:
            text = node_text(matches[0]) if matches else None
            value = coerce(mapping.type.value, text, strict=self.strict, key=mapping.key)

        if mapping.after_map:
            value = self.apply_transform(mapping.after_map, value, key=mapping.key)

        return value

    def _resolve_many(
        self, mapping: FieldMapping, matches: list[Any]
    ) -> list[dict[str, Any]]:
        results = []
        for match in matches:
            if not is_node(match):
                raise PathExpressionError(
                    mapping.path,
                    f"'many' mapping '{mapping.key}' must select elements",
                )
            results.append(self.resolve(mapping.mapper, match))
        return results

    def apply_transform(self, name: str, value: Any, key: str | None = None) -> Any:
        """Run the transform called ``name`` on ``value``.

        Lookup order: a method of the value itself that takes no arguments,
        then the mapper's registry. Value methods run on a shallow copy;
        methods that work in place (``list.reverse``, ``list.sort``) yield
        the modified copy. Unresolved names leave the value unchanged (and
        log a warning) unless the mapper is strict.

        Raises:
            TransformNotFoundError: If strict and nothing resolves ``name``
        """
        result = _call_value_method(value, name)
        if result is not _NOT_APPLICABLE:
            return result

        func = self.transforms.get(name)
        if func is not None:
            return func(value)

        if self.strict:
            raise TransformNotFoundError(name, key)

        logger.warning(
            "Transform not found, keeping value unchanged",
            extra={"transform": name, "key": key, "value_type": type(value).__name__},
        )
        return value


_NOT_APPLICABLE = object()


def _call_value_method(value: Any, name: str) -> Any:
    if value is None:
        return _NOT_APPLICABLE

    target = copy.copy(value)
    method = getattr(target, name, None)
    if not callable(method):
        return _NOT_APPLICABLE
    try:
        inspect.signature(method).bind()
    except (TypeError, ValueError):
        return _NOT_APPLICABLE

    result = method()
    return target if result is None else result


_default_mapper = XmlMapper()


def attributes_from_xml(
    schema: Schema, source: Any
) -> dict[str, Any] | list[dict[str, Any]]:
    """Resolve with a default, lenient mapper without custom transforms."""
    return _default_mapper.attributes_from_xml(schema, source)


def attributes_from_xml_path(
    schema: Schema, path: str | os.PathLike
) -> dict[str, Any]:
    """Read and resolve with a default, lenient mapper without custom transforms."""
    return _default_mapper.attributes_from_xml_path(schema, path)
