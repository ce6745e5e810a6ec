"""Custom exceptions for the XML mapper."""

from typing import Any


class XmlMapperError(Exception):
    """Base exception for XML mapper errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class SchemaError(XmlMapperError):
    """Raised when a schema or field mapping cannot be constructed."""


class SchemaCycleError(SchemaError):
    """Raised when a schema builder contains itself through ``many`` mappings."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__("Schema references itself", " -> ".join(chain))


class CoercionError(XmlMapperError):
    """Raised in strict mode when text cannot be coerced to the mapping type."""

    def __init__(self, value: Any, target_type: str, key: str | None = None):
        self.value = value
        self.target_type = target_type
        self.key = key
        message = f"Cannot convert {value!r} to {target_type}"
        super().__init__(message, f"key '{key}'" if key else None)


class TransformNotFoundError(XmlMapperError):
    """Raised in strict mode when an after_map name resolves to nothing."""

    def __init__(self, name: str, key: str | None = None):
        self.name = name
        self.key = key
        super().__init__(
            f"No transform named '{name}'", f"key '{key}'" if key else None
        )


class PathExpressionError(XmlMapperError):
    """Raised when an XPath expression cannot be evaluated."""

    def __init__(self, path: str, details: str | None = None):
        self.path = path
        super().__init__(f"Invalid path expression '{path}'", details)


class DocumentReadError(XmlMapperError):
    """Raised when a document cannot be read from its location."""

    def __init__(self, path: str, details: str | None = None):
        self.path = path
        super().__init__(f"Failed to read document '{path}'", details)


class DocumentParseError(XmlMapperError):
    """Raised when document text is not well-formed XML."""

    def __init__(self, details: str | None = None, path: str | None = None):
        self.path = path
        message = (
            f"Failed to parse document '{path}'" if path else "Failed to parse document"
        )
        super().__init__(message, details)
