"""XML document helpers for the resolver.

This module is the only place that talks to lxml and to document storage.
The resolver relies on four capabilities from it:

- read_document: raw bytes from a local path or an ``s3://bucket/key`` URI
- parse_document: well-formed XML text to an lxml element
- query_nodes: XPath evaluation relative to a context node, in document order
- node_text: stripped textual content of a matched node

Paths are plain XPath 1.0 without namespace bindings. A relative path such as
``tracks/track`` is evaluated against the context node, which for a whole
document is its root element.
"""

import os
from typing import Any
from urllib.parse import urlparse

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError
from lxml import etree

from xml_mapper.errors import DocumentParseError, DocumentReadError, PathExpressionError

logger = Logger(service="xml-mapper", child=True)

S3_SCHEME = "s3"

# Module-level S3 client for Lambda warm starts
_s3_client: Any = None


def get_s3_client() -> Any:
    """Get or create S3 client (reused across invocations).

    Returns:
        boto3 S3 client instance
    """
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client("s3")
    return _s3_client


def parse_s3_uri(path: str) -> tuple[str, str] | None:
    """Split an ``s3://bucket/key`` URI into bucket and key.

    Args:
        path: Document location

    Returns:
        Tuple of (bucket, key), or None if the path is not an S3 URI

    Examples:
        >>> parse_s3_uri("s3://media-bucket/albums/black_on_both_sides.xml")
        ('media-bucket', 'albums/black_on_both_sides.xml')
        >>> parse_s3_uri("/tmp/album.xml")
        None
    """
    parsed = urlparse(path)
    if parsed.scheme != S3_SCHEME or not parsed.netloc:
        return None
    key = parsed.path.lstrip("/")
    if not key:
        return None
    return (parsed.netloc, key)


def read_document(path: str | os.PathLike) -> bytes:
    """Read raw document bytes from a local file or S3.

    Args:
        path: Local file path or ``s3://bucket/key`` URI

    Returns:
        The document content

    Raises:
        DocumentReadError: If the document cannot be read; carries the path
    """
    location = str(path)
    s3_location = parse_s3_uri(location)

    if s3_location is not None:
        bucket, key = s3_location
        logger.debug("Reading document from S3", extra={"bucket": bucket, "key": key})
        try:
            response = get_s3_client().get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise DocumentReadError(location, f"S3 error {error_code}") from e

    logger.debug("Reading document from file", extra={"path": location})
    try:
        with open(location, "rb") as f:
            return f.read()
    except OSError as e:
        raise DocumentReadError(location, e.strerror or str(e)) from e


def parse_document(raw: str | bytes, path: str | None = None) -> etree._Element:
    """Parse XML text into its root element.

    The parser never resolves external entities or touches the network.
    A new parser is created per call; lxml parsers must not be shared
    between threads.

    Args:
        raw: XML document text. ``str`` input is parsed as UTF-8 regardless
            of any encoding declaration it carries.
        path: Original location, included in error messages

    Returns:
        The document's root element

    Raises:
        DocumentParseError: If the text is not well-formed XML
    """
    if isinstance(raw, str):
        data = raw.strip().encode("utf-8")
        parser = etree.XMLParser(
            encoding="utf-8", resolve_entities=False, no_network=True
        )
    else:
        data = raw.strip()
        parser = etree.XMLParser(resolve_entities=False, no_network=True)

    if not data:
        raise DocumentParseError("Document is empty", path)

    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise DocumentParseError(str(e), path) from e


def load_document(path: str | os.PathLike) -> etree._Element:
    """Read and parse the document at ``path``."""
    return parse_document(read_document(path), path=str(path))


def is_node(value: Any) -> bool:
    """Return True for values that can act as a context node."""
    return etree.iselement(value) or hasattr(value, "getroot")


def to_context_node(source: Any) -> etree._Element:
    """Normalize a document source into an element usable as XPath context.

    Args:
        source: XML text (``str``/``bytes``), an lxml element tree, or an
            lxml element

    Returns:
        An lxml element; the root element for trees and parsed text

    Raises:
        TypeError: If ``source`` is none of the supported kinds
        DocumentParseError: If text input is not well-formed XML
    """
    if isinstance(source, (str, bytes)):
        return parse_document(source)
    if etree.iselement(source):
        return source
    if hasattr(source, "getroot"):
        return source.getroot()
    raise TypeError(
        f"Expected XML text, an lxml element, or an element tree, "
        f"got {type(source).__name__}"
    )


def query_nodes(node: etree._Element, path: str) -> list[Any]:
    """Evaluate ``path`` relative to ``node``.

    Node-set results come back in document order. Scalar XPath results
    (``string(...)``, ``count(...)``, ``boolean(...)``) are wrapped in a list;
    an empty string or ``false()`` counts as no match.

    Args:
        node: Context element
        path: XPath expression

    Returns:
        Matches in document order; empty list when nothing matches

    Raises:
        PathExpressionError: If the expression is invalid
    """
    try:
        result = node.xpath(path)
    except etree.XPathError as e:
        raise PathExpressionError(path, str(e)) from e

    if isinstance(result, list):
        return result
    if result is False or result == "":
        return []
    return [result]


def node_text(node: Any) -> str:
    """Get the stripped text content of a matched node.

    Elements yield their XPath string-value (all descendant text, comments
    excluded). Attribute and text() results are already strings.

    Examples:
        >>> node_text(etree.fromstring("<title>  Black on Both Sides </title>"))
        'Black on Both Sides'
    """
    if isinstance(node, str):
        return node.strip()
    if etree.iselement(node):
        return node.xpath("string()").strip()
    return str(node).strip()
