"""Text-to-value conversion for field mappings.

Every converter takes the raw (possibly None) text of the first matched node.
None always passes through as None, so a missing node never turns into 0 or
False. Malformed text is handled according to ``strict``: lenient callers get
None and a logged warning, strict callers get a CoercionError.
"""

import re
from typing import Any

from aws_lambda_powertools import Logger

from xml_mapper.errors import CoercionError

logger = Logger(service="xml-mapper", child=True)

TRUE_STRINGS: frozenset[str] = frozenset({"true", "y", "yes"})
FALSE_STRINGS: frozenset[str] = frozenset({"false", "n"})

_INTEGER_PATTERN = re.compile(r"[+-]?\d+")


def string_to_boolean(
    value: str | None, strict: bool = False, key: str | None = None
) -> bool | None:
    """Convert text to a boolean.

    Examples:
        >>> string_to_boolean("TRUE")
        True
        >>> string_to_boolean("n")
        False
        >>> string_to_boolean("")
        None
    """
    if value is None:
        return None

    normalized = value.strip().lower()
    if normalized in TRUE_STRINGS:
        return True
    if normalized in FALSE_STRINGS:
        return False
    if not normalized:
        return None

    if strict:
        raise CoercionError(value, "boolean", key)
    logger.warning(
        "Unrecognized boolean text, using None",
        extra={"value": value, "key": key},
    )
    return None


def string_to_integer(
    value: str | None, strict: bool = False, key: str | None = None
) -> int | None:
    """Convert text to a base-10 integer.

    Surrounding whitespace and a leading sign are accepted. Anything else
    (decimals, hex, thousands separators) is malformed.

    Examples:
        >>> string_to_integer(" 7 ")
        7
        >>> string_to_integer(None)
        None
    """
    if value is None:
        return None

    stripped = value.strip()
    if _INTEGER_PATTERN.fullmatch(stripped):
        return int(stripped, 10)

    if strict:
        raise CoercionError(value, "integer", key)
    logger.warning(
        "Unparseable integer text, using None",
        extra={"value": value, "key": key},
    )
    return None


def string_to_text(
    value: str | None, strict: bool = False, key: str | None = None
) -> str | None:
    return value


def coerce(
    type_name: str, value: str | None, strict: bool = False, key: str | None = None
) -> Any:
    """Apply the converter registered for ``type_name``.

    Args:
        type_name: One of the keys of CONVERTERS ("text", "integer", "boolean")
        value: Raw text of the matched node, or None when nothing matched
        strict: Raise instead of falling back to None on malformed text
        key: Output key, used only for error messages and log context

    Returns:
        The converted value

    Raises:
        KeyError: If no converter exists for ``type_name``
        CoercionError: If ``strict`` and the text is malformed
    """
    return CONVERTERS[type_name](value, strict=strict, key=key)


CONVERTERS = {
    "text": string_to_text,
    "integer": string_to_integer,
    "boolean": string_to_boolean,
}
