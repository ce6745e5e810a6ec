"""
XML Mapper Lambda Handler.

This Lambda function maps XML documents to attribute dictionaries:
1. Resolves the schema configuration (inline and/or S3)
2. Builds the schema
3. Reads, parses and resolves every requested document
4. Returns the attribute dictionaries in request order
"""

from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.typing import LambdaContext

from xml_mapper.config_loader import load_schema
from xml_mapper.errors import XmlMapperError
from xml_mapper.resolver import XmlMapper

logger = Logger(service="xml-mapper")


def _get_xml_paths(event: dict[str, Any]) -> list[str]:
    xml_paths = event.get("xml_paths")
    if xml_paths is None and event.get("xml_path"):
        xml_paths = [event["xml_path"]]
    if not xml_paths:
        raise ValueError("No xml_paths provided in event")
    if not isinstance(xml_paths, list) or not all(
        isinstance(p, str) for p in xml_paths
    ):
        raise ValueError("xml_paths must be a list of strings")
    return xml_paths


@logger.inject_lambda_context
def lambda_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Main handler for the XML mapper.

    Event structure:
    {
        "schema": {
            "config": {"mappings": [...]},            # Inline schema (optional)
            "config_s3_path": "mapper-configs/x.json" # S3 schema (optional)
        },
        "xml_paths": ["s3://bucket/album.xml", ...],
        "strict": false
    }

    Args:
        event: Lambda event
        context: Lambda context

    Returns:
        Response with one attribute dictionary per document
    """
    logger.info("XML mapper started", extra={"event_keys": list(event.keys())})

    try:
        schema_config = event.get("schema")
        if not isinstance(schema_config, dict):
            raise ValueError("No schema configuration provided in event")

        schema = load_schema(schema_config)
        xml_paths = _get_xml_paths(event)
        mapper = XmlMapper(strict=bool(event.get("strict", False)))

        results = [mapper.attributes_from_xml_path(schema, path) for path in xml_paths]

        logger.info(
            "XML mapper completed",
            extra={"total_documents": len(results), "mapping_count": len(schema)},
        )

        return {
            "statusCode": 200,
            "body": {
                "message": "Documents mapped",
                "total_documents": len(results),
                "results": results,
            },
        }

    except (ValueError, XmlMapperError) as e:
        logger.error(f"Mapping error: {e}")
        return {
            "statusCode": 400,
            "body": {
                "error": str(e),
                "message": "Invalid configuration or input",
            },
        }

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return {
            "statusCode": 500,
            "body": {
                "error": str(e),
                "message": "Internal server error",
            },
        }
