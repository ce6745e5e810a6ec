"""Shared fixtures for XML mapper tests."""

import io
from dataclasses import dataclass
from unittest.mock import MagicMock

import pytest

from xml_mapper import XmlMapper, clear_config_cache

ALBUM_XML = """
      <album>
        <title>Black on Both Sides</title>
        <artist_name>Mos Def</artist_name>
        <track_number>7</track_number>
      </album>"""

RIGHTS_XML = (
    "<album><title>Black on Both Sides</title>"
    "<rights><country>DE</country></rights></album>"
)

TRACKS_XML = """
      <album>
        <artist_name>Mos Def</artist_name>
        <title>Black on Both Sides</title>
        <tracks>
          <track id="t1">
            <track_number>1</track_number>
            <title>Track 1</title>
          </track>
          <track id="t2">
            <track_number>2</track_number>
            <title>Track 2</title>
          </track>
        </tracks>
      </album>
    """


@dataclass
class FakeLambdaContext:
    """Minimal stand-in for the Lambda runtime context."""

    function_name: str = "xml-mapper"
    function_version: str = "$LATEST"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = (
        "arn:aws:lambda:us-east-1:123456789012:function:xml-mapper"
    )
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"
    log_group_name: str = "/aws/lambda/xml-mapper"
    log_stream_name: str = "2024/01/01/[$LATEST]abcdef"


def s3_client_returning(objects: dict[tuple[str, str], bytes]) -> MagicMock:
    """Build a mock S3 client serving ``objects`` keyed by (bucket, key)."""
    from botocore.exceptions import ClientError

    def get_object(Bucket, Key):
        if (Bucket, Key) not in objects:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "GetObject"
            )
        return {"Body": io.BytesIO(objects[(Bucket, Key)])}

    client = MagicMock()
    client.get_object.side_effect = get_object
    return client


@pytest.fixture
def mapper():
    return XmlMapper()


@pytest.fixture
def strict_mapper():
    return XmlMapper(strict=True)


@pytest.fixture
def album_xml():
    return ALBUM_XML


@pytest.fixture
def rights_xml():
    return RIGHTS_XML


@pytest.fixture
def tracks_xml():
    return TRACKS_XML


@pytest.fixture
def lambda_context():
    return FakeLambdaContext()


@pytest.fixture(autouse=True)
def _clear_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()
