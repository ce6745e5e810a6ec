"""
Unit tests for the XML mapper Lambda handler.
"""

from unittest.mock import patch

import pytest

from xml_mapper.handler import lambda_handler

SCHEMA = {
    "config": {
        "mappings": [
            {"type": "text", "key": "title"},
            {"type": "integer", "key": "track_number"},
        ]
    }
}


@pytest.fixture
def xml_files(tmp_path):
    paths = []
    for number, title in [(1, "First"), (2, "Second")]:
        path = tmp_path / f"album_{number}.xml"
        path.write_text(
            f"<album><title>{title}</title><track_number>{number}</track_number></album>"
        )
        paths.append(str(path))
    return paths


class TestLambdaHandler:
    """Tests for lambda_handler."""

    def test_maps_documents_in_order(self, xml_files, lambda_context):
        """Test that every document is mapped, in request order"""
        response = lambda_handler(
            {"schema": SCHEMA, "xml_paths": xml_files}, lambda_context
        )

        assert response["statusCode"] == 200
        assert response["body"]["total_documents"] == 2
        assert response["body"]["results"] == [
            {"title": "First", "track_number": 1, "xml_path": xml_files[0]},
            {"title": "Second", "track_number": 2, "xml_path": xml_files[1]},
        ]

    def test_single_xml_path(self, xml_files, lambda_context):
        """Test that a single xml_path is accepted"""
        response = lambda_handler(
            {"schema": SCHEMA, "xml_path": xml_files[1]}, lambda_context
        )

        assert response["statusCode"] == 200
        assert response["body"]["results"][0]["title"] == "Second"

    def test_missing_schema(self, xml_files, lambda_context):
        """Test that a missing schema is a client error"""
        response = lambda_handler({"xml_paths": xml_files}, lambda_context)

        assert response["statusCode"] == 400
        assert "schema" in response["body"]["error"]

    @pytest.mark.parametrize("xml_paths", [None, [], "album.xml", [1, 2]])
    def test_invalid_xml_paths(self, xml_paths, lambda_context):
        """Test that missing or malformed xml_paths are client errors"""
        response = lambda_handler(
            {"schema": SCHEMA, "xml_paths": xml_paths}, lambda_context
        )

        assert response["statusCode"] == 400

    def test_invalid_schema(self, xml_files, lambda_context):
        """Test that invalid schema definitions are client errors"""
        response = lambda_handler(
            {"schema": {"config": {"mappings": [{"type": "length", "key": "x"}]}},
             "xml_paths": xml_files},
            lambda_context,
        )

        assert response["statusCode"] == 400

    def test_unreadable_document(self, tmp_path, lambda_context):
        """Test that unreadable documents are reported with their path"""
        missing = str(tmp_path / "missing.xml")

        response = lambda_handler(
            {"schema": SCHEMA, "xml_paths": [missing]}, lambda_context
        )

        assert response["statusCode"] == 400
        assert missing in response["body"]["error"]

    def test_strict_mode(self, tmp_path, lambda_context):
        """Test that strict mode turns malformed values into errors"""
        path = tmp_path / "album.xml"
        path.write_text("<album><track_number>seven</track_number></album>")

        lenient = lambda_handler(
            {"schema": SCHEMA, "xml_paths": [str(path)]}, lambda_context
        )
        strict = lambda_handler(
            {"schema": SCHEMA, "xml_paths": [str(path)], "strict": True},
            lambda_context,
        )

        assert lenient["statusCode"] == 200
        assert lenient["body"]["results"][0]["track_number"] is None
        assert strict["statusCode"] == 400

    def test_unexpected_error(self, xml_files, lambda_context):
        """Test that unexpected failures are server errors"""
        with patch("xml_mapper.handler.load_schema", side_effect=RuntimeError("boom")):
            response = lambda_handler(
                {"schema": SCHEMA, "xml_paths": xml_files}, lambda_context
            )

        assert response["statusCode"] == 500
        assert response["body"]["error"] == "boom"
