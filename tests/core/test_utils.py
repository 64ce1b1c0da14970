"""
Tests for handle_http_errors and Docs API error parsing.
"""
import json

import pytest
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError

from auth.google_auth import GoogleAuthenticationError
from auth.service_decorator import set_auth_context
from core.utils import _parse_docs_index_error, handle_http_errors
from gdocs.errors import HeadingNotFoundError


def create_http_error(status: int, message: str = "backend error"):
    resp = MagicMock()
    resp.status = status
    resp.reason = "error"
    content = json.dumps({"error": {"message": message}}).encode()
    return HttpError(resp, content)


class TestParseDocsIndexError:
    """Tests for _parse_docs_index_error."""

    def test_index_beyond_segment_end(self):
        result = _parse_docs_index_error(
            "Invalid requests[0].insertText: Index 120 must be less than the end index "
            "of the referenced segment, 98."
        )

        data = json.loads(result)
        assert data["code"] == "INDEX_OUT_OF_BOUNDS"
        assert data["context"]["received"] == {"index": 120}
        assert data["context"]["document_length"] == 98

    def test_insertion_outside_paragraph(self):
        result = _parse_docs_index_error(
            "The insertion index must be inside the bounds of an existing paragraph. index: 7"
        )

        data = json.loads(result)
        assert data["code"] == "INDEX_OUT_OF_BOUNDS"
        assert data["context"]["received"] == {"index": 7}

    def test_other_errors(self):
        assert _parse_docs_index_error("Invalid JSON payload") is None


class TestHandleHttpErrors:
    """Tests for the handle_http_errors decorator."""

    @pytest.mark.asyncio
    async def test_passes_through_results(self):
        @handle_http_errors("sample_tool", service_type="docs")
        async def tool(document_id):
            return "ok"

        assert await tool(document_id="abc") == "ok"

    @pytest.mark.asyncio
    async def test_domain_errors_become_structured_json(self):
        @handle_http_errors("sample_tool", service_type="docs")
        async def tool(document_id):
            raise HeadingNotFoundError("Risks", ["Intro"])

        data = json.loads(await tool(document_id="abc"))
        assert data["code"] == "HEADING_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_docs_404_is_document_not_found(self):
        @handle_http_errors("sample_tool", service_type="docs")
        async def tool(document_id):
            raise create_http_error(404)

        data = json.loads(await tool(document_id="abc"))
        assert data["code"] == "DOCUMENT_NOT_FOUND"
        assert data["context"]["received"] == {"document_id": "abc"}

    @pytest.mark.asyncio
    async def test_docs_400_index_error_is_structured(self):
        @handle_http_errors("sample_tool", service_type="docs")
        async def tool(document_id):
            raise create_http_error(
                400, "Index 50 must be less than the end index of the referenced segment, 40."
            )

        data = json.loads(await tool(document_id="abc"))
        assert data["code"] == "INDEX_OUT_OF_BOUNDS"

    @pytest.mark.asyncio
    async def test_drive_404_raises(self):
        @handle_http_errors("sample_tool", service_type="drive")
        async def tool():
            raise create_http_error(404)

        with pytest.raises(Exception) as exc_info:
            await tool()
        assert str(exc_info.value).startswith("API error in sample_tool")

    @pytest.mark.asyncio
    async def test_401_invalidates_cached_credentials(self):
        context = MagicMock()
        set_auth_context(context)

        @handle_http_errors("sample_tool", service_type="docs")
        async def tool():
            raise create_http_error(401)

        try:
            with pytest.raises(Exception) as exc_info:
                await tool()
        finally:
            set_auth_context(None)

        assert "credentials" in str(exc_info.value)
        context.invalidate.assert_called_once()

    @pytest.mark.asyncio
    async def test_authentication_errors_are_not_wrapped(self):
        @handle_http_errors("sample_tool")
        async def tool():
            raise GoogleAuthenticationError("no credentials")

        with pytest.raises(GoogleAuthenticationError):
            await tool()

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self):
        @handle_http_errors("sample_tool")
        async def tool():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            await tool()
