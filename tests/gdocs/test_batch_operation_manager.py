"""
Tests for the BatchOperationManager.

Covers alias normalization, per-operation validation and both failure
policies (stop on first error, continue and report).
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from googleapiclient.errors import HttpError

from gdocs.errors import HeadingNotFoundError
from gdocs.managers.batch_operation_manager import (
    BatchOperationManager,
    normalize_operation,
    validate_operation,
)
from gdocs.managers.document_edit_manager import DocumentEditManager


def create_http_error(status: int, reason: str = 'error'):
    resp = MagicMock()
    resp.status = status
    resp.reason = reason
    return HttpError(resp, b'{"error": {"message": "backend error"}}')


class TestNormalizeOperation:
    """Tests for alias handling."""

    def test_short_type_aliases(self):
        assert normalize_operation({'type': 'replace'})['type'] == 'replace_section'
        assert normalize_operation({'type': 'insert_before'})['type'] == 'insert_before_heading'
        assert normalize_operation({'type': 'find_replace'})['type'] == 'find_and_replace'

    def test_field_aliases(self):
        op = normalize_operation({
            'type': 'replace_section',
            'heading_text': 'Intro',
            'new_content': 'Body',
        })
        assert op == {'type': 'replace_section', 'heading': 'Intro', 'content': 'Body'}

    def test_canonical_field_wins_over_alias(self):
        op = normalize_operation({'type': 'append', 'content': 'real', 'text': 'alias'})
        assert op['content'] == 'real'

    def test_unknown_type_passes_through(self):
        assert normalize_operation({'type': 'format_text'})['type'] == 'format_text'


class TestValidateOperation:
    """Tests for validate_operation."""

    def test_valid(self):
        assert validate_operation({'type': 'delete_section', 'heading': 'Intro'}) is None

    def test_missing_type(self):
        assert validate_operation({'heading': 'Intro'}) == "Missing 'type' field"

    def test_unsupported_type(self):
        assert 'Unsupported operation type' in validate_operation({'type': 'format_text'})

    def test_missing_field(self):
        error = validate_operation({'type': 'insert_after_heading', 'heading': 'Intro'})
        assert error == "Missing required field 'content' for insert_after_heading"

    def test_empty_replace_text_allowed(self):
        op = {'type': 'find_and_replace', 'search_text': 'old', 'replace_text': ''}
        assert validate_operation(op) is None

    def test_non_string_content_rejected(self):
        error = validate_operation({'type': 'append_content', 'content': 5})
        assert error == "Field 'content' must be a string, got int"

    def test_non_string_type_rejected(self):
        assert validate_operation({'type': ['append']}) == "'type' must be a string, got list"


class TestExecuteBatch:
    """Tests for sequential execution and failure policies."""

    @pytest.fixture
    def edit_manager(self):
        manager = MagicMock(spec=DocumentEditManager)
        manager.append_content = AsyncMock(return_value='Successfully appended content to document')
        manager.replace_section = AsyncMock(
            side_effect=HeadingNotFoundError('Risks', ['Intro', 'Budget'])
        )
        manager.delete_section = AsyncMock(return_value='Successfully deleted section "Budget"')
        manager.find_and_replace = AsyncMock(
            return_value='Replaced 2 occurrence(s) of "a" with "b"'
        )
        return manager

    @pytest.fixture
    def operations(self):
        return [
            {'type': 'append', 'content': 'First'},
            {'type': 'replace', 'heading': 'Risks', 'content': 'Second'},
            {'type': 'delete', 'heading_text': 'Budget'},
        ]

    @pytest.mark.asyncio
    async def test_all_succeed(self, edit_manager):
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', [
            {'type': 'append_content', 'content': 'One'},
            {'type': 'find_replace', 'find_text': 'a', 'replace_text': 'b', 'match_case': True},
        ])

        assert result.success is True
        assert result.operations_completed == 2
        assert result.failed_index is None
        assert result.message == 'Successfully executed 2 operation(s)'
        edit_manager.find_and_replace.assert_awaited_once_with('doc123', 'a', 'b', True)

    @pytest.mark.asyncio
    async def test_stop_on_error(self, edit_manager, operations):
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', operations, stop_on_error=True)

        assert result.success is False
        assert result.operations_completed == 1
        assert result.total_operations == 3
        assert result.failed_index == 1
        assert len(result.results) == 2
        assert result.results[1].error == 'Heading not found: "Risks"'
        assert result.message == (
            'Stopped after 1 of 3 operation(s): operation 1 failed: Heading not found: "Risks"'
        )
        edit_manager.delete_section.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_continue_on_error(self, edit_manager, operations):
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', operations, stop_on_error=False)

        assert result.success is False
        assert result.operations_completed == 2
        assert result.failed_index == 1
        assert [r.success for r in result.results] == [True, False, True]
        assert result.message == 'Completed 2 of 3 operation(s); 1 failed'
        edit_manager.delete_section.assert_awaited_once_with('doc123', 'Budget')

    @pytest.mark.asyncio
    async def test_invalid_operation_is_an_item_failure(self, edit_manager):
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', [
            {'type': 'append', 'content': 'ok'},
            {'type': 'delete'},
            {'type': 'bogus'},
        ], stop_on_error=False)

        assert [r.success for r in result.results] == [True, False, False]
        assert result.results[1].error == "Missing required field 'heading' for delete_section"
        assert 'Unsupported operation type' in result.results[2].error

    @pytest.mark.asyncio
    async def test_non_string_field_is_an_item_failure(self, edit_manager):
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', [
            {'type': 'append', 'content': 'ok'},
            {'type': 'append', 'content': 5},
            {'type': 'find_replace', 'search_text': 'a', 'replace_text': None},
        ], stop_on_error=False)

        assert result.operations_completed == 1
        assert [r.success for r in result.results] == [True, False, False]
        assert result.results[1].error == "Field 'content' must be a string, got int"
        edit_manager.append_content.assert_awaited_once_with('doc123', 'ok')
        edit_manager.find_and_replace.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_http_error_is_an_item_failure(self, edit_manager):
        edit_manager.append_content = AsyncMock(side_effect=create_http_error(500))
        batch = BatchOperationManager(edit_manager)

        result = await batch.execute_batch('doc123', [
            {'type': 'append', 'content': 'x'},
            {'type': 'delete', 'heading': 'Budget'},
        ])

        assert result.failed_index == 0
        assert result.operations_completed == 0
        assert len(result.results) == 1

    @pytest.mark.asyncio
    async def test_operations_run_in_order(self, edit_manager):
        calls = []
        edit_manager.append_content = AsyncMock(
            side_effect=lambda doc_id, content: calls.append(content) or 'ok'
        )
        batch = BatchOperationManager(edit_manager)

        await batch.execute_batch('doc123', [
            {'type': 'append', 'content': str(i)} for i in range(5)
        ])

        assert calls == ['0', '1', '2', '3', '4']

    @pytest.mark.asyncio
    async def test_result_to_dict(self, edit_manager, operations):
        batch = BatchOperationManager(edit_manager)

        result = (await batch.execute_batch('doc123', operations)).to_dict()

        assert result['failed_index'] == 1
        assert result['stop_on_error'] is True
        assert result['document_link'] == 'https://docs.google.com/document/d/doc123/edit'
        assert result['results'][0] == {
            'index': 0,
            'type': 'append_content',
            'success': True,
            'description': 'Successfully appended content to document',
        }

    @pytest.mark.asyncio
    async def test_each_operation_sees_a_fresh_snapshot(self):
        first = {'title': 'T', 'body': {'content': []}}
        second = {'title': 'T', 'body': {'content': [{
            'startIndex': 1, 'endIndex': 7,
            'paragraph': {'elements': [{'startIndex': 1, 'textRun': {'content': 'First\n'}}]},
        }]}}
        service = MagicMock()
        service.documents.return_value.get.return_value.execute.side_effect = [first, second]
        service.documents.return_value.batchUpdate.return_value.execute.return_value = {}
        batch = BatchOperationManager(DocumentEditManager(service))

        result = await batch.execute_batch('doc123', [
            {'type': 'append', 'content': 'First'},
            {'type': 'append', 'content': 'Second'},
        ])

        assert result.success is True
        bodies = [
            c[1]['body']['requests'][0]['insertText']
            for c in service.documents.return_value.batchUpdate.call_args_list
        ]
        assert bodies == [
            {'location': {'index': 1}, 'text': 'First'},
            {'location': {'index': 6}, 'text': '\nSecond'},
        ]
