"""
Tests for the DocumentEditManager.

The Docs service is a MagicMock: documents().get() returns a canned snapshot
and documents().batchUpdate() records the requests it was given.
"""
import pytest
from unittest.mock import MagicMock

from gdocs.errors import HeadingNotFoundError
from gdocs.managers.document_edit_manager import DocumentEditManager


def create_mock_paragraph(text: str, start_index: int, named_style: str = 'NORMAL_TEXT'):
    """Create a mock paragraph element."""
    end_index = start_index + len(text) + 1  # +1 for newline
    return {
        'startIndex': start_index,
        'endIndex': end_index,
        'paragraph': {
            'paragraphStyle': {
                'namedStyleType': named_style
            },
            'elements': [{
                'startIndex': start_index,
                'endIndex': end_index,
                'textRun': {
                    'content': text + '\n'
                }
            }]
        }
    }


def create_mock_document(elements, title='Test Document'):
    """Create a mock document with given elements."""
    return {
        'title': title,
        'body': {
            'content': elements
        },
    }


SAMPLE_DOCUMENT = create_mock_document([
    create_mock_paragraph('Intro', 1, 'HEADING_1'),
    create_mock_paragraph('Welcome to the plan', 7),
    create_mock_paragraph('Budget', 27, 'HEADING_2'),
    create_mock_paragraph('Costs go here', 34),
])


class TestDocumentEditManager:
    """Tests for the fetch, plan, apply pipeline."""

    @pytest.fixture
    def manager(self):
        """Create a DocumentEditManager with a mocked service."""
        mock_service = MagicMock()
        mock_service.documents.return_value.get.return_value.execute.return_value = SAMPLE_DOCUMENT
        mock_service.documents.return_value.batchUpdate.return_value.execute.return_value = {
            'replies': []
        }
        return DocumentEditManager(mock_service)

    def sent_requests(self, manager):
        batch_update = manager.service.documents.return_value.batchUpdate
        batch_update.assert_called_once()
        return batch_update.call_args[1]['body']['requests']

    @pytest.mark.asyncio
    async def test_read_document(self, manager):
        result = await manager.read_document('doc123')

        assert result == (
            '# Test Document\n\n'
            '[H1] Intro\n'
            'Welcome to the plan\n'
            '[H2] Budget\n'
            'Costs go here'
        )
        manager.service.documents.return_value.get.assert_called_with(documentId='doc123')

    @pytest.mark.asyncio
    async def test_read_untitled_document(self, manager):
        manager.service.documents.return_value.get.return_value.execute.return_value = {
            'body': {'content': []}
        }

        assert await manager.read_document('doc123') == '# Untitled\n\n'

    @pytest.mark.asyncio
    async def test_append_content(self, manager):
        result = await manager.append_content('doc123', 'Closing words')

        assert result == 'Successfully appended content to document'
        requests = self.sent_requests(manager)
        assert requests[0]['insertText'] == {
            'location': {'index': 47}, 'text': '\nClosing words'
        }

    @pytest.mark.asyncio
    async def test_append_nothing_to_empty_document(self, manager):
        manager.service.documents.return_value.get.return_value.execute.return_value = (
            create_mock_document([])
        )

        assert await manager.append_content('doc123', '') == 'No content to append'
        manager.service.documents.return_value.batchUpdate.assert_not_called()

    @pytest.mark.asyncio
    async def test_insert_before_heading(self, manager):
        result = await manager.insert_before_heading('doc123', 'budget', 'Timeline')

        assert result == 'Successfully inserted content before heading "Budget"'
        assert self.sent_requests(manager)[0]['insertText'] == {
            'location': {'index': 27}, 'text': 'Timeline\n'
        }

    @pytest.mark.asyncio
    async def test_insert_after_heading(self, manager):
        result = await manager.insert_after_heading('doc123', 'Intro', 'Summary first')

        assert result == 'Successfully inserted content after heading "Intro"'
        assert self.sent_requests(manager)[0]['insertText'] == {
            'location': {'index': 7}, 'text': '\nSummary first'
        }

    @pytest.mark.asyncio
    async def test_replace_section_sends_delete_first(self, manager):
        result = await manager.replace_section('doc123', 'Budget', 'New costs')

        assert result == 'Successfully replaced section "Budget"'
        requests = self.sent_requests(manager)
        assert requests[0] == {
            'deleteContentRange': {'range': {'startIndex': 34, 'endIndex': 47}}
        }
        assert requests[1]['insertText'] == {
            'location': {'index': 34}, 'text': '\nNew costs\n'
        }

    @pytest.mark.asyncio
    async def test_replace_section_heading_not_found(self, manager):
        with pytest.raises(HeadingNotFoundError) as exc_info:
            await manager.replace_section('doc123', 'Risks', 'x')

        assert exc_info.value.available_headings == ['Intro', 'Budget']
        manager.service.documents.return_value.batchUpdate.assert_not_called()

    @pytest.mark.asyncio
    async def test_replace_document(self, manager):
        result = await manager.replace_document('doc123', 'Fresh start')

        assert result == 'Successfully replaced document content'
        requests = self.sent_requests(manager)
        assert requests[0]['deleteContentRange']['range'] == {'startIndex': 1, 'endIndex': 47}
        assert requests[1]['insertText']['location'] == {'index': 1}

    @pytest.mark.asyncio
    async def test_delete_section(self, manager):
        result = await manager.delete_section('doc123', 'Intro')

        assert result == 'Successfully deleted section "Intro"'
        assert self.sent_requests(manager) == [
            {'deleteContentRange': {'range': {'startIndex': 1, 'endIndex': 47}}}
        ]

    @pytest.mark.asyncio
    async def test_find_and_replace_reports_occurrences(self, manager):
        manager.service.documents.return_value.batchUpdate.return_value.execute.return_value = {
            'replies': [{'replaceAllText': {'occurrencesChanged': 3}}]
        }

        result = await manager.find_and_replace('doc123', 'plan', 'roadmap')

        assert result == 'Replaced 3 occurrence(s) of "plan" with "roadmap"'
        manager.service.documents.return_value.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_and_replace_without_matches(self, manager):
        manager.service.documents.return_value.batchUpdate.return_value.execute.return_value = {
            'replies': [{'replaceAllText': {}}]
        }

        result = await manager.find_and_replace('doc123', 'zzz', 'y')

        assert result == 'Replaced 0 occurrence(s) of "zzz" with "y"'

    @pytest.mark.asyncio
    async def test_search_text(self, manager):
        result = await manager.search_text('doc123', 'the plan')

        assert result == (
            'Found 1 match(es) for "the plan":\n\n'
            '1. Found at position 18-26: "the plan"'
        )

    @pytest.mark.asyncio
    async def test_search_text_no_matches(self, manager):
        assert await manager.search_text('doc123', 'missing') == 'No matches found for "missing"'

    @pytest.mark.asyncio
    async def test_each_call_fetches_a_fresh_snapshot(self, manager):
        await manager.append_content('doc123', 'one')
        await manager.append_content('doc123', 'two')

        assert manager.service.documents.return_value.get.call_count == 2
