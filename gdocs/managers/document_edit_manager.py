"""
Document Edit Manager

This module runs each marked-text tool call as one sequential pipeline:
fetch a snapshot, plan the requests against it, apply them in a single
documents.batchUpdate call.

Each method fetches its own snapshot; positions are never carried over from
a previous call because other clients may have edited the document since.
"""
import logging
import asyncio
from typing import Any, Dict, List

from gdocs.docs_edits import (
    EditPlan,
    plan_append,
    plan_delete_section,
    plan_find_and_replace,
    plan_insert_after_heading,
    plan_insert_before_heading,
    plan_replace_document,
    plan_replace_section,
)
from gdocs.docs_helpers import find_text_in_document
from gdocs.docs_markers import document_to_text

logger = logging.getLogger(__name__)


class DocumentEditManager:
    """
    Applies marked-text edits to one Google Docs API service.

    The service is the collaborator for both snapshot fetches and batch
    updates; HTTP errors it raises are propagated unchanged.
    """

    def __init__(self, service):
        """
        Initialize the edit manager.

        Args:
            service: Google Docs API service instance
        """
        self.service = service

    async def fetch_snapshot(self, document_id: str) -> Dict[str, Any]:
        """Fetch the current document structure with absolute offsets."""
        return await asyncio.to_thread(
            self.service.documents().get(documentId=document_id).execute
        )

    async def apply_operations(
        self,
        document_id: str,
        requests: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """
        Apply requests atomically, in list order, against the current document.

        Returns:
            API response including per-request replies
        """
        return await asyncio.to_thread(
            self.service.documents().batchUpdate(
                documentId=document_id,
                body={'requests': requests}
            ).execute
        )

    async def _apply_plan(self, document_id: str, plan: EditPlan) -> Dict[str, Any]:
        logger.info(f"Applying {len(plan.requests)} requests to document {document_id}")
        return await self.apply_operations(document_id, plan.requests)

    async def read_document(self, document_id: str) -> str:
        """Read a document and return its content as marked text under a title line."""
        logger.info(f"Reading document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        title = doc.get('title') or 'Untitled'
        content = document_to_text(doc)
        logger.info(f"Document '{title}' read successfully")
        return f"# {title}\n\n{content}"

    async def append_content(self, document_id: str, content: str) -> str:
        """Append marked text to the end of the document."""
        logger.info(f"Appending content to document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        plan = plan_append(doc, content)
        logger.debug(f"Document end index: {plan.index}")

        if plan.is_empty:
            return "No content to append"

        await self._apply_plan(document_id, plan)
        return "Successfully appended content to document"

    async def insert_before_heading(
        self, document_id: str, heading_text: str, content: str
    ) -> str:
        """Insert marked text above a heading (a new section before it)."""
        logger.info(
            f"Inserting content before heading '{heading_text}' in document: {document_id}"
        )
        doc = await self.fetch_snapshot(document_id)
        plan = plan_insert_before_heading(doc, heading_text, content)

        if plan.is_empty:
            return "No content to insert"

        await self._apply_plan(document_id, plan)
        return f'Successfully inserted content before heading "{plan.heading.text}"'

    async def insert_after_heading(
        self, document_id: str, heading_text: str, content: str
    ) -> str:
        """Insert marked text right after a heading line, inside its section."""
        logger.info(
            f"Inserting content after heading '{heading_text}' in document: {document_id}"
        )
        doc = await self.fetch_snapshot(document_id)
        plan = plan_insert_after_heading(doc, heading_text, content)

        if plan.is_empty:
            return "No content to insert"

        await self._apply_plan(document_id, plan)
        return f'Successfully inserted content after heading "{plan.heading.text}"'

    async def replace_section(
        self, document_id: str, heading_text: str, new_content: str
    ) -> str:
        """Replace everything under a heading; the heading itself is kept."""
        logger.info(f"Replacing section '{heading_text}' in document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        plan = plan_replace_section(doc, heading_text, new_content)

        if plan.is_empty:
            return "No changes to make"

        await self._apply_plan(document_id, plan)
        return f'Successfully replaced section "{plan.heading.text}"'

    async def replace_document(self, document_id: str, content: str) -> str:
        """Replace the whole document body with marked text."""
        logger.info(f"Replacing entire document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        plan = plan_replace_document(doc, content)

        if plan.is_empty:
            return "No content to write"

        await self._apply_plan(document_id, plan)
        return "Successfully replaced document content"

    async def delete_section(self, document_id: str, heading_text: str) -> str:
        """Delete a heading together with all of its section."""
        logger.info(f"Deleting section '{heading_text}' in document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        plan = plan_delete_section(doc, heading_text)

        if plan.is_empty:
            return f'Section "{plan.heading.text}" is already empty'

        await self._apply_plan(document_id, plan)
        return f'Successfully deleted section "{plan.heading.text}"'

    async def find_and_replace(
        self,
        document_id: str,
        search_text: str,
        replace_text: str,
        match_case: bool = False
    ) -> str:
        """Replace every occurrence of a literal string using replaceAllText."""
        logger.info(
            f"Finding and replacing '{search_text}' with '{replace_text}' in document: {document_id}"
        )
        plan = plan_find_and_replace(search_text, replace_text, match_case)
        response = await self._apply_plan(document_id, plan)

        replies = response.get('replies') or [{}]
        occurrences = (replies[0].get('replaceAllText') or {}).get('occurrencesChanged') or 0
        logger.info(f"Replaced {occurrences} occurrence(s)")
        return (
            f'Replaced {occurrences} occurrence(s) of "{search_text}" with "{replace_text}"'
        )

    async def search_text(
        self,
        document_id: str,
        search_text: str,
        case_sensitive: bool = False
    ) -> str:
        """Search the document and report every match with its position."""
        logger.info(f"Searching for '{search_text}' in document: {document_id}")
        doc = await self.fetch_snapshot(document_id)
        matches = find_text_in_document(doc, search_text, case_sensitive)

        if not matches:
            return f'No matches found for "{search_text}"'

        results = [
            f'{i}. Found at position {m.start_index}-{m.end_index}: "{m.text}"'
            for i, m in enumerate(matches, start=1)
        ]
        return (
            f'Found {len(matches)} match(es) for "{search_text}":\n\n' + "\n".join(results)
        )
