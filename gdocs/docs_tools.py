"""
Google Docs MCP Tools

This module provides MCP tools that let an agent read Google Docs as marked
text and edit them surgically by heading, by search text, or wholesale.

Marked text:
- [H1], [H2], [H3] at the start of a line for headings
- "• " or "* " at the start of a line for bullet points
- [text](url) for links
- [TABLE] marks a table when reading (tables cannot be written)
"""

import json
import logging
import asyncio
from typing import Any, Dict, List

from auth.service_decorator import require_google_service
from core.utils import handle_http_errors
from core.server import server

from gdocs.docs_markers import (
    document_to_text,
    extract_headings_only,
    extract_section_content,
)
from gdocs.docs_structure import calculate_document_stats, find_headings
from gdocs.errors import ErrorCode, HeadingNotFoundError, simple_error
from gdocs.managers import (
    BatchOperationManager,
    DocumentEditManager,
    ValidationManager,
)

logger = logging.getLogger(__name__)

GOOGLE_DOC_MIME_TYPE = "application/vnd.google-apps.document"


def _check_required(validator: ValidationManager, **params: Any):
    """Return structured error JSON for the first missing, empty or oversized parameter, else None."""
    for name, value in params.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            return validator.create_missing_param_error(param_name=name)
        is_valid, error_msg = validator.validate_text_content(value)
        if not is_valid:
            return validator.create_invalid_param_error(
                param_name=name, received=error_msg, valid_values=["a string of at most 1000000 characters"]
            )
    return None


@server.tool()
@handle_http_errors("list_documents", service_type="drive")
@require_google_service("drive", "drive_read")
async def list_documents(service: Any, query: str = None) -> str:
    """
    List Google Docs in your Drive, most recently modified first.

    Args:
        query: Optional text to filter documents by name (case-insensitive)

    Returns:
        str: Document names and IDs. Use the ID to read or edit a document.
    """
    logger.info(f"[list_documents] Query='{query}'")

    q = f"mimeType='{GOOGLE_DOC_MIME_TYPE}' and trashed=false"
    if query:
        escaped_query = query.replace("'", "\\'")
        q += f" and name contains '{escaped_query}'"

    response = await asyncio.to_thread(
        service.files()
        .list(
            q=q,
            fields="files(id, name, modifiedTime)",
            orderBy="modifiedTime desc",
            pageSize=50,
        )
        .execute
    )
    files = response.get("files", [])
    logger.info(f"[list_documents] Found {len(files)} documents")

    if not files:
        if query:
            return f'No documents found matching "{query}"'
        return "No documents found in your Drive"

    doc_list = "\n".join(
        f"- {f.get('name', '')}\n  ID: {f.get('id', '')}" for f in files
    )
    return f"Found {len(files)} document(s):\n\n{doc_list}"


@server.tool()
@handle_http_errors("read_document", service_type="docs")
@require_google_service("docs", "docs_read")
async def read_document(service: Any, document_id: str) -> str:
    """
    Read the content of a Google Doc as marked text.

    Headings are prefixed with [H1], [H2] or [H3], bullet items with "• ",
    links are written as [text](url) and tables appear as [TABLE].

    Args:
        document_id: The Google Doc ID (from list_documents or the document URL)

    Returns:
        str: "# <title>" followed by the marked text of the document
    """
    logger.info(f"[read_document] Doc={document_id}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error

    return await DocumentEditManager(service).read_document(document_id)


@server.tool()
@handle_http_errors("get_document_outline", service_type="docs")
@require_google_service("docs", "docs_read")
async def get_document_outline(service: Any, document_id: str) -> str:
    """
    Get only the heading lines of a Google Doc, in document order.

    Use this to pick the headingText for section-scoped edits.

    Args:
        document_id: The Google Doc ID

    Returns:
        str: One "[Hn] Heading" line per heading
    """
    logger.info(f"[get_document_outline] Doc={document_id}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error

    doc = await DocumentEditManager(service).fetch_snapshot(document_id)
    outline = extract_headings_only(document_to_text(doc))
    if not outline:
        return f"Document {document_id} has no headings"
    return outline


@server.tool()
@handle_http_errors("get_document_stats", service_type="docs")
@require_google_service("docs", "docs_read")
async def get_document_stats(service: Any, document_id: str) -> str:
    """
    Get character, word and heading counts for a Google Doc.

    Args:
        document_id: The Google Doc ID

    Returns:
        str: JSON with character_count, word_count, heading_count and heading_structure
    """
    logger.info(f"[get_document_stats] Doc={document_id}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error

    doc = await DocumentEditManager(service).fetch_snapshot(document_id)
    stats = calculate_document_stats(doc)
    return json.dumps(
        {
            "title": doc.get("title") or "Untitled",
            "character_count": stats.character_count,
            "word_count": stats.word_count,
            "heading_count": stats.heading_count,
            "heading_structure": stats.heading_structure,
        },
        indent=2,
    )


@server.tool()
@handle_http_errors("get_section", service_type="docs")
@require_google_service("docs", "docs_read")
async def get_section(
    service: Any,
    document_id: str,
    heading_text: str,
    include_subsections: bool = True,
    max_characters: int = None,
) -> str:
    """
    Read one section of a Google Doc as marked text.

    A section runs from its heading to the next heading of the same or higher
    level. The heading is matched case-insensitively; an exact match is
    preferred, otherwise the first heading containing the text is used.

    Args:
        document_id: The Google Doc ID
        heading_text: The heading text to find
        include_subsections: If False, stop at the first heading of any level
        max_characters: Optional limit; longer sections are truncated with a note

    Returns:
        str: Marked text of the section, including its heading line
    """
    logger.info(f"[get_section] Doc={document_id}, heading={heading_text}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, heading_text=heading_text)
    if missing:
        return missing
    if max_characters is not None and max_characters <= 0:
        return validator.create_invalid_param_error(
            param_name="max_characters", received=max_characters, valid_values=["a positive integer"]
        )

    doc = await DocumentEditManager(service).fetch_snapshot(document_id)
    section = extract_section_content(
        doc, heading_text, include_subsections, max_characters
    )
    if not section.found:
        raise HeadingNotFoundError(heading_text, [h.text for h in find_headings(doc)])
    return section.content


@server.tool()
@handle_http_errors("search_text", service_type="docs")
@require_google_service("docs", "docs_read")
async def search_text(
    service: Any,
    document_id: str,
    search_text: str,
    case_sensitive: bool = False,
) -> str:
    """
    Search for text in the document and return all matches with their positions.

    Useful for finding specific content before making changes. Text split
    across differently formatted runs is not found.

    Args:
        document_id: The Google Doc ID
        search_text: The text to search for
        case_sensitive: Whether to match case exactly (default: False)

    Returns:
        str: Numbered list of matches with start-end positions
    """
    logger.info(f"[search_text] Doc={document_id}, search='{search_text}'")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    if not search_text:
        return validator.create_empty_search_error()

    return await DocumentEditManager(service).search_text(
        document_id, search_text, case_sensitive
    )


@server.tool()
@handle_http_errors("append_content", service_type="docs")
@require_google_service("docs", "docs_write")
async def append_content(service: Any, document_id: str, content: str) -> str:
    """
    Add marked text to the end of a Google Doc.

    Args:
        document_id: The Google Doc ID
        content: Content to append. Use [H1], [H2], [H3] for headings,
            "• " or "* " for bullets, [text](url) for links

    Returns:
        str: Confirmation message
    """
    logger.info(f"[append_content] Doc={document_id}, chars={len(content or '')}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, content=content)
    if missing:
        return missing

    return await DocumentEditManager(service).append_content(document_id, content)


@server.tool()
@handle_http_errors("insert_before_heading", service_type="docs")
@require_google_service("docs", "docs_write")
async def insert_before_heading(
    service: Any,
    document_id: str,
    heading_text: str,
    content: str,
) -> str:
    """
    Insert a new section BEFORE a specific heading.

    Use this to add content that should appear above the target heading. The
    heading is matched by text (case-insensitive, partial match supported).

    Args:
        document_id: The Google Doc ID
        heading_text: The heading text to find
        content: Marked text to insert before the heading

    Returns:
        str: Confirmation message naming the matched heading
    """
    logger.info(f"[insert_before_heading] Doc={document_id}, heading={heading_text}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, heading_text=heading_text, content=content)
    if missing:
        return missing

    return await DocumentEditManager(service).insert_before_heading(
        document_id, heading_text, content
    )


@server.tool()
@handle_http_errors("insert_after_heading", service_type="docs")
@require_google_service("docs", "docs_write")
async def insert_after_heading(
    service: Any,
    document_id: str,
    heading_text: str,
    content: str,
) -> str:
    """
    Insert content immediately after a heading line, within the same section.

    The heading is matched by text (case-insensitive, partial match supported).

    Args:
        document_id: The Google Doc ID
        heading_text: The heading text to find
        content: Marked text to insert after the heading

    Returns:
        str: Confirmation message naming the matched heading
    """
    logger.info(f"[insert_after_heading] Doc={document_id}, heading={heading_text}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, heading_text=heading_text, content=content)
    if missing:
        return missing

    return await DocumentEditManager(service).insert_after_heading(
        document_id, heading_text, content
    )


@server.tool()
@handle_http_errors("replace_section", service_type="docs")
@require_google_service("docs", "docs_write")
async def replace_section(
    service: Any,
    document_id: str,
    heading_text: str,
    new_content: str,
) -> str:
    """
    Replace the content under a heading.

    Everything between this heading and the next heading of the same or
    higher level is replaced. The heading itself is preserved.

    Args:
        document_id: The Google Doc ID
        heading_text: The heading text to find (case-insensitive, partial match)
        new_content: Marked text for the section body

    Returns:
        str: Confirmation message naming the matched heading
    """
    logger.info(f"[replace_section] Doc={document_id}, heading={heading_text}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(
        validator, heading_text=heading_text, new_content=new_content
    )
    if missing:
        return missing

    return await DocumentEditManager(service).replace_section(
        document_id, heading_text, new_content
    )


@server.tool()
@handle_http_errors("replace_document", service_type="docs")
@require_google_service("docs", "docs_write")
async def replace_document(service: Any, document_id: str, content: str) -> str:
    """
    Replace the entire document content.

    WARNING: This removes all existing content and formatting. Prefer
    append_content, insert_after_heading or replace_section for surgical edits.

    Args:
        document_id: The Google Doc ID
        content: Marked text for the entire document

    Returns:
        str: Confirmation message
    """
    logger.info(f"[replace_document] Doc={document_id}, chars={len(content or '')}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, content=content)
    if missing:
        return missing

    return await DocumentEditManager(service).replace_document(document_id, content)


@server.tool()
@handle_http_errors("find_and_replace", service_type="docs")
@require_google_service("docs", "docs_write")
async def find_and_replace(
    service: Any,
    document_id: str,
    search_text: str,
    replace_text: str,
    match_case: bool = False,
) -> str:
    """
    Find and replace text throughout the document. Replaces ALL occurrences.

    Useful for updating repeated text like dates, names or locations.

    Args:
        document_id: The Google Doc ID
        search_text: The text to find
        replace_text: The text to replace it with (may be empty)
        match_case: Whether to match case exactly (default: False)

    Returns:
        str: How many occurrences were replaced
    """
    logger.info(f"[find_and_replace] Doc={document_id}, search='{search_text}'")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    if not search_text:
        return validator.create_empty_search_error()
    if replace_text is None:
        return validator.create_missing_param_error(param_name="replace_text")

    return await DocumentEditManager(service).find_and_replace(
        document_id, search_text, replace_text, match_case
    )


@server.tool()
@handle_http_errors("delete_section", service_type="docs")
@require_google_service("docs", "docs_write")
async def delete_section(service: Any, document_id: str, heading_text: str) -> str:
    """
    Delete an entire section including its heading.

    Removes the heading and everything up to the next heading of the same or
    higher level. Use with caution.

    Args:
        document_id: The Google Doc ID
        heading_text: The heading text to find (case-insensitive, partial match)

    Returns:
        str: Confirmation message naming the deleted heading
    """
    logger.info(f"[delete_section] Doc={document_id}, heading={heading_text}")

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error
    missing = _check_required(validator, heading_text=heading_text)
    if missing:
        return missing

    return await DocumentEditManager(service).delete_section(document_id, heading_text)


@server.tool()
@handle_http_errors("batch_edit_sections", service_type="docs")
@require_google_service("docs", "docs_write")
async def batch_edit_sections(
    service: Any,
    document_id: str,
    operations: List[Dict[str, Any]],
    stop_on_error: bool = True,
) -> str:
    """
    Run several section edits one after another.

    Each operation re-reads the document first, so later operations see the
    changes made by earlier ones. Operations never run in parallel.

    Args:
        document_id: The Google Doc ID
        operations: List of operations, each with a "type" and its fields:
            - {"type": "append_content", "content": "..."}
            - {"type": "insert_before_heading", "heading": "...", "content": "..."}
            - {"type": "insert_after_heading", "heading": "...", "content": "..."}
            - {"type": "replace_section", "heading": "...", "content": "..."}
            - {"type": "delete_section", "heading": "..."}
            - {"type": "find_and_replace", "search_text": "...", "replace_text": "...",
               "match_case": false}
            Short aliases (append, insert_before, insert_after, replace, delete,
            find_replace) and field aliases (heading_text, new_content) are accepted.
        stop_on_error: If True (default), stop at the first failing operation.
            If False, attempt every operation and report each result.

    Returns:
        str: JSON with success, operations_completed, total_operations,
            per-operation results and, on failure, failed_index
    """
    logger.info(
        f"[batch_edit_sections] Doc={document_id}, operations={len(operations or [])}"
    )

    validator = ValidationManager()
    is_valid, structured_error = validator.validate_document_id_structured(document_id)
    if not is_valid:
        return structured_error

    is_valid, error_msg = validator.validate_batch_operations(operations)
    if not is_valid:
        return simple_error(
            ErrorCode.INVALID_PARAM_VALUE,
            error_msg,
            "Pass a list of 1 to 50 operation objects, each with a \"type\" field.",
        )

    batch_manager = BatchOperationManager(DocumentEditManager(service))
    result = await batch_manager.execute_batch(
        document_id, operations, stop_on_error=stop_on_error
    )
    return json.dumps(result.to_dict(), indent=2)
