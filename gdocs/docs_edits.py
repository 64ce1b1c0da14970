"""
Edit Planning

Pure functions that turn one document snapshot plus user input into the
ordered list of requests for a single documents.batchUpdate call.

The API applies a batch in list order. Whenever content is replaced at an
anchor, the delete is listed before the insert at that anchor: every index in
a plan is computed against the snapshot passed in and is never recomputed.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from gdocs.docs_helpers import (
    create_delete_range_request,
    create_find_replace_request,
    create_paragraph_style_request,
)
from gdocs.docs_markers import generate_insert_requests
from gdocs.docs_structure import (
    Heading,
    HEADING_STYLES,
    find_heading_by_text,
    find_headings,
    find_section_end,
    get_document_end_index,
)
from gdocs.errors import HeadingNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class EditPlan:
    """Ordered requests for one batchUpdate, with the anchor they were computed from."""
    requests: List[Dict[str, Any]] = field(default_factory=list)
    index: Optional[int] = None
    heading: Optional[Heading] = None
    section_end: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.requests


def require_heading(doc_data: Dict[str, Any], heading_text: str) -> Heading:
    """Look up a heading, raising HeadingNotFoundError with the available headings."""
    heading = find_heading_by_text(doc_data, heading_text)
    if heading is None:
        available = [h.text for h in find_headings(doc_data)]
        raise HeadingNotFoundError(heading_text, available)
    return heading


def plan_append(doc_data: Dict[str, Any], content: str) -> EditPlan:
    """
    Plan appending marked text at the end of the document.

    A separating newline is added in front unless the document is empty
    (end index 1).
    """
    end_index = get_document_end_index(doc_data)
    content_to_insert = f"\n{content}" if end_index > 1 else content
    return EditPlan(
        requests=generate_insert_requests(content_to_insert, end_index),
        index=end_index,
    )


def _body_start(doc_data: Dict[str, Any], heading: Heading) -> Tuple[int, bool]:
    """
    Return (index, at_document_end) for content placed under a heading.

    A heading that is the last paragraph owns the body's final newline, so
    its end_index is one past the last insertable position.
    """
    end_index = get_document_end_index(doc_data)
    if heading.end_index > end_index:
        return end_index, True
    return heading.end_index, False


def _restore_heading_style(heading: Heading, index: int) -> Dict[str, Any]:
    """
    Re-apply a trailing heading's style after content was inserted at its end.

    The inserted text starts with the newline that now closes the heading, so
    the NORMAL_TEXT reset of the insertion touches the heading paragraph too.
    """
    return create_paragraph_style_request(
        heading.start_index, index + 1, HEADING_STYLES[heading.level]
    )


def plan_insert_before_heading(
    doc_data: Dict[str, Any], heading_text: str, content: str
) -> EditPlan:
    """Plan inserting marked text directly above a heading."""
    heading = require_heading(doc_data, heading_text)
    return EditPlan(
        requests=generate_insert_requests(f"{content}\n", heading.start_index),
        index=heading.start_index,
        heading=heading,
    )


def plan_insert_after_heading(
    doc_data: Dict[str, Any], heading_text: str, content: str
) -> EditPlan:
    """Plan inserting marked text right after a heading line, inside its section."""
    heading = require_heading(doc_data, heading_text)
    index, at_document_end = _body_start(doc_data, heading)
    requests = generate_insert_requests(f"\n{content}", index)
    if at_document_end:
        requests.append(_restore_heading_style(heading, index))
    return EditPlan(
        requests=requests,
        index=index,
        heading=heading,
    )


def plan_replace_section(
    doc_data: Dict[str, Any], heading_text: str, new_content: str
) -> EditPlan:
    """
    Plan replacing everything under a heading, keeping the heading itself.

    The body [heading.end_index, section_end) is deleted first, then the new
    content is inserted at heading.end_index. Under a heading that is the last
    paragraph there is no body to delete and the content goes at the document
    end, where the body's final newline already closes it.
    """
    heading = require_heading(doc_data, heading_text)
    section_end = find_section_end(doc_data, heading)
    logger.debug(
        f"Section '{heading.text}' spans from {heading.start_index} to {section_end}"
    )

    index, at_document_end = _body_start(doc_data, heading)
    content = f"\n{new_content}" if at_document_end else f"\n{new_content}\n"

    # The body's final newline is never deleted
    delete_end = min(section_end, get_document_end_index(doc_data))

    requests = []
    if index < delete_end:
        requests.append(create_delete_range_request(index, delete_end))
    requests.extend(generate_insert_requests(content, index))
    if at_document_end:
        requests.append(_restore_heading_style(heading, index))
    return EditPlan(
        requests=requests,
        index=index,
        heading=heading,
        section_end=section_end,
    )


def plan_replace_document(doc_data: Dict[str, Any], content: str) -> EditPlan:
    """Plan replacing the whole body: delete [1, end) then insert at 1."""
    end_index = get_document_end_index(doc_data)
    requests = []
    if end_index > 1:
        requests.append(create_delete_range_request(1, end_index))
    requests.extend(generate_insert_requests(content, 1))
    return EditPlan(requests=requests, index=1, section_end=end_index)


def plan_delete_section(doc_data: Dict[str, Any], heading_text: str) -> EditPlan:
    """Plan deleting a heading and everything in its section."""
    heading = require_heading(doc_data, heading_text)
    section_end = find_section_end(doc_data, heading)
    logger.debug(
        f"Section '{heading.text}' spans from {heading.start_index} to {section_end}"
    )

    # The body's final newline is never deleted
    delete_end = min(section_end, get_document_end_index(doc_data))

    requests = []
    if heading.start_index < delete_end:
        requests.append(create_delete_range_request(heading.start_index, delete_end))
    return EditPlan(
        requests=requests,
        index=heading.start_index,
        heading=heading,
        section_end=section_end,
    )


def plan_find_and_replace(
    search_text: str, replace_text: str, match_case: bool = False
) -> EditPlan:
    """Plan a document-wide literal replacement. Needs no snapshot."""
    return EditPlan(
        requests=[create_find_replace_request(search_text, replace_text, match_case)]
    )
