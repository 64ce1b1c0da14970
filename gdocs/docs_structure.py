"""
Google Docs Document Structure Parsing and Analysis

This module locates headings and sections in a Google Docs document snapshot
and defines the 1-based position model used by every edit planner.

Positions are offsets into the body's linear text buffer. The body always ends
with a newline that cannot be deleted, so the last insertable position is one
less than the last block's endIndex. Ranges are half-open [start, end).

Nothing here is cached: headings and positions are recomputed from the
snapshot passed in, since other clients can change the document between calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


# Named paragraph styles recognised as headings, mapped to levels
HEADING_LEVELS = {
    "HEADING_1": 1,
    "HEADING_2": 2,
    "HEADING_3": 3,
}

HEADING_STYLES = {level: style for style, level in HEADING_LEVELS.items()}


@dataclass(frozen=True)
class Heading:
    """A heading paragraph; the range includes its trailing newline."""

    text: str
    level: int
    start_index: int
    end_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "level": self.level,
            "start_index": self.start_index,
            "end_index": self.end_index,
        }


@dataclass
class DocumentStats:
    """Character, word and heading counts for a document body."""

    character_count: int = 0
    word_count: int = 0
    heading_count: int = 0
    heading_structure: list[str] = field(default_factory=list)


def get_body_content(doc_data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the body's block elements, or an empty list."""
    return (doc_data.get("body") or {}).get("content") or []


def get_heading_level(paragraph: dict[str, Any]) -> int:
    """
    Get the heading level of a paragraph.

    Args:
        paragraph: Paragraph element from document

    Returns:
        1, 2 or 3 for heading paragraphs, 0 otherwise
    """
    style = paragraph.get("paragraphStyle") or {}
    return HEADING_LEVELS.get(style.get("namedStyleType", "NORMAL_TEXT"), 0)


def extract_paragraph_text(paragraph: dict[str, Any]) -> str:
    """Extract text from a paragraph element."""
    text_parts = []
    for element in paragraph.get("elements") or []:
        text_run = element.get("textRun")
        if text_run:
            text_parts.append(text_run.get("content") or "")
    return "".join(text_parts)


def _strip_trailing_newline(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


def get_document_end_index(doc_data: dict[str, Any]) -> int:
    """
    Get the position where appended content should be inserted.

    The last block's endIndex is exclusive and counts the body's final
    newline, which must never be targeted, hence the subtraction.

    Args:
        doc_data: Raw document data from Google Docs API

    Returns:
        Insertable end position, 1 for an empty body
    """
    content = get_body_content(doc_data)
    if not content:
        return 1

    last_element = content[-1]
    return (last_element.get("endIndex") or 1) - 1


def find_headings(doc_data: dict[str, Any]) -> list[Heading]:
    """
    Find all H1-H3 headings in the document, in document order.

    Args:
        doc_data: Raw document data from Google Docs API

    Returns:
        List of Heading values with positions from this snapshot
    """
    headings = []

    for element in get_body_content(doc_data):
        paragraph = element.get("paragraph")
        if not paragraph:
            continue

        level = get_heading_level(paragraph)
        if level == 0:
            continue

        text = _strip_trailing_newline(extract_paragraph_text(paragraph)).strip()
        headings.append(
            Heading(
                text=text,
                level=level,
                start_index=element.get("startIndex") or 0,
                end_index=element.get("endIndex") or 0,
            )
        )

    return headings


def match_heading(headings: list[Heading], query: str) -> Optional[Heading]:
    """
    Pick the heading a query refers to.

    An exact case-insensitive match wins; otherwise the first heading (in
    document order) whose text contains the query.
    """
    search_lower = query.lower().strip()

    for heading in headings:
        if heading.text.lower() == search_lower:
            return heading

    for heading in headings:
        if search_lower in heading.text.lower():
            return heading

    return None


def find_heading_by_text(
    doc_data: dict[str, Any], query: str
) -> Optional[Heading]:
    """
    Find a heading by its text (case-insensitive, exact match preferred).

    Args:
        doc_data: Raw document data from Google Docs API
        query: Heading text, or part of it

    Returns:
        The matching Heading, or None when nothing matches
    """
    heading = match_heading(find_headings(doc_data), query)
    if heading is None:
        logger.debug(f"No heading matches '{query}'")
    return heading


def find_section_end(doc_data: dict[str, Any], heading: Heading) -> int:
    """
    Find where the section owned by a heading ends.

    The heading is located in a freshly computed heading list by start index.
    The section ends at the next heading of the same or higher level (smaller
    number = higher level), or at the document end. It never ends before the
    last heading it contains, even when that heading is the last paragraph and
    its end_index lies one past the document end.

    Args:
        doc_data: Raw document data from Google Docs API
        heading: Heading from the same snapshot

    Returns:
        Exclusive end position of the section
    """
    headings = find_headings(doc_data)
    heading_index = next(
        (i for i, h in enumerate(headings) if h.start_index == heading.start_index),
        -1,
    )

    if heading_index == -1:
        return get_document_end_index(doc_data)

    for following in headings[heading_index + 1:]:
        if following.level <= heading.level:
            return following.start_index

    # The section owns every later heading, including a last paragraph that
    # holds the body's final newline
    return max(get_document_end_index(doc_data), headings[-1].end_index)


def calculate_document_stats(doc_data: dict[str, Any]) -> DocumentStats:
    """
    Calculate character, word and heading statistics.

    Args:
        doc_data: Raw document data from Google Docs API

    Returns:
        DocumentStats for the body's paragraphs (tables are not counted)
    """
    stats = DocumentStats()

    for element in get_body_content(doc_data):
        paragraph = element.get("paragraph")
        if not paragraph:
            continue

        paragraph_text = extract_paragraph_text(paragraph)
        stats.character_count += len(paragraph_text)
        stats.word_count += len(paragraph_text.split())

        level = get_heading_level(paragraph)
        if level:
            heading_text = _strip_trailing_newline(paragraph_text).strip()
            stats.heading_structure.append(f"[H{level}] {heading_text}")

    stats.heading_count = len(stats.heading_structure)
    return stats
