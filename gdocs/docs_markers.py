"""
Marked Text Conversion

This module converts between Google Docs documents and "marked text", the
flat line-oriented format agents read and write:

- [H1], [H2], [H3] prefixes for headings (start of line, one trailing space)
- "• " or "* " prefixes for bullet items
- [label](url) for links
- [TABLE] as a read-only placeholder for tables

Reading renders a document snapshot into marked text. Writing parses marked
text into the plain text to insert plus formatting requests whose ranges are
measured in the coordinate space after that insertion.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from gdocs.docs_helpers import (
    create_bullet_list_request,
    create_format_text_request,
    create_insert_text_request,
    create_paragraph_style_request,
    create_reset_text_style_request,
)
from gdocs.docs_structure import (
    HEADING_STYLES,
    Heading,
    find_headings,
    get_body_content,
    get_document_end_index,
    get_heading_level,
    match_heading,
)

logger = logging.getLogger(__name__)

HEADING_MARKERS = {
    "[H1] ": 1,
    "[H2] ": 2,
    "[H3] ": 3,
}
BULLET_MARKERS = ("• ", "* ")
BULLET_PREFIX = "• "
TABLE_PLACEHOLDER = "[TABLE]"

# Non-greedy label, url without a closing parenthesis
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")


@dataclass
class FormattingRequest:
    """A style to apply to a range of just-inserted text."""

    type: str  # "heading", "bullet" or "link"
    start_index: int
    end_index: int
    level: Optional[int] = None
    url: Optional[str] = None


@dataclass
class ParsedContent:
    plain_text: str
    formatting_requests: list[FormattingRequest] = field(default_factory=list)


@dataclass
class SectionContent:
    content: str
    found: bool
    total_characters: int
    heading: Optional[Heading] = None


def _line_prefix(paragraph: dict[str, Any]) -> str:
    # A bulleted heading renders as a bullet item
    if paragraph.get("bullet"):
        return BULLET_PREFIX
    level = get_heading_level(paragraph)
    if level:
        return f"[H{level}] "
    return ""


def _render_runs(paragraph: dict[str, Any]) -> str:
    """Concatenate a paragraph's text runs, rendering links as [text](url)."""
    text_parts = []
    for element in paragraph.get("elements") or []:
        text_run = element.get("textRun")
        if not text_run:
            continue

        content = text_run.get("content") or ""
        url = ((text_run.get("textStyle") or {}).get("link") or {}).get("url")
        if url and content.strip():
            # Keep the paragraph newline outside the brackets
            label = content[:-1] if content.endswith("\n") else content
            rendered = f"[{label}]({url})"
            if content.endswith("\n"):
                rendered += "\n"
            text_parts.append(rendered)
        else:
            text_parts.append(content)

    return "".join(text_parts)


def render_paragraph(paragraph: dict[str, Any]) -> str:
    """
    Render one paragraph as a line of marked text (without newline).

    Whitespace-only paragraphs render as an empty line.
    """
    text = _render_runs(paragraph)
    if not text.strip():
        return ""
    if text.endswith("\n"):
        text = text[:-1]
    return _line_prefix(paragraph) + text


def document_to_text(doc_data: dict[str, Any]) -> str:
    """
    Convert a Google Docs document into marked text.

    Args:
        doc_data: Raw document data from Google Docs API

    Returns:
        Marked text, one line per paragraph or table
    """
    lines = []

    for element in get_body_content(doc_data):
        if "paragraph" in element:
            lines.append(render_paragraph(element["paragraph"]))
        elif "table" in element:
            lines.append(TABLE_PLACEHOLDER)

    return "\n".join(lines)


def extract_headings_only(document_text: str) -> str:
    """Keep only the heading lines of marked text."""
    return "\n".join(
        line for line in document_text.split("\n")
        if line.startswith(tuple(HEADING_MARKERS))
    )


def extract_section_content(
    doc_data: dict[str, Any],
    heading_text: str,
    include_subsections: bool = True,
    max_characters: Optional[int] = None,
) -> SectionContent:
    """
    Render the marked text of one section.

    Args:
        doc_data: Raw document data from Google Docs API
        heading_text: Heading to look up (exact match preferred, then substring)
        include_subsections: If False, the section stops at the next heading of any level
        max_characters: Optional limit; longer content is truncated with a note

    Returns:
        SectionContent; found is False when no heading matches
    """
    headings = find_headings(doc_data)
    target = match_heading(headings, heading_text)
    if target is None:
        return SectionContent(content="", found=False, total_characters=0)

    position = headings.index(target)
    section_end = get_document_end_index(doc_data)
    for following in headings[position + 1:]:
        if not include_subsections or following.level <= target.level:
            section_end = following.start_index
            break

    lines = []
    for element in get_body_content(doc_data):
        element_start = element.get("startIndex") or 0
        element_end = element.get("endIndex") or 0

        if element_end <= target.start_index:
            continue
        if element_start >= section_end:
            break

        if "paragraph" in element:
            line = render_paragraph(element["paragraph"])
            if line:
                lines.append(line + "\n")
        elif "table" in element:
            lines.append(TABLE_PLACEHOLDER + "\n")

    section_text = "".join(lines)
    total_characters = len(section_text)
    result = section_text

    if max_characters and total_characters > max_characters:
        result = (
            section_text[:max_characters]
            + f"\n\n[Content truncated. Section contains approximately "
            f"{total_characters - max_characters} more characters.]"
        )

    return SectionContent(
        content=result.strip(),
        found=True,
        total_characters=total_characters,
        heading=target,
    )


def _strip_line_marker(line: str) -> tuple[str, int, bool]:
    """Return (remaining line, heading level or 0, is_bullet)."""
    for marker, level in HEADING_MARKERS.items():
        if line.startswith(marker):
            return line[len(marker):], level, False
    for marker in BULLET_MARKERS:
        if line.startswith(marker):
            return line[len(marker):], 0, True
    return line, 0, False


def parse_content_for_insertion(
    content: str,
    insertion_index: int,
) -> ParsedContent:
    """
    Parse marked text into plain text and formatting requests.

    All ranges are absolute positions in the document as it will be once the
    plain text has been inserted at insertion_index.

    Args:
        content: Marked text
        insertion_index: Position the plain text will be inserted at

    Returns:
        ParsedContent with the text to insert and the deferred formatting
    """
    formatting_requests = []
    plain_parts = []
    cursor = insertion_index

    lines = content.split("\n")
    last = len(lines) - 1

    for line_number, raw_line in enumerate(lines):
        line, heading_level, is_bullet = _strip_line_marker(raw_line)

        processed = ""
        last_end = 0
        for match in LINK_PATTERN.finditer(line):
            processed += line[last_end:match.start()]
            label, url = match.group(1), match.group(2)

            link_start = cursor + len(processed)
            formatting_requests.append(FormattingRequest(
                type="link",
                start_index=link_start,
                end_index=link_start + len(label),
                url=url,
            ))

            processed += label
            last_end = match.end()
        processed += line[last_end:]

        emitted = processed if line_number == last else processed + "\n"

        # Paragraph styles need the newline inside the range, otherwise the
        # style lands on the following paragraph
        if heading_level and processed:
            formatting_requests.append(FormattingRequest(
                type="heading",
                start_index=cursor,
                end_index=cursor + len(emitted),
                level=heading_level,
            ))
        if is_bullet and processed:
            formatting_requests.append(FormattingRequest(
                type="bullet",
                start_index=cursor,
                end_index=cursor + len(emitted),
            ))

        plain_parts.append(emitted)
        cursor += len(emitted)

    return ParsedContent(
        plain_text="".join(plain_parts),
        formatting_requests=formatting_requests,
    )


def _formatting_to_request(fmt: FormattingRequest) -> Optional[dict[str, Any]]:
    if fmt.type == "heading" and fmt.level:
        return create_paragraph_style_request(
            fmt.start_index, fmt.end_index, HEADING_STYLES[fmt.level]
        )
    if fmt.type == "bullet":
        return create_bullet_list_request(fmt.start_index, fmt.end_index)
    if fmt.type == "link" and fmt.url:
        return create_format_text_request(fmt.start_index, fmt.end_index, link=fmt.url)
    return None


def generate_insert_requests(
    content: str,
    insertion_index: int,
) -> list[dict[str, Any]]:
    """
    Build the API requests that insert and format marked text.

    Order: the insertText request, a NORMAL_TEXT paragraph reset, a character
    style reset, then the parsed formatting sorted by descending start index.
    All style ranges lie inside the inserted text.

    Args:
        content: Marked text
        insertion_index: Position to insert at

    Returns:
        Ordered list of request dicts; empty when there is nothing to insert
    """
    parsed = parse_content_for_insertion(content, insertion_index)
    plain_text = parsed.plain_text

    if not plain_text:
        return []

    requests = [create_insert_text_request(insertion_index, plain_text)]

    # The final newline is excluded: styling through it would restyle the
    # paragraph that follows the inserted block
    style_end = insertion_index + len(plain_text)
    if plain_text.endswith("\n"):
        style_end -= 1
    if style_end > insertion_index:
        requests.append(
            create_paragraph_style_request(insertion_index, style_end, "NORMAL_TEXT")
        )

    requests.append(
        create_reset_text_style_request(
            insertion_index, insertion_index + len(plain_text)
        )
    )

    ordered = sorted(
        parsed.formatting_requests, key=lambda fmt: fmt.start_index, reverse=True
    )
    for fmt in ordered:
        request = _formatting_to_request(fmt)
        if request:
            requests.append(request)

    logger.debug(
        f"Built {len(requests)} requests for {len(plain_text)} chars at {insertion_index}"
    )
    return requests
