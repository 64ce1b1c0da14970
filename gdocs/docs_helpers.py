"""
Google Docs Helper Functions

This module provides the request builders for every edit operation sent to the
Google Docs API, plus the literal text matcher used by search_text.
"""
import logging
import re
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict

logger = logging.getLogger(__name__)

BULLET_PRESET = 'BULLET_DISC_CIRCLE_SQUARE'

# Character attributes cleared on inserted text so it doesn't inherit the
# formatting of whatever precedes the insertion point
RESET_TEXT_STYLE = {
    'bold': False,
    'italic': False,
    'underline': False,
    'strikethrough': False,
    'small_caps': False,
}


@dataclass
class TextMatch:
    """A literal match; offsets are absolute document positions."""
    text: str
    start_index: int
    end_index: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def find_text_in_document(
    doc_data: Dict[str, Any],
    search_text: str,
    case_sensitive: bool = False
) -> List[TextMatch]:
    """
    Find all occurrences of a literal string in the document body.

    Matching is done within each text run, so text split across two runs
    (e.g. partly bold) is not found. After a match at position p the search
    resumes at p + 1, so overlapping matches are reported ("aa" in "aaa"
    matches twice).

    Args:
        doc_data: Raw document data from Google Docs API
        search_text: Text to search for
        case_sensitive: Whether to match case exactly

    Returns:
        List of TextMatch in document order
    """
    if not search_text:
        return []

    matches = []
    pattern = re.compile(re.escape(search_text), 0 if case_sensitive else re.IGNORECASE)
    content = (doc_data.get('body') or {}).get('content') or []

    for element in content:
        paragraph = element.get('paragraph')
        if not paragraph:
            continue

        for para_element in paragraph.get('elements') or []:
            text = (para_element.get('textRun') or {}).get('content')
            if not text:
                continue

            run_start = para_element.get('startIndex') or 0

            # Offsets come from the run itself, so case folding never shifts them
            found = pattern.search(text)
            while found:
                matches.append(TextMatch(
                    text=found.group(),
                    start_index=run_start + found.start(),
                    end_index=run_start + found.end(),
                ))
                found = pattern.search(text, found.start() + 1)

    logger.debug(f"Found {len(matches)} match(es) for '{search_text}'")
    return matches


# Boolean character attributes and their API field names
BOOLEAN_STYLE_FIELDS = (
    ('bold', 'bold'),
    ('italic', 'italic'),
    ('underline', 'underline'),
    ('strikethrough', 'strikethrough'),
    ('small_caps', 'smallCaps'),
)


def _range(start_index: int, end_index: int) -> Dict[str, int]:
    return {'startIndex': start_index, 'endIndex': end_index}


def build_text_style(
    bold: bool = None,
    italic: bool = None,
    underline: bool = None,
    strikethrough: bool = None,
    small_caps: bool = None,
    link: str = None,
) -> tuple[Dict[str, Any], list[str]]:
    """
    Build the textStyle object and field mask for an updateTextStyle request.

    Only arguments that are not None end up in the style. An empty link
    string clears an existing link.

    Returns:
        Tuple of (text_style, field names in request order)
    """
    requested = {
        'bold': bold,
        'italic': italic,
        'underline': underline,
        'strikethrough': strikethrough,
        'small_caps': small_caps,
    }
    text_style = {}
    fields = []

    for arg_name, api_field in BOOLEAN_STYLE_FIELDS:
        if requested[arg_name] is not None:
            text_style[api_field] = requested[arg_name]
            fields.append(api_field)

    if link is not None:
        text_style['link'] = {'url': link} if link else None
        fields.append('link')

    return text_style, fields


def create_insert_text_request(index: int, text: str) -> Dict[str, Any]:
    """Insert text at a body position."""
    return {
        'insertText': {
            'location': {'index': index},
            'text': text
        }
    }


def create_delete_range_request(start_index: int, end_index: int) -> Dict[str, Any]:
    """Delete the half-open range [start_index, end_index)."""
    return {'deleteContentRange': {'range': _range(start_index, end_index)}}


def create_format_text_request(
    start_index: int,
    end_index: int,
    bold: bool = None,
    italic: bool = None,
    underline: bool = None,
    strikethrough: bool = None,
    small_caps: bool = None,
    link: str = None,
) -> Optional[Dict[str, Any]]:
    """
    Create an updateTextStyle request over [start_index, end_index).

    Returns:
        The request, or None when no attribute was given
    """
    text_style, fields = build_text_style(
        bold, italic, underline, strikethrough, small_caps, link
    )
    if not text_style:
        return None

    return {
        'updateTextStyle': {
            'range': _range(start_index, end_index),
            'textStyle': text_style,
            'fields': ','.join(fields)
        }
    }


def create_reset_text_style_request(start_index: int, end_index: int) -> Dict[str, Any]:
    """Create an updateTextStyle request that switches off boolean character styles."""
    return create_format_text_request(start_index, end_index, **RESET_TEXT_STYLE)


def create_paragraph_style_request(
    start_index: int,
    end_index: int,
    named_style_type: str
) -> Dict[str, Any]:
    """
    Set a named paragraph style ('NORMAL_TEXT', 'HEADING_1', ...).

    The style applies to every paragraph the range touches, including the
    paragraph owning the newline at end_index - 1.
    """
    return {
        'updateParagraphStyle': {
            'range': _range(start_index, end_index),
            'paragraphStyle': {'namedStyleType': named_style_type},
            'fields': 'namedStyleType'
        }
    }


def create_bullet_list_request(start_index: int, end_index: int) -> Dict[str, Any]:
    """Turn every paragraph in the range into a disc bullet item."""
    return {
        'createParagraphBullets': {
            'range': _range(start_index, end_index),
            'bulletPreset': BULLET_PRESET
        }
    }


def create_find_replace_request(
    find_text: str,
    replace_text: str,
    match_case: bool = False
) -> Dict[str, Any]:
    """
    Create a replaceAllText request.

    Args:
        find_text: Literal text to find
        replace_text: Replacement, may be empty
        match_case: Whether to match case exactly

    Returns:
        The request; its reply reports occurrencesChanged
    """
    return {
        'replaceAllText': {
            'containsText': {'text': find_text, 'matchCase': match_case},
            'replaceText': replace_text
        }
    }
