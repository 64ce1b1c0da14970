"""
Structured errors for the marked-text tools.

Tool-level failures (bad input, unknown heading, missing document) are
returned to the caller as JSON objects with a code, a one-line message and a
hint for the next call, so an agent can correct itself without guessing.
"""
import json
import logging
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_LISTED_HEADINGS = 10


class ErrorCode(str, Enum):
    """Machine-readable codes carried by every structured error."""

    INVALID_DOCUMENT_ID = "INVALID_DOCUMENT_ID"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    EMPTY_SEARCH_TEXT = "EMPTY_SEARCH_TEXT"
    HEADING_NOT_FOUND = "HEADING_NOT_FOUND"
    MISSING_REQUIRED_PARAM = "MISSING_REQUIRED_PARAM"
    INVALID_PARAM_VALUE = "INVALID_PARAM_VALUE"


@dataclass
class ErrorContext:
    """Values echoed back with an error; None fields are omitted."""
    received: Optional[Dict[str, Any]] = None
    expected: Optional[Dict[str, Any]] = None
    available_headings: Optional[List[str]] = None
    possible_causes: Optional[List[str]] = None


@dataclass
class StructuredError:
    """
    A tool-level failure.

    Attributes:
        error: Always True, so callers can test for failure without parsing code
        code: ErrorCode value
        message: One-line description of the failure
        reason: Why it happened
        suggestion: What to try next
        example: Optional sample calls
        context: Optional ErrorContext
    """
    error: bool = True
    code: str = ""
    message: str = ""
    reason: str = ""
    suggestion: str = ""
    example: Optional[Dict[str, Any]] = None
    context: Optional[ErrorContext] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "error": self.error,
            "code": self.code,
            "message": self.message,
        }
        for key in ("reason", "suggestion", "example"):
            value = getattr(self, key)
            if value:
                payload[key] = value

        if self.context:
            context = {k: v for k, v in asdict(self.context).items() if v is not None}
            if context:
                payload["context"] = context

        return payload

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class DocsOperationError(Exception):
    """
    Raised by the edit planners and managers for tool-level failures.

    handle_http_errors turns it into the JSON of its StructuredError instead
    of letting it surface as a server error.
    """

    def __init__(self, structured: StructuredError):
        super().__init__(structured.message)
        self.structured = structured


class HeadingNotFoundError(DocsOperationError):
    """No heading in the current snapshot matches the query."""

    def __init__(self, heading: str, available_headings: Optional[List[str]] = None):
        self.heading = heading
        self.available_headings = list(available_headings or [])
        super().__init__(
            DocsErrorBuilder.heading_not_found(heading, self.available_headings)
        )


class DocsErrorBuilder:
    """
    Factory methods for the structured errors the tools return.

    Usage:
        payload = DocsErrorBuilder.heading_not_found("Budget", ["Intro"]).to_json()
    """

    @staticmethod
    def empty_search_text() -> StructuredError:
        return StructuredError(
            code=ErrorCode.EMPTY_SEARCH_TEXT.value,
            message="Search text cannot be empty",
            reason="An empty needle matches nothing in the document.",
            suggestion="Pass the literal text to look for.",
            example={
                "search_text": "search_text(document_id='...', search_text='Q3 targets')",
                "find_and_replace": "find_and_replace(document_id='...', search_text='2023', replace_text='2024')",
            },
        )

    @staticmethod
    def heading_not_found(heading: str, available_headings: List[str]) -> StructuredError:
        listed = available_headings[:MAX_LISTED_HEADINGS]
        hidden = len(available_headings) - len(listed)
        if hidden > 0:
            listed.append(f"... and {hidden} more")

        return StructuredError(
            code=ErrorCode.HEADING_NOT_FOUND.value,
            message=f'Heading not found: "{heading}"',
            reason="No H1-H3 heading equals or contains this text (case-insensitive).",
            suggestion="Pick a heading from available_headings, or retry with a shorter part of it.",
            example={"list_headings": "get_document_outline(document_id='...')"},
            context=ErrorContext(
                received={"heading": heading},
                available_headings=listed,
            ),
        )

    @staticmethod
    def document_not_found(document_id: str) -> StructuredError:
        return StructuredError(
            code=ErrorCode.DOCUMENT_NOT_FOUND.value,
            message=f"Document '{document_id}' was not found",
            reason="Google Docs returned 404 for this ID.",
            suggestion="Use list_documents to look up the ID, or copy it from the /d/<id>/edit part of the URL.",
            context=ErrorContext(
                received={"document_id": document_id},
                possible_causes=[
                    "The ID is mistyped or truncated",
                    "The document was deleted or moved to trash",
                    "The authorised account has no access to it",
                ],
            ),
        )

    @staticmethod
    def invalid_document_id(document_id: Any, issue: str) -> StructuredError:
        return StructuredError(
            code=ErrorCode.INVALID_DOCUMENT_ID.value,
            message=f"Invalid document ID: {issue}",
            reason="Document IDs are the long token between /d/ and /edit in the document URL.",
            suggestion="Use list_documents to find the ID of the document you want.",
            context=ErrorContext(received={"document_id": repr(document_id)}),
        )

    @staticmethod
    def missing_required_param(
        param_name: str,
        context_description: str = "",
        valid_values: Optional[List[str]] = None,
    ) -> StructuredError:
        message = f"Missing required parameter '{param_name}'"
        if context_description:
            message = f"{message} {context_description}"

        context = ErrorContext(received={param_name: None})
        if valid_values:
            context.expected = {param_name: ", ".join(valid_values)}

        return StructuredError(
            code=ErrorCode.MISSING_REQUIRED_PARAM.value,
            message=message,
            reason=f"'{param_name}' was omitted or blank.",
            suggestion=f"Provide a non-empty value for '{param_name}'.",
            context=context,
        )

    @staticmethod
    def invalid_param_value(
        param_name: str,
        received_value: Any,
        valid_values: List[str],
    ) -> StructuredError:
        return StructuredError(
            code=ErrorCode.INVALID_PARAM_VALUE.value,
            message=f"Invalid value for '{param_name}': {received_value!r}",
            reason=f"'{param_name}' is outside the accepted range.",
            suggestion=f"Use {' or '.join(valid_values)}.",
            context=ErrorContext(
                received={param_name: repr(received_value)},
                expected={param_name: valid_values},
            ),
        )


def format_error(error: StructuredError) -> str:
    """Serialize a StructuredError as the JSON text returned by a tool."""
    return error.to_json()


def simple_error(code: ErrorCode, message: str, suggestion: str = "") -> str:
    """JSON for a failure that needs no reason or context."""
    return StructuredError(code=code.value, message=message, suggestion=suggestion).to_json()
