import logging
import functools
import json
import re

from typing import Optional

from googleapiclient.errors import HttpError
from auth.google_auth import GoogleAuthenticationError
from auth.service_decorator import get_auth_context
from gdocs.errors import DocsErrorBuilder, DocsOperationError, format_error

logger = logging.getLogger(__name__)


def _parse_docs_index_error(error_details: str) -> Optional[str]:
    """
    Parse Google Docs API error details to detect index out-of-bounds errors.

    Returns a structured error JSON string if an index error is detected, None otherwise.

    Common patterns:
    - "Index X must be less than the end index of the referenced segment, Y"
    - "The insertion index must be inside the bounds of an existing paragraph"
    """
    match = re.search(
        r"Index\s+(\d+)\s+must be less than the end index of the referenced segment,?\s*(\d+)?",
        error_details,
        re.IGNORECASE,
    )
    if match:
        index_value = int(match.group(1))
        doc_length = int(match.group(2)) if match.group(2) else None

        error_response = {
            "error": True,
            "code": "INDEX_OUT_OF_BOUNDS",
            "message": f"Index {index_value} exceeds document length"
            + (f" ({doc_length})" if doc_length else ""),
            "reason": "The document changed between reading it and applying the edit, "
            "or the edit targeted the document's final newline.",
            "suggestion": "Read the document again and retry the edit.",
            "context": {
                "received": {"index": index_value},
            },
        }
        if doc_length:
            error_response["context"]["document_length"] = doc_length

        return json.dumps(error_response, indent=2)

    if "insertion index must be inside the bounds" in error_details.lower():
        idx_match = re.search(r"index[:\s]+(\d+)", error_details, re.IGNORECASE)
        index_value = int(idx_match.group(1)) if idx_match else None

        error_response = {
            "error": True,
            "code": "INDEX_OUT_OF_BOUNDS",
            "message": "Insertion index is outside document bounds"
            + (f" (index: {index_value})" if index_value else ""),
            "reason": "The insertion point is not within a paragraph of the current document.",
            "suggestion": "Read the document again and retry the edit.",
        }
        if index_value is not None:
            error_response["context"] = {"received": {"index": index_value}}

        return json.dumps(error_response, indent=2)

    return None


def handle_http_errors(tool_name: str, service_type: Optional[str] = None):
    """
    A decorator to handle Google API HttpErrors in a standardized way.

    It wraps a tool function, catches HttpError, logs a detailed error message,
    and raises an Exception with a one-line, user-friendly message chained to
    the original error. Nothing is retried.

    Heading lookups and other domain errors are tool-level failures: they are
    returned as structured error JSON instead of being raised.

    Args:
        tool_name (str): The name of the tool being decorated (e.g., 'read_document').
        service_type (str): Optional. The Google service type ('docs' or 'drive').
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except DocsOperationError as e:
                logger.info(f"[{tool_name}] {e}")
                return format_error(e.structured)
            except HttpError as error:
                error_details = str(error)

                if error.resp.status == 401:
                    # Reload credentials from the token file on the next call
                    get_auth_context().invalidate()
                if error.resp.status in [401, 403]:
                    message = (
                        f"API error in {tool_name}: {error}. "
                        f"The stored Google credentials may be expired, revoked, or missing a scope."
                    )
                elif error.resp.status == 400 and service_type == "docs":
                    structured_error = _parse_docs_index_error(error_details)
                    if structured_error:
                        logger.error(
                            f"Index error in {tool_name}: {error}", exc_info=True
                        )
                        return structured_error
                    message = f"API error in {tool_name}: {error}"
                elif error.resp.status == 404 and service_type == "docs":
                    document_id = kwargs.get("document_id", "unknown")
                    logger.error(
                        f"Document not found in {tool_name}: {error}", exc_info=True
                    )
                    return format_error(DocsErrorBuilder.document_not_found(document_id))
                else:
                    message = f"API error in {tool_name}: {error}"

                logger.error(f"API error in {tool_name}: {error}", exc_info=True)
                raise Exception(message) from error
            except GoogleAuthenticationError:
                # Re-raise authentication errors without wrapping
                raise

        return wrapper

    return decorator
