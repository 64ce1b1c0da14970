"""
Validation Manager

Input checks shared by the marked-text tools. Failures are returned as
structured error JSON that the tools hand straight back to the caller, so
nothing invalid ever reaches the Docs API.
"""
import logging
import re
from typing import Dict, Any, List, Tuple, Optional

from gdocs.errors import (
    DocsErrorBuilder,
    format_error,
)

logger = logging.getLogger(__name__)


class ValidationManager:
    """
    Validates tool arguments before any API call is made.

    Plain validators return (is_valid, message); the create_*_error helpers
    return ready-to-return JSON.
    """

    def __init__(self):
        self.validation_rules = self._setup_validation_rules()

    def _setup_validation_rules(self) -> Dict[str, Any]:
        return {
            'document_id_pattern': re.compile(r'^[a-zA-Z0-9_-]+$'),
            'min_document_id_length': 20,
            'max_text_length': 1000000,
            'max_batch_operations': 50,
        }

    def validate_document_id(self, document_id: str) -> Tuple[bool, str]:
        """
        Check that a value looks like a Google Docs document ID.

        Args:
            document_id: Value supplied by the caller

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not document_id:
            return False, "Document ID cannot be empty"

        if not isinstance(document_id, str):
            return False, f"Document ID must be a string, got {type(document_id).__name__}"

        if len(document_id) < self.validation_rules['min_document_id_length']:
            return False, "Document ID appears too short to be valid"

        if not self.validation_rules['document_id_pattern'].match(document_id):
            return False, "Document ID may only contain letters, digits, '-' and '_'"

        return True, ""

    def validate_document_id_structured(self, document_id: str) -> Tuple[bool, Optional[str]]:
        """Like validate_document_id, but the failure is structured error JSON."""
        is_valid, error_msg = self.validate_document_id(document_id)
        if is_valid:
            return True, None
        logger.debug(f"Rejected document ID {document_id!r}: {error_msg}")
        return False, format_error(
            DocsErrorBuilder.invalid_document_id(document_id, error_msg)
        )

    def validate_text_content(self, text: str, max_length: Optional[int] = None) -> Tuple[bool, str]:
        """Check that marked text is a string within the length limit."""
        if not isinstance(text, str):
            return False, f"Text must be a string, got {type(text).__name__}"

        limit = max_length or self.validation_rules['max_text_length']
        if len(text) > limit:
            return False, f"Text too long ({len(text)} characters). Maximum: {limit}"

        return True, ""

    def validate_batch_operations(self, operations: List[Dict[str, Any]]) -> Tuple[bool, str]:
        """
        Check the shape of a batch request.

        Per-operation fields are checked when each operation runs, so a bad
        operation becomes an item failure rather than rejecting the batch.
        """
        if not operations or not isinstance(operations, list):
            return False, "Operations must be a non-empty list"

        limit = self.validation_rules['max_batch_operations']
        if len(operations) > limit:
            return False, f"Too many operations ({len(operations)}). Maximum allowed: {limit}"

        for position, operation in enumerate(operations):
            if not isinstance(operation, dict):
                return False, f"Operation {position} must be a dictionary, got {type(operation).__name__}"

        return True, ""

    def create_missing_param_error(
        self,
        param_name: str,
        context: str = "",
        valid_values: Optional[List[str]] = None
    ) -> str:
        return format_error(
            DocsErrorBuilder.missing_required_param(param_name, context, valid_values)
        )

    def create_empty_search_error(self) -> str:
        return format_error(DocsErrorBuilder.empty_search_text())

    def create_invalid_param_error(
        self,
        param_name: str,
        received: Any,
        valid_values: List[str]
    ) -> str:
        return format_error(
            DocsErrorBuilder.invalid_param_value(param_name, received, valid_values)
        )
