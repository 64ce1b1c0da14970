"""
Batch Operation Manager

This module runs several heading-scoped edits against one document.

Features:
- Strictly sequential execution, never in parallel
- A fresh snapshot for every operation, since each edit shifts the
  positions the next one depends on
- Stop-on-first-error or continue-on-error policies
- Per-operation success/failure reporting
"""
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, asdict

from googleapiclient.errors import HttpError

from gdocs.errors import DocsOperationError
from gdocs.managers.document_edit_manager import DocumentEditManager

logger = logging.getLogger(__name__)

# Operation type aliases, mapping short forms to the canonical tool names
OPERATION_ALIASES = {
    # Short forms -> canonical
    'append': 'append_content',
    'insert_before': 'insert_before_heading',
    'insert_after': 'insert_after_heading',
    'replace': 'replace_section',
    'delete': 'delete_section',
    'find_replace': 'find_and_replace',
    # Canonical forms (identity mapping)
    'append_content': 'append_content',
    'insert_before_heading': 'insert_before_heading',
    'insert_after_heading': 'insert_after_heading',
    'replace_section': 'replace_section',
    'delete_section': 'delete_section',
    'find_and_replace': 'find_and_replace',
}

# Fields each canonical operation needs
REQUIRED_FIELDS = {
    'append_content': ['content'],
    'insert_before_heading': ['heading', 'content'],
    'insert_after_heading': ['heading', 'content'],
    'replace_section': ['heading', 'content'],
    'delete_section': ['heading'],
    'find_and_replace': ['search_text', 'replace_text'],
}

# Fields that hold text and must be strings when present
TEXT_FIELDS = ('heading', 'content', 'search_text', 'replace_text')

# Alternative field names accepted in operation dicts
FIELD_ALIASES = {
    'heading_text': 'heading',
    'new_content': 'content',
    'text': 'content',
    'find_text': 'search_text',
}


def normalize_operation(operation: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize an operation dictionary, converting type and field aliases.

    Args:
        operation: Operation dictionary with 'type' field

    Returns:
        Copy of operation with canonical type and field names
    """
    normalized = {}
    for key, value in operation.items():
        normalized.setdefault(FIELD_ALIASES.get(key, key), value)

    if isinstance(normalized.get('type'), str):
        normalized['type'] = OPERATION_ALIASES.get(normalized['type'], normalized['type'])
    return normalized


def validate_operation(operation: Dict[str, Any]) -> Optional[str]:
    """Return an error message for an unusable operation, or None."""
    op_type = operation.get('type')
    if not op_type:
        return "Missing 'type' field"
    if not isinstance(op_type, str):
        return f"'type' must be a string, got {type(op_type).__name__}"
    if op_type not in REQUIRED_FIELDS:
        return (
            f"Unsupported operation type '{op_type}'. "
            f"Valid types: {', '.join(sorted(REQUIRED_FIELDS))}"
        )

    for field_name in REQUIRED_FIELDS[op_type]:
        value = operation.get(field_name)
        # replace_text may legitimately be empty (deleting every occurrence)
        if value is None or (field_name != 'replace_text' and value == ""):
            return f"Missing required field '{field_name}' for {op_type}"

    for field_name in TEXT_FIELDS:
        value = operation.get(field_name)
        if value is not None and not isinstance(value, str):
            return f"Field '{field_name}' must be a string, got {type(value).__name__}"

    return None


@dataclass
class BatchOperationResult:
    """Result of a single operation within a batch."""
    index: int  # Operation index in the batch
    type: str  # Operation type
    success: bool
    description: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = asdict(self)
        return {k: v for k, v in result.items() if v is not None}


@dataclass
class BatchExecutionResult:
    """Complete result of batch execution."""
    success: bool
    operations_completed: int
    total_operations: int
    results: List[BatchOperationResult]
    message: str
    stop_on_error: bool = True
    failed_index: Optional[int] = None
    document_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result = {
            "success": self.success,
            "operations_completed": self.operations_completed,
            "total_operations": self.total_operations,
            "stop_on_error": self.stop_on_error,
            "results": [r.to_dict() for r in self.results],
            "message": self.message,
            "document_link": self.document_link,
        }
        if self.failed_index is not None:
            result["failed_index"] = self.failed_index
        return result


class BatchOperationManager:
    """
    Runs a list of heading-scoped edits one after another.

    Every operation goes through DocumentEditManager, which fetches its own
    snapshot, so an operation always sees the edits of the ones before it.
    """

    def __init__(self, edit_manager: DocumentEditManager):
        """
        Initialize the batch operation manager.

        Args:
            edit_manager: Manager used to execute each operation
        """
        self.edit_manager = edit_manager

    async def execute_batch(
        self,
        document_id: str,
        operations: List[Dict[str, Any]],
        stop_on_error: bool = True,
    ) -> BatchExecutionResult:
        """
        Execute operations sequentially.

        Args:
            document_id: ID of the document to update
            operations: List of operation dictionaries
            stop_on_error: If True, stop at the first failing operation;
                otherwise attempt every operation and report each

        Returns:
            BatchExecutionResult with one BatchOperationResult per attempted operation
        """
        logger.info(
            f"Executing {len(operations)} operations on document {document_id} "
            f"(stop_on_error={stop_on_error})"
        )

        results = []
        failed_index = None

        for i, raw_op in enumerate(operations):
            op = normalize_operation(raw_op)
            op_type = op['type'] if isinstance(op.get('type'), str) else 'unknown'

            try:
                error_msg = validate_operation(op)
                if error_msg:
                    raise ValueError(error_msg)
                description = await self._execute_operation(document_id, op)
                results.append(BatchOperationResult(
                    index=i, type=op_type, success=True, description=description
                ))
            except (DocsOperationError, HttpError, ValueError) as e:
                logger.warning(f"Operation {i} ({op_type}) failed: {e}")
                results.append(BatchOperationResult(
                    index=i, type=op_type, success=False,
                    description=f"{op_type} failed", error=str(e)
                ))
                if failed_index is None:
                    failed_index = i
                if stop_on_error:
                    break

        completed = sum(1 for r in results if r.success)
        total = len(operations)

        if failed_index is None:
            message = f"Successfully executed {completed} operation(s)"
        elif stop_on_error:
            message = (
                f"Stopped after {completed} of {total} operation(s): "
                f"operation {failed_index} failed: {results[-1].error}"
            )
        else:
            failed = len(results) - completed
            message = f"Completed {completed} of {total} operation(s); {failed} failed"

        return BatchExecutionResult(
            success=failed_index is None,
            operations_completed=completed,
            total_operations=total,
            results=results,
            message=message,
            stop_on_error=stop_on_error,
            failed_index=failed_index,
            document_link=f"https://docs.google.com/document/d/{document_id}/edit",
        )

    async def _execute_operation(self, document_id: str, op: Dict[str, Any]) -> str:
        """Dispatch one validated operation to the edit manager."""
        op_type = op['type']
        manager = self.edit_manager

        if op_type == 'append_content':
            return await manager.append_content(document_id, op['content'])
        elif op_type == 'insert_before_heading':
            return await manager.insert_before_heading(document_id, op['heading'], op['content'])
        elif op_type == 'insert_after_heading':
            return await manager.insert_after_heading(document_id, op['heading'], op['content'])
        elif op_type == 'replace_section':
            return await manager.replace_section(document_id, op['heading'], op['content'])
        elif op_type == 'delete_section':
            return await manager.delete_section(document_id, op['heading'])
        elif op_type == 'find_and_replace':
            return await manager.find_and_replace(
                document_id, op['search_text'], op['replace_text'],
                bool(op.get('match_case', False))
            )

        raise ValueError(f"Unsupported operation type '{op_type}'")
