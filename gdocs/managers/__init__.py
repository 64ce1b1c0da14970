"""
Google Docs Operation Managers

This package provides high-level managers for marked-text document
operations, keeping I/O and sequencing out of the tool functions.
"""

from .document_edit_manager import DocumentEditManager
from .batch_operation_manager import BatchOperationManager
from .validation_manager import ValidationManager

__all__ = [
    "DocumentEditManager",
    "BatchOperationManager",
    "ValidationManager",
]
