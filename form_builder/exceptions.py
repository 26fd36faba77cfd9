"""
Custom exception classes for form builder operations.

All conditions here are local and recoverable: the field collection is
never left partially mutated when one of them is raised.
"""

import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class FormBuilderError(Exception):
    """
    Base exception for form builder errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class FieldNotFoundError(FormBuilderError):
    """
    Exception raised when an operation references a field id that is not
    in the collection (remove, update, select, duplicate, move).
    """

    def __init__(self, field_id: Any, operation: str, message: Optional[str] = None):
        self.field_id = field_id
        self.operation = operation

        if message is None:
            message = f"Cannot {operation} field '{field_id}': no field with that id"

        context = {
            'field_id': field_id,
            'operation': operation
        }

        recovery_suggestions = [
            "Refresh the field list; the field may already have been removed",
            "Select another field from the canvas"
        ]

        super().__init__(message, context, recovery_suggestions)


class LabelCollisionError(FormBuilderError):
    """
    Exception raised at synthesis time when two or more fields share a label.

    Labels are used verbatim as structural-schema property keys, so a
    collision would make one field silently shadow another.
    """

    def __init__(self, collisions: Dict[str, List[str]], message: Optional[str] = None):
        self.collisions = collisions

        if message is None:
            labels = ", ".join(f"'{label}'" for label in collisions)
            message = f"Duplicate field labels: {labels}"

        context = {
            'collisions': {label: list(ids) for label, ids in collisions.items()},
            'collision_count': len(collisions)
        }

        recovery_suggestions = [
            f"Rename all but one of the fields labelled '{label}'" for label in collisions
        ]

        super().__init__(message, context, recovery_suggestions)

    @property
    def labels(self) -> List[str]:
        """Labels involved in a collision, in collection order."""
        return list(self.collisions.keys())


class InvalidReorderError(FormBuilderError):
    """
    Exception raised when a move references positions that are out of
    bounds or identical. Treated as a no-op by the collection.
    """

    def __init__(self, reason: str, from_index: Any = None, to_index: Any = None,
                 message: Optional[str] = None):
        self.reason = reason
        self.from_index = from_index
        self.to_index = to_index

        if message is None:
            message = f"Invalid reorder from {from_index} to {to_index}: {reason}"

        context = {
            'reason': reason,
            'from_index': from_index,
            'to_index': to_index
        }

        super().__init__(message, context, ["Drop the field on a different position"])
