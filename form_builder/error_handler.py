"""
Error handling utilities for the form builder UI.
Turns exceptions raised by builder operations into user-friendly messages
with recovery suggestions.
"""

import streamlit as st
import logging
import traceback
from typing import Dict, Any, Optional, Callable, List

from .exceptions import (
    FormBuilderError,
    FieldNotFoundError,
    LabelCollisionError,
    InvalidReorderError,
)

logger = logging.getLogger(__name__)


class ErrorType:
    """Error type constants."""
    FIELD_NOT_FOUND = "field_not_found"
    LABEL_COLLISION = "label_collision"
    INVALID_REORDER = "invalid_reorder"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


ERROR_MESSAGES = {
    ErrorType.FIELD_NOT_FOUND: {
        FieldNotFoundError: "🔎 That field no longer exists. It may have been removed.",
        "default": "🔎 The field could not be found."
    },
    ErrorType.LABEL_COLLISION: {
        LabelCollisionError: "🏷️ Two or more fields share a label. Labels must be unique to build the schema.",
        "default": "🏷️ Field labels must be unique."
    },
    ErrorType.INVALID_REORDER: {
        InvalidReorderError: "↕️ That move is not possible.",
        "default": "↕️ The field could not be moved."
    },
    ErrorType.VALIDATION: {
        ValueError: "✏️ That change could not be applied to the field. Check the property values.",
        TypeError: "✏️ A property has the wrong kind of value for this field type.",
        "default": "✏️ The field could not be updated."
    },
    ErrorType.CONFIGURATION: {
        KeyError: "⚙️ A required configuration value is missing.",
        ValueError: "⚙️ The configuration contains an invalid value.",
        "default": "⚙️ Configuration error. Default settings are in use."
    },
    ErrorType.SYSTEM: {
        "default": "💻 An unexpected error occurred. Please try again."
    }
}

_ERROR_TYPE_BY_EXCEPTION = (
    (FieldNotFoundError, ErrorType.FIELD_NOT_FOUND),
    (LabelCollisionError, ErrorType.LABEL_COLLISION),
    (InvalidReorderError, ErrorType.INVALID_REORDER),
)


class ErrorHandler:
    """Error handling for the form builder UI."""

    @staticmethod
    def classify(error: Exception) -> str:
        """Map an exception to an ErrorType."""
        for exception_type, error_type in _ERROR_TYPE_BY_EXCEPTION:
            if isinstance(error, exception_type):
                return error_type
        if isinstance(error, (ValueError, TypeError)):
            return ErrorType.VALIDATION
        return ErrorType.SYSTEM

    @staticmethod
    def get_user_friendly_message(error: Exception, error_type: str) -> str:
        """Generate user-friendly error messages based on error type."""
        error_type_messages = ERROR_MESSAGES.get(error_type, ERROR_MESSAGES[ErrorType.SYSTEM])

        for exception_type, message in error_type_messages.items():
            if exception_type != "default" and isinstance(error, exception_type):
                return message

        return error_type_messages.get("default", "An unexpected error occurred.")

    @staticmethod
    def get_recovery_suggestions(error: Exception) -> List[str]:
        """Recovery suggestions carried by builder exceptions."""
        if isinstance(error, FormBuilderError):
            return list(error.recovery_suggestions)
        return []

    @staticmethod
    def handle_error(
        error: Exception,
        context: str,
        error_type: Optional[str] = None,
        user_message: Optional[str] = None,
        show_details: bool = False
    ) -> None:
        """
        Handle errors with user-friendly messages and recovery suggestions.

        Args:
            error: The exception that occurred
            context: Context where the error occurred
            error_type: Type of error (from ErrorType constants), inferred when omitted
            user_message: Custom user-friendly message
            show_details: Whether to show technical details
        """
        if error_type is None:
            error_type = ErrorHandler.classify(error)

        if isinstance(error, FormBuilderError):
            logger.warning(f"{type(error).__name__} in {context}: {error.get_full_details()}")
        else:
            logger.error(f"Error in {context}: {str(error)}", exc_info=True)

        if not user_message:
            user_message = ErrorHandler.get_user_friendly_message(error, error_type)

        st.error(user_message)

        if isinstance(error, FormBuilderError):
            st.caption(error.message)

        suggestions = ErrorHandler.get_recovery_suggestions(error)
        if suggestions:
            st.markdown("**🔧 Suggested Actions:**")
            for suggestion in suggestions:
                st.markdown(f"- {suggestion}")

        if show_details:
            with st.expander("🔍 Technical Details"):
                st.write(f"**Error Type:** {type(error).__name__}")
                st.write(f"**Context:** {context}")
                st.write(f"**Error Message:** {str(error)}")
                st.code(traceback.format_exc())

    @staticmethod
    def with_error_handling(
        func: Callable,
        context: str,
        error_type: Optional[str] = None,
        user_message: Optional[str] = None,
        show_details: bool = False,
        default_return: Any = None
    ) -> Any:
        """
        Run an operation, reporting any exception through handle_error.

        Args:
            func: Function to execute
            context: Context description
            error_type: Type of error expected
            user_message: Custom user message
            show_details: Show technical details
            default_return: Value to return on error

        Returns:
            Function result or default_return on error
        """
        try:
            return func()
        except Exception as e:
            ErrorHandler.handle_error(e, context, error_type, user_message, show_details)
            return default_return


def handle_error(error: Exception, context: str, error_type: Optional[str] = None) -> None:
    """Convenience function for error handling."""
    ErrorHandler.handle_error(error, context, error_type)


def with_error_handling(func: Callable, context: str, **kwargs: Any) -> Any:
    """Convenience function for wrapping operations with error handling."""
    return ErrorHandler.with_error_handling(func, context, **kwargs)
