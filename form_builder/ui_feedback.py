"""
UI feedback for the form builder.

Builder actions usually end with st.rerun(), which discards anything drawn
in the current run. Notifications raised by an action are therefore queued
in session state and shown at the start of the next run by flush_pending().
"""

import logging
from typing import Dict, List, Tuple

import streamlit as st

logger = logging.getLogger(__name__)

PENDING_KEY = 'pending_notifications'

NOTIFICATION_ICONS = {
    'success': '✅',
    'info': 'ℹ️',
    'warning': '⚠️',
    'error': '❌'
}


class Notify:
    """
    Toast notifications for builder actions.

    Usage:
    Notify.success("Added field: Email")            # shown now
    Notify.success("Added field: Email", defer=True) # shown after st.rerun()
    """

    @staticmethod
    def _display_notification(message: str, notification_type: str = 'info') -> None:
        icon = NOTIFICATION_ICONS.get(notification_type, NOTIFICATION_ICONS['info'])
        try:
            st.toast(message, icon=icon)
        except Exception as e:
            logger.error(f"Error using st.toast: {e}", exc_info=True)
            fallback = getattr(st, notification_type if notification_type in NOTIFICATION_ICONS else 'info')
            fallback(f"{icon} {message}")

    @staticmethod
    def _notify(message: str, notification_type: str, defer: bool) -> None:
        if defer:
            pending: List[Tuple[str, str]] = st.session_state.get(PENDING_KEY) or []
            pending.append((message, notification_type))
            st.session_state[PENDING_KEY] = pending
            logger.debug(f"Queued {notification_type} notification: {message}")
        else:
            Notify._display_notification(message, notification_type)

    @staticmethod
    def success(message: str, defer: bool = False) -> None:
        Notify._notify(message, 'success', defer)

    @staticmethod
    def info(message: str, defer: bool = False) -> None:
        Notify._notify(message, 'info', defer)

    @staticmethod
    def warn(message: str, defer: bool = False) -> None:
        Notify._notify(message, 'warning', defer)

    @staticmethod
    def error(message: str, defer: bool = False) -> None:
        Notify._notify(message, 'error', defer)

    @staticmethod
    def flush_pending() -> int:
        """
        Show notifications queued before the last rerun.

        Returns:
            Number of notifications shown
        """
        pending = st.session_state.get(PENDING_KEY) or []
        st.session_state[PENDING_KEY] = []
        for message, notification_type in pending:
            Notify._display_notification(message, notification_type)
        return len(pending)


def show_form_issues(issues_by_label: Dict[str, List[str]]) -> bool:
    """
    Summarize field problems above an action such as export.

    Args:
        issues_by_label: Problems per field label, as found by field validation

    Returns:
        True if there was anything to show
    """
    if not issues_by_label:
        return False

    count = len(issues_by_label)
    noun = "field needs" if count == 1 else "fields need"
    st.warning(f"⚠️ **{count} {noun} attention:**")
    for label, issues in issues_by_label.items():
        for issue in issues:
            st.warning(f"  • {label}: {issue}")
    return True
