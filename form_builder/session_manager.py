"""
Session state management for the Streamlit form builder.
Keeps one EditorSession per browser session plus view preferences.
"""

import streamlit as st
from typing import Dict, Any, Optional
from datetime import datetime
import logging

from .editor_session import EditorSession

logger = logging.getLogger(__name__)

EDITOR_SESSION_KEY = 'form_builder_session'


class SessionManager:
    """Manages Streamlit session state for the form builder."""

    @staticmethod
    def initialize(config: Optional[Dict[str, Any]] = None):
        """
        Initialize session state with default values.

        Existing keys are left untouched, so calling this on every rerun is safe.
        """
        config = config or {}
        ui_config = config.get('ui', {}) or {}
        builder_config = config.get('builder', {}) or {}
        app_config = config.get('app', {}) or {}

        defaults = {
            'preview_mode': False,
            'show_schema': bool(ui_config.get('show_schema_panel', False)),
            'last_exported_bundle': None,
            'last_activity': datetime.now(),
            'session_id': None,
            'notify_on_change': bool(builder_config.get('notify_on_change', True)),
            'show_error_details': bool(app_config.get('debug', False)),
        }

        for key, default_value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default_value

        if st.session_state.get(EDITOR_SESSION_KEY) is None:
            st.session_state[EDITOR_SESSION_KEY] = EditorSession.from_config(config)

        if not st.session_state['session_id']:
            st.session_state['session_id'] = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        logger.info(f"Session initialized: {st.session_state['session_id']}")

    @staticmethod
    def get_editor_session() -> EditorSession:
        """Get the editing session, creating a default one if needed."""
        session = st.session_state.get(EDITOR_SESSION_KEY)
        if session is None:
            session = EditorSession()
            st.session_state[EDITOR_SESSION_KEY] = session
        return session

    @staticmethod
    def is_preview_mode() -> bool:
        return st.session_state.get('preview_mode', False)

    @staticmethod
    def set_preview_mode(enabled: bool):
        """Toggle between edit and preview."""
        if enabled != st.session_state.get('preview_mode'):
            logger.info(f"Preview mode: {enabled}")
            st.session_state['preview_mode'] = enabled
            SessionManager.update_activity()

    @staticmethod
    def is_schema_visible() -> bool:
        return st.session_state.get('show_schema', False)

    @staticmethod
    def set_schema_visible(visible: bool):
        st.session_state['show_schema'] = visible

    @staticmethod
    def notifications_enabled() -> bool:
        return st.session_state.get('notify_on_change', True)

    @staticmethod
    def show_error_details() -> bool:
        """Whether error displays include technical details (app.debug)."""
        return st.session_state.get('show_error_details', False)

    @staticmethod
    def get_last_exported_bundle() -> Optional[Dict[str, Any]]:
        """Get the bundle recorded by the most recent export."""
        return st.session_state.get('last_exported_bundle')

    @staticmethod
    def set_last_exported_bundle(bundle: Optional[Dict[str, Any]]):
        st.session_state['last_exported_bundle'] = bundle
        SessionManager.update_activity()

    @staticmethod
    def update_activity():
        """Update last activity timestamp."""
        st.session_state['last_activity'] = datetime.now()

    @staticmethod
    def get_session_id() -> str:
        """Get the session ID."""
        return st.session_state.get('session_id') or 'unknown'

    @staticmethod
    def reset_session(config: Optional[Dict[str, Any]] = None):
        """
        Discard the form under construction and start over.

        Form settings and the schema panel preference are kept.
        """
        logger.info(f"Resetting session: {SessionManager.get_session_id()}")

        previous = st.session_state.get(EDITOR_SESSION_KEY)
        show_schema = SessionManager.is_schema_visible()

        for key in list(st.session_state.keys()):
            del st.session_state[key]

        SessionManager.initialize(config)
        if previous is not None:
            SessionManager.get_editor_session().settings_store.set(previous.settings)
        st.session_state['show_schema'] = show_schema
