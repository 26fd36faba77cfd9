"""
Main Streamlit application for the Form Builder.
Build a form field by field, preview it live, and export its JSON Schema
and UI Schema.
"""

import streamlit as st
import logging

from form_builder.config_loader import load_config, validate_config, get_config_value, get_logging_level

# Load configuration early
config = load_config()

# Configure logging dynamically from config
try:
    log_level_str = get_config_value(config, 'logging', 'level', 'INFO')
    logging.basicConfig(level=get_logging_level(log_level_str))
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured to level: {log_level_str}")
except Exception as e:
    # Fallback to INFO if config reading fails
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to configure logging from config: {e}, using INFO level")

page_title = get_config_value(config, 'ui', 'page_title', 'Form Builder')
app_version = get_config_value(config, 'app', 'version', 'Unknown')
logger.info(f"Starting app version: {app_version}")

# Page configuration
st.set_page_config(
    page_title=page_title,
    page_icon="🧩",
    layout="wide",
    initial_sidebar_state="expanded"
)


def main():
    """Main application entry point."""
    from form_builder.builder_view import FormBuilderView
    from form_builder.error_handler import ErrorHandler, ErrorType
    from form_builder.session_manager import SessionManager

    try:
        if not validate_config(config):
            st.warning("⚠️ **Configuration Issues Detected**")
            st.warning("Some configuration settings are invalid, using defaults where necessary.")

        SessionManager.initialize(config)
        render_header()
        FormBuilderView.render(config)

    except Exception as e:
        ErrorHandler.handle_error(e, "application startup", ErrorType.SYSTEM,
                                  show_details=get_config_value(config, 'app', 'debug', False))


def render_header():
    """Render the application header."""
    app_name = get_config_value(config, 'app', 'name', 'Form Builder')
    subtitle = get_config_value(config, 'ui', 'subtitle', '')
    st.title(f"🧩 {app_name}")
    if subtitle:
        st.markdown(f"**{subtitle}**")


if __name__ == "__main__":
    main()
