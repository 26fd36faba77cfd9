"""
Form renderer for the form builder preview.
Renders Streamlit widgets from a synthesized structural schema and its
presentation schema, validates the submission with a dynamic Pydantic
model and hands the cleaned data to a callback.
"""

import base64
import logging
from datetime import datetime, date
from typing import Dict, Any, Optional, Callable, List

import streamlit as st
from dateutil import parser as date_parser
from pydantic import ValidationError

from .model_builder import validate_submission, coerce_submission
from .models import FormSettings

logger = logging.getLogger(__name__)

DEFAULT_FORM_KEY = "preview_form"
TEXTAREA_ROW_HEIGHT = 28
MIN_TEXTAREA_HEIGHT = 68
BYTES_PER_MB = 1024 * 1024


def _parse_date(value: Any) -> Optional[date]:
    """Parse a date bound or stored value, returning None when unusable."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date_parser.parse(str(value)).date()
    except (ValueError, OverflowError) as e:
        logger.warning(f"Failed to parse date string '{value}': {e}")
        return None


def _accepted_extensions(accept: Optional[str]) -> Optional[List[str]]:
    """
    Convert an accept hint to the extension list st.file_uploader expects.

    Wildcard media types (image/*) cannot be expressed as extensions, so any
    wildcard disables the widget filter and _matches_accept checks the upload.
    """
    if not accept:
        return None
    extensions = []
    for item in accept.split(','):
        item = item.strip()
        if item.endswith('/*'):
            return None
        if item.startswith('.'):
            extensions.append(item[1:])
        elif '/' in item:
            extensions.append(item.split('/', 1)[1])
    return extensions or None


def _matches_accept(uploaded_file: Any, accept: Optional[str]) -> bool:
    """Check an upload's media type or extension against an accept hint."""
    if not accept:
        return True
    mime_type = (getattr(uploaded_file, 'type', None) or '').lower()
    name = (getattr(uploaded_file, 'name', None) or '').lower()
    for item in accept.lower().split(','):
        item = item.strip()
        if not item:
            continue
        if item in ('*/*', '*'):
            return True
        if item.startswith('.'):
            if name.endswith(item):
                return True
        elif item.endswith('/*'):
            if mime_type.startswith(item[:-1]):
                return True
        elif mime_type == item:
            return True
    return False


def _to_data_url(uploaded_file: Any) -> str:
    data = uploaded_file.getvalue()
    mime_type = getattr(uploaded_file, 'type', None) or 'application/octet-stream'
    encoded = base64.b64encode(data).decode('ascii')
    return f"data:{mime_type};name={uploaded_file.name};base64,{encoded}"


class FormRenderer:
    """Renders a synthesized form with Streamlit widgets."""

    @staticmethod
    def widget_key(form_key: str, label: str) -> str:
        return f"{form_key}_field_{label}"

    @staticmethod
    def get_widget_type(fragment: Dict[str, Any], hints: Dict[str, Any]) -> str:
        """
        Choose the widget for a property from its fragment and hints.

        Returns:
            One of checkbox, radio, selectbox, number_input, date_input,
            datetime_input, file_uploader, text_area, password, text_input
        """
        ui_widget = hints.get('ui:widget')
        field_type = fragment.get('type', 'string')
        field_format = fragment.get('format')

        if field_type == 'boolean':
            return 'checkbox'
        if 'enum' in fragment:
            return 'radio' if ui_widget == 'radio' else 'selectbox'
        if field_type in ('number', 'integer'):
            return 'number_input'
        if field_format == 'date':
            return 'date_input'
        if field_format == 'date-time':
            return 'datetime_input'
        if field_format == 'data-url' or ui_widget == 'file':
            return 'file_uploader'
        if ui_widget == 'textarea':
            return 'text_area'
        if ui_widget == 'password':
            return 'password'
        return 'text_input'

    @staticmethod
    def render_form(
        schema: Dict[str, Any],
        ui_schema: Dict[str, Any],
        settings: Optional[FormSettings] = None,
        form_key: str = DEFAULT_FORM_KEY,
        on_submit: Optional[Callable[[Dict[str, Any]], None]] = None,
        initial_data: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Render a form and process its submission.

        Args:
            schema: Structural schema
            ui_schema: Presentation schema keyed by label
            settings: Form settings for button labels
            form_key: Streamlit form key, also the widget key prefix
            on_submit: Called with the validated data on a successful submit
            initial_data: Starting values keyed by label

        Returns:
            Validated data when the form was submitted successfully, else None
        """
        settings = settings or FormSettings()
        initial_data = initial_data or {}
        properties = schema.get('properties', {})
        required = set(schema.get('required', []))

        if schema.get('title'):
            st.subheader(schema['title'])
        if schema.get('description'):
            st.caption(schema['description'])

        if not properties:
            st.info("This form has no fields yet.")
            return None

        with st.form(form_key, clear_on_submit=False):
            form_data: Dict[str, Any] = {}
            upload_errors: List[str] = []
            for label, fragment in properties.items():
                hints = ui_schema.get(label) or {}
                value = FormRenderer.render_field(label, fragment, hints, label in required, form_key,
                                                  initial_data.get(label))
                if isinstance(value, _RejectedUpload):
                    upload_errors.append(value.message)
                    value = None
                form_data[label] = value

            if settings.show_reset:
                col_submit, col_reset = st.columns(2)
                with col_submit:
                    submitted = st.form_submit_button(settings.submit_text, type="primary")
                with col_reset:
                    reset = st.form_submit_button(settings.reset_text)
            else:
                submitted = st.form_submit_button(settings.submit_text, type="primary")
                reset = False

        if reset:
            FormRenderer.reset_form(properties, form_key)
            st.rerun()

        if not submitted:
            return None

        errors = upload_errors + validate_submission(form_data, schema)
        if errors:
            st.error("Please fix the following errors:")
            for error in errors:
                st.error(f"  • {error}")
            return None

        try:
            cleaned = coerce_submission(form_data, schema)
        except ValidationError as e:
            logger.error(f"Submission failed after validation passed: {e}")
            st.error("Submission could not be processed.")
            return None

        logger.info(f"Form '{schema.get('title', '')}' submitted with {len(cleaned)} values")
        if on_submit is not None:
            on_submit(cleaned)
        st.success("Form submitted successfully")
        return cleaned

    @staticmethod
    def reset_form(properties: Dict[str, Any], form_key: str = DEFAULT_FORM_KEY) -> None:
        """Drop widget state so every field shows its default again."""
        for label in properties:
            base_key = FormRenderer.widget_key(form_key, label)
            for key in (base_key, f"{base_key}_date", f"{base_key}_time"):
                if key in st.session_state:
                    del st.session_state[key]
        logger.debug(f"Reset form '{form_key}'")

    @staticmethod
    def render_field(
        label: str,
        fragment: Dict[str, Any],
        hints: Dict[str, Any],
        required: bool,
        form_key: str = DEFAULT_FORM_KEY,
        initial: Any = None
    ) -> Any:
        """Render one property and return the current widget value."""
        widget_type = FormRenderer.get_widget_type(fragment, hints)
        display_label = f"{label} *" if required else label
        kwargs: Dict[str, Any] = {
            'label': display_label,
            'key': FormRenderer.widget_key(form_key, label),
            'help': hints.get('ui:help'),
        }
        placeholder = hints.get('ui:placeholder')
        options = hints.get('ui:options') or {}

        try:
            if widget_type == 'checkbox':
                checked = initial if initial is not None else fragment.get('default', False)
                kwargs['value'] = bool(checked)
                return st.checkbox(**kwargs)

            if widget_type in ('selectbox', 'radio'):
                choices = list(fragment.get('enum', []))
                index = choices.index(initial) if initial in choices else None
                if widget_type == 'radio':
                    return st.radio(options=choices, index=index, **kwargs)
                if placeholder:
                    kwargs['placeholder'] = placeholder
                return st.selectbox(options=choices, index=index, **kwargs)

            if widget_type == 'number_input':
                return FormRenderer._render_number_input(fragment, placeholder, kwargs, initial)

            if widget_type == 'date_input':
                return FormRenderer._render_date_input(fragment, kwargs, initial)

            if widget_type == 'datetime_input':
                return FormRenderer._render_datetime_input(fragment, kwargs, initial)

            if widget_type == 'file_uploader':
                return FormRenderer._render_file_uploader(label, options, kwargs)

            if placeholder:
                kwargs['placeholder'] = placeholder
            if initial is not None:
                kwargs['value'] = str(initial)
            if 'maxLength' in fragment:
                kwargs['max_chars'] = int(fragment['maxLength'])

            if widget_type == 'text_area':
                rows = options.get('rows')
                if rows:
                    kwargs['height'] = max(MIN_TEXTAREA_HEIGHT, int(rows) * TEXTAREA_ROW_HEIGHT)
                return st.text_area(**kwargs)

            if widget_type == 'password':
                return st.text_input(type="password", **kwargs)

            return st.text_input(**kwargs)

        except Exception as e:
            st.error(f"Error rendering field {label}: {str(e)}")
            logger.error(f"Error rendering field {label}: {e}", exc_info=True)
            return None

    @staticmethod
    def _render_number_input(fragment: Dict[str, Any], placeholder: Optional[str],
                             kwargs: Dict[str, Any], initial: Any = None) -> Optional[float]:
        if fragment.get('minimum') is not None:
            kwargs['min_value'] = float(fragment['minimum'])
        if fragment.get('maximum') is not None:
            kwargs['max_value'] = float(fragment['maximum'])
        if placeholder:
            kwargs['placeholder'] = placeholder
        try:
            value = float(initial) if initial is not None else None
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric initial value '{initial}' for {kwargs['label']}")
            value = None
        return st.number_input(value=value, **kwargs)

    @staticmethod
    def _render_date_input(fragment: Dict[str, Any], kwargs: Dict[str, Any],
                           initial: Any = None) -> Optional[str]:
        """Render a date picker and return the value as an ISO date string."""
        lower = _parse_date(fragment.get('formatMinimum'))
        upper = _parse_date(fragment.get('formatMaximum'))
        if lower is not None:
            kwargs['min_value'] = lower
        if upper is not None:
            kwargs['max_value'] = upper

        result = st.date_input(value=_parse_date(initial), **kwargs)
        if result is not None and isinstance(result, date):
            return result.isoformat()
        return None

    @staticmethod
    def _render_datetime_input(fragment: Dict[str, Any], kwargs: Dict[str, Any],
                               initial: Any = None) -> Optional[str]:
        """Render date and time pickers side by side and return an ISO datetime string."""
        label = kwargs['label']
        key = kwargs['key']
        lower = _parse_date(fragment.get('formatMinimum'))
        upper = _parse_date(fragment.get('formatMaximum'))

        initial_date = initial_time = None
        if initial:
            try:
                parsed = initial if isinstance(initial, datetime) else date_parser.parse(str(initial))
                initial_date, initial_time = parsed.date(), parsed.time()
            except (ValueError, OverflowError) as e:
                logger.warning(f"Failed to parse datetime string '{initial}': {e}")

        col1, col2 = st.columns(2)
        with col1:
            date_kwargs: Dict[str, Any] = {'key': f"{key}_date", 'help': kwargs.get('help')}
            if lower is not None:
                date_kwargs['min_value'] = lower
            if upper is not None:
                date_kwargs['max_value'] = upper
            date_part = st.date_input(f"{label} (Date)", value=initial_date, **date_kwargs)
        with col2:
            time_part = st.time_input(f"{label} (Time)", value=initial_time, key=f"{key}_time")

        if date_part is None:
            return None
        combined = datetime.combine(date_part, time_part or datetime.min.time())
        return combined.isoformat()

    @staticmethod
    def _render_file_uploader(label: str, options: Dict[str, Any], kwargs: Dict[str, Any]) -> Any:
        accept = options.get('accept')
        uploaded = st.file_uploader(type=_accepted_extensions(accept), **kwargs)
        if uploaded is None:
            return None

        if not _matches_accept(uploaded, accept):
            logger.info(f"Rejected upload '{uploaded.name}' ({uploaded.type}) for {label}, accepts {accept}")
            return _RejectedUpload(f"{label}: File type {uploaded.type or 'unknown'} is not allowed ({accept})")

        max_size = options.get('maxSize')
        size = getattr(uploaded, 'size', None)
        if max_size and size is not None and size > float(max_size) * BYTES_PER_MB:
            return _RejectedUpload(f"{label}: File exceeds the {max_size} MB limit")
        return _to_data_url(uploaded)


class _RejectedUpload:
    """Marker returned for an upload of the wrong type or over its size limit."""

    def __init__(self, message: str):
        self.message = message
