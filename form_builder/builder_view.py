"""
Form builder view for the Streamlit app.
Palette, canvas, properties panel, form settings, schema panel, live
preview and export, all driven by the EditorSession kept in session state.
"""

import logging
from datetime import date
from typing import Dict, Any, List, Optional

import streamlit as st

from .diff_utils import calculate_schema_diff, has_changes, get_change_summary, format_diff_for_display
from .editor_session import EditorSession
from .error_handler import ErrorHandler, ErrorType
from .exceptions import FormBuilderError, LabelCollisionError
from .field_types import get_field_type_spec, get_palette_groups
from .field_validation import validate_fields
from .form_export import build_form_bundle, bundle_to_json, bundle_to_yaml, generate_export_filename
from .form_renderer import FormRenderer
from .models import FieldDescriptor
from .session_manager import SessionManager
from .ui_feedback import Notify, show_form_issues

logger = logging.getLogger(__name__)

PROPERTY_LABELS = {
    'minLength': "Min Length",
    'maxLength': "Max Length",
    'pattern': "Pattern (regex)",
    'min': "Minimum",
    'max': "Maximum",
    'options': "Options (one per line)",
    'defaultChecked': "Checked by default",
    'minDate': "Earliest date",
    'maxDate': "Latest date",
    'allowedTypes': "Allowed types (comma separated)",
    'maxSize': "Max size (MB)",
    'rows': "Rows",
}


def _parse_iso_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class FormBuilderView:
    """Main form builder interface."""

    @staticmethod
    def render(config: Optional[Dict[str, Any]] = None) -> None:
        """Render the builder for the current browser session."""
        config = config or {}
        session = SessionManager.get_editor_session()
        Notify.flush_pending()

        FormBuilderView._render_sidebar(session, config)

        preview = st.toggle("👁️ Preview", value=SessionManager.is_preview_mode(), key="preview_toggle")
        SessionManager.set_preview_mode(preview)

        if preview:
            FormBuilderView._render_preview(session)
        else:
            col_palette, col_canvas, col_properties = st.columns([1, 2, 2])
            with col_palette:
                FormBuilderView._render_palette(session)
            with col_canvas:
                FormBuilderView._render_canvas(session)
            with col_properties:
                FormBuilderView._render_properties_panel(session)

        FormBuilderView._render_schema_panel(session)

    # ------------------------------------------------------------------
    # Palette
    # ------------------------------------------------------------------

    @staticmethod
    def _render_palette(session: EditorSession) -> None:
        st.subheader("🧰 Fields")
        for category, specs in get_palette_groups().items():
            with st.expander(category, expanded=True):
                for spec in specs:
                    if st.button(spec.display_name, key=f"palette_{spec.tag}",
                                 help=spec.description, width='stretch'):
                        FormBuilderView._add_field(session, spec.tag)

    @staticmethod
    def _add_field(session: EditorSession, tag: str) -> None:
        try:
            descriptor = session.add_field(tag)
            FormBuilderView._notify("success", f"Added field: {descriptor.label}")
            st.rerun()
        except FormBuilderError as e:
            ErrorHandler.handle_error(e, "adding field",
                                      show_details=SessionManager.show_error_details())

    # ------------------------------------------------------------------
    # Canvas
    # ------------------------------------------------------------------

    @staticmethod
    def _render_canvas(session: EditorSession) -> None:
        st.subheader("📝 Form")
        fields = session.fields.snapshot()

        if not fields:
            st.info("No fields yet. Pick a field type from the palette to get started.")
            return

        errors_by_id = validate_fields(fields)
        for index, descriptor in enumerate(fields):
            FormBuilderView._render_canvas_item(session, descriptor, index, len(fields),
                                                errors_by_id.get(descriptor.id, []))

    @staticmethod
    def _render_canvas_item(session: EditorSession, descriptor: FieldDescriptor, index: int,
                            total: int, errors: List[str]) -> None:
        field_id = descriptor.id
        spec = get_field_type_spec(descriptor.type)
        required_indicator = " 🔴" if descriptor.is_required else ""
        error_indicator = " ❌" if errors else ""
        selected_indicator = "▶ " if session.is_selected(field_id) else ""

        with st.container(border=True):
            st.markdown(f"{selected_indicator}**{descriptor.label}**{required_indicator}{error_indicator}")
            st.caption(f"{spec.display_name} · Position {index + 1} of {total}")

            col1, col2, col3, col4, col5 = st.columns(5)
            with col1:
                if st.button("✏️", key=f"select_{field_id}", help="Edit this field"):
                    if FormBuilderView._run(lambda: session.select_field(field_id), "selecting field") is not None:
                        st.rerun()
            with col2:
                if st.button("🔼", key=f"move_up_{field_id}", help="Move field up", disabled=(index == 0)):
                    session.fields.move_up(field_id)
                    st.rerun()
            with col3:
                if st.button("🔽", key=f"move_down_{field_id}", help="Move field down",
                             disabled=(index == total - 1)):
                    session.fields.move_down(field_id)
                    st.rerun()
            with col4:
                if st.button("📋", key=f"duplicate_{field_id}", help="Duplicate this field"):
                    duplicated = FormBuilderView._run(lambda: session.duplicate_field(field_id), "duplicating field")
                    if duplicated is not None:
                        FormBuilderView._notify("success", f"Duplicated field: {descriptor.label}")
                    st.rerun()
            with col5:
                if st.button("🗑️", key=f"delete_{field_id}", help="Delete this field"):
                    if FormBuilderView._run(lambda: session.remove_field(field_id), "removing field") is not None:
                        FormBuilderView._notify("info", f"Removed field: {descriptor.label}")
                    st.rerun()

            if total > 1:
                with st.popover("↕️ Move to position"):
                    position = st.number_input("Position", min_value=1, max_value=total, value=index + 1,
                                               step=1, key=f"position_{field_id}")
                    if st.button("Move", key=f"move_to_{field_id}"):
                        if session.on_reorder_complete(field_id, int(position) - 1):
                            FormBuilderView._notify("info", f"Moved {descriptor.label} to position {int(position)}")
                        st.rerun()

            for error in errors:
                st.error(f"  • {error}")

    # ------------------------------------------------------------------
    # Properties panel
    # ------------------------------------------------------------------

    @staticmethod
    def _render_properties_panel(session: EditorSession) -> None:
        st.subheader("⚙️ Properties")
        descriptor = session.selected_field
        if descriptor is None:
            st.info("Select a field on the canvas to edit its properties.")
            return

        field_id = descriptor.id
        spec = get_field_type_spec(descriptor.type)
        properties = descriptor.configurable_properties
        st.caption(f"{spec.display_name}: {spec.description}")

        new_label = st.text_input("Label", value=descriptor.label, key=f"prop_label_{field_id}")
        changes: Dict[str, Any] = {}

        changes['required'] = st.checkbox("Required", value=bool(properties.get('required')),
                                          key=f"prop_required_{field_id}")
        if 'placeholder' in spec.hints:
            changes['placeholder'] = st.text_input("Placeholder", value=properties.get('placeholder') or '',
                                                   key=f"prop_placeholder_{field_id}")
        if 'helpText' in spec.hints:
            changes['helpText'] = st.text_area("Help Text", value=properties.get('helpText') or '',
                                               key=f"prop_help_{field_id}", height=68)

        for prop_name in spec.editors:
            changes[prop_name] = FormBuilderView._render_property_editor(field_id, prop_name, properties.get(prop_name))

        updates: Dict[str, Any] = {}
        if new_label != descriptor.label:
            updates['label'] = new_label
        changed_properties = {k: v for k, v in changes.items() if properties.get(k) != v}
        if changed_properties:
            updates['configurable_properties'] = changed_properties

        if updates:
            if FormBuilderView._run(lambda: session.update_field(field_id, updates), "updating field") is not None:
                st.rerun()

        if st.button("Done", key=f"deselect_{field_id}"):
            session.clear_selection()
            st.rerun()

    @staticmethod
    def _render_property_editor(field_id: str, prop_name: str, value: Any) -> Any:
        """Render the editor widget for one type-specific property and return its value."""
        label = PROPERTY_LABELS.get(prop_name, prop_name)
        key = f"prop_{prop_name}_{field_id}"

        if prop_name in ('minLength', 'maxLength', 'rows'):
            result = st.number_input(label, min_value=0, step=1,
                                     value=int(value) if value is not None else None, key=key)
            return int(result) if result is not None else None

        if prop_name in ('min', 'max', 'maxSize'):
            result = st.number_input(label, value=float(value) if value is not None else None, key=key)
            if result is None:
                return None
            return int(result) if float(result).is_integer() else result

        if prop_name == 'pattern':
            result = st.text_input(label, value=value or '', key=key)
            return result or None

        if prop_name == 'options':
            text = st.text_area(label, value="\n".join(str(o) for o in (value or [])), key=key)
            return [line.strip() for line in text.splitlines() if line.strip()]

        if prop_name == 'defaultChecked':
            return st.checkbox(label, value=bool(value), key=key)

        if prop_name in ('minDate', 'maxDate'):
            result = st.date_input(label, value=_parse_iso_date(value), key=key)
            return result.isoformat() if isinstance(result, date) else None

        if prop_name == 'allowedTypes':
            text = st.text_input(label, value=", ".join(value or []), key=key)
            return [item.strip() for item in text.split(',') if item.strip()]

        logger.warning(f"No editor for property '{prop_name}'")
        return value

    # ------------------------------------------------------------------
    # Sidebar: settings, export, session
    # ------------------------------------------------------------------

    @staticmethod
    def _render_sidebar(session: EditorSession, config: Dict[str, Any]) -> None:
        with st.sidebar:
            FormBuilderView._render_settings(session)
            st.divider()
            FormBuilderView._render_export(session)
            st.divider()
            show_schema = st.checkbox("Show schema", value=SessionManager.is_schema_visible(),
                                      key="show_schema_toggle")
            SessionManager.set_schema_visible(show_schema)
            if st.button("🆕 New Form", help="Discard all fields and start over"):
                SessionManager.reset_session(config)
                FormBuilderView._notify("info", "Started a new form")
                st.rerun()

    @staticmethod
    def _render_settings(session: EditorSession) -> None:
        st.subheader("📄 Form Settings")
        settings = session.settings
        changes = {
            'title': st.text_input("Title", value=settings.title, key="settings_title"),
            'description': st.text_area("Description", value=settings.description, key="settings_description"),
            'submit_text': st.text_input("Submit button text", value=settings.submit_text, key="settings_submit"),
            'show_reset': st.checkbox("Show reset button", value=settings.show_reset, key="settings_show_reset"),
        }
        if changes['show_reset']:
            changes['reset_text'] = st.text_input("Reset button text", value=settings.reset_text,
                                                  key="settings_reset_text")

        changed = {k: v for k, v in changes.items() if getattr(settings, k) != v}
        if changed:
            session.update_settings(**changed)
            logger.debug(f"Form settings changed: {sorted(changed)}")

    @staticmethod
    def _render_export(session: EditorSession) -> None:
        st.subheader("💾 Export")
        if len(session.fields) == 0:
            st.caption("Add fields to enable export.")
            return

        try:
            bundle = build_form_bundle(session)
        except LabelCollisionError as e:
            st.warning(f"Cannot export: {e.message}")
            return

        labels_by_id = dict(zip(session.fields.ids(), session.fields.labels()))
        issues = validate_fields(session.fields.snapshot())
        show_form_issues({labels_by_id[field_id]: errors for field_id, errors in issues.items()})

        export_format = st.radio("Format", options=["JSON", "YAML"], horizontal=True, key="export_format")
        if export_format == "YAML":
            content, extension, mime = bundle_to_yaml(bundle), "yaml", "application/x-yaml"
        else:
            content, extension, mime = bundle_to_json(bundle), "json", "application/json"

        st.download_button(
            "⬇️ Download Form",
            data=content,
            file_name=generate_export_filename(session.settings.title, extension),
            mime=mime,
            on_click=SessionManager.set_last_exported_bundle,
            args=(bundle,),
        )

        previous = SessionManager.get_last_exported_bundle()
        if previous is not None:
            diff = calculate_schema_diff(previous, bundle)
            if has_changes(diff):
                summary = get_change_summary(diff)
                with st.expander(f"Changes since last export ({summary['total']})"):
                    for line in format_diff_for_display(diff):
                        st.write(f"• {line}")
            else:
                st.caption("No changes since last export.")

    # ------------------------------------------------------------------
    # Schema panel and preview
    # ------------------------------------------------------------------

    @staticmethod
    def _render_schema_panel(session: EditorSession) -> None:
        if not SessionManager.is_schema_visible():
            return

        st.divider()
        st.subheader("🧾 Schema")
        try:
            result = session.synthesize()
        except LabelCollisionError as e:
            ErrorHandler.handle_error(e, "synthesizing schema", ErrorType.LABEL_COLLISION,
                                      show_details=SessionManager.show_error_details())
            return

        col_schema, col_ui = st.columns(2)
        with col_schema:
            st.caption("JSON Schema")
            st.json(result.structural_schema)
        with col_ui:
            st.caption("UI Schema")
            st.json(result.presentation_schema)

    @staticmethod
    def _render_preview(session: EditorSession) -> None:
        try:
            result = session.synthesize()
        except LabelCollisionError as e:
            ErrorHandler.handle_error(e, "previewing form", ErrorType.LABEL_COLLISION,
                                      show_details=SessionManager.show_error_details())
            return

        submitted = FormRenderer.render_form(result.structural_schema, result.presentation_schema,
                                             session.settings)
        if submitted is not None:
            with st.expander("Submitted data", expanded=True):
                st.json(submitted)

    @staticmethod
    def _run(operation, context: str) -> Any:
        """Run a session operation, reporting builder errors instead of raising them."""
        return ErrorHandler.with_error_handling(operation, context,
                                                show_details=SessionManager.show_error_details())

    @staticmethod
    def _notify(kind: str, message: str) -> None:
        """Queue a toast for the next run unless builder.notify_on_change is off."""
        if not SessionManager.notifications_enabled():
            return
        if kind == "success":
            Notify.success(message, defer=True)
        else:
            Notify.info(message, defer=True)


def render_form_builder(config: Optional[Dict[str, Any]] = None) -> None:
    """Convenience function to render the form builder."""
    FormBuilderView.render(config)
