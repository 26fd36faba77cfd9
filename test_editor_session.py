"""
Unit tests for editor_session module.
"""

import pytest

from form_builder.config_loader import get_default_config
from form_builder.editor_session import EditorSession
from form_builder.exceptions import FieldNotFoundError, LabelCollisionError
from form_builder.models import FormSettings


class TestSelection:
    """Test class for selection handling."""

    def setup_method(self):
        self.session = EditorSession()
        self.a = self.session.add_field("text", "A")
        self.b = self.session.add_field("text", "B")
        self.c = self.session.add_field("text", "C")

    def test_add_selects_new_field(self):
        """Test that a newly added field becomes the selection."""
        assert self.session.selected_id == self.c.id
        assert self.session.selected_field.label == "C"

    def test_select_field(self):
        """Test selecting an existing field."""
        selected = self.session.select_field(self.a.id)
        assert selected.id == self.a.id
        assert self.session.is_selected(self.a.id)
        assert not self.session.is_selected(self.b.id)

    def test_select_unknown_field_raises(self):
        """Test that selecting an unknown id raises and keeps the selection."""
        with pytest.raises(FieldNotFoundError):
            self.session.select_field("missing")
        assert self.session.selected_id == self.c.id

    def test_removing_selected_field_clears_selection(self):
        """Test that removing the selected field leaves no selection."""
        self.session.select_field(self.b.id)
        self.session.remove_field(self.b.id)

        assert [f.label for f in self.session.fields] == ["A", "C"]
        assert self.session.selected_id is None
        assert self.session.selected_field is None

    def test_removing_other_field_keeps_selection(self):
        """Test that removing a different field keeps the selection."""
        self.session.select_field(self.a.id)
        self.session.remove_field(self.b.id)
        assert self.session.selected_id == self.a.id

    def test_duplicate_selects_copy(self):
        """Test that the duplicated field becomes the selection."""
        copy = self.session.duplicate_field(self.a.id)
        assert self.session.selected_id == copy.id
        assert self.session.fields.index_of(copy.id) == 1

    def test_clear_selection(self):
        """Test clearing the selection."""
        self.session.clear_selection()
        assert self.session.selected_id is None


class TestFieldOperations:
    """Test class for field operations through the session."""

    def setup_method(self):
        self.session = EditorSession()

    def test_update_field_properties(self):
        """Test setting individual properties by keyword."""
        field = self.session.add_field("text")
        updated = self.session.update_field_properties(field.id, minLength=2, required=True)

        assert updated.configurable_properties['minLength'] == 2
        assert updated.is_required

    def test_update_keeps_selection(self):
        """Test that updates do not change the selection."""
        first = self.session.add_field("text")
        self.session.add_field("text")
        self.session.select_field(first.id)
        self.session.update_field(first.id, {'label': "Renamed"})
        assert self.session.selected_id == first.id

    def test_reorder(self):
        """Test reorder through the session."""
        for label in ("A", "B", "C"):
            self.session.add_field("text", label)
        assert self.session.reorder(0, 2) is True
        assert self.session.fields.labels() == ["B", "C", "A"]

    def test_on_reorder_complete(self):
        """Test committing the final position of a reorder gesture."""
        ids = [self.session.add_field("text", label).id for label in ("A", "B", "C")]

        assert self.session.on_reorder_complete(ids[2], 0) is True
        assert self.session.fields.labels() == ["C", "A", "B"]

    def test_on_reorder_complete_at_origin_is_ignored(self):
        """Test that a gesture ending where it started changes nothing."""
        ids = [self.session.add_field("text", label).id for label in ("A", "B")]
        assert self.session.on_reorder_complete(ids[1], 1) is False
        assert self.session.fields.labels() == ["A", "B"]

    def test_on_reorder_complete_unknown_id(self):
        """Test that an unknown id is ignored."""
        self.session.add_field("text")
        assert self.session.on_reorder_complete("missing", 0) is False

    def test_reset_keeps_settings(self):
        """Test that reset removes fields but keeps settings."""
        self.session.add_field("text")
        self.session.update_settings(title="Survey")
        self.session.reset()

        assert len(self.session.fields) == 0
        assert self.session.selected_id is None
        assert self.session.settings.title == "Survey"


class TestSettingsAndSynthesis:
    """Test class for settings and synthesis through the session."""

    def test_update_settings(self):
        """Test changing settings."""
        session = EditorSession()
        settings = session.update_settings(submit_text="Send", show_reset=True)

        assert settings.submit_text == "Send"
        assert session.settings.show_reset is True

    def test_update_settings_unknown_key(self):
        """Test that unknown settings are rejected."""
        session = EditorSession()
        with pytest.raises(ValueError):
            session.update_settings(colour="blue")

    def test_settings_do_not_touch_fields(self):
        """Test that settings changes leave the collection untouched."""
        session = EditorSession()
        session.add_field("email")
        before = session.fields.snapshot()
        session.update_settings(title="New Title")
        assert session.fields.snapshot() == before

    def test_synthesize_uses_settings(self):
        """Test that synthesis reads the current settings."""
        session = EditorSession(settings=FormSettings(title="Registration"))
        session.add_field("email", "Email")
        schema = session.synthesize().structural_schema

        assert schema['title'] == "Registration"
        assert list(schema['properties']) == ["Email"]

    def test_synthesize_reports_collisions(self):
        """Test that label collisions surface from the session."""
        session = EditorSession()
        session.add_field("text", "Name")
        session.add_field("text", "Name")
        with pytest.raises(LabelCollisionError):
            session.synthesize()

    def test_from_config(self):
        """Test creating a session from configuration."""
        config = get_default_config()
        config['builder']['label_prefix'] = "Question"
        config['form_defaults']['title'] = "Feedback"

        session = EditorSession.from_config(config)

        assert session.settings.title == "Feedback"
        assert session.add_field("text").label == "Question 1"

    def test_export_bundle(self):
        """Test the saved-form payload."""
        session = EditorSession(settings=FormSettings(title="Registration"))
        field = session.add_field("email", "Email")

        bundle = session.export_bundle()

        assert list(bundle) == ['settings', 'schema', 'uiSchema', 'fields']
        assert bundle['settings']['title'] == "Registration"
        assert bundle['schema']['properties'] == {"Email": {'type': 'string', 'format': 'email'}}
        assert [f['id'] for f in bundle['fields']] == [field.id]
