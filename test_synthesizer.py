"""
Unit tests for synthesizer module.
"""

import json

import pytest

from form_builder.exceptions import LabelCollisionError
from form_builder.field_collection import FieldCollection
from form_builder.models import FormSettings
from form_builder.synthesizer import (
    synthesize,
    find_label_collisions,
    build_field_fragment,
    build_presentation_fragment,
)


class TestStructuralSchema:
    """Test class for structural schema synthesis."""

    def setup_method(self):
        self.collection = FieldCollection()
        self.settings = FormSettings()

    def test_empty_collection(self):
        """Test synthesizing an empty collection."""
        result = synthesize([], self.settings)
        schema = result.structural_schema

        assert schema['type'] == "object"
        assert schema['properties'] == {}
        assert schema['required'] == []
        assert schema['title'] == "My Form"
        assert schema['description'] == "This is a form built with Form Builder"
        assert result.presentation_schema == {}

    def test_key_order(self):
        """Test the top-level key order of the structural schema."""
        schema = synthesize([], self.settings).structural_schema
        assert list(schema) == ['type', 'title', 'description', 'properties', 'required']

    def test_required_email_field(self):
        """Test a required email field labelled 'Contact Email'."""
        field = self.collection.add("email")
        self.collection.update(field.id, {
            'label': "Contact Email",
            'configurable_properties': {'required': True},
        })

        schema = synthesize(self.collection.snapshot(), self.settings).structural_schema

        assert schema['properties'] == {"Contact Email": {'type': 'string', 'format': 'email'}}
        assert schema['required'] == ["Contact Email"]

    def test_properties_follow_collection_order(self):
        """Test that properties and required keep collection order after a reorder."""
        for label in ("First", "Second", "Third"):
            field = self.collection.add("phone", label)
            self.collection.update(field.id, {'configurable_properties': {'required': True}})
        self.collection.reorder(2, 0)

        schema = synthesize(self.collection.snapshot(), self.settings).structural_schema

        assert list(schema['properties']) == ["Third", "First", "Second"]
        assert schema['required'] == ["Third", "First", "Second"]

    def test_required_list_only_has_required_fields(self):
        """Test that optional fields are left out of the required list."""
        required = self.collection.add("text", "Name")
        self.collection.add("text", "Nickname")
        self.collection.update(required.id, {'configurable_properties': {'required': True}})

        schema = synthesize(self.collection.snapshot(), self.settings).structural_schema
        assert schema['required'] == ["Name"]

    def test_min_length_edit_round_trip(self):
        """Test that a minLength edit shows up in that field's fragment only."""
        target = self.collection.add("text", "Name")
        self.collection.add("text", "City")
        before = synthesize(self.collection.snapshot(), self.settings).structural_schema

        properties = dict(self.collection.get(target.id).configurable_properties)
        properties['minLength'] = 5
        self.collection.update(target.id, {'configurable_properties': properties})
        after = synthesize(self.collection.snapshot(), self.settings).structural_schema

        assert after['properties']['Name']['minLength'] == 5
        assert after['properties']['City'] == before['properties']['City']

    def test_settings_title_and_description(self):
        """Test that settings are copied into the schema."""
        settings = FormSettings(title="Survey", description="Tell us more")
        schema = synthesize([], settings).structural_schema
        assert schema['title'] == "Survey"
        assert schema['description'] == "Tell us more"

    def test_synthesis_is_deterministic(self):
        """Test that identical inputs give identical output."""
        self.collection.add("select", "Colour")
        self.collection.add("date", "Birthday")
        fields = self.collection.snapshot()

        first = synthesize(fields, self.settings)
        second = synthesize(fields, self.settings)

        assert first == second
        assert first.to_json() == second.to_json()

    def test_synthesis_does_not_mutate_fields(self):
        """Test that synthesis leaves its inputs untouched."""
        field = self.collection.add("number", "Age")
        self.collection.update(field.id, {'configurable_properties': {'min': 0, 'max': 120}})
        fields = self.collection.snapshot()
        before = [f.copy() for f in fields]

        synthesize(fields, self.settings)
        assert list(fields) == before

    def test_result_as_tuple_and_json(self):
        """Test the result accessors."""
        self.collection.add("textarea", "Comments")
        result = synthesize(self.collection.snapshot(), self.settings)

        schema, ui_schema = result.as_tuple()
        assert schema is result.structural_schema
        assert ui_schema is result.presentation_schema

        payload = json.loads(result.to_json())
        assert payload['schema']['properties']['Comments']['type'] == "string"
        assert payload['uiSchema']['Comments'] == {'ui:widget': 'textarea'}


class TestLabelCollisions:
    """Test class for label collision handling."""

    def test_duplicate_labels_raise(self):
        """Test that two fields labelled 'Email' are rejected."""
        collection = FieldCollection()
        first = collection.add("email", "Email")
        second = collection.add("email", "Email")

        with pytest.raises(LabelCollisionError) as exc_info:
            synthesize(collection.snapshot())

        error = exc_info.value
        assert error.labels == ["Email"]
        assert error.collisions["Email"] == [first.id, second.id]
        assert error.recovery_suggestions

    def test_find_label_collisions(self):
        """Test collision detection helper."""
        collection = FieldCollection()
        collection.add("text", "A")
        collection.add("text", "B")
        collection.add("text", "A")

        collisions = find_label_collisions(collection.snapshot())
        assert list(collisions) == ["A"]
        assert len(collisions["A"]) == 2

    def test_no_collisions(self):
        """Test that distinct labels report nothing."""
        collection = FieldCollection()
        collection.add("text")
        collection.add("text")
        assert find_label_collisions(collection.snapshot()) == {}


class TestFieldFragments:
    """Test class for per-field fragment folding."""

    def setup_method(self):
        self.collection = FieldCollection()

    def _field(self, tag, **properties):
        field = self.collection.add(tag)
        if properties:
            field = self.collection.update(field.id, {'configurable_properties': properties})
        return field

    def test_required_never_in_fragment(self):
        """Test that the required flag stays out of the fragment."""
        fragment = build_field_fragment(self._field("email", required=True))
        assert 'required' not in fragment

    def test_numeric_bounds(self):
        """Test that min/max become minimum/maximum."""
        fragment = build_field_fragment(self._field("number", min=1, max=10))
        assert fragment == {'type': 'number', 'minimum': 1, 'maximum': 10}

    def test_none_removes_keyword(self):
        """Test that a None constraint property drops the keyword."""
        fragment = build_field_fragment(self._field("text", maxLength=None))
        assert 'maxLength' not in fragment
        assert fragment['minLength'] == 0

    def test_options_become_enum(self):
        """Test that the option list replaces the enum."""
        fragment = build_field_fragment(self._field("radio", options=["Yes", "No"]))
        assert fragment['enum'] == ["Yes", "No"]

    def test_checkbox_default(self):
        """Test that defaultChecked becomes the default."""
        fragment = build_field_fragment(self._field("checkbox", defaultChecked=True))
        assert fragment == {'type': 'boolean', 'default': True}

    def test_date_bounds(self):
        """Test that minDate/maxDate become format bounds."""
        fragment = build_field_fragment(self._field("date", minDate="2024-01-01", maxDate="2024-12-31"))
        assert fragment['formatMinimum'] == "2024-01-01"
        assert fragment['formatMaximum'] == "2024-12-31"

    def test_presentation_hints(self):
        """Test placeholder and help text folding."""
        field = self._field("text", placeholder="Jane Doe", helpText="Your full name")
        assert build_presentation_fragment(field) == {
            'ui:placeholder': "Jane Doe",
            'ui:help': "Your full name",
        }

    def test_empty_presentation_is_none(self):
        """Test that a field without hints has no presentation entry."""
        field = self._field("email")
        assert build_presentation_fragment(field) is None
        result = synthesize(self.collection.snapshot())
        assert field.label not in result.presentation_schema

    def test_upload_options(self):
        """Test accept and maxSize folding for uploads."""
        any_file = self._field("file")
        assert build_presentation_fragment(any_file) == {
            'ui:widget': 'file',
            'ui:options': {'maxSize': 5},
        }

        pdf_only = self._field("file", allowedTypes=["application/pdf", "image/png"], maxSize=2)
        assert build_presentation_fragment(pdf_only)['ui:options'] == {
            'accept': "application/pdf,image/png",
            'maxSize': 2,
        }

    def test_address_rows(self):
        """Test that rows is folded into ui:options."""
        fragment = build_presentation_fragment(self._field("address", rows=5))
        assert fragment == {'ui:widget': 'textarea', 'ui:options': {'rows': 5}}
