"""
Unit tests for model_builder module.
"""

import pytest
from datetime import datetime, date
from pydantic import ValidationError

from form_builder.editor_session import EditorSession
from form_builder.model_builder import (
    get_field_type,
    create_field_from_fragment,
    create_validators_for_field,
    create_model_from_structural_schema,
    clean_submission,
    validate_submission,
    coerce_submission,
)


def build_schema(*specs):
    """Build a structural schema from (tag, label, properties) tuples."""
    session = EditorSession()
    for tag, label, properties in specs:
        field = session.add_field(tag, label)
        if properties:
            session.update_field_properties(field.id, **properties)
    return session.synthesize().structural_schema


class TestFieldTypes:
    """Test class for fragment type mapping."""

    @pytest.mark.parametrize("fragment,expected", [
        ({'type': 'string'}, str),
        ({'type': 'string', 'format': 'email'}, str),
        ({'type': 'string', 'format': 'date'}, date),
        ({'type': 'string', 'format': 'date-time'}, datetime),
        ({'type': 'number'}, float),
        ({'type': 'integer'}, int),
        ({'type': 'boolean'}, bool),
        ({'type': 'array'}, str),
    ])
    def test_get_field_type(self, fragment, expected):
        """Test mapping fragments to Python types."""
        assert get_field_type(fragment) == expected

    def test_create_field_required(self):
        """Test a required field definition."""
        annotation, field_info = create_field_from_fragment("Name", {'type': 'string', 'minLength': 2}, True)
        assert annotation == str
        assert field_info.alias == "Name"
        assert field_info.is_required()

    def test_create_field_optional_uses_fragment_default(self):
        """Test that optional fields default to the fragment default."""
        _, field_info = create_field_from_fragment("Subscribe", {'type': 'boolean', 'default': True}, False)
        assert not field_info.is_required()
        assert field_info.default is True

    def test_validators_created_per_keyword(self):
        """Test which validators a fragment produces."""
        validators = create_validators_for_field("field_0", {
            'type': 'string', 'format': 'email', 'pattern': '.+@example\\.com$'
        })
        assert set(validators) == {'validate_field_0_pattern', 'validate_field_0_email'}
        assert create_validators_for_field("field_1", {'type': 'string'}) == {}


class TestModelCreation:
    """Test class for dynamic model creation."""

    def test_requires_properties(self):
        """Test that a schema without properties is rejected."""
        with pytest.raises(ValueError, match="Schema must contain 'properties' key"):
            create_model_from_structural_schema({'type': 'object'})

    def test_labels_with_spaces_are_aliases(self):
        """Test that labels which are not identifiers still validate."""
        schema = build_schema(("email", "Contact Email", {'required': True}))
        model_class = create_model_from_structural_schema(schema, "ContactModel")

        assert model_class.__name__ == "ContactModel"
        instance = model_class(**{"Contact Email": "jane@example.com"})
        assert instance.model_dump(by_alias=True) == {"Contact Email": "jane@example.com"}

    def test_empty_form_model(self):
        """Test a model for a form without fields."""
        model_class = create_model_from_structural_schema({'type': 'object', 'properties': {}, 'required': []})
        assert model_class().model_dump() == {}


class TestSubmissionValidation:
    """Test class for validating submitted data."""

    def test_missing_required_field(self):
        """Test that a required field must be present."""
        schema = build_schema(("email", "Contact Email", {'required': True}))
        errors = validate_submission({}, schema)
        assert len(errors) == 1
        assert errors[0].startswith("Contact Email:")

    def test_empty_string_counts_as_missing(self):
        """Test that empty strings are treated as missing values."""
        schema = build_schema(("text", "Name", {'required': True}))
        assert len(validate_submission({"Name": ""}, schema)) == 1
        assert clean_submission({"Name": "", "Age": None, "City": "Paris"}) == {"City": "Paris"}

    def test_invalid_email(self):
        """Test email format validation."""
        schema = build_schema(("email", "Email", {}))
        errors = validate_submission({"Email": "not-an-email"}, schema)
        assert len(errors) == 1
        assert "valid email" in errors[0]
        assert validate_submission({"Email": "jane@example.com"}, schema) == []

    def test_invalid_url(self):
        """Test URL format validation."""
        schema = build_schema(("url", "Website", {}))
        assert len(validate_submission({"Website": "example"}, schema)) == 1
        assert validate_submission({"Website": "https://example.com"}, schema) == []

    def test_string_length(self):
        """Test minLength/maxLength validation."""
        schema = build_schema(("text", "Code", {'minLength': 3, 'maxLength': 5}))
        assert len(validate_submission({"Code": "ab"}, schema)) == 1
        assert len(validate_submission({"Code": "abcdef"}, schema)) == 1
        assert validate_submission({"Code": "abcd"}, schema) == []

    def test_numeric_bounds(self):
        """Test minimum/maximum validation."""
        schema = build_schema(("number", "Age", {'min': 0, 'max': 120}))
        assert len(validate_submission({"Age": 130}, schema)) == 1
        assert len(validate_submission({"Age": -1}, schema)) == 1
        assert validate_submission({"Age": 42}, schema) == []

    def test_pattern(self):
        """Test pattern validation."""
        schema = build_schema(("creditcard", "Card", {}))
        assert len(validate_submission({"Card": "abcd"}, schema)) == 1
        assert validate_submission({"Card": "4111 1111 1111 1111"}, schema) == []

    def test_invalid_pattern_reported_as_field_error(self):
        """Test that a broken regex becomes a readable error instead of raising."""
        schema = build_schema(("creditcard", "Card", {'pattern': "["}))

        errors = validate_submission({"Card": "1234"}, schema)

        assert len(errors) == 1
        assert "not a valid regular expression" in errors[0]
        assert validate_submission({}, schema) == []

    def test_enum(self):
        """Test option validation."""
        schema = build_schema(("select", "Colour", {'options': ["Red", "Blue"]}))
        assert len(validate_submission({"Colour": "Green"}, schema)) == 1
        assert validate_submission({"Colour": "Red"}, schema) == []

    def test_date_range(self):
        """Test formatMinimum/formatMaximum validation."""
        schema = build_schema(("date", "Start", {'minDate': "2024-01-01", 'maxDate': "2024-12-31"}))
        assert len(validate_submission({"Start": "2023-06-01"}, schema)) == 1
        assert len(validate_submission({"Start": "2025-01-01"}, schema)) == 1
        assert validate_submission({"Start": "2024-06-01"}, schema) == []


class TestCoerceSubmission:
    """Test class for coercing submitted data."""

    def test_coerce_returns_json_values_by_label(self):
        """Test that coerced values are JSON-ready and keyed by label."""
        schema = build_schema(
            ("date", "Start", {}),
            ("number", "Age", {}),
            ("checkbox", "Subscribe", {'defaultChecked': True}),
            ("text", "Notes", {}),
        )

        result = coerce_submission({"Start": date(2024, 3, 1), "Age": "42", "Notes": ""}, schema)

        assert result == {"Start": "2024-03-01", "Age": 42.0, "Subscribe": True}

    def test_coerce_raises_on_invalid_data(self):
        """Test that invalid data raises a ValidationError."""
        schema = build_schema(("email", "Email", {'required': True}))
        with pytest.raises(ValidationError):
            coerce_submission({"Email": "nope"}, schema)
