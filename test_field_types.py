"""
Unit tests for field_types module.
"""

import pytest

from form_builder.field_types import (
    FieldType,
    FIELD_TYPES,
    FIELD_TYPE_REGISTRY,
    FALLBACK_FIELD_TYPE,
    is_known_field_type,
    normalize_field_type,
    get_field_type_spec,
    default_structural_fragment,
    default_presentation_fragment,
    default_configurable_properties,
    get_palette_groups,
)


class TestFieldTypeRegistry:
    """Test class for the field type registry."""

    def test_every_palette_tag_is_registered(self):
        """Test that the palette and the registry list the same tags."""
        assert len(FIELD_TYPES) == 16
        assert set(FIELD_TYPES) == set(FIELD_TYPE_REGISTRY)

    def test_registry_entries_carry_their_tag(self):
        """Test that each registry entry is stored under its own tag."""
        for tag, spec in FIELD_TYPE_REGISTRY.items():
            assert spec.tag == tag

    @pytest.mark.parametrize("tag,expected", [
        (FieldType.TEXT, {'type': 'string'}),
        (FieldType.EMAIL, {'type': 'string', 'format': 'email'}),
        (FieldType.NUMBER, {'type': 'number'}),
        (FieldType.URL, {'type': 'string', 'format': 'uri'}),
        (FieldType.CHECKBOX, {'type': 'boolean'}),
        (FieldType.DATE, {'type': 'string', 'format': 'date'}),
        (FieldType.DATETIME, {'type': 'string', 'format': 'date-time'}),
        (FieldType.FILE, {'type': 'string', 'format': 'data-url'}),
    ])
    def test_default_structural_fragments(self, tag, expected):
        """Test default structural fragments for common types."""
        assert default_structural_fragment(tag) == expected

    def test_choice_types_default_to_three_options(self):
        """Test that select and radio start with three options."""
        for tag in (FieldType.SELECT, FieldType.RADIO):
            assert default_structural_fragment(tag)['enum'] == ["Option 1", "Option 2", "Option 3"]
            assert default_configurable_properties(tag)['options'] == ["Option 1", "Option 2", "Option 3"]

    def test_presentation_defaults(self):
        """Test presentation fragments, including types using the renderer default."""
        assert default_presentation_fragment(FieldType.TEXT) is None
        assert default_presentation_fragment(FieldType.EMAIL) is None
        assert default_presentation_fragment(FieldType.TEXTAREA) == {'ui:widget': 'textarea'}
        assert default_presentation_fragment(FieldType.PASSWORD) == {'ui:widget': 'password'}
        assert default_presentation_fragment(FieldType.RADIO) == {'ui:widget': 'radio'}
        assert default_presentation_fragment(FieldType.IMAGE) == {
            'ui:widget': 'file', 'ui:options': {'accept': 'image/*'}
        }

    def test_every_type_has_base_properties(self):
        """Test that required, placeholder and helpText exist for every type."""
        for tag in FIELD_TYPES:
            properties = default_configurable_properties(tag)
            assert properties['required'] is False
            assert properties['placeholder'] == ''
            assert properties['helpText'] == ''

    def test_type_specific_properties(self):
        """Test a sample of type-specific property defaults."""
        assert default_configurable_properties(FieldType.TEXT)['maxLength'] == 100
        assert default_configurable_properties(FieldType.CHECKBOX)['defaultChecked'] is False
        assert default_configurable_properties(FieldType.FILE)['allowedTypes'] == ['*/*']
        assert default_configurable_properties(FieldType.ADDRESS)['rows'] == 3

    def test_defaults_are_independent_copies(self):
        """Test that mutating returned defaults does not touch the registry."""
        fragment = default_structural_fragment(FieldType.SELECT)
        fragment['enum'].append("Option 4")
        properties = default_configurable_properties(FieldType.SELECT)
        properties['options'].clear()

        assert len(default_structural_fragment(FieldType.SELECT)['enum']) == 3
        assert len(default_configurable_properties(FieldType.SELECT)['options']) == 3


class TestUnknownTags:
    """Test class for unknown field type tags."""

    def test_is_known_field_type(self):
        """Test tag membership checks."""
        assert is_known_field_type("email")
        assert not is_known_field_type("signature")
        assert not is_known_field_type(None)

    def test_unknown_tag_falls_back_to_text(self):
        """Test that unknown tags degrade to the text type."""
        assert FALLBACK_FIELD_TYPE == FieldType.TEXT
        assert normalize_field_type("signature") == FieldType.TEXT
        assert get_field_type_spec("signature") is FIELD_TYPE_REGISTRY[FieldType.TEXT]
        assert default_structural_fragment("signature") == {'type': 'string'}

    def test_unknown_tag_is_logged(self, caplog):
        """Test that falling back emits a warning."""
        with caplog.at_level("WARNING"):
            normalize_field_type("signature")
        assert "signature" in caplog.text


class TestPaletteGroups:
    """Test class for palette grouping."""

    def test_groups_cover_every_type_in_order(self):
        """Test that grouping keeps palette order and loses nothing."""
        groups = get_palette_groups()
        flattened = [spec.tag for specs in groups.values() for spec in specs]

        assert sorted(flattened) == sorted(FIELD_TYPES)
        for specs in groups.values():
            positions = [FIELD_TYPES.index(spec.tag) for spec in specs]
            assert positions == sorted(positions)

    def test_first_group_is_basic(self):
        """Test the category order follows the first palette entry."""
        groups = get_palette_groups()
        assert list(groups)[0] == "Basic"
        assert groups["Basic"][0].tag == FieldType.TEXT
