"""
Field type registry for the form builder.
Maps each field type tag to its default structural fragment, presentation
fragment and configurable properties.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

logger = logging.getLogger(__name__)


class FieldType:
    """Field type tag constants."""
    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEXTAREA = "textarea"
    PASSWORD = "password"
    PHONE = "phone"
    URL = "url"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"
    FILE = "file"
    IMAGE = "image"
    ADDRESS = "address"
    CREDITCARD = "creditcard"


# Palette order
FIELD_TYPES: Tuple[str, ...] = (
    FieldType.TEXT,
    FieldType.EMAIL,
    FieldType.NUMBER,
    FieldType.TEXTAREA,
    FieldType.PASSWORD,
    FieldType.PHONE,
    FieldType.URL,
    FieldType.SELECT,
    FieldType.RADIO,
    FieldType.CHECKBOX,
    FieldType.DATE,
    FieldType.DATETIME,
    FieldType.FILE,
    FieldType.IMAGE,
    FieldType.ADDRESS,
    FieldType.CREDITCARD,
)

FALLBACK_FIELD_TYPE = FieldType.TEXT

DEFAULT_OPTIONS = ["Option 1", "Option 2", "Option 3"]

# Configurable property -> structural keyword
STRING_CONSTRAINTS = {
    'minLength': 'minLength',
    'maxLength': 'maxLength',
    'pattern': 'pattern',
}
NUMBER_CONSTRAINTS = {
    'min': 'minimum',
    'max': 'maximum',
}
CHOICE_CONSTRAINTS = {
    'options': 'enum',
}
DATE_CONSTRAINTS = {
    'minDate': 'formatMinimum',
    'maxDate': 'formatMaximum',
}

# Configurable property -> presentation hint
BASE_HINTS = {
    'placeholder': 'ui:placeholder',
    'helpText': 'ui:help',
}


@dataclass(frozen=True)
class FieldTypeSpec:
    """
    Registry entry for one field type.

    Attributes:
        tag: Field type tag
        display_name: Name shown in the palette
        description: Short palette description
        category: Palette category
        structural: Default structural-schema fragment
        presentation: Default presentation fragment, None for renderer default
        properties: Default configurable properties
        constraints: Configurable property -> structural keyword folded at synthesis
        hints: Configurable property -> presentation hint folded at synthesis
        option_hints: Configurable property -> key under 'ui:options'
        editors: Type-specific property editors shown in the properties panel
    """
    tag: str
    display_name: str
    description: str
    category: str
    structural: Dict[str, Any]
    presentation: Optional[Dict[str, Any]]
    properties: Dict[str, Any]
    constraints: Dict[str, str]
    hints: Dict[str, str]
    option_hints: Dict[str, str]
    editors: Tuple[str, ...] = ()


def _base_properties(**extra: Any) -> Dict[str, Any]:
    properties = {
        'required': False,
        'placeholder': '',
        'helpText': '',
    }
    properties.update(extra)
    return properties


def _string_spec(tag: str, display_name: str, description: str,
                 structural: Dict[str, Any],
                 presentation: Optional[Dict[str, Any]] = None,
                 properties: Optional[Dict[str, Any]] = None,
                 option_hints: Optional[Dict[str, str]] = None,
                 editors: Tuple[str, ...] = (),
                 category: str = "Basic") -> FieldTypeSpec:
    return FieldTypeSpec(
        tag=tag,
        display_name=display_name,
        description=description,
        category=category,
        structural=structural,
        presentation=presentation,
        properties=properties if properties is not None else _base_properties(),
        constraints=dict(STRING_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints=option_hints or {},
        editors=editors,
    )


FIELD_TYPE_REGISTRY: Dict[str, FieldTypeSpec] = {
    FieldType.TEXT: _string_spec(
        FieldType.TEXT, "Text Input", "Single line text",
        structural={'type': 'string'},
        properties=_base_properties(minLength=0, maxLength=100),
        editors=('minLength', 'maxLength'),
    ),
    FieldType.EMAIL: _string_spec(
        FieldType.EMAIL, "Email", "Email with validation",
        structural={'type': 'string', 'format': 'email'},
    ),
    FieldType.NUMBER: FieldTypeSpec(
        tag=FieldType.NUMBER,
        display_name="Number",
        description="Numeric input",
        category="Basic",
        structural={'type': 'number'},
        presentation=None,
        properties=_base_properties(min=None, max=None),
        constraints=dict(NUMBER_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints={},
        editors=('min', 'max'),
    ),
    FieldType.TEXTAREA: _string_spec(
        FieldType.TEXTAREA, "Text Area", "Multi-line text",
        structural={'type': 'string'},
        presentation={'ui:widget': 'textarea'},
        properties=_base_properties(minLength=0, maxLength=100),
        editors=('minLength', 'maxLength'),
    ),
    FieldType.PASSWORD: _string_spec(
        FieldType.PASSWORD, "Password", "Password field",
        structural={'type': 'string'},
        presentation={'ui:widget': 'password'},
    ),
    FieldType.PHONE: _string_spec(
        FieldType.PHONE, "Phone", "Phone number",
        structural={'type': 'string'},
    ),
    FieldType.URL: _string_spec(
        FieldType.URL, "URL", "Website URL",
        structural={'type': 'string', 'format': 'uri'},
    ),
    FieldType.SELECT: FieldTypeSpec(
        tag=FieldType.SELECT,
        display_name="Select",
        description="Dropdown selection",
        category="Choice",
        structural={'type': 'string', 'enum': list(DEFAULT_OPTIONS)},
        presentation=None,
        properties=_base_properties(options=list(DEFAULT_OPTIONS)),
        constraints=dict(CHOICE_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints={},
        editors=('options',),
    ),
    FieldType.RADIO: FieldTypeSpec(
        tag=FieldType.RADIO,
        display_name="Radio",
        description="Radio buttons",
        category="Choice",
        structural={'type': 'string', 'enum': list(DEFAULT_OPTIONS)},
        presentation={'ui:widget': 'radio'},
        properties=_base_properties(options=list(DEFAULT_OPTIONS)),
        constraints=dict(CHOICE_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints={},
        editors=('options',),
    ),
    FieldType.CHECKBOX: FieldTypeSpec(
        tag=FieldType.CHECKBOX,
        display_name="Checkbox",
        description="Boolean checkbox",
        category="Choice",
        structural={'type': 'boolean'},
        presentation=None,
        properties=_base_properties(defaultChecked=False),
        constraints={'defaultChecked': 'default'},
        hints={'helpText': 'ui:help'},
        option_hints={},
        editors=('defaultChecked',),
    ),
    FieldType.DATE: FieldTypeSpec(
        tag=FieldType.DATE,
        display_name="Date",
        description="Date picker",
        category="Date & Time",
        structural={'type': 'string', 'format': 'date'},
        presentation={'ui:widget': 'date'},
        properties=_base_properties(minDate=None, maxDate=None),
        constraints=dict(DATE_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints={},
        editors=('minDate', 'maxDate'),
    ),
    FieldType.DATETIME: FieldTypeSpec(
        tag=FieldType.DATETIME,
        display_name="Date & Time",
        description="Date and time picker",
        category="Date & Time",
        structural={'type': 'string', 'format': 'date-time'},
        presentation={'ui:widget': 'datetime-local'},
        properties=_base_properties(minDate=None, maxDate=None),
        constraints=dict(DATE_CONSTRAINTS),
        hints=dict(BASE_HINTS),
        option_hints={},
        editors=('minDate', 'maxDate'),
    ),
    FieldType.FILE: FieldTypeSpec(
        tag=FieldType.FILE,
        display_name="File Upload",
        description="File upload field",
        category="Advanced",
        structural={'type': 'string', 'format': 'data-url'},
        presentation={'ui:widget': 'file'},
        properties=_base_properties(maxSize=5, allowedTypes=['*/*']),
        constraints={},
        hints={'helpText': 'ui:help'},
        option_hints={'allowedTypes': 'accept', 'maxSize': 'maxSize'},
        editors=('allowedTypes', 'maxSize'),
    ),
    FieldType.IMAGE: FieldTypeSpec(
        tag=FieldType.IMAGE,
        display_name="Image Upload",
        description="Image upload field",
        category="Advanced",
        structural={'type': 'string', 'format': 'data-url'},
        presentation={'ui:widget': 'file', 'ui:options': {'accept': 'image/*'}},
        properties=_base_properties(maxSize=5, allowedTypes=['image/*']),
        constraints={},
        hints={'helpText': 'ui:help'},
        option_hints={'allowedTypes': 'accept', 'maxSize': 'maxSize'},
        editors=('allowedTypes', 'maxSize'),
    ),
    FieldType.ADDRESS: _string_spec(
        FieldType.ADDRESS, "Address", "Address input",
        structural={'type': 'string'},
        presentation={'ui:widget': 'textarea'},
        properties=_base_properties(rows=3),
        option_hints={'rows': 'rows'},
        editors=('rows',),
        category="Advanced",
    ),
    FieldType.CREDITCARD: _string_spec(
        FieldType.CREDITCARD, "Credit Card", "Credit card input",
        structural={'type': 'string'},
        presentation={'ui:widget': 'text', 'ui:options': {'pattern': '[0-9\\s-]+'}},
        properties=_base_properties(pattern='[0-9\\s-]+', maxLength=19),
        editors=('pattern', 'maxLength'),
        category="Advanced",
    ),
}


def is_known_field_type(tag: Any) -> bool:
    """Check whether a tag belongs to the registry."""
    return isinstance(tag, str) and tag in FIELD_TYPE_REGISTRY


def normalize_field_type(tag: Any) -> str:
    """Return the tag itself when registered, otherwise the fallback tag."""
    if is_known_field_type(tag):
        return tag
    logger.warning(f"Unknown field type '{tag}', falling back to '{FALLBACK_FIELD_TYPE}'")
    return FALLBACK_FIELD_TYPE


def get_field_type_spec(tag: Any) -> FieldTypeSpec:
    """
    Get the registry entry for a field type.

    Unknown tags degrade to the text field entry rather than failing.

    Args:
        tag: Field type tag

    Returns:
        FieldTypeSpec for the tag
    """
    if is_known_field_type(tag):
        return FIELD_TYPE_REGISTRY[tag]
    return FIELD_TYPE_REGISTRY[normalize_field_type(tag)]


def default_structural_fragment(tag: Any) -> Dict[str, Any]:
    """Default structural-schema fragment for a field type."""
    return copy.deepcopy(get_field_type_spec(tag).structural)


def default_presentation_fragment(tag: Any) -> Optional[Dict[str, Any]]:
    """Default presentation fragment for a field type, None when the renderer default applies."""
    presentation = get_field_type_spec(tag).presentation
    if presentation is None:
        return None
    return copy.deepcopy(presentation)


def default_configurable_properties(tag: Any) -> Dict[str, Any]:
    """Default configurable properties for a field type."""
    return copy.deepcopy(get_field_type_spec(tag).properties)


def get_palette_groups() -> Dict[str, List[FieldTypeSpec]]:
    """
    Group registry entries by palette category, preserving palette order.

    Returns:
        Ordered mapping of category name to field type specs
    """
    groups: Dict[str, List[FieldTypeSpec]] = {}
    for tag in FIELD_TYPES:
        spec = FIELD_TYPE_REGISTRY[tag]
        groups.setdefault(spec.category, []).append(spec)
    return groups
