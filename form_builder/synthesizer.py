"""
Schema synthesizer for the form builder.

Derives the structural schema and the presentation schema from the
current field collection and form settings. Synthesis is a pure function
of its inputs: it never mutates the descriptors, keeps collection order,
and produces identical output for identical inputs, so it can be re-run
on every interaction without caching.
"""

import copy
import json
import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Iterable, Optional, Tuple

from .exceptions import LabelCollisionError
from .field_types import get_field_type_spec
from .models import FieldDescriptor, FormSettings

logger = logging.getLogger(__name__)

UI_OPTIONS_KEY = 'ui:options'
ANY_FILE_TYPE = '*/*'


@dataclass(frozen=True)
class SynthesisResult:
    """The pair of derived artifacts."""
    structural_schema: Dict[str, Any]
    presentation_schema: Dict[str, Any]

    def as_tuple(self) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        return self.structural_schema, self.presentation_schema

    def to_json(self, indent: int = 2) -> str:
        """Serialize both schemas, keeping key order."""
        return json.dumps(
            {'schema': self.structural_schema, 'uiSchema': self.presentation_schema},
            indent=indent,
            ensure_ascii=False,
        )


def find_label_collisions(fields: Iterable[FieldDescriptor]) -> Dict[str, List[str]]:
    """
    Find labels shared by more than one field.

    Returns:
        Mapping of duplicated label to the ids using it, in collection order
    """
    ids_by_label: Dict[str, List[str]] = {}
    for descriptor in fields:
        ids_by_label.setdefault(descriptor.label, []).append(descriptor.id)
    return {label: ids for label, ids in ids_by_label.items() if len(ids) > 1}


def build_field_fragment(descriptor: FieldDescriptor) -> Dict[str, Any]:
    """
    Structural fragment for one field with property constraints folded in.

    'required' only affects the schema's required list and never appears
    in the fragment. A constraint property set to None removes the keyword.
    """
    spec = get_field_type_spec(descriptor.type)
    fragment = copy.deepcopy(descriptor.structural_fragment)
    fragment.pop('required', None)

    properties = descriptor.configurable_properties
    for prop_name, keyword in spec.constraints.items():
        if prop_name not in properties:
            continue
        value = properties[prop_name]
        if value is None:
            fragment.pop(keyword, None)
        else:
            fragment[keyword] = copy.deepcopy(value)

    return fragment


def _option_hint_value(prop_name: str, value: Any) -> Any:
    # File accept hints are a comma separated list of media types
    if prop_name == 'allowedTypes':
        types = [str(t) for t in value if t and t != ANY_FILE_TYPE]
        return ",".join(types) if types else None
    return value


def build_presentation_fragment(descriptor: FieldDescriptor) -> Optional[Dict[str, Any]]:
    """
    Presentation entry for one field, or None when the renderer default applies.

    Non-empty placeholder, help text and widget options are folded into a
    copy of the field's presentation fragment.
    """
    spec = get_field_type_spec(descriptor.type)
    fragment = copy.deepcopy(descriptor.presentation_fragment) if descriptor.presentation_fragment else {}
    properties = descriptor.configurable_properties

    for prop_name, hint in spec.hints.items():
        value = properties.get(prop_name)
        if value not in (None, ''):
            fragment[hint] = value

    options = dict(fragment.get(UI_OPTIONS_KEY) or {})
    for prop_name, option_key in spec.option_hints.items():
        if prop_name not in properties or properties[prop_name] is None:
            continue
        value = _option_hint_value(prop_name, properties[prop_name])
        if value is None:
            options.pop(option_key, None)
        else:
            options[option_key] = value
    if options:
        fragment[UI_OPTIONS_KEY] = options
    else:
        fragment.pop(UI_OPTIONS_KEY, None)

    return fragment or None


def synthesize_structural_schema(fields: List[FieldDescriptor], settings: FormSettings) -> Dict[str, Any]:
    """Build the object-typed structural schema, keyed by label in field order."""
    properties: Dict[str, Any] = {}
    required: List[str] = []

    for descriptor in fields:
        properties[descriptor.label] = build_field_fragment(descriptor)
        if descriptor.is_required:
            required.append(descriptor.label)

    return {
        'type': 'object',
        'title': settings.title,
        'description': settings.description,
        'properties': properties,
        'required': required,
    }


def synthesize_presentation_schema(fields: List[FieldDescriptor]) -> Dict[str, Any]:
    """Build the presentation schema; fields without hints are omitted."""
    presentation: Dict[str, Any] = {}
    for descriptor in fields:
        fragment = build_presentation_fragment(descriptor)
        if fragment is not None:
            presentation[descriptor.label] = fragment
    return presentation


def synthesize(fields: Iterable[FieldDescriptor], settings: Optional[FormSettings] = None) -> SynthesisResult:
    """
    Compile a field collection into its structural and presentation schemas.

    Args:
        fields: Field descriptors in collection order
        settings: Form settings supplying title and description

    Returns:
        SynthesisResult with both schemas

    Raises:
        LabelCollisionError: If two or more fields share a label
    """
    field_list = list(fields)
    settings = settings if settings is not None else FormSettings()

    collisions = find_label_collisions(field_list)
    if collisions:
        logger.warning(f"Synthesis refused, duplicate labels: {list(collisions)}")
        raise LabelCollisionError(collisions)

    result = SynthesisResult(
        structural_schema=synthesize_structural_schema(field_list, settings),
        presentation_schema=synthesize_presentation_schema(field_list),
    )
    logger.debug(f"Synthesized schema with {len(field_list)} fields")
    return result
