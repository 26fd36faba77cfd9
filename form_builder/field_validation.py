"""
Field configuration checks for the form builder.

These checks report problems with a field's configurable properties
(inverted bounds, bad regex, empty option lists) so the properties panel
can flag them. They never modify the field.
"""

import logging
import re
from datetime import date, datetime
from typing import Dict, Any, List, Optional, Iterable

from .field_types import get_field_type_spec
from .models import FieldDescriptor
from .synthesizer import find_label_collisions

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 100


def validate_regex_pattern(pattern: str) -> Optional[str]:
    """
    Validate regex pattern with safe regex compilation testing.

    Args:
        pattern: Regular expression pattern to validate

    Returns:
        Error message if invalid, None if valid
    """
    if not pattern:
        return None

    try:
        re.compile(pattern)
        return None
    except re.error as e:
        return f"Invalid regex pattern: {str(e)}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_label(label: Any) -> List[str]:
    """Validate a field label."""
    errors = []
    if not isinstance(label, str) or not label.strip():
        errors.append("Label cannot be empty or only whitespace")
    elif len(label) > MAX_LABEL_LENGTH:
        errors.append(f"Label '{label}' is too long (max {MAX_LABEL_LENGTH} characters)")
    return errors


def validate_string_constraints(label: str, properties: Dict[str, Any]) -> List[str]:
    """Validate minLength/maxLength/pattern properties."""
    errors = []
    min_length = properties.get('minLength')
    max_length = properties.get('maxLength')

    if min_length is not None and (not isinstance(min_length, int) or isinstance(min_length, bool) or min_length < 0):
        errors.append(f"Field '{label}' minLength must be a non-negative integer")
        min_length = None

    if max_length is not None and (not isinstance(max_length, int) or isinstance(max_length, bool) or max_length < 0):
        errors.append(f"Field '{label}' maxLength must be a non-negative integer")
        max_length = None

    if min_length is not None and max_length is not None and min_length > max_length:
        errors.append(f"Field '{label}' minLength cannot be greater than maxLength")

    pattern = properties.get('pattern')
    if pattern is not None:
        pattern_error = validate_regex_pattern(pattern) if isinstance(pattern, str) else "Pattern must be a string"
        if pattern_error:
            errors.append(f"Field '{label}' has {pattern_error}")

    return errors


def validate_numeric_constraints(label: str, properties: Dict[str, Any]) -> List[str]:
    """Validate min/max properties of number fields."""
    errors = []
    min_value = properties.get('min')
    max_value = properties.get('max')

    if min_value is not None and not _is_number(min_value):
        errors.append(f"Field '{label}' min must be a number")
    if max_value is not None and not _is_number(max_value):
        errors.append(f"Field '{label}' max must be a number")

    if _is_number(min_value) and _is_number(max_value) and min_value > max_value:
        errors.append(f"Field '{label}' min cannot be greater than max")

    return errors


def validate_options(label: str, properties: Dict[str, Any]) -> List[str]:
    """Validate the option list of choice fields."""
    errors = []
    options = properties.get('options')

    if options is None:
        errors.append(f"Field '{label}' must have options")
    elif not isinstance(options, list):
        errors.append(f"Field '{label}' options must be a list")
    elif len(options) == 0:
        errors.append(f"Field '{label}' options must be a non-empty list")
    else:
        if len(options) != len(set(map(str, options))):
            errors.append(f"Field '{label}' options contain duplicates")
        for i, option in enumerate(options):
            if not isinstance(option, str):
                errors.append(f"Field '{label}' option at index {i} must be a string")

    return errors


def _parse_iso(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def validate_date_constraints(label: str, properties: Dict[str, Any]) -> List[str]:
    """Validate minDate/maxDate properties."""
    errors = []
    parsed = {}

    for key in ('minDate', 'maxDate'):
        value = properties.get(key)
        if value is None or value == '':
            continue
        parsed_value = _parse_iso(value)
        if parsed_value is None:
            errors.append(f"Field '{label}' {key} must be an ISO date (YYYY-MM-DD)")
        else:
            parsed[key] = parsed_value

    if 'minDate' in parsed and 'maxDate' in parsed and parsed['minDate'] > parsed['maxDate']:
        errors.append(f"Field '{label}' minDate cannot be after maxDate")

    return errors


def validate_upload_constraints(label: str, properties: Dict[str, Any]) -> List[str]:
    """Validate maxSize/allowedTypes properties of upload fields."""
    errors = []
    max_size = properties.get('maxSize')
    if max_size is not None and (not _is_number(max_size) or max_size <= 0):
        errors.append(f"Field '{label}' maxSize must be a positive number of megabytes")

    allowed_types = properties.get('allowedTypes')
    if allowed_types is not None:
        if not isinstance(allowed_types, list) or not allowed_types:
            errors.append(f"Field '{label}' allowedTypes must be a non-empty list")
        elif any('/' not in str(t) for t in allowed_types):
            errors.append(f"Field '{label}' allowedTypes entries must be media types like 'image/*'")

    return errors


# Constraint keyword -> checker, looked up through the registry entry
_CONSTRAINT_CHECKS = {
    'minLength': validate_string_constraints,
    'minimum': validate_numeric_constraints,
    'enum': validate_options,
    'formatMinimum': validate_date_constraints,
}


def validate_field(descriptor: FieldDescriptor) -> List[str]:
    """
    Validate one field's label and configurable properties.

    Args:
        descriptor: Field to check

    Returns:
        List of validation errors
    """
    errors = validate_label(descriptor.label)
    spec = get_field_type_spec(descriptor.type)
    properties = descriptor.configurable_properties
    label = descriptor.label

    keywords = set(spec.constraints.values())
    for keyword, check in _CONSTRAINT_CHECKS.items():
        if keyword in keywords:
            errors.extend(check(label, properties))

    if 'accept' in spec.option_hints.values():
        errors.extend(validate_upload_constraints(label, properties))

    return errors


def validate_fields(fields: Iterable[FieldDescriptor]) -> Dict[str, List[str]]:
    """
    Validate every field and report label collisions.

    Returns:
        Mapping of field id to its errors; fields without errors are omitted
    """
    field_list = list(fields)
    results: Dict[str, List[str]] = {}

    for descriptor in field_list:
        errors = validate_field(descriptor)
        if errors:
            results[descriptor.id] = errors

    for label, ids in find_label_collisions(field_list).items():
        for field_id in ids:
            results.setdefault(field_id, []).append(
                f"Label '{label}' is used by {len(ids)} fields"
            )

    if results:
        logger.debug(f"Field validation found issues in {len(results)} fields")
    return results
