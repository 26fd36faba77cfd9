"""
Dynamic Pydantic model builder for the form builder.
Compiles a synthesized structural schema into a Pydantic model so that a
submitted payload can be validated against it.
"""

from typing import Dict, Any, Type, Optional, List, Tuple
from datetime import datetime, date
from urllib.parse import urlparse
from pydantic import BaseModel, ConfigDict, Field, field_validator, create_model, ValidationError
import re
import logging

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def get_field_type(fragment: Dict[str, Any]) -> Type:
    """
    Map a structural fragment to a Python type.

    Args:
        fragment: Structural-schema fragment of one property

    Returns:
        Python type for the field
    """
    field_type = fragment.get('type', 'string')
    field_format = fragment.get('format')

    if field_type == 'string':
        if field_format == 'date':
            return date
        if field_format == 'date-time':
            return datetime
        return str

    elif field_type == 'integer':
        return int

    elif field_type == 'number':
        return float

    elif field_type == 'boolean':
        return bool

    else:
        logger.warning(f"Unknown field type '{field_type}', defaulting to str")
        return str


def create_field_from_fragment(label: str, fragment: Dict[str, Any], required: bool) -> Tuple[Type, Any]:
    """
    Create a Pydantic field definition from a structural fragment.

    Args:
        label: Property key (the field label), used as the alias
        fragment: Structural-schema fragment
        required: Whether the label is in the schema's required list

    Returns:
        Tuple of (field_type, FieldInfo)
    """
    field_type = get_field_type(fragment)
    field_kwargs: Dict[str, Any] = {'alias': label}

    if required:
        annotation = field_type
    else:
        annotation = Optional[field_type]
        field_kwargs['default'] = fragment.get('default')

    if 'description' in fragment:
        field_kwargs['description'] = fragment['description']

    if field_type is str:
        if 'minLength' in fragment:
            field_kwargs['min_length'] = fragment['minLength']
        if 'maxLength' in fragment:
            field_kwargs['max_length'] = fragment['maxLength']

    elif field_type in (int, float):
        if 'minimum' in fragment:
            field_kwargs['ge'] = fragment['minimum']
        if 'maximum' in fragment:
            field_kwargs['le'] = fragment['maximum']

    return annotation, Field(**field_kwargs)


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value)).date()
    except ValueError:
        return None


def create_validators_for_field(field_name: str, fragment: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create custom validators for a field based on its structural fragment.

    Args:
        field_name: Python name of the model field
        fragment: Structural-schema fragment

    Returns:
        Dictionary of validator functions
    """
    validators = {}
    field_format = fragment.get('format')

    if 'pattern' in fragment:
        pattern = fragment['pattern']
        try:
            compiled = re.compile(str(pattern))
            pattern_error = None
        except re.error as e:
            logger.warning(f"Invalid pattern '{pattern}' on {field_name}: {e}")
            compiled = None
            pattern_error = f'Field pattern {pattern!r} is not a valid regular expression ({e})'

        @field_validator(field_name)
        @classmethod
        def pattern_validator_func(cls, v):
            if v is None:
                return v
            if compiled is None:
                raise ValueError(pattern_error)
            if not compiled.search(str(v)):
                raise ValueError(f'Must match pattern: {pattern}')
            return v
        validators[f'validate_{field_name}_pattern'] = pattern_validator_func

    if 'enum' in fragment:
        choices = list(fragment['enum'])

        @field_validator(field_name)
        @classmethod
        def enum_validator_func(cls, v):
            if v is not None and v not in choices:
                raise ValueError(f'Value must be one of: {choices}')
            return v
        validators[f'validate_{field_name}_enum'] = enum_validator_func

    if field_format == 'email':
        @field_validator(field_name)
        @classmethod
        def email_validator_func(cls, v):
            if v is not None and not EMAIL_PATTERN.match(str(v)):
                raise ValueError('Must be a valid email address')
            return v
        validators[f'validate_{field_name}_email'] = email_validator_func

    if field_format == 'uri':
        @field_validator(field_name)
        @classmethod
        def uri_validator_func(cls, v):
            if v is not None:
                parsed = urlparse(str(v))
                if not parsed.scheme or not parsed.netloc:
                    raise ValueError('Must be a valid URL including the scheme')
            return v
        validators[f'validate_{field_name}_uri'] = uri_validator_func

    lower = _as_date(fragment['formatMinimum']) if fragment.get('formatMinimum') else None
    upper = _as_date(fragment['formatMaximum']) if fragment.get('formatMaximum') else None
    if lower is not None or upper is not None:
        @field_validator(field_name)
        @classmethod
        def date_range_validator_func(cls, v):
            value = _as_date(v) if v is not None else None
            if value is not None:
                if lower is not None and value < lower:
                    raise ValueError(f'Date must be on or after {lower.isoformat()}')
                if upper is not None and value > upper:
                    raise ValueError(f'Date must be on or before {upper.isoformat()}')
            return v
        validators[f'validate_{field_name}_date_range'] = date_range_validator_func

    return validators


def create_model_from_structural_schema(schema: Dict[str, Any], model_name: str = "SubmissionModel") -> Type[BaseModel]:
    """
    Create a Pydantic model from a synthesized structural schema.

    Model fields are named positionally and aliased by property key, so
    labels that are not Python identifiers still validate.

    Args:
        schema: Structural schema with 'properties' and 'required'
        model_name: Name for the generated model class

    Returns:
        Pydantic model class
    """
    if 'properties' not in schema:
        raise ValueError("Schema must contain 'properties' key")

    properties = schema['properties']
    required = set(schema.get('required', []))
    model_fields = {}
    validators_dict = {}

    for index, (label, fragment) in enumerate(properties.items()):
        field_name = f"field_{index}"
        model_fields[field_name] = create_field_from_fragment(label, fragment, label in required)
        validators_dict.update(create_validators_for_field(field_name, fragment))

    try:
        dynamic_model = create_model(
            model_name,
            __config__=ConfigDict(extra='ignore'),
            __validators__=validators_dict,
            **model_fields
        )
        logger.info(f"Created dynamic model '{model_name}' with {len(properties)} fields")
        return dynamic_model

    except Exception as e:
        logger.error(f"Failed to create model '{model_name}': {e}")
        raise


def clean_submission(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty values so they count as missing, as form renderers do."""
    return {k: v for k, v in (data or {}).items() if v is not None and v != ''}


def validate_submission(data: Dict[str, Any], schema: Dict[str, Any]) -> List[str]:
    """
    Validate submitted data against a structural schema.

    Args:
        data: Submitted form data keyed by label
        schema: Structural schema

    Returns:
        List of validation error messages
    """
    model_class = create_model_from_structural_schema(schema)
    try:
        model_class(**clean_submission(data))
        return []
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            field_path = ' -> '.join(str(loc) for loc in error.get('loc', []))
            message = f"{field_path}: {error.get('msg')}"
            error_messages.append(message)
        return error_messages
    except re.error as e:
        logger.warning(f"Submission validation hit an invalid pattern: {e}")
        return [f"Invalid pattern in form schema: {e}"]


def coerce_submission(data: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate submitted data and return it as JSON-ready values keyed by label.

    Raises:
        ValidationError: If the data does not satisfy the schema
    """
    model_class = create_model_from_structural_schema(schema)
    instance = model_class(**clean_submission(data))
    return instance.model_dump(mode='json', by_alias=True, exclude_none=True)
