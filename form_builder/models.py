"""
Data models for the form builder.

This module provides the field descriptor (one configured form field) and
the form-level settings value object with its store.
"""

import copy
import logging
from dataclasses import dataclass, field, asdict, fields as dataclass_fields
from typing import Dict, Any, Optional

from .field_types import (
    normalize_field_type,
    default_structural_fragment,
    default_presentation_fragment,
    default_configurable_properties,
)

logger = logging.getLogger(__name__)


@dataclass
class FieldDescriptor:
    """
    One field of the form under construction.

    Attributes:
        id: Opaque unique identifier, never reused or mutated
        type: Field type tag, immutable after creation
        label: Display label, also the structural-schema property key
        structural_fragment: Structural-schema fragment for this field
        presentation_fragment: Rendering hints, None for the renderer default
        configurable_properties: Type-dependent property values edited by the user
    """
    id: str
    type: str
    label: str
    structural_fragment: Dict[str, Any] = field(default_factory=dict)
    presentation_fragment: Optional[Dict[str, Any]] = None
    configurable_properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_required(self) -> bool:
        """Whether the required property is set to True."""
        return self.configurable_properties.get('required') is True

    def copy(self) -> 'FieldDescriptor':
        """Return a deep copy of the descriptor."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the descriptor to a plain dictionary for export.

        Returns:
            Dictionary using the exported key names
        """
        return {
            'id': self.id,
            'type': self.type,
            'label': self.label,
            'schema': copy.deepcopy(self.structural_fragment),
            'uiSchema': copy.deepcopy(self.presentation_fragment),
            'properties': copy.deepcopy(self.configurable_properties),
        }


def create_field_descriptor(tag: Any, label: str, field_id: str) -> FieldDescriptor:
    """
    Build a new descriptor from registry defaults.

    Args:
        tag: Field type tag (unknown tags become text fields)
        label: Initial label
        field_id: Freshly generated unique id

    Returns:
        New FieldDescriptor
    """
    field_type = normalize_field_type(tag)
    return FieldDescriptor(
        id=field_id,
        type=field_type,
        label=label,
        structural_fragment=default_structural_fragment(field_type),
        presentation_fragment=default_presentation_fragment(field_type),
        configurable_properties=default_configurable_properties(field_type),
    )


@dataclass
class FormSettings:
    """
    Form-level settings, independent of the field collection.

    Attributes:
        title: Form title, copied into the structural schema
        description: Form description, copied into the structural schema
        submit_text: Submit button label
        show_reset: Whether a reset control is shown
        reset_text: Reset button label
    """
    title: str = "My Form"
    description: str = "This is a form built with Form Builder"
    submit_text: str = "Submit"
    show_reset: bool = False
    reset_text: str = "Reset"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'FormSettings':
        """
        Create FormSettings from the form_defaults section of a configuration.

        Args:
            config: Configuration dictionary

        Returns:
            FormSettings with configured values or defaults
        """
        form_defaults = config.get('form_defaults', {}) or {}
        defaults = cls()

        return cls(
            title=str(form_defaults.get('title', defaults.title)),
            description=str(form_defaults.get('description', defaults.description)),
            submit_text=str(form_defaults.get('submit_text', defaults.submit_text)),
            show_reset=bool(form_defaults.get('show_reset', defaults.show_reset)),
            reset_text=str(form_defaults.get('reset_text', defaults.reset_text)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary."""
        return asdict(self)

    def replace(self, **changes: Any) -> 'FormSettings':
        """
        Return a copy with the given settings changed.

        Raises:
            ValueError: If a change names an unknown setting
        """
        known = {f.name for f in dataclass_fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown form settings: {unknown}")

        values = self.to_dict()
        values.update(changes)
        return FormSettings(**values)


class FormSettingsStore:
    """Plain getter/setter holding the current FormSettings."""

    def __init__(self, settings: Optional[FormSettings] = None):
        self._settings = settings if settings is not None else FormSettings()

    def get(self) -> FormSettings:
        """Get the current settings."""
        return self._settings

    def set(self, settings: FormSettings) -> None:
        """Replace the current settings."""
        if not isinstance(settings, FormSettings):
            raise TypeError("settings must be a FormSettings instance")
        self._settings = settings
        logger.debug(f"Form settings replaced: {settings}")

    def update(self, **changes: Any) -> FormSettings:
        """Change individual settings and return the new value."""
        self._settings = self._settings.replace(**changes)
        logger.debug(f"Form settings updated: {sorted(changes)}")
        return self._settings
