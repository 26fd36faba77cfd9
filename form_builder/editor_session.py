"""
Editing session for the form builder.
Owns one field collection, the form settings and the active selection,
and keeps the selection consistent with the collection.
"""

import logging
from typing import Dict, Any, Optional, Callable

from .exceptions import FieldNotFoundError
from .field_collection import FieldCollection, DEFAULT_LABEL_PREFIX
from .models import FieldDescriptor, FormSettings, FormSettingsStore
from .synthesizer import synthesize, SynthesisResult

logger = logging.getLogger(__name__)


class EditorSession:
    """One form under construction, scoped to the UI session that created it."""

    def __init__(self, settings: Optional[FormSettings] = None,
                 label_prefix: str = DEFAULT_LABEL_PREFIX,
                 id_factory: Optional[Callable[[], str]] = None):
        self.fields = FieldCollection(label_prefix=label_prefix, id_factory=id_factory)
        self.settings_store = FormSettingsStore(settings)
        self._selected_id: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'EditorSession':
        """Create a session using configured form defaults and label prefix."""
        builder = config.get('builder', {}) or {}
        return cls(
            settings=FormSettings.from_config(config),
            label_prefix=builder.get('label_prefix', DEFAULT_LABEL_PREFIX),
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected_field(self) -> Optional[FieldDescriptor]:
        """Copy of the selected field, or None."""
        if self._selected_id is None:
            return None
        return self.fields.get(self._selected_id)

    def select_field(self, field_id: str) -> FieldDescriptor:
        """
        Make a field the active selection.

        Raises:
            FieldNotFoundError: If no field has the given id
        """
        descriptor = self.fields.get(field_id)
        if descriptor is None:
            raise FieldNotFoundError(field_id, "select")
        self._selected_id = field_id
        logger.debug(f"Selected field {field_id}")
        return descriptor

    def clear_selection(self) -> None:
        self._selected_id = None

    def is_selected(self, field_id: str) -> bool:
        return self._selected_id is not None and self._selected_id == field_id

    # ------------------------------------------------------------------
    # Field operations
    # ------------------------------------------------------------------

    def add_field(self, tag: Any, label: Optional[str] = None) -> FieldDescriptor:
        """Append a field of the given type and select it."""
        descriptor = self.fields.add(tag, label)
        self._selected_id = descriptor.id
        return descriptor

    def remove_field(self, field_id: str) -> FieldDescriptor:
        """Remove a field; clears the selection if it pointed at it."""
        removed = self.fields.remove(field_id)
        if self._selected_id == field_id:
            self._selected_id = None
            logger.debug(f"Selection cleared after removing {field_id}")
        return removed

    def update_field(self, field_id: str, updates: Dict[str, Any]) -> FieldDescriptor:
        """Merge partial updates into a field. Selection is unchanged."""
        return self.fields.update(field_id, updates)

    def update_field_properties(self, field_id: str, **properties: Any) -> FieldDescriptor:
        """Set individual configurable properties of a field."""
        return self.fields.update(field_id, {'configurable_properties': properties})

    def duplicate_field(self, field_id: str) -> FieldDescriptor:
        """Duplicate a field and select the copy."""
        duplicated = self.fields.duplicate(field_id)
        self._selected_id = duplicated.id
        return duplicated

    def reorder(self, from_index: int, to_index: int) -> bool:
        return self.fields.reorder(from_index, to_index)

    def on_reorder_complete(self, moved_id: str, new_index: int) -> bool:
        """
        Commit the final position reported by the reorder controller.

        A gesture that ends over its own origin is ignored.

        Returns:
            True if the collection changed
        """
        current_index = self.fields.index_of(moved_id)
        if current_index is None:
            logger.warning(f"Reorder completed for unknown field id: {moved_id}")
            return False
        if current_index == new_index:
            return False
        return self.fields.move_to(moved_id, new_index)

    # ------------------------------------------------------------------
    # Settings and synthesis
    # ------------------------------------------------------------------

    @property
    def settings(self) -> FormSettings:
        return self.settings_store.get()

    def update_settings(self, **changes: Any) -> FormSettings:
        return self.settings_store.update(**changes)

    def synthesize(self) -> SynthesisResult:
        """Derive both schemas from the current state."""
        return synthesize(self.fields.snapshot(), self.settings)

    def export_bundle(self) -> Dict[str, Any]:
        """
        Complete saved-form payload: settings, both schemas and the fields.

        Raises:
            LabelCollisionError: If the form cannot be synthesized
        """
        result = self.synthesize()
        return {
            'settings': self.settings.to_dict(),
            'schema': result.structural_schema,
            'uiSchema': result.presentation_schema,
            'fields': [descriptor.to_dict() for descriptor in self.fields.snapshot()],
        }

    def reset(self) -> None:
        """Remove all fields and clear the selection. Settings are kept."""
        self.fields.clear()
        self._selected_id = None
