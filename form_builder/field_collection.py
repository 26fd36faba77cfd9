"""
Field collection engine for the form builder.
Owns the ordered list of field descriptors and applies add, remove,
reorder, update and duplicate operations with identity and ordering
invariants. Every operation is all-or-nothing.
"""

import copy
import logging
import uuid
from typing import Dict, Any, List, Optional, Callable, Iterator, Tuple, Set

from .exceptions import FieldNotFoundError, InvalidReorderError
from .models import FieldDescriptor, create_field_descriptor

logger = logging.getLogger(__name__)

DEFAULT_LABEL_PREFIX = "Field"
COPY_SUFFIX = " (Copy)"

# Accepted update keys, with the camelCase names used in exported forms
UPDATE_KEYS = {
    'label': 'label',
    'structural_fragment': 'structural_fragment',
    'structuralFragment': 'structural_fragment',
    'schema': 'structural_fragment',
    'presentation_fragment': 'presentation_fragment',
    'presentationFragment': 'presentation_fragment',
    'uiSchema': 'presentation_fragment',
    'configurable_properties': 'configurable_properties',
    'configurableProperties': 'configurable_properties',
    'properties': 'configurable_properties',
}
IMMUTABLE_KEYS = {'id', 'type'}


def _default_id_factory() -> str:
    return str(uuid.uuid4())


class FieldCollection:
    """Ordered, uniquely identified collection of field descriptors."""

    def __init__(self, label_prefix: str = DEFAULT_LABEL_PREFIX,
                 id_factory: Optional[Callable[[], str]] = None):
        self._fields: List[FieldDescriptor] = []
        self._issued_ids: Set[str] = set()
        self._label_prefix = label_prefix or DEFAULT_LABEL_PREFIX
        self._id_factory = id_factory or _default_id_factory

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.snapshot())

    def __contains__(self, field_id: object) -> bool:
        return self.index_of(field_id) is not None

    def snapshot(self) -> Tuple[FieldDescriptor, ...]:
        """Return deep copies of all descriptors in collection order."""
        return tuple(f.copy() for f in self._fields)

    def ids(self) -> List[str]:
        """Field ids in collection order."""
        return [f.id for f in self._fields]

    def labels(self) -> List[str]:
        """Field labels in collection order."""
        return [f.label for f in self._fields]

    def index_of(self, field_id: object) -> Optional[int]:
        """Position of a field, or None when absent."""
        for index, descriptor in enumerate(self._fields):
            if descriptor.id == field_id:
                return index
        return None

    def get(self, field_id: str) -> Optional[FieldDescriptor]:
        """Return a copy of the field with the given id, or None."""
        index = self.index_of(field_id)
        if index is None:
            return None
        return self._fields[index].copy()

    def _require_index(self, field_id: str, operation: str) -> int:
        index = self.index_of(field_id)
        if index is None:
            logger.warning(f"{operation} requested for unknown field id: {field_id}")
            raise FieldNotFoundError(field_id, operation)
        return index

    # ------------------------------------------------------------------
    # Id and label generation
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        field_id = self._id_factory()
        while field_id in self._issued_ids:
            logger.debug(f"Id factory returned an already issued id: {field_id}")
            field_id = self._id_factory()
        self._issued_ids.add(field_id)
        return field_id

    def _unique_label(self, base: str) -> str:
        existing = set(self.labels())
        if base not in existing:
            return base
        counter = 2
        while f"{base} {counter}" in existing:
            counter += 1
        return f"{base} {counter}"

    def next_default_label(self) -> str:
        """Positional placeholder label distinct from every existing label."""
        existing = set(self.labels())
        position = len(self._fields) + 1
        while f"{self._label_prefix} {position}" in existing:
            position += 1
        return f"{self._label_prefix} {position}"

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, tag: Any, label: Optional[str] = None) -> FieldDescriptor:
        """
        Append a new field built from registry defaults.

        Args:
            tag: Field type tag; unknown tags become text fields
            label: Optional label, defaults to a positional placeholder

        Returns:
            Copy of the new descriptor
        """
        descriptor = create_field_descriptor(
            tag,
            label if label is not None else self.next_default_label(),
            self._new_id(),
        )
        self._fields.append(descriptor)
        logger.info(f"Added {descriptor.type} field '{descriptor.label}' ({descriptor.id}) at position {len(self._fields) - 1}")
        return descriptor.copy()

    def remove(self, field_id: str) -> FieldDescriptor:
        """
        Remove a field, preserving the order of the remaining ones.

        Raises:
            FieldNotFoundError: If no field has the given id
        """
        index = self._require_index(field_id, "remove")
        removed = self._fields.pop(index)
        logger.info(f"Removed field '{removed.label}' ({removed.id}) from position {index}")
        return removed.copy()

    def _validate_move(self, from_index: Any, to_index: Any) -> None:
        size = len(self._fields)
        for value in (from_index, to_index):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidReorderError("positions must be integers", from_index, to_index)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            raise InvalidReorderError(f"positions must be within 0..{size - 1}", from_index, to_index)
        if from_index == to_index:
            raise InvalidReorderError("source and target are identical", from_index, to_index)

    def reorder(self, from_index: int, to_index: int) -> bool:
        """
        Move exactly one field to a new position.

        All other fields keep their relative order. Invalid or identical
        positions leave the collection untouched.

        Returns:
            True if the collection changed, False for a no-op
        """
        try:
            self._validate_move(from_index, to_index)
        except InvalidReorderError as e:
            logger.debug(f"Reorder ignored: {e}")
            return False

        reordered = list(self._fields)
        moved = reordered.pop(from_index)
        reordered.insert(to_index, moved)
        self._fields = reordered

        logger.info(f"Moved field '{moved.label}' ({moved.id}) from {from_index} to {to_index}")
        return True

    def reorder_by_id(self, moved_id: str, target_id: str) -> bool:
        """Move a field to the position currently held by another field."""
        from_index = self.index_of(moved_id)
        to_index = self.index_of(target_id)
        if from_index is None or to_index is None:
            logger.debug(f"Reorder ignored: unknown id in move {moved_id} -> {target_id}")
            return False
        return self.reorder(from_index, to_index)

    def move_to(self, field_id: str, new_index: int) -> bool:
        """Move a field to an absolute position."""
        from_index = self.index_of(field_id)
        if from_index is None:
            logger.debug(f"Reorder ignored: unknown id {field_id}")
            return False
        return self.reorder(from_index, new_index)

    def move_up(self, field_id: str) -> bool:
        """Move a field one position towards the start."""
        index = self.index_of(field_id)
        if index is None:
            return False
        return self.reorder(index, index - 1)

    def move_down(self, field_id: str) -> bool:
        """Move a field one position towards the end."""
        index = self.index_of(field_id)
        if index is None:
            return False
        return self.reorder(index, index + 1)

    def update(self, field_id: str, updates: Dict[str, Any]) -> FieldDescriptor:
        """
        Merge partial updates into a field.

        Mapping values are shallow-merged into the existing mappings; a
        presentation fragment of None clears it. 'id' and 'type' are
        ignored.

        Args:
            field_id: Id of the field to update
            updates: Partial field values

        Returns:
            Copy of the updated descriptor

        Raises:
            FieldNotFoundError: If no field has the given id
            ValueError: If updates contain unknown keys or invalid values
        """
        index = self._require_index(field_id, "update")

        normalized: Dict[str, Any] = {}
        unknown = []
        for key, value in updates.items():
            if key in IMMUTABLE_KEYS:
                logger.debug(f"Ignoring immutable key '{key}' in update of {field_id}")
                continue
            if key not in UPDATE_KEYS:
                unknown.append(key)
                continue
            normalized[UPDATE_KEYS[key]] = value
        if unknown:
            raise ValueError(f"Unknown field attributes in update: {sorted(unknown)}")

        if 'label' in normalized and not isinstance(normalized['label'], str):
            raise ValueError("Field label must be a string")
        for key in ('structural_fragment', 'configurable_properties'):
            if key in normalized and not isinstance(normalized[key], dict):
                raise ValueError(f"{key} must be a mapping")
        presentation = normalized.get('presentation_fragment')
        if presentation is not None and not isinstance(presentation, dict):
            raise ValueError("presentation_fragment must be a mapping or None")

        updated = self._fields[index].copy()
        if 'label' in normalized:
            updated.label = normalized['label']
        if 'structural_fragment' in normalized:
            updated.structural_fragment.update(copy.deepcopy(normalized['structural_fragment']))
        if 'configurable_properties' in normalized:
            updated.configurable_properties.update(copy.deepcopy(normalized['configurable_properties']))
        if 'presentation_fragment' in normalized:
            if presentation is None:
                updated.presentation_fragment = None
            else:
                merged = dict(updated.presentation_fragment or {})
                merged.update(copy.deepcopy(presentation))
                updated.presentation_fragment = merged

        self._fields[index] = updated
        logger.debug(f"Updated field {field_id}: {sorted(normalized)}")
        return updated.copy()

    def duplicate(self, field_id: str) -> FieldDescriptor:
        """
        Insert a copy of a field directly after it, with a fresh id and a
        unique '(Copy)' label.

        Raises:
            FieldNotFoundError: If no field has the given id
        """
        index = self._require_index(field_id, "duplicate")
        source = self._fields[index]

        duplicated = source.copy()
        duplicated.id = self._new_id()
        duplicated.label = self._unique_label(f"{source.label}{COPY_SUFFIX}")

        self._fields.insert(index + 1, duplicated)
        logger.info(f"Duplicated field '{source.label}' as '{duplicated.label}' ({duplicated.id})")
        return duplicated.copy()

    def clear(self) -> None:
        """Remove every field. Issued ids stay reserved."""
        count = len(self._fields)
        self._fields = []
        logger.info(f"Cleared {count} fields")
