"""
Diff utilities for the form builder.
Compares two synthesized form bundles with DeepDiff so the UI can show
what changed since the form was last exported.
"""

from typing import Dict, Any, List
from deepdiff import DeepDiff
import json
import re
import logging

logger = logging.getLogger(__name__)

CHANGE_TYPES = [
    'values_changed',
    'dictionary_item_added',
    'dictionary_item_removed',
    'iterable_item_added',
    'iterable_item_removed',
    'type_changes'
]

_PATH_TOKEN = re.compile(r"\[('(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|\d+)\]")


def calculate_schema_diff(previous: Dict[str, Any], current: Dict[str, Any]) -> Dict[str, Any]:
    """
    Calculate differences between two schema bundles.

    Order is significant: property order and required-list order are part
    of the synthesized output, so a reorder shows up as a change.

    Args:
        previous: Earlier bundle or schema
        current: Current bundle or schema

    Returns:
        Dict keyed by change type; each value maps a DeepDiff path to details
    """
    try:
        diff = DeepDiff(previous, current, ignore_order=False, verbose_level=2)
    except Exception as e:
        logger.error(f"Error calculating diff: {e}", exc_info=True)
        return {}

    processed_diff: Dict[str, Any] = {}
    for change_type in CHANGE_TYPES:
        if change_type not in diff:
            continue
        changes = diff[change_type]
        if isinstance(changes, dict):
            processed_diff[change_type] = dict(changes)
        else:
            processed_diff[change_type] = {str(path): None for path in changes}

    return processed_diff


def has_changes(diff: Dict[str, Any]) -> bool:
    """
    Check if there are any changes in the diff.

    Args:
        diff: Diff dictionary from calculate_schema_diff

    Returns:
        True if there are changes, False otherwise
    """
    if not diff:
        return False
    return any(change_type in diff and diff[change_type] for change_type in CHANGE_TYPES)


def get_change_summary(diff: Dict[str, Any]) -> Dict[str, int]:
    """
    Get a summary of changes by type.

    Args:
        diff: Diff dictionary from calculate_schema_diff

    Returns:
        Dictionary with change counts by type
    """
    summary = {
        'modified': len(diff.get('values_changed', {})),
        'added': len(diff.get('dictionary_item_added', {})) + len(diff.get('iterable_item_added', {})),
        'removed': len(diff.get('dictionary_item_removed', {})) + len(diff.get('iterable_item_removed', {})),
        'type_changed': len(diff.get('type_changes', {})),
    }
    summary['total'] = sum(summary.values())
    return summary


def clean_path(path: str) -> str:
    """
    Turn a DeepDiff path into a readable one.

    root['schema']['properties']['Email']['minLength'] -> schema → properties → Email → minLength
    """
    tokens = []
    for token in _PATH_TOKEN.findall(str(path)):
        if token[0] in "'\"":
            tokens.append(token[1:-1])
        elif tokens:
            tokens[-1] += f"[{token}]"
        else:
            tokens.append(f"[{token}]")
    return " → ".join(tokens) if tokens else "root"


def _format_value(value: Any, max_length: int = 80) -> str:
    if value is None:
        return "None"
    if isinstance(value, str):
        text = value
    elif isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False)
    else:
        text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length - 3]}..."
    return text


def format_diff_for_display(diff: Dict[str, Any]) -> List[str]:
    """
    Format a diff as one human-readable line per change.

    Args:
        diff: Diff dictionary from calculate_schema_diff

    Returns:
        List of change descriptions
    """
    lines: List[str] = []

    for path, change in diff.get('values_changed', {}).items():
        lines.append(
            f"Modified {clean_path(path)}: {_format_value(change.get('old_value'))} → {_format_value(change.get('new_value'))}"
        )
    for path, change in diff.get('type_changes', {}).items():
        lines.append(
            f"Changed type of {clean_path(path)}: {_format_value(change.get('old_value'))} → {_format_value(change.get('new_value'))}"
        )
    for change_type in ('dictionary_item_added', 'iterable_item_added'):
        for path, value in diff.get(change_type, {}).items():
            lines.append(f"Added {clean_path(path)}: {_format_value(value)}")
    for change_type in ('dictionary_item_removed', 'iterable_item_removed'):
        for path, value in diff.get(change_type, {}).items():
            lines.append(f"Removed {clean_path(path)}: {_format_value(value)}")

    return lines
