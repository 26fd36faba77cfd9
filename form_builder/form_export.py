"""
Form export for the form builder.
Builds the complete form bundle (settings, both schemas and the field
descriptors) and serializes it as JSON or YAML for download.
"""

import json
import logging
from datetime import datetime
from typing import Dict, Any, Optional

import yaml

from .editor_session import EditorSession

logger = logging.getLogger(__name__)


def build_form_bundle(session: EditorSession) -> Dict[str, Any]:
    """
    Build the export bundle for a session.

    Args:
        session: Editing session to export

    Returns:
        Dictionary with settings, schema, uiSchema and fields

    Raises:
        LabelCollisionError: If the form cannot be synthesized
    """
    bundle = session.export_bundle()
    logger.info(f"Built form bundle with {len(bundle['fields'])} fields")
    return bundle


def bundle_to_json(bundle: Dict[str, Any]) -> str:
    """Serialize a bundle as indented JSON, keeping key order."""
    return json.dumps(bundle, indent=2, ensure_ascii=False)


def bundle_to_yaml(bundle: Dict[str, Any]) -> str:
    """Serialize a bundle as YAML, keeping key order."""
    return yaml.safe_dump(bundle, default_flow_style=False, indent=2, sort_keys=False, allow_unicode=True)


def generate_export_filename(title: str, extension: str = "json",
                             timestamp: Optional[datetime] = None) -> str:
    """
    Generate a download filename from the form title.

    Args:
        title: Form title
        extension: File extension without the dot
        timestamp: Time to embed, defaults to now

    Returns:
        Filename such as 'contact_form_20240115_103000.json'
    """
    stem = "".join(c.lower() if c.isalnum() else "_" for c in (title or "").strip())
    stem = "_".join(part for part in stem.split("_") if part) or "form"
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{stem}_{stamp}.{extension}"
