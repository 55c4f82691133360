"""
Manifest Validation - JSON Schema validation for Team manifests.

Manifests follow the Kubernetes resource layout (kind, metadata, spec) and
are checked against a Draft 7 schema before being turned into resources.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, ValidationError

logger = logging.getLogger(__name__)

TEAM_PRIVACY_VALUES = ["secret", "closed"]

TEAM_MANIFEST_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["kind", "metadata", "spec"],
    "properties": {
        "apiVersion": {"type": "string"},
        "kind": {"const": "Team"},
        "metadata": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "annotations": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
            },
        },
        "spec": {
            "type": "object",
            "required": ["forProvider"],
            "properties": {
                "forProvider": {
                    "type": "object",
                    "required": ["org"],
                    "properties": {
                        "org": {"type": "string", "minLength": 1},
                        "description": {"type": "string"},
                        "privacy": {"enum": TEAM_PRIVACY_VALUES},
                    },
                    "additionalProperties": False,
                },
                "providerConfigRef": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {"name": {"type": "string", "minLength": 1}},
                },
            },
        },
    },
}


def validate_manifest(
    manifest: Any, schema: Dict[str, Any] = TEAM_MANIFEST_SCHEMA
) -> Tuple[bool, Optional[str]]:
    """
    Validate a manifest against a JSON Schema.

    Args:
        manifest: The decoded manifest document
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema)
        errors = sorted(
            validator.iter_errors(manifest), key=lambda e: [str(p) for p in e.path]
        )

        if not errors:
            return True, None

        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except ValidationError as e:
        return False, f"Validation error: {str(e)}"
