"""Field ownership lookups over ``metadata.managedFields`` (FieldsV1)."""

from __future__ import annotations

import json
import logging

logger = logging.getLogger(__name__)

# Condition types whose own observedGeneration stands in for
# status.observedGeneration (Crossplane-style status)
GENERATION_CONDITION_TYPES = ("Synced", "Ready")


def parse_fields_v1(raw: object) -> dict | None:
    """Return the FieldsV1 tree of a managed-fields entry, or None if unreadable."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, str)):
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring malformed fieldsV1 payload")
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def _list_item_key(key: str) -> dict | None:
    """Decode a ``k:{...}`` associative-list key."""
    if not key.startswith("k:"):
        return None
    try:
        decoded = json.loads(key[2:])
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def owns_observed_generation(fields: dict) -> bool:
    status = fields.get("f:status")
    if not isinstance(status, dict):
        return False
    return "f:observedGeneration" in status


def owns_condition_observed_generation(fields: dict, condition_types=GENERATION_CONDITION_TYPES) -> bool:
    status = fields.get("f:status")
    if not isinstance(status, dict):
        return False
    conditions = status.get("f:conditions")
    if not isinstance(conditions, dict):
        return False
    for key, item in conditions.items():
        item_key = _list_item_key(key)
        if item_key is None or item_key.get("type") not in condition_types:
            continue
        if isinstance(item, dict) and "f:observedGeneration" in item:
            return True
    return False


def find_controller_manager(managed_fields: list) -> str:
    """Return the manager that owns the parent's observed-generation stamp.

    Checks status.observedGeneration and the Synced/Ready condition stamps.
    The first matching entry wins; an empty string means unknown.
    """
    for entry in managed_fields:
        if not isinstance(entry, dict):
            continue
        if (entry.get("subresource") or "") not in ("", "status"):
            continue
        fields = parse_fields_v1(entry.get("fieldsV1"))
        if not fields:
            continue
        if owns_observed_generation(fields) or owns_condition_observed_generation(fields):
            return entry.get("manager", "") or ""
    return ""
