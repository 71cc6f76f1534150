"""Read helpers for schemaless (JSON-tree) Kubernetes objects."""

from __future__ import annotations

from typing import Any

from kubernetes.client import ApiClient

from kausality.models import OwnerReference

_MISSING = object()
_serializer: ApiClient | None = None


def as_dict(obj: Any) -> dict:
    """Return the JSON-tree form of an object.

    Plain dicts are returned unchanged. Typed ``kubernetes.client`` models
    are serialized once with the API client's own camelCase mapping.
    """
    global _serializer
    if isinstance(obj, dict):
        return obj
    if _serializer is None:
        _serializer = ApiClient()
    data = _serializer.sanitize_for_serialization(obj)
    if not isinstance(data, dict):
        raise TypeError(f"cannot read {type(obj).__name__} as a Kubernetes object")
    return data


def nested_get(obj: dict, *path: str) -> tuple[Any, bool]:
    current: Any = obj
    for key in path:
        if not isinstance(current, dict):
            return None, False
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return None, False
    return current, True


def nested_int(obj: dict, *path: str) -> tuple[int, bool]:
    value, found = nested_get(obj, *path)
    # bool is an int subclass but never a valid counter
    if not found or isinstance(value, bool) or not isinstance(value, int):
        return 0, False
    return value, True


def nested_str(obj: dict, *path: str) -> tuple[str, bool]:
    value, found = nested_get(obj, *path)
    if not found or not isinstance(value, str):
        return "", False
    return value, True


def nested_map(obj: dict, *path: str) -> dict:
    value, found = nested_get(obj, *path)
    return value if found and isinstance(value, dict) else {}


def nested_list(obj: dict, *path: str) -> list:
    value, found = nested_get(obj, *path)
    return value if found and isinstance(value, list) else []


def get_annotations(obj: dict) -> dict[str, str]:
    return {k: v for k, v in nested_map(obj, "metadata", "annotations").items() if isinstance(v, str)}


def get_owner_references(obj: dict) -> list[OwnerReference]:
    return [
        OwnerReference.from_dict(ref)
        for ref in nested_list(obj, "metadata", "ownerReferences")
        if isinstance(ref, dict)
    ]


def get_deletion_timestamp(obj: dict) -> str | None:
    value, found = nested_get(obj, "metadata", "deletionTimestamp")
    if not found or value is None:
        return None
    return str(value)


def object_key(obj: dict) -> str:
    """Return a ``kind/namespace/name`` key for an object."""
    kind = obj.get("kind") or "Object"
    namespace, _ = nested_str(obj, "metadata", "namespace")
    name, _ = nested_str(obj, "metadata", "name")
    return f"{kind}/{namespace}/{name}"
