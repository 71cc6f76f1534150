"""Resolve the controlling parent of an object and snapshot its state."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from kausality.config.settings import (
    CONTROLLERS_ANNOTATION,
    PHASE_ANNOTATION,
    PHASE_VALUE_INITIALIZED,
)
from kausality.core.k8s_client import split_api_version
from kausality.models import Condition, OwnerReference, ParentRef
from kausality.models.drift import ParentState
from kausality.utils.hashes import parse_hashes
from kausality.utils.managed_fields import GENERATION_CONDITION_TYPES, find_controller_manager
from kausality.utils.unstructured import (
    as_dict,
    get_annotations,
    get_deletion_timestamp,
    get_owner_references,
    nested_int,
    nested_list,
    nested_map,
    nested_str,
)

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """The controlling parent exists but could not be read."""


class ObjectReader(Protocol):
    def get_object(self, api_version: str, kind: str, name: str, namespace: str = "") -> dict | None:
        ...


class ParentResolver:
    """Finds and fetches the controller parent of an object."""

    def __init__(self, k8s: ObjectReader):
        self.k8s = k8s

    def resolve_parent(self, obj: Any) -> ParentState | None:
        """Return the parent's state, or None if ``obj`` has no controller owner.

        Raises ResolutionError when the owner reference is malformed or the
        parent cannot be fetched.
        """
        child = as_dict(obj)
        owner = find_controller_owner_ref(get_owner_references(child))
        if owner is None:
            return None

        if not owner.api_version:
            raise ResolutionError("invalid API version '': empty")
        try:
            split_api_version(owner.api_version)
        except ValueError as e:
            raise ResolutionError(f"invalid API version {owner.api_version!r}: {e}") from e

        # The parent is looked up in the child's namespace. Cluster-scoped
        # children read their parent cluster-scoped.
        namespace, _ = nested_str(child, "metadata", "namespace")
        try:
            parent = self.k8s.get_object(owner.api_version, owner.kind, owner.name, namespace)
        except Exception as e:
            raise ResolutionError(f"failed to get parent {owner.kind}/{owner.name}: {e}") from e
        if parent is None:
            raise ResolutionError(f"failed to get parent {owner.kind}/{owner.name}: not found")

        state = extract_parent_state(parent, owner)
        logger.debug(
            "Resolved parent %s: generation=%d observedGeneration=%s",
            state.ref, state.generation,
            state.observed_generation if state.has_observed_generation else "<unset>",
        )
        return state


def find_controller_owner_ref(refs: list[OwnerReference]) -> OwnerReference | None:
    """Return the owner reference flagged ``controller: true``."""
    for ref in refs:
        if ref.controller:
            return ref
    return None


def parent_ref_from_owner_ref(ref: OwnerReference, namespace: str) -> ParentRef:
    return ParentRef(
        api_version=ref.api_version,
        kind=ref.kind,
        namespace=namespace,
        name=ref.name,
    )


def extract_parent_state(parent: Any, owner: OwnerReference) -> ParentState:
    """Build a ParentState from a parent object's JSON tree."""
    parent = as_dict(parent)
    namespace, _ = nested_str(parent, "metadata", "namespace")
    generation, _ = nested_int(parent, "metadata", "generation")

    status = nested_map(parent, "status")
    observed_generation, has_observed_generation = nested_int(status, "observedGeneration")
    if not has_observed_generation:
        observed_generation, has_observed_generation = extract_condition_observed_generation(status)

    annotations = get_annotations(parent)
    phase = annotations.get(PHASE_ANNOTATION, "")

    return ParentState(
        ref=parent_ref_from_owner_ref(owner, namespace),
        generation=generation,
        observed_generation=observed_generation,
        has_observed_generation=has_observed_generation,
        controller_manager=find_controller_manager(nested_list(parent, "metadata", "managedFields")),
        controllers=tuple(parse_hashes(annotations.get(CONTROLLERS_ANNOTATION))),
        deletion_timestamp=get_deletion_timestamp(parent),
        conditions=tuple(extract_conditions(status)),
        is_initialized=phase == PHASE_VALUE_INITIALIZED,
        phase_from_annotation=phase,
    )


def extract_conditions(status: dict) -> list[Condition]:
    return [Condition.from_dict(c) for c in nested_list(status, "conditions") if isinstance(c, dict)]


def extract_condition_observed_generation(status: dict) -> tuple[int, bool]:
    """Read observedGeneration from the Synced condition, else the Ready one.

    The whole list is scanned so Synced wins regardless of position.
    """
    found: dict[str, int] = {}
    for cond in nested_list(status, "conditions"):
        if not isinstance(cond, dict):
            continue
        cond_type = cond.get("type")
        if cond_type not in GENERATION_CONDITION_TYPES or cond_type in found:
            continue
        value, ok = nested_int(cond, "observedGeneration")
        if ok:
            found[cond_type] = value
    for cond_type in GENERATION_CONDITION_TYPES:
        if cond_type in found:
            return found[cond_type], True
    return 0, False
