"""Drift detection models."""

from __future__ import annotations

from dataclasses import dataclass

from kausality.models import Condition, LifecyclePhase, ParentRef


@dataclass(frozen=True)
class ParentState:
    """Read-only snapshot of the causally relevant state of a parent object."""

    ref: ParentRef
    generation: int = 0
    observed_generation: int = 0
    has_observed_generation: bool = False
    controller_manager: str = ""
    controllers: tuple[str, ...] = ()
    deletion_timestamp: str | None = None
    conditions: tuple[Condition, ...] = ()
    is_initialized: bool = False
    phase_from_annotation: str = ""

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None


@dataclass(frozen=True)
class DriftResult:
    allowed: bool
    reason: str
    drift_detected: bool = False
    parent_ref: ParentRef | None = None
    parent_state: ParentState | None = None
    lifecycle_phase: LifecyclePhase | None = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "driftDetected": self.drift_detected,
            "parentRef": str(self.parent_ref) if self.parent_ref else None,
            "lifecyclePhase": self.lifecycle_phase.value if self.lifecycle_phase else None,
        }


def parent_state_to_dict(state: ParentState) -> dict:
    return {
        "ref": str(state.ref),
        "generation": state.generation,
        "observedGeneration": state.observed_generation if state.has_observed_generation else None,
        "controllerManager": state.controller_manager,
        "controllers": list(state.controllers),
        "deletionTimestamp": state.deletion_timestamp,
        "isInitialized": state.is_initialized,
        "phaseAnnotation": state.phase_from_annotation,
        "conditions": [
            {"type": c.type, "status": c.status, "reason": c.reason, "message": c.message}
            for c in state.conditions
        ],
    }
