"""Lifecycle phase classification for parent objects."""

from __future__ import annotations

from kausality.config.settings import DEFAULT_DETECTION_ORDER, Settings
from kausality.models import Condition, InitializationStrategy, LifecyclePhase
from kausality.models.drift import ParentState

# Conditions that, next to an observedGeneration, mean the parent reached steady state.
# Being synced alone is not enough: some reconcilers stamp observedGeneration
# before their children are ready.
STEADY_STATE_CONDITIONS = ("Ready", "Available", "Initialized")


class LifecycleDetector:
    """Determines the lifecycle phase of a parent object."""

    def __init__(self, detection_order: tuple[InitializationStrategy, ...] | None = None):
        self.detection_order = tuple(detection_order or DEFAULT_DETECTION_ORDER)

    @classmethod
    def from_settings(cls, cfg: Settings) -> LifecycleDetector:
        return cls(cfg.detection_order)

    def detect_phase(self, state: ParentState | None) -> LifecyclePhase:
        # Nothing to gate
        if state is None:
            return LifecyclePhase.INITIALIZED

        if state.deletion_timestamp is not None:
            return LifecyclePhase.DELETING

        # Sticky once recorded
        if state.is_initialized:
            return LifecyclePhase.INITIALIZED

        for strategy in self.detection_order:
            if self._check_initialized(state, strategy):
                return LifecyclePhase.INITIALIZED

        return LifecyclePhase.INITIALIZING

    @staticmethod
    def _check_initialized(state: ParentState, strategy: InitializationStrategy) -> bool:
        if strategy == InitializationStrategy.INITIALIZED_CONDITION:
            return has_condition(state.conditions, "Initialized", "True")
        if strategy == InitializationStrategy.READY_CONDITION:
            return has_condition(state.conditions, "Ready", "True")
        if strategy == InitializationStrategy.OBSERVED_GENERATION:
            return state.has_observed_generation and any(
                has_condition(state.conditions, t, "True") for t in STEADY_STATE_CONDITIONS
            )
        return False


def has_condition(conditions: tuple[Condition, ...] | list[Condition], cond_type: str, status: str) -> bool:
    return any(c.type == cond_type and c.status == status for c in conditions)


def find_condition(conditions: tuple[Condition, ...] | list[Condition], cond_type: str) -> Condition | None:
    for c in conditions:
        if c.type == cond_type:
            return c
    return None


def is_deleting(state: ParentState | None) -> bool:
    return state is not None and state.deletion_timestamp is not None


def is_initializing(state: ParentState | None, detector: LifecycleDetector | None = None) -> bool:
    detector = detector or LifecycleDetector()
    return detector.detect_phase(state) == LifecyclePhase.INITIALIZING
