"""Classify a child mutation as expected change or drift.

A mutation is drift when the parent's reconciler has already caught up with
the parent's declared intent (generation == observedGeneration) and yet a
child is being changed. Only parents in the Initialized phase are compared;
initializing and deleting parents always allow.
"""

from __future__ import annotations

import logging
from typing import Any

from kausality.config.settings import Settings, settings as default_settings
from kausality.core.lifecycle import LifecycleDetector
from kausality.core.resolver import ObjectReader, ParentResolver, ResolutionError
from kausality.models import LifecyclePhase
from kausality.models.drift import DriftResult, ParentState
from kausality.utils.hashes import hash_username, intersect

logger = logging.getLogger(__name__)

REASON_NO_OWNER = "no controller owner reference"
REASON_NO_STATE = "no parent state provided"
REASON_DELETING = "parent is being deleted (cleanup phase)"
REASON_INITIALIZING = "parent is initializing"
REASON_INDETERMINATE = (
    "cannot determine controller identity (multiple updaters, no parent controllers annotation)"
)


class Detector:
    """Drift detector over a parent resolver and a lifecycle classifier."""

    def __init__(
        self,
        k8s: ObjectReader,
        cfg: Settings | None = None,
        lifecycle_detector: LifecycleDetector | None = None,
    ):
        self.settings = cfg or default_settings
        self.resolver = ParentResolver(k8s)
        self.lifecycle_detector = lifecycle_detector or LifecycleDetector.from_settings(self.settings)

    def detect(self, obj: Any) -> DriftResult:
        """Resolve the parent of ``obj`` and apply the phase-gated comparison."""
        state, failure = self._resolve(obj)
        if failure is not None:
            return failure
        return self.detect_from_state(state)

    def detect_with_field_manager(self, obj: Any, field_manager: str) -> DriftResult:
        state, failure = self._resolve(obj)
        if failure is not None:
            return failure
        return self.detect_from_state_with_field_manager(state, field_manager)

    def detect_with_username(self, obj: Any, username: str, child_updaters: list[str]) -> DriftResult:
        """Detect drift, attributing the request through actor fingerprints.

        ``child_updaters`` is the child's updaters set before this request.
        """
        state, failure = self._resolve(obj)
        if failure is not None:
            return failure

        phase = self.lifecycle_detector.detect_phase(state)
        gated = self._gate(state, phase)
        if gated is not None:
            return gated

        is_controller, can_determine = self.is_controller_by_hash(state, username, child_updaters)
        if not can_determine:
            return _result(state, phase, allowed=True, reason=REASON_INDETERMINATE)
        if not is_controller:
            return _result(
                state, phase, allowed=True,
                reason=f"change by different actor (hash {hash_username(username)})",
            )
        return self._compare_generations(state, phase)

    def detect_from_state(self, state: ParentState | None) -> DriftResult:
        if state is None:
            return DriftResult(allowed=True, reason=REASON_NO_STATE)

        phase = self.lifecycle_detector.detect_phase(state)
        gated = self._gate(state, phase)
        if gated is not None:
            return gated
        return self._compare_generations(state, phase)

    def detect_from_state_with_field_manager(
        self, state: ParentState | None, field_manager: str,
    ) -> DriftResult:
        """Like detect_from_state, but a known, different field manager is never drift.

        An empty field manager, or an unknown controller manager, falls back
        to the plain generation comparison.
        """
        if state is None:
            return DriftResult(allowed=True, reason=REASON_NO_STATE)

        phase = self.lifecycle_detector.detect_phase(state)
        gated = self._gate(state, phase)
        if gated is not None:
            return gated

        controller_manager = state.controller_manager
        if field_manager and controller_manager and field_manager != controller_manager:
            result = _result(
                state, phase, allowed=True,
                reason=f"change by different actor {field_manager!r} (controller is {controller_manager!r})",
            )
            logger.debug("%s: %s", state.ref, result.reason)
            return result
        return self._compare_generations(state, phase)

    @staticmethod
    def is_controller_by_hash(
        state: ParentState, actor: str, child_updaters: list[str],
    ) -> tuple[bool, bool]:
        """Return ``(is_controller, can_determine)`` for ``actor``.

        A single child updater is authoritative. Otherwise the updaters that
        also appear in the parent's controllers set identify the controller.
        ``can_determine`` False means there is not enough information.
        """
        actor_hash = hash_username(actor)

        if len(child_updaters) == 1:
            return actor_hash == child_updaters[0], True

        if len(child_updaters) > 1 and state.controllers:
            common = intersect(child_updaters, list(state.controllers))
            if common:
                return actor_hash in common, True

        return False, False

    def _resolve(self, obj: Any) -> tuple[ParentState | None, DriftResult | None]:
        try:
            state = self.resolver.resolve_parent(obj)
        except ResolutionError as e:
            logger.warning("Denying mutation, parent could not be resolved: %s", e)
            return None, DriftResult(allowed=False, reason=f"failed to resolve parent: {e}")
        if state is None:
            return None, DriftResult(allowed=True, reason=REASON_NO_OWNER)
        return state, None

    @staticmethod
    def _gate(state: ParentState, phase: LifecyclePhase) -> DriftResult | None:
        if phase == LifecyclePhase.DELETING:
            return _result(state, phase, allowed=True, reason=REASON_DELETING)
        if phase == LifecyclePhase.INITIALIZING:
            return _result(state, phase, allowed=True, reason=REASON_INITIALIZING)
        return None

    @staticmethod
    def _compare_generations(state: ParentState, phase: LifecyclePhase) -> DriftResult:
        if not state.has_observed_generation:
            return _result(
                state, phase, allowed=True,
                reason=f"expected change: parent generation ({state.generation}) has no observedGeneration",
            )
        if state.generation != state.observed_generation:
            return _result(
                state, phase, allowed=True,
                reason=(
                    f"expected change: parent generation ({state.generation}) "
                    f"!= observedGeneration ({state.observed_generation})"
                ),
            )
        # Logging-only rollout: drift is reported but still allowed
        result = _result(
            state, phase, allowed=True, drift=True,
            reason=(
                f"drift detected: parent generation ({state.generation}) "
                f"== observedGeneration ({state.observed_generation})"
            ),
        )
        logger.debug("%s: %s", state.ref, result.reason)
        return result


def _result(
    state: ParentState, phase: LifecyclePhase, allowed: bool, reason: str, drift: bool = False,
) -> DriftResult:
    return DriftResult(
        allowed=allowed,
        reason=reason,
        drift_detected=drift,
        parent_ref=state.ref,
        parent_state=state,
        lifecycle_phase=phase,
    )
