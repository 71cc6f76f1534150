"""Track which actors write child specs and parent statuses.

Fingerprints are stored in annotations:

- ``kausality.io/updaters`` on a child: actors that modified its spec.
  Written synchronously by folding the annotation map into the admission
  response patch (see ``record_updater``).
- ``kausality.io/controllers`` on a parent: actors that updated its status.
  Written through the Kubernetes API (see ``ControllerTracker``), because
  metadata changes do not persist through a status sub-resource response.

Both sets keep the newest ``MAX_HASHES`` entries.
"""

from __future__ import annotations

import copy
import logging
import random
import threading
import time
from typing import Any, Callable

from kubernetes.client import ApiException

from kausality.config.settings import (
    CONTROLLERS_ANNOTATION,
    MAX_HASHES,
    PHASE_ANNOTATION,
    PHASE_VALUE_INITIALIZED,
    UPDATERS_ANNOTATION,
    Settings,
    settings as default_settings,
)
from kausality.core.k8s_client import is_conflict
from kausality.utils.hashes import append_bounded, hash_username, join_hashes, parse_hashes
from kausality.utils.unstructured import (
    as_dict,
    get_annotations,
    get_deletion_timestamp,
    nested_str,
    object_key,
)

logger = logging.getLogger(__name__)


def record_updater(obj: Any, actor: str, max_hashes: int = MAX_HASHES) -> dict[str, str]:
    """Add the actor's fingerprint to the child's updaters set.

    Returns the full annotation map for the admission response patch.
    """
    annotations = dict(get_annotations(as_dict(obj)))
    hashes = parse_hashes(annotations.get(UPDATERS_ANNOTATION))
    annotations[UPDATERS_ANNOTATION] = join_hashes(append_bounded(hashes, hash_username(actor), max_hashes))
    return annotations


def compute_status_update_annotations(obj: Any, actor: str, max_hashes: int = MAX_HASHES) -> dict[str, str]:
    """Add the actor's fingerprint to a parent's controllers set.

    Returns the full annotation map.
    """
    annotations = dict(get_annotations(as_dict(obj)))
    hashes = parse_hashes(annotations.get(CONTROLLERS_ANNOTATION))
    annotations[CONTROLLERS_ANNOTATION] = join_hashes(append_bounded(hashes, hash_username(actor), max_hashes))
    return annotations


def parse_updater_hashes(obj: Any) -> list[str]:
    return parse_hashes(get_annotations(as_dict(obj)).get(UPDATERS_ANNOTATION))


class ControllerTracker:
    """Best-effort writer for parent controllers and phase annotations.

    Requests for the same object are coalesced into one pending write, and at
    most one write per object is in flight. Controller and phase updates for
    an object share that write. Each write is a read-merge-update loop
    retried on conflict; failures are logged and dropped.
    """

    def __init__(
        self,
        k8s: Any,
        cfg: Settings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.k8s = k8s
        self.settings = cfg or default_settings
        self._sleep = sleep
        self._lock = threading.Lock()
        # object key -> annotation key -> values in arrival order
        self._pending: dict[str, dict[str, list[str]]] = {}
        self._active: set[str] = set()
        self._threads: list[threading.Thread] = []

    def record_controller_async(self, obj: Any, actor: str) -> None:
        """Schedule adding the actor's fingerprint to the parent's controllers set."""
        obj = as_dict(obj)
        actor_hash = hash_username(actor)
        if actor_hash in parse_hashes(get_annotations(obj).get(CONTROLLERS_ANNOTATION)):
            logger.debug("Controller hash %s already recorded on %s", actor_hash, object_key(obj))
            return
        self._schedule(obj, CONTROLLERS_ANNOTATION, actor_hash)

    def record_phase_async(self, obj: Any, phase: str) -> None:
        """Schedule recording the parent's lifecycle phase. Never downgrades from initialized."""
        obj = as_dict(obj)
        # Deleting is derived from metadata and never stored
        if get_deletion_timestamp(obj) is not None:
            return
        current = get_annotations(obj).get(PHASE_ANNOTATION, "")
        if current == PHASE_VALUE_INITIALIZED or current == phase:
            return
        self._schedule(obj, PHASE_ANNOTATION, phase)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Wait for delayed flushes to finish. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            thread.join(remaining)
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            return not self._threads

    def _schedule(self, obj: dict, annotation: str, value: str) -> None:
        key = object_key(obj)
        with self._lock:
            values = self._pending.setdefault(key, {}).setdefault(annotation, [])
            if value not in values:
                values.append(value)
            if key in self._active:
                return
            self._active.add(key)

        target = _object_target(obj)
        delay = self.settings.async_update_delay
        if delay <= 0:
            self._flush(key, target)
            return
        # Not tied to the admission request, which ends before the write lands
        thread = threading.Thread(
            target=self._flush_after_delay,
            args=(key, target, delay),
            name=f"kausality-flush-{key}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()

    def _flush_after_delay(self, key: str, target: tuple[str, str, str, str], delay: float) -> None:
        self._sleep(delay)
        self._flush(key, target)

    def _flush(self, key: str, target: tuple[str, str, str, str]) -> None:
        try:
            while True:
                with self._lock:
                    pending = self._pending.pop(key, None)
                    if not pending:
                        self._active.discard(key)
                        return
                self._write(key, target, pending)
        except BaseException:
            with self._lock:
                self._active.discard(key)
            raise

    def _write(self, key: str, target: tuple[str, str, str, str], pending: dict[str, list[str]]) -> None:
        api_version, kind, name, namespace = target
        backoff = self.settings.retry_initial_backoff
        steps = max(1, self.settings.retry_steps)

        for attempt in range(1, steps + 1):
            try:
                current = self.k8s.get_object(api_version, kind, name, namespace)
                if current is None:
                    logger.debug("Skipping annotation update for %s: object no longer exists", key)
                    return
                updated = self._merge(current, pending)
                if updated is None:
                    logger.debug("Annotation update for %s already applied", key)
                    return
                self.k8s.replace_object(updated)
                logger.debug("Recorded %s on %s", pending, key)
                return
            except ApiException as e:
                if not is_conflict(e) or attempt == steps:
                    logger.error("Failed to update annotations on %s", key, exc_info=True)
                    return
                logger.warning("Conflict updating %s (attempt %d/%d), retrying", key, attempt, steps)
            except Exception:
                logger.error("Failed to update annotations on %s", key, exc_info=True)
                return
            self._sleep(backoff * (1 + self.settings.retry_jitter * random.random()))
            backoff *= self.settings.retry_backoff_factor

    def _merge(self, current: dict, pending: dict[str, list[str]]) -> dict | None:
        """Fold pending values into a freshly read object; None means nothing to write."""
        annotations = get_annotations(current)
        changes: dict[str, str] = {}

        hashes = pending.get(CONTROLLERS_ANNOTATION)
        if hashes:
            existing = parse_hashes(annotations.get(CONTROLLERS_ANNOTATION))
            merged = existing
            for h in hashes:
                merged = append_bounded(merged, h, self.settings.max_hashes)
            if merged != existing:
                changes[CONTROLLERS_ANNOTATION] = join_hashes(merged)

        phases = pending.get(PHASE_ANNOTATION)
        if phases:
            phase = _merge_phase(annotations.get(PHASE_ANNOTATION, ""), phases)
            if phase is not None:
                changes[PHASE_ANNOTATION] = phase

        if not changes:
            return None
        return _with_annotations(current, changes)


def _merge_phase(current: str, phases: list[str]) -> str | None:
    target = current
    for value in phases:
        if target == PHASE_VALUE_INITIALIZED:
            break
        target = value
    if target == current:
        return None
    return target


def _with_annotations(obj: dict, changes: dict[str, str]) -> dict:
    updated = copy.deepcopy(obj)
    metadata = updated.setdefault("metadata", {})
    annotations = metadata.get("annotations") or {}
    annotations.update(changes)
    metadata["annotations"] = annotations
    return updated


def _object_target(obj: dict) -> tuple[str, str, str, str]:
    name, _ = nested_str(obj, "metadata", "name")
    namespace, _ = nested_str(obj, "metadata", "namespace")
    return obj.get("apiVersion", ""), obj.get("kind", ""), name, namespace
