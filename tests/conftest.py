from __future__ import annotations

import copy
import threading

import pytest
from kubernetes.client import ApiException

from kausality.config.settings import DEFAULT_DETECTION_ORDER, Settings


class FakeK8sClient:
    """In-memory stand-in for K8sClient with resourceVersion conflict checks."""

    def __init__(self):
        self.objects: dict[tuple[str, str, str, str], dict] = {}
        self.get_calls: list[tuple[str, str, str, str]] = []
        self.replace_calls: list[dict] = []
        self.conflicts_to_raise = 0
        self.get_error: Exception | None = None
        self.replace_error: Exception | None = None
        self._lock = threading.Lock()

    def add(self, obj: dict) -> dict:
        meta = obj.setdefault("metadata", {})
        meta.setdefault("resourceVersion", "1")
        self.objects[self._key_of(obj)] = obj
        return obj

    def find(self, api_version: str, kind: str, name: str, namespace: str = "") -> dict | None:
        return self.objects.get((api_version, kind, namespace, name))

    def get_object(self, api_version: str, kind: str, name: str, namespace: str = "") -> dict | None:
        with self._lock:
            self.get_calls.append((api_version, kind, name, namespace))
            if self.get_error is not None:
                raise self.get_error
            obj = self.objects.get((api_version, kind, namespace, name))
            return copy.deepcopy(obj) if obj is not None else None

    def replace_object(self, obj: dict) -> dict:
        with self._lock:
            self.replace_calls.append(copy.deepcopy(obj))
            if self.replace_error is not None:
                raise self.replace_error
            if self.conflicts_to_raise > 0:
                self.conflicts_to_raise -= 1
                raise ApiException(status=409, reason="Conflict")
            key = self._key_of(obj)
            stored = self.objects.get(key)
            if stored is None:
                raise ApiException(status=404, reason="Not Found")
            if stored["metadata"]["resourceVersion"] != obj["metadata"].get("resourceVersion"):
                raise ApiException(status=409, reason="Conflict")
            updated = copy.deepcopy(obj)
            updated["metadata"]["resourceVersion"] = str(int(stored["metadata"]["resourceVersion"]) + 1)
            self.objects[key] = updated
            return copy.deepcopy(updated)

    @staticmethod
    def _key_of(obj: dict) -> tuple[str, str, str, str]:
        meta = obj.get("metadata", {})
        return obj["apiVersion"], obj["kind"], meta.get("namespace", ""), meta["name"]


def make_parent(
    name: str = "web",
    namespace: str = "default",
    generation: int = 5,
    observed_generation: int | None = None,
    conditions: list[dict] | None = None,
    annotations: dict[str, str] | None = None,
    deletion_timestamp: str | None = None,
    managed_fields: list[dict] | None = None,
    api_version: str = "apps/v1",
    kind: str = "Deployment",
) -> dict:
    metadata: dict = {"name": name, "namespace": namespace, "generation": generation}
    if annotations is not None:
        metadata["annotations"] = annotations
    if deletion_timestamp is not None:
        metadata["deletionTimestamp"] = deletion_timestamp
    if managed_fields is not None:
        metadata["managedFields"] = managed_fields
    status: dict = {}
    if observed_generation is not None:
        status["observedGeneration"] = observed_generation
    if conditions is not None:
        status["conditions"] = conditions
    obj = {"apiVersion": api_version, "kind": kind, "metadata": metadata}
    if status:
        obj["status"] = status
    return obj


def make_child(
    name: str = "web-7d9f",
    namespace: str = "default",
    owners: list[dict] | None = None,
    annotations: dict[str, str] | None = None,
) -> dict:
    metadata: dict = {"name": name, "namespace": namespace}
    if owners is not None:
        metadata["ownerReferences"] = owners
    if annotations is not None:
        metadata["annotations"] = annotations
    return {"apiVersion": "apps/v1", "kind": "ReplicaSet", "metadata": metadata, "spec": {"replicas": 3}}


def controller_owner(name: str = "web", api_version: str = "apps/v1", kind: str = "Deployment") -> dict:
    return {"apiVersion": api_version, "kind": kind, "name": name, "uid": "uid-1", "controller": True}


@pytest.fixture
def k8s() -> FakeK8sClient:
    return FakeK8sClient()


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        detection_order=DEFAULT_DETECTION_ORDER,
        async_update_delay=0.0,
        request_timeout=5.0,
        kube_context=None,
    )
