from __future__ import annotations

import pytest

from kausality.config.settings import DEFAULT_DETECTION_ORDER, Settings
from kausality.models import InitializationStrategy, LifecyclePhase, ParentRef
from kausality.models.admission import AdmissionContext, Operation
from kausality.models.drift import DriftResult


def test_parent_ref_string():
    assert str(ParentRef("apps/v1", "Deployment", "default", "web")) == "apps/v1/Deployment:default/web"
    assert str(ParentRef("example.io/v1", "Cluster", "", "shared")) == "example.io/v1/Cluster:shared"


def test_parent_ref_value_equality():
    assert ParentRef("v1", "A", "", "x") == ParentRef("v1", "A", "", "x")
    assert len({ParentRef("v1", "A", "", "x"), ParentRef("v1", "A", "", "x")}) == 1


def test_drift_result_is_immutable():
    result = DriftResult(allowed=True, reason="ok")
    with pytest.raises(AttributeError):
        result.allowed = False


def test_drift_result_to_dict():
    ref = ParentRef("apps/v1", "Deployment", "default", "web")
    result = DriftResult(
        allowed=True, reason="drift detected", drift_detected=True,
        parent_ref=ref, lifecycle_phase=LifecyclePhase.INITIALIZED,
    )
    assert result.to_dict() == {
        "allowed": True,
        "reason": "drift detected",
        "driftDetected": True,
        "parentRef": "apps/v1/Deployment:default/web",
        "lifecyclePhase": "Initialized",
    }


def test_admission_context_from_request():
    ctx = AdmissionContext.from_request({
        "operation": "UPDATE",
        "subResource": "status",
        "userInfo": {"username": "", "uid": "abc-123"},
        "options": {"fieldManager": "kube-controller-manager"},
    })
    assert ctx.operation == Operation.UPDATE
    assert ctx.actor == "abc-123"
    assert ctx.field_manager == "kube-controller-manager"
    assert ctx.is_status_update


def test_admission_context_prefers_username():
    ctx = AdmissionContext(operation=Operation.CREATE, username="alice", uid="abc")
    assert ctx.actor == "alice"
    assert not ctx.is_status_update


def test_unknown_operation():
    with pytest.raises(ValueError):
        Operation.from_str("PATCH")


def test_settings_env_overrides(monkeypatch):
    monkeypatch.setenv("KAUSALITY_DETECTION_ORDER", "ready-condition, observed-generation")
    monkeypatch.setenv("KAUSALITY_ASYNC_UPDATE_DELAY", "2.5")
    s = Settings()
    assert s.detection_order == (
        InitializationStrategy.READY_CONDITION,
        InitializationStrategy.OBSERVED_GENERATION,
    )
    assert s.async_update_delay == 2.5


def test_settings_defaults(monkeypatch):
    for var in ("KAUSALITY_DETECTION_ORDER", "KAUSALITY_ASYNC_UPDATE_DELAY", "KAUSALITY_REQUEST_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    s = Settings()
    assert s.detection_order == DEFAULT_DETECTION_ORDER
    assert s.async_update_delay == 0.0
    assert s.max_hashes == 5


def test_settings_rejects_negative_delay(monkeypatch):
    monkeypatch.setenv("KAUSALITY_ASYNC_UPDATE_DELAY", "-1")
    with pytest.raises(ValueError):
        Settings()
