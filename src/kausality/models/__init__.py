"""Data models for Kausality."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class LifecyclePhase(enum.Enum):
    INITIALIZING = "Initializing"
    INITIALIZED = "Initialized"
    DELETING = "Deleting"


class InitializationStrategy(enum.Enum):
    """Signals that mark a parent as having finished initialization."""

    INITIALIZED_CONDITION = "initialized-condition"
    READY_CONDITION = "ready-condition"
    OBSERVED_GENERATION = "observed-generation"

    @classmethod
    def from_str(cls, s: str) -> InitializationStrategy:
        for member in cls:
            if member.value == s.strip():
                return member
        raise ValueError(f"unknown initialization strategy {s!r}")


@dataclass(frozen=True)
class ParentRef:
    api_version: str
    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.api_version}/{self.kind}:{self.namespace}/{self.name}"
        return f"{self.api_version}/{self.kind}:{self.name}"


@dataclass(frozen=True)
class Condition:
    type: str = ""
    status: str = ""
    reason: str = ""
    message: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Condition:
        return cls(
            type=_str(d.get("type")),
            status=_str(d.get("status")),
            reason=_str(d.get("reason")),
            message=_str(d.get("message")),
        )


@dataclass(frozen=True)
class OwnerReference:
    api_version: str = ""
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> OwnerReference:
        return cls(
            api_version=_str(d.get("apiVersion")),
            kind=_str(d.get("kind")),
            name=_str(d.get("name")),
            uid=_str(d.get("uid")),
            controller=d.get("controller") is True,
        )


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""
