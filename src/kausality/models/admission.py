"""Admission request context consumed by the drift engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Operation(enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"

    @classmethod
    def from_str(cls, s: str) -> Operation:
        for member in cls:
            if member.value == s.upper():
                return member
        raise ValueError(f"unknown admission operation {s!r}")


@dataclass(frozen=True)
class AdmissionContext:
    operation: Operation
    username: str = ""
    uid: str = ""
    field_manager: str = ""
    sub_resource: str = ""

    @property
    def actor(self) -> str:
        """Identity used for fingerprinting: username, else UID."""
        return self.username or self.uid

    @property
    def is_status_update(self) -> bool:
        return self.sub_resource == "status" and self.operation == Operation.UPDATE

    @classmethod
    def from_request(cls, request: dict) -> AdmissionContext:
        """Build from the ``request`` member of an AdmissionReview."""
        user_info = request.get("userInfo") or {}
        options = request.get("options") or {}
        return cls(
            operation=Operation.from_str(request.get("operation", "")),
            username=user_info.get("username", "") or "",
            uid=user_info.get("uid", "") or "",
            field_manager=options.get("fieldManager", "") or "",
            sub_resource=request.get("subResource", "") or "",
        )
