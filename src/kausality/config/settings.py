"""Engine configuration and defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from kausality.models import InitializationStrategy

CONTROLLERS_ANNOTATION = "kausality.io/controllers"
UPDATERS_ANNOTATION = "kausality.io/updaters"
PHASE_ANNOTATION = "kausality.io/phase"

PHASE_VALUE_INITIALIZING = "initializing"
PHASE_VALUE_INITIALIZED = "initialized"

MAX_HASHES = 5

DEFAULT_DETECTION_ORDER: tuple[InitializationStrategy, ...] = (
    InitializationStrategy.INITIALIZED_CONDITION,
    InitializationStrategy.READY_CONDITION,
    InitializationStrategy.OBSERVED_GENERATION,
)


def _default_detection_order() -> tuple[InitializationStrategy, ...]:
    """Return the initialization detection order.

    KAUSALITY_DETECTION_ORDER takes a comma-separated list of strategy
    values, e.g. ``ready-condition,observed-generation``.
    """
    raw = os.environ.get("KAUSALITY_DETECTION_ORDER", "")
    if not raw.strip():
        return DEFAULT_DETECTION_ORDER
    return tuple(InitializationStrategy.from_str(p) for p in raw.split(",") if p.strip())


def _default_async_update_delay() -> float:
    raw = os.environ.get("KAUSALITY_ASYNC_UPDATE_DELAY", "")
    if not raw:
        return 0.0
    delay = float(raw)
    if delay < 0:
        raise ValueError(f"KAUSALITY_ASYNC_UPDATE_DELAY must be >= 0, got {raw!r}")
    return delay


def _default_request_timeout() -> float:
    raw = os.environ.get("KAUSALITY_REQUEST_TIMEOUT", "")
    return float(raw) if raw else 10.0


@dataclass
class Settings:
    detection_order: tuple[InitializationStrategy, ...] = field(default_factory=_default_detection_order)
    # 0 flushes annotation writes in the caller's thread
    async_update_delay: float = field(default_factory=_default_async_update_delay)
    max_hashes: int = MAX_HASHES
    retry_steps: int = 4
    retry_initial_backoff: float = 0.01
    retry_backoff_factor: float = 5.0
    retry_jitter: float = 0.1
    request_timeout: float = field(default_factory=_default_request_timeout)
    kube_context: str | None = field(
        default_factory=lambda: os.environ.get("KAUSALITY_KUBE_CONTEXT") or None,
    )


# Global default
settings = Settings()
