from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, TypeVar

from ..entities import MeasurementPoint


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeliveryError(RuntimeError):
    """Raised when a point could not be delivered to a sink."""


@dataclass(frozen=True)
class DeliveryPolicy:
    """Retry and timeout settings applied by a sink to each point."""

    attempts: int = 3
    delay: float = 1.0
    timeout: float = 3.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.delay < 0 or self.timeout <= 0:
            raise ValueError("delay must be non-negative and timeout positive")


INFLUX_POLICY = DeliveryPolicy(attempts=3, delay=1.0, timeout=3.0)
# At most once: a single publish without acknowledgement.
MQTT_POLICY = DeliveryPolicy(attempts=1, delay=0.0, timeout=3.0)


class Sink(Protocol):
    """A telemetry destination for measurement points."""

    name: str

    def accepts(self, point: MeasurementPoint) -> bool:
        """Whether this sink takes points of the given kind."""
        ...

    def preflight(self) -> None:
        """Checks run before any provider call; failures abort the run."""
        ...

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def deliver(self, point: MeasurementPoint) -> None:
        """Deliver one point, raising :class:`DeliveryError` once the policy is exhausted."""
        ...


class BaseSink:
    """No-op lifecycle shared by the concrete sinks."""

    name = "sink"

    def accepts(self, point: MeasurementPoint) -> bool:
        return True

    def preflight(self) -> None:
        return None

    def open(self) -> None:
        return None

    def close(self) -> None:
        return None

    def __enter__(self) -> "BaseSink":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def with_retries(
    operation: Callable[[], T],
    policy: DeliveryPolicy,
    *,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` up to ``policy.attempts`` times, sleeping between attempts."""
    last_error: Optional[Exception] = None
    for attempt in range(1, policy.attempts + 1):
        try:
            return operation()
        except Exception as exc:  # noqa: BLE001 - every failed attempt is logged and retried
            last_error = exc
            logger.warning(
                "Attempt %s/%s to %s failed: %s", attempt, policy.attempts, description, exc
            )
            if attempt < policy.attempts:
                sleep(policy.delay)
    raise DeliveryError(
        f"{description} failed after {policy.attempts} attempt(s): {last_error}"
    ) from last_error


__all__ = [
    "BaseSink",
    "DeliveryError",
    "DeliveryPolicy",
    "INFLUX_POLICY",
    "MQTT_POLICY",
    "Sink",
    "with_retries",
]
