"""Delivery bookkeeping for a single run.

Fatal problems stop the run with an exception; everything recorded here is the
best-effort kind, where a run still succeeds but some points did not land.
"""
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Tuple, Union


@dataclass(frozen=True)
class DeliveryFailure:
    sink: str
    measurement: str
    error: str

    def as_dict(self) -> Dict[str, str]:
        return {"sink": self.sink, "measurement": self.measurement, "error": self.error}


class DeliveryReport:
    """Records which measurements reached which sinks."""

    def __init__(self) -> None:
        self._delivered: List[Tuple[str, str]] = []
        self._failures: List[DeliveryFailure] = []
        self._lock = Lock()

    def record_delivery(self, sink: str, measurement: str) -> None:
        if not sink or not measurement:
            raise ValueError("sink and measurement must be provided")
        with self._lock:
            self._delivered.append((sink, measurement))

    def record_failure(self, sink: str, measurement: str, error: Union[BaseException, str]) -> None:
        if not sink or not measurement:
            raise ValueError("sink and measurement must be provided")
        with self._lock:
            self._failures.append(DeliveryFailure(sink=sink, measurement=measurement, error=str(error)))

    @property
    def failures(self) -> List[DeliveryFailure]:
        with self._lock:
            return list(self._failures)

    @property
    def delivered(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._delivered)

    @property
    def degraded(self) -> bool:
        with self._lock:
            return bool(self._failures)

    def failures_for(self, sink: str) -> List[DeliveryFailure]:
        return [failure for failure in self.failures if failure.sink == sink]

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            delivered: Dict[str, List[str]] = {}
            for sink, measurement in self._delivered:
                delivered.setdefault(sink, []).append(measurement)
            failures = [failure.as_dict() for failure in self._failures]
        return {"delivered": delivered, "failures": failures}


__all__ = ["DeliveryFailure", "DeliveryReport"]
