"""Deliver measurement points to every configured sink."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..entities import MeasurementPoint
from ..report import DeliveryReport
from ..sinks.base import DeliveryError, Sink


logger = logging.getLogger(__name__)


class Dispatcher:
    """Hands each point to the sinks that accept it, isolating failures per sink."""

    def __init__(self, sinks: Sequence[Sink], report: Optional[DeliveryReport] = None) -> None:
        self.sinks: List[Sink] = list(sinks)
        self.report = report or DeliveryReport()

    def dispatch(self, point: MeasurementPoint) -> bool:
        """Deliver ``point``; returns True when every accepting sink took it."""
        targets = [sink for sink in self.sinks if sink.accepts(point)]
        if not targets:
            logger.warning("No configured sink accepts measurement %s", point.name)
            return True

        ok = True
        for sink in targets:
            try:
                sink.deliver(point)
            except DeliveryError as exc:
                ok = False
                logger.error("Failed to write %s to %s: %s", point.name, sink.name, exc)
                self.report.record_failure(sink.name, point.name, exc)
                continue
            self.report.record_delivery(sink.name, point.name)
        return ok

    def dispatch_all(self, points: Iterable[MeasurementPoint]) -> DeliveryReport:
        for point in points:
            self.dispatch(point)
        return self.report


__all__ = ["Dispatcher"]
