"""InfluxDB sink writing points through the blocking write API."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from ..entities import MeasurementPoint
from .base import INFLUX_POLICY, BaseSink, DeliveryPolicy, with_retries


logger = logging.getLogger(__name__)


class HealthCheckError(RuntimeError):
    """Raised when InfluxDB does not answer its ping endpoint."""


def to_record(point: MeasurementPoint) -> Point:
    record = Point(point.name)
    for key, value in point.tags.items():
        record = record.tag(key, value)
    for key, value in point.fields.items():
        record = record.field(key, value)
    return record.time(point.timestamp, WritePrecision.S)


class InfluxSink(BaseSink):
    """Delivers every point kind, retrying each write per the delivery policy."""

    name = "influxdb"

    def __init__(
        self,
        *,
        client: Any,
        bucket: str,
        org: str = "",
        policy: DeliveryPolicy = INFLUX_POLICY,
        health_check: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.bucket = bucket
        self.org = org
        self.policy = policy
        self.health_check = health_check
        self._sleep = sleep
        self._write_api = client.write_api(write_options=SYNCHRONOUS)

    @classmethod
    def from_config(cls, config, policy: DeliveryPolicy = INFLUX_POLICY, **kwargs) -> "InfluxSink":
        client = InfluxDBClient(
            url=config.influx_server,
            token=config.influx_auth_token,
            org=config.influx_org or None,
            timeout=int(policy.timeout * 1000),
        )
        return cls(
            client=client,
            bucket=config.influx_bucket,
            org=config.influx_org,
            policy=policy,
            health_check=not config.influx_health_check_disabled,
            **kwargs,
        )

    def preflight(self) -> None:
        if not self.health_check:
            logger.debug("InfluxDB health check disabled")
            return
        try:
            reachable = self.client.ping()
        except Exception as exc:  # noqa: BLE001 - any ping failure is fatal
            raise HealthCheckError(f"Failed to check InfluxDB health: {exc}") from exc
        if not reachable:
            raise HealthCheckError("InfluxDB did not pass health check: no response to ping")
        logger.debug("InfluxDB health check passed")

    def deliver(self, point: MeasurementPoint) -> None:
        record = to_record(point)
        with_retries(
            lambda: self._write_api.write(bucket=self.bucket, org=self.org or None, record=record),
            self.policy,
            description=f"write {point.name} to InfluxDB",
            sleep=self._sleep,
        )
        logger.info("Wrote %s to InfluxDB", point.name)

    def close(self) -> None:
        self.client.close()


__all__ = ["HealthCheckError", "InfluxSink", "to_record"]
