"""MQTT sink publishing points as JSON documents."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit
from uuid import uuid4

import paho.mqtt.client as mqtt

from ..entities import MeasurementPoint, PointKind
from ..services.assembler import SOURCE
from .base import MQTT_POLICY, BaseSink, DeliveryError, DeliveryPolicy


logger = logging.getLogger(__name__)

DEFAULT_PORT = 1883
KEEPALIVE = 60
# The legacy ecobee-compatible point has no topic and is never published.
TOPIC_SUFFIXES = {
    PointKind.WEATHER: "weather",
    PointKind.POLLUTION: "pollution",
}


def parse_broker(address: str) -> Tuple[str, int]:
    """Split ``host``, ``host:port`` or ``tcp://host:port`` into host and port."""
    parts = urlsplit(address if "://" in address else f"tcp://{address}")
    try:
        port = parts.port
    except ValueError as exc:
        raise ValueError(f"Unsupported MQTT broker address: {address}") from exc
    if not parts.hostname:
        raise ValueError(f"Unsupported MQTT broker address: {address}")
    return parts.hostname, port or DEFAULT_PORT


def build_payload(point: MeasurementPoint) -> Dict[str, Any]:
    payload: Dict[str, Any] = dict(point.fields)
    payload["source"] = SOURCE
    payload["latitude"] = point.latitude
    payload["longitude"] = point.longitude
    payload["timestamp"] = point.unix_timestamp
    return payload


class MqttSink(BaseSink):
    """Publishes weather and pollution points with QoS 0."""

    name = "mqtt"

    def __init__(
        self,
        *,
        client: Any,
        host: str,
        port: int = DEFAULT_PORT,
        topic_root: str,
        policy: DeliveryPolicy = MQTT_POLICY,
    ) -> None:
        self.client = client
        self.host = host
        self.port = port
        self.topic_root = topic_root.rstrip("/")
        self.policy = policy
        self._connected = False
        self._connect_error: Optional[str] = None

    @classmethod
    def from_config(cls, config, policy: DeliveryPolicy = MQTT_POLICY) -> "MqttSink":
        host, port = parse_broker(config.mqtt_broker)
        client_id = config.mqtt_client_id or f"wxconnector-{uuid4().hex[:8]}"
        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        client.connect_timeout = policy.timeout
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password or None)
        return cls(client=client, host=host, port=port, topic_root=config.mqtt_topic_root, policy=policy)

    def accepts(self, point: MeasurementPoint) -> bool:
        return point.kind in TOPIC_SUFFIXES

    def topic_for(self, point: MeasurementPoint) -> str:
        return f"{self.topic_root}/{TOPIC_SUFFIXES[point.kind]}"

    def open(self) -> None:
        try:
            rc = self.client.connect(self.host, self.port, KEEPALIVE)
        except (OSError, ValueError) as exc:
            self._connect_error = str(exc)
            logger.error("Failed to connect to MQTT broker %s:%s: %s", self.host, self.port, exc)
            return
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self._connect_error = mqtt.error_string(rc)
            logger.error("Failed to connect to MQTT broker %s:%s: %s", self.host, self.port, self._connect_error)
            return
        self.client.loop_start()
        self._connected = True
        logger.debug("Connected to MQTT broker %s:%s", self.host, self.port)

    def deliver(self, point: MeasurementPoint) -> None:
        if not self._connected:
            raise DeliveryError(f"not connected to MQTT broker: {self._connect_error or 'connection not opened'}")
        topic = self.topic_for(point)
        body = json.dumps(build_payload(point)).encode("utf-8")
        try:
            info = self.client.publish(topic, body, qos=0)
        except ValueError as exc:
            raise DeliveryError(f"publish to {topic} failed: {exc}") from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise DeliveryError(f"publish to {topic} failed: {mqtt.error_string(info.rc)}")
        try:
            info.wait_for_publish(timeout=self.policy.timeout)
        except (RuntimeError, ValueError) as exc:
            raise DeliveryError(f"publish to {topic} failed: {exc}") from exc
        if not info.is_published():
            raise DeliveryError(f"publish to {topic} timed out after {self.policy.timeout}s")
        logger.info("Published %s to %s", point.name, topic)

    def close(self) -> None:
        if not self._connected:
            return
        self.client.disconnect()
        self.client.loop_stop()
        self._connected = False


__all__ = ["MqttSink", "build_payload", "parse_broker"]
