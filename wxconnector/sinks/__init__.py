from .base import BaseSink, DeliveryError, DeliveryPolicy, INFLUX_POLICY, MQTT_POLICY, Sink, with_retries
from .influx import HealthCheckError, InfluxSink
from .mqtt import MqttSink

__all__ = [
    "BaseSink",
    "DeliveryError",
    "DeliveryPolicy",
    "HealthCheckError",
    "INFLUX_POLICY",
    "InfluxSink",
    "MQTT_POLICY",
    "MqttSink",
    "Sink",
    "with_retries",
]
