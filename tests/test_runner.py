from __future__ import annotations

import io
import json
import logging

import pytest

from tests.fakes import FakeInfluxClient, FakeMqttClient, FakeProvider, no_sleep
from wxconnector import __main__ as cli
from wxconnector.aqi import AQIError
from wxconnector.config import ConfigError, parse_config
from wxconnector.providers.base import ProviderError
from wxconnector.report import DeliveryReport
from wxconnector.services.runner import Connector
from wxconnector.sinks.base import DeliveryError
from wxconnector.sinks.influx import HealthCheckError, InfluxSink
from wxconnector.sinks.mqtt import MqttSink


@pytest.fixture
def legacy_config(config_data):
    return parse_config(
        {**config_data, "write_ecobee_weather_measurement": True, "ecobee_thermostat_name": "Hall"},
        environ={},
    )


def make_sinks(influx_client=None, mqtt_client=None):
    influx = InfluxSink(client=influx_client or FakeInfluxClient(), bucket="weather", org="home", sleep=no_sleep)
    mqtt = MqttSink(client=mqtt_client or FakeMqttClient(), host="broker.test", topic_root="home/outdoor")
    return influx, mqtt


def test_run_delivers_every_point(legacy_config, reading, pollution):
    influx_client, mqtt_client = FakeInfluxClient(), FakeMqttClient()
    provider = FakeProvider(reading, pollution)

    report = Connector(legacy_config, provider=provider, sinks=make_sinks(influx_client, mqtt_client)).run()

    assert provider.calls == ["weather", "pollution"]
    assert not report.degraded
    delivered = report.snapshot()["delivered"]
    assert delivered["influxdb"] == ["ecobee_weather", "weather", "pollution"]
    assert delivered["mqtt"] == ["weather", "pollution"]
    assert [topic for topic, _, _ in mqtt_client.published] == ["home/outdoor/weather", "home/outdoor/pollution"]
    assert influx_client.closed
    assert mqtt_client.disconnected


def test_influx_outage_does_not_block_mqtt(legacy_config, reading, pollution, caplog):
    influx_client, mqtt_client = FakeInfluxClient(failures=99), FakeMqttClient()

    with caplog.at_level("WARNING"):
        report = Connector(
            legacy_config,
            provider=FakeProvider(reading, pollution),
            sinks=make_sinks(influx_client, mqtt_client),
        ).run()

    assert report.degraded
    assert {failure.sink for failure in report.failures} == {"influxdb"}
    assert [failure.measurement for failure in report.failures] == ["ecobee_weather", "weather", "pollution"]
    assert len(influx_client.write_api_instance.calls) == 9
    assert len(mqtt_client.published) == 2
    assert all(not topic.endswith("ecobee_weather") for topic, _, _ in mqtt_client.published)
    assert "influxdb: 3 point(s) not delivered (ecobee_weather, weather, pollution)" in caplog.text


def test_zero_sinks_is_a_configuration_error(config, reading, pollution):
    provider = FakeProvider(reading, pollution)

    with pytest.raises(ConfigError):
        Connector(config, provider=provider, sinks=[]).run()

    assert provider.calls == []


def test_failed_health_check_stops_before_fetching(config, reading, pollution):
    provider = FakeProvider(reading, pollution)
    influx_client, mqtt_client = FakeInfluxClient(reachable=False), FakeMqttClient()

    with pytest.raises(HealthCheckError):
        Connector(config, provider=provider, sinks=make_sinks(influx_client, mqtt_client)).run()

    assert provider.calls == []
    assert influx_client.closed
    assert mqtt_client.connected_to is None


def test_provider_error_closes_sinks(config, reading):
    influx_client, mqtt_client = FakeInfluxClient(), FakeMqttClient()
    provider = FakeProvider(reading, error=ProviderError("HTTP 401"))

    with pytest.raises(ProviderError):
        Connector(config, provider=provider, sinks=make_sinks(influx_client, mqtt_client)).run()

    assert influx_client.write_api_instance.calls == []
    assert influx_client.closed
    assert mqtt_client.disconnected
    assert not mqtt_client.loop_running


def test_missing_pollution_writes_nothing(config, reading):
    influx_client, mqtt_client = FakeInfluxClient(), FakeMqttClient()

    with pytest.raises(ProviderError):
        Connector(config, provider=FakeProvider(reading), sinks=make_sinks(influx_client, mqtt_client)).run()

    assert influx_client.write_api_instance.calls == []
    assert mqtt_client.published == []


def test_print_data(config, reading, pollution):
    out = io.StringIO()

    Connector(config, provider=FakeProvider(reading, pollution), sinks=make_sinks(), out=out).run(print_data=True)

    text = out.getvalue()
    assert "Conditions at 2023-11-14T22:13:20+00:00" in text
    assert "humidity: 45%" in text
    assert "Pollution at 2023-11-14T22:18:20+00:00" in text
    assert "(Moderate)" in text


# -- command line ------------------------------------------------------------

def test_main_rejects_missing_config(tmp_path, caplog):
    assert cli.main(["--config", str(tmp_path / "missing.json")]) == 1
    assert "Configuration error" in caplog.text


def test_main_rejects_config_without_sinks(tmp_path, config_data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({**config_data, "influx_server": "", "mqtt_broker": ""}), encoding="utf-8")

    assert cli.main(["--config", str(path)]) == 1


def test_main_rejects_malformed_broker(tmp_path, config_data, caplog):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({**config_data, "mqtt_broker": "broker.test:abc"}), encoding="utf-8")

    assert cli.main(["--config", str(path)]) == 1
    assert "Unsupported MQTT broker address" in caplog.text


class StubConnector:
    error = None
    report = DeliveryReport()

    def __init__(self, config, **kwargs) -> None:
        self.config = config

    def run(self, print_data: bool = False) -> DeliveryReport:
        if self.error is not None:
            raise self.error
        return self.report


@pytest.fixture
def config_file(tmp_path, config_data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_data), encoding="utf-8")
    return path


def test_main_degraded_run_exits_cleanly(monkeypatch, config_file, caplog):
    report = DeliveryReport()
    report.record_failure("influxdb", "weather", DeliveryError("timeout"))
    monkeypatch.setattr(StubConnector, "report", report)
    monkeypatch.setattr(cli, "Connector", StubConnector)

    assert cli.main(["--config", str(config_file)]) == 0
    assert "Undelivered: weather -> influxdb" in caplog.text


@pytest.mark.parametrize(
    "error",
    [
        ProviderError("HTTP 500"),
        HealthCheckError("no response to ping"),
        AQIError("pm2_5 concentration 600.0 is outside the AQI table"),
    ],
)
def test_main_fatal_errors_exit_non_zero(monkeypatch, config_file, error):
    monkeypatch.setattr(StubConnector, "error", error)
    monkeypatch.setattr(cli, "Connector", StubConnector)

    assert cli.main(["--config", str(config_file)]) == 1


def test_main_keeps_urllib3_quiet_when_verbose(tmp_path, monkeypatch):
    monkeypatch.setattr(logging.getLogger("urllib3"), "level", logging.NOTSET)

    cli.main(["--verbose", "--config", str(tmp_path / "missing.json")])

    assert logging.getLogger("urllib3").level == logging.WARNING
