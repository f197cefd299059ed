"""Single fetch-compute-deliver run."""
from __future__ import annotations

import json
import logging
import sys
from contextlib import ExitStack
from typing import List, Optional, Sequence, TextIO

from ..config import ConfigError, ConnectorConfig
from ..entities import MeasurementPoint, PointKind, PollutionReading, Reading
from ..providers.base import RequestConfig
from ..providers.openweather import OpenWeatherProvider
from ..report import DeliveryReport
from ..sinks.base import Sink
from ..sinks.influx import InfluxSink
from ..sinks.mqtt import MqttSink
from .assembler import MeasurementAssembler
from .dispatcher import Dispatcher


logger = logging.getLogger(__name__)


def build_sinks(config: ConnectorConfig) -> List[Sink]:
    sinks: List[Sink] = []
    if config.influx_enabled:
        sinks.append(InfluxSink.from_config(config))
    if config.mqtt_enabled:
        sinks.append(MqttSink.from_config(config))
    return sinks


def build_assembler(config: ConnectorConfig) -> MeasurementAssembler:
    return MeasurementAssembler(
        weather_measurement=config.wx_measurement_name,
        pollution_measurement=config.pollution_measurement_name,
        wind_chill_mode=config.wind_chill_mode,
        thermostat_name=config.ecobee_thermostat_name if config.legacy_enabled else None,
    )


def format_conditions(reading: Reading, point: MeasurementPoint) -> str:
    fields = point.fields
    return (
        f"Conditions at {reading.timestamp.isoformat()}:\n"
        f"\ttemperature: {reading.temperature_f:.1f} degF\n"
        f"\tpressure: {reading.pressure_mb:.0f} mb\n"
        f"\thumidity: {fields['rel_humidity']}%\n"
        f"\tdew point: {fields['dew_point_f']:.1f} degF\n"
        f"\twind: {reading.wind_bearing:.0f} at {reading.wind_speed_mph:.1f} mph\n"
        f"\tvisibility: {fields['visibility_mi']:.1f} miles\n"
        f"\tcloud cover: {reading.cloud_cover_percent}%\n"
    )


def format_pollution(pollution: PollutionReading, point: MeasurementPoint) -> str:
    fields = point.fields
    return (
        f"Pollution at {pollution.timestamp.isoformat()}:\n"
        f"\tAQI (US EPA): {fields['aqi_us']:.1f} ({fields['aqi_us_name']})\n"
        f"\tAQI (US EPA, particulates): {fields['aqi_us_pm']:.1f} ({fields['aqi_us_pm_name']})\n"
        f"\tCO: {pollution.co:.2f}\n"
        f"\tNO: {pollution.no:.2f}\n"
        f"\tNO2: {pollution.no2:.2f}\n"
        f"\tO3: {pollution.o3:.2f}\n"
        f"\tSO2: {pollution.so2:.2f}\n"
        f"\tPM2.5: {pollution.pm2_5:.2f}\n"
        f"\tPM10: {pollution.pm10:.2f}\n"
        f"\tNH3: {pollution.nh3:.2f}\n"
    )


class Connector:
    """Fetches one reading of each kind and delivers the resulting points.

    Fatal problems (configuration, provider, health check, AQI) propagate as
    exceptions. Delivery failures are collected in the returned
    :class:`~wxconnector.report.DeliveryReport`.
    """

    def __init__(
        self,
        config: ConnectorConfig,
        *,
        provider: Optional[OpenWeatherProvider] = None,
        sinks: Optional[Sequence[Sink]] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.sinks = sinks
        self.assembler = build_assembler(config)
        self.out = out or sys.stdout

    def run(self, print_data: bool = False) -> DeliveryReport:
        sinks = list(self.sinks) if self.sinks is not None else build_sinks(self.config)
        if not sinks:
            raise ConfigError("no sinks are configured; set influx_server and/or mqtt_broker")

        provider = self.provider or OpenWeatherProvider(
            api_key=self.config.api_key,
            base_url=self.config.owm_base_url,
            request_config=RequestConfig(),
        )
        lat, lon = self.config.lat, self.config.lon
        dispatcher = Dispatcher(sinks)

        with ExitStack() as stack:
            for sink in sinks:
                stack.callback(sink.close)
            for sink in sinks:
                sink.preflight()
            for sink in sinks:
                sink.open()

            reading = provider.current_weather(lat, lon)
            logger.info("Fetched weather for %.3f,%.3f at %s", lat, lon, reading.timestamp.isoformat())
            pollution = provider.current_pollution(lat, lon)
            logger.info("Fetched pollution for %.3f,%.3f at %s", lat, lon, pollution.timestamp.isoformat())

            points = self.assembler.assemble(reading, pollution)
            if print_data:
                self._print(reading, pollution, points)

            dispatcher.dispatch_all(points)

        report = dispatcher.report
        self._summarize(report, sinks)
        return report

    def _summarize(self, report: DeliveryReport, sinks: Sequence[Sink]) -> None:
        logger.debug("Delivery report: %s", json.dumps(report.snapshot(), sort_keys=True))
        if not report.degraded:
            logger.info("Run completed; delivered %d point(s)", len(report.delivered))
            return
        for sink in sinks:
            failed = report.failures_for(sink.name)
            if failed:
                logger.warning(
                    "%s: %d point(s) not delivered (%s)",
                    sink.name,
                    len(failed),
                    ", ".join(failure.measurement for failure in failed),
                )
        logger.warning("Run completed with %d failed deliveries", len(report.failures))

    def _print(self, reading: Reading, pollution: PollutionReading, points: List[MeasurementPoint]) -> None:
        for point in points:
            if point.kind is PointKind.WEATHER:
                self.out.write(format_conditions(reading, point))
            elif point.kind is PointKind.POLLUTION:
                self.out.write(format_pollution(pollution, point))
        self.out.flush()


__all__ = ["Connector", "build_assembler", "build_sinks", "format_conditions", "format_pollution"]
