"""Turn provider readings into measurement points."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

from .. import aqi, formulas
from ..entities import (
    FieldValue,
    MeasurementPoint,
    NotApplicable,
    PointKind,
    PollutionReading,
    Reading,
    WindChillMode,
    present,
)


logger = logging.getLogger(__name__)

SOURCE = "openweathermap"
SOURCE_TAG = "data_source"
THERMOSTAT_NAME_TAG = "thermostat_name"
LATITUDE_TAG = "latitude"
LONGITUDE_TAG = "longitude"
LEGACY_MEASUREMENT_NAME = "ecobee_weather"

OptionalField = Union[FieldValue, NotApplicable]


def format_coordinate(value: float) -> str:
    return f"{value:.3f}"


def location_tags(latitude: float, longitude: float) -> Dict[str, str]:
    return {
        SOURCE_TAG: SOURCE,
        LATITUDE_TAG: format_coordinate(latitude),
        LONGITUDE_TAG: format_coordinate(longitude),
    }


class MeasurementAssembler:
    """Builds the weather, pollution and legacy ecobee-compatible points."""

    def __init__(
        self,
        *,
        weather_measurement: str,
        pollution_measurement: str,
        wind_chill_mode: WindChillMode = WindChillMode.EXPLICIT,
        thermostat_name: Optional[str] = None,
    ) -> None:
        self.weather_measurement = weather_measurement
        self.pollution_measurement = pollution_measurement
        self.wind_chill_mode = WindChillMode(wind_chill_mode)
        self.thermostat_name = thermostat_name

    @property
    def legacy_enabled(self) -> bool:
        return bool(self.thermostat_name)

    # Public API ---------------------------------------------------------
    def assemble(
        self, reading: Reading, pollution: Optional[PollutionReading] = None
    ) -> List[MeasurementPoint]:
        """Return every point for one run, legacy point first when enabled.

        :class:`~wxconnector.aqi.AQIError` propagates: the pollution point is
        not emitted without its AQI fields.
        """
        points: List[MeasurementPoint] = []
        if self.legacy_enabled:
            points.append(self.legacy_point(reading))
        points.append(self.weather_point(reading))
        if pollution is not None:
            points.append(self.pollution_point(pollution))
        return points

    def weather_fields(self, reading: Reading) -> Dict[str, OptionalField]:
        """All weather fields, with failed derived values marked as not applicable."""
        temp_f = reading.temperature_f
        temp_c = formulas.f_to_c(temp_f)
        humidity = formulas.clamp_humidity(reading.humidity_percent)
        dew_point_f = formulas.dew_point_f(temp_f, max(humidity, 1))
        wind_mph = reading.wind_speed_mph

        return {
            "temp_f": temp_f,
            "temp_c": temp_c,
            "rel_humidity": humidity,
            "feels_like_f": reading.feels_like_f,
            "feels_like_c": formulas.f_to_c(reading.feels_like_f),
            "absolute_humidity": formulas.absolute_humidity(temp_c, humidity),
            "barometric_pressure_mb": reading.pressure_mb,
            "barometric_pressure_inHg": formulas.mb_to_inhg(reading.pressure_mb),
            "dew_point_f": dew_point_f,
            "dew_point_c": formulas.f_to_c(dew_point_f),
            "wind_speed_mph": wind_mph,
            "wind_speed_kt": formulas.mph_to_knots(wind_mph),
            "wind_bearing": reading.wind_bearing,
            "visibility_mi": formulas.meters_to_miles(reading.visibility_m),
            "recommended_max_indoor_humidity_f": formulas.indoor_humidity_recommendation_f(temp_f),
            "recommended_max_indoor_humidity_c": formulas.indoor_humidity_recommendation_c(temp_c),
            "cloud_cover": reading.cloud_cover_percent,
            "heat_index_f": self._attempt("heat_index_f", formulas.heat_index_f, temp_f, humidity),
            "heat_index_c": self._attempt("heat_index_c", formulas.heat_index_c, temp_c, humidity),
            "wind_chill_f": self._attempt(
                "wind_chill_f", formulas.wind_chill_f, temp_f, wind_mph, self.wind_chill_mode
            ),
            "wind_chill_c": self._attempt(
                "wind_chill_c", formulas.wind_chill_c, temp_c, wind_mph, self.wind_chill_mode
            ),
            "wet_bulb_f": self._attempt("wet_bulb_f", formulas.wet_bulb_f, temp_f, humidity),
            "wet_bulb_c": self._attempt("wet_bulb_c", formulas.wet_bulb_c, temp_c, humidity),
        }

    def weather_point(self, reading: Reading) -> MeasurementPoint:
        return MeasurementPoint(
            name=self.weather_measurement,
            kind=PointKind.WEATHER,
            timestamp=reading.timestamp,
            tags=location_tags(reading.latitude, reading.longitude),
            fields=present(self.weather_fields(reading)),
            latitude=reading.latitude,
            longitude=reading.longitude,
        )

    def legacy_point(self, reading: Reading) -> MeasurementPoint:
        """Point matching the ecobee connector's ``ecobee_weather`` schema."""
        if not self.thermostat_name:
            raise ValueError("a thermostat name is required for the ecobee-compatible measurement")
        temp_f = reading.temperature_f
        humidity = formulas.clamp_humidity(reading.humidity_percent)
        return MeasurementPoint(
            name=LEGACY_MEASUREMENT_NAME,
            kind=PointKind.LEGACY,
            timestamp=reading.timestamp,
            tags={THERMOSTAT_NAME_TAG: self.thermostat_name, SOURCE_TAG: SOURCE},
            fields={
                "outdoor_temp": temp_f,
                "outdoor_humidity": humidity,
                "barometric_pressure_mb": reading.pressure_mb,
                "barometric_pressure_inHg": formulas.mb_to_inhg(reading.pressure_mb),
                "dew_point": formulas.dew_point_f(temp_f, max(humidity, 1)),
                "wind_speed": reading.wind_speed_mph,
                "wind_bearing": reading.wind_bearing,
                "visibility_mi": formulas.meters_to_miles(reading.visibility_m),
                "recommended_max_indoor_humidity": formulas.indoor_humidity_recommendation_f(temp_f),
                "wind_chill_f": formulas.wind_chill_f(
                    temp_f, reading.wind_speed_mph, WindChillMode.IDENTITY
                ),
            },
        )

    def pollution_point(self, pollution: PollutionReading) -> MeasurementPoint:
        aqi_particulates = aqi.particulates(pollution)
        aqi_overall = aqi.overall(pollution)
        return MeasurementPoint(
            name=self.pollution_measurement,
            kind=PointKind.POLLUTION,
            timestamp=pollution.timestamp,
            tags=location_tags(pollution.latitude, pollution.longitude),
            fields={
                "aqi_1_5": pollution.aqi_1_5,
                "aqi_us_pm": float(aqi_particulates.aqi),
                "aqi_us_pm_name": aqi_particulates.name,
                "aqi_us": float(aqi_overall.aqi),
                "aqi_us_name": aqi_overall.name,
                "co": pollution.co,
                "no": pollution.no,
                "no2": pollution.no2,
                "o3": pollution.o3,
                "so2": pollution.so2,
                "pm25": pollution.pm2_5,
                "pm10": pollution.pm10,
                "nh3": pollution.nh3,
            },
            latitude=pollution.latitude,
            longitude=pollution.longitude,
        )

    # Helpers ------------------------------------------------------------
    def _attempt(self, field: str, formula: Callable[..., float], *args) -> OptionalField:
        try:
            return formula(*args)
        except formulas.FormulaError as exc:
            logger.info("Omitting %s from %s: %s", field, self.weather_measurement, exc)
            return NotApplicable(str(exc))


__all__ = [
    "LEGACY_MEASUREMENT_NAME",
    "MeasurementAssembler",
    "SOURCE",
    "SOURCE_TAG",
    "format_coordinate",
    "location_tags",
]
