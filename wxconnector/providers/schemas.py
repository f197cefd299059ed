"""Response schemas for the OpenWeatherMap current weather and air pollution APIs."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..entities import PollutionReading, Reading

__all__ = ["AirPollutionResponse", "CurrentWeatherResponse"]

# OpenWeatherMap omits visibility above 10 km.
DEFAULT_VISIBILITY_M = 10000.0


def _from_unix(value: int) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Coordinates(_Schema):
    lat: float
    lon: float


class MainConditions(_Schema):
    temp: float
    feels_like: float
    pressure: float
    humidity: float


class Wind(_Schema):
    speed: float = 0.0
    deg: float = 0.0


class Clouds(_Schema):
    cover: int = Field(default=0, alias="all")


class CurrentWeatherResponse(_Schema):
    dt: int
    coord: Coordinates
    main: MainConditions
    wind: Wind = Field(default_factory=Wind)
    clouds: Clouds = Field(default_factory=Clouds)
    visibility: float = DEFAULT_VISIBILITY_M

    def to_reading(self) -> Reading:
        return Reading(
            timestamp=_from_unix(self.dt),
            temperature_f=self.main.temp,
            feels_like_f=self.main.feels_like,
            humidity_percent=int(round(self.main.humidity)),
            pressure_mb=self.main.pressure,
            wind_speed_mph=self.wind.speed,
            wind_bearing=self.wind.deg,
            visibility_m=self.visibility,
            cloud_cover_percent=self.clouds.cover,
            latitude=self.coord.lat,
            longitude=self.coord.lon,
        )


class PollutionIndex(_Schema):
    aqi: int


class Components(_Schema):
    co: float
    no: float
    no2: float
    o3: float
    so2: float
    pm2_5: float
    pm10: float
    nh3: float


class PollutionEntry(_Schema):
    dt: int
    main: PollutionIndex
    components: Components


class AirPollutionResponse(_Schema):
    coord: Coordinates
    entries: List[PollutionEntry] = Field(default_factory=list, alias="list")

    def to_readings(self) -> List[PollutionReading]:
        return [
            PollutionReading(
                timestamp=_from_unix(entry.dt),
                latitude=self.coord.lat,
                longitude=self.coord.lon,
                aqi_1_5=entry.main.aqi,
                co=entry.components.co,
                no=entry.components.no,
                no2=entry.components.no2,
                o3=entry.components.o3,
                so2=entry.components.so2,
                pm2_5=entry.components.pm2_5,
                pm10=entry.components.pm10,
                nh3=entry.components.nh3,
            )
            for entry in self.entries
        ]
