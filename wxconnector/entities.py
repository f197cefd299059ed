from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Mapping, Optional, Union


FieldValue = Union[int, float, str]


@dataclass(frozen=True)
class Reading:
    """Current weather snapshot as reported by the provider.

    Units follow the provider's imperial response:
    - temperatures in Fahrenheit
    - pressure in millibar (hPa)
    - wind speed in miles per hour
    - visibility in metres
    """

    timestamp: datetime
    temperature_f: float
    feels_like_f: float
    humidity_percent: int
    pressure_mb: float
    wind_speed_mph: float
    wind_bearing: float
    visibility_m: float
    cloud_cover_percent: int
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PollutionReading:
    """Air pollution snapshot; concentrations are in micrograms per cubic metre."""

    timestamp: datetime
    latitude: float
    longitude: float
    aqi_1_5: int
    co: float
    no: float
    no2: float
    o3: float
    so2: float
    pm2_5: float
    pm10: float
    nh3: float


class PointKind(str, enum.Enum):
    WEATHER = "weather"
    POLLUTION = "pollution"
    LEGACY = "legacy"


class WindChillMode(str, enum.Enum):
    """How wind chill behaves outside its valid domain."""

    # Outside the domain the air temperature is returned unchanged.
    IDENTITY = "identity"
    # Outside the domain the value is reported as not applicable.
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class NotApplicable:
    """Marker for a derived value that could not be computed."""

    reason: str


@dataclass
class MeasurementPoint:
    """One named, tagged, timestamped bundle of fields ready for delivery."""

    name: str
    kind: PointKind
    timestamp: datetime
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def unix_timestamp(self) -> int:
        return int(self.timestamp.timestamp())


def present(values: Mapping[str, Union[FieldValue, NotApplicable]]) -> Dict[str, FieldValue]:
    """Drop the entries that are marked as not applicable."""
    return {key: value for key, value in values.items() if not isinstance(value, NotApplicable)}


__all__ = [
    "FieldValue",
    "MeasurementPoint",
    "NotApplicable",
    "PointKind",
    "PollutionReading",
    "Reading",
    "WindChillMode",
    "present",
]
