"""US EPA Air Quality Index calculation.

Concentrations arrive from the provider in micrograms per cubic metre. The EPA
tables are expressed in ug/m3 for particulates, ppm for CO and ppb for NO2 and
SO2, so gases are converted at 25C and one atmosphere before lookup.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from .entities import PollutionReading


MOLAR_VOLUME_L = 24.45
MOLECULAR_WEIGHT = {
    "co": 28.01,
    "no2": 46.0055,
    "so2": 64.066,
}


class AQIError(ValueError):
    """Raised when a concentration falls outside the EPA breakpoint table."""


class Category(str, enum.Enum):
    GOOD = "Good"
    MODERATE = "Moderate"
    SENSITIVE = "Unhealthy for Sensitive Groups"
    UNHEALTHY = "Unhealthy"
    VERY_UNHEALTHY = "Very Unhealthy"
    HAZARDOUS = "Hazardous"


def _category(index: int) -> Category:
    if index <= 50:
        return Category.GOOD
    if index <= 100:
        return Category.MODERATE
    if index <= 150:
        return Category.SENSITIVE
    if index <= 200:
        return Category.UNHEALTHY
    if index <= 300:
        return Category.VERY_UNHEALTHY
    return Category.HAZARDOUS


@dataclass(frozen=True)
class Pollutant:
    name: str
    # Digits kept after truncation.
    precision: str
    # (concentration low, concentration high, index low, index high)
    breakpoints: Tuple[Tuple[str, str, int, int], ...]


PM25 = Pollutant(
    "pm2_5",
    "0.1",
    (
        ("0.0", "12.0", 0, 50),
        ("12.1", "35.4", 51, 100),
        ("35.5", "55.4", 101, 150),
        ("55.5", "150.4", 151, 200),
        ("150.5", "250.4", 201, 300),
        ("250.5", "350.4", 301, 400),
        ("350.5", "500.4", 401, 500),
    ),
)
PM10 = Pollutant(
    "pm10",
    "1",
    (
        ("0", "54", 0, 50),
        ("55", "154", 51, 100),
        ("155", "254", 101, 150),
        ("255", "354", 151, 200),
        ("355", "424", 201, 300),
        ("425", "504", 301, 400),
        ("505", "604", 401, 500),
    ),
)
CO = Pollutant(
    "co",
    "0.1",
    (
        ("0.0", "4.4", 0, 50),
        ("4.5", "9.4", 51, 100),
        ("9.5", "12.4", 101, 150),
        ("12.5", "15.4", 151, 200),
        ("15.5", "30.4", 201, 300),
        ("30.5", "40.4", 301, 400),
        ("40.5", "50.4", 401, 500),
    ),
)
NO2 = Pollutant(
    "no2",
    "1",
    (
        ("0", "53", 0, 50),
        ("54", "100", 51, 100),
        ("101", "360", 101, 150),
        ("361", "649", 151, 200),
        ("650", "1249", 201, 300),
        ("1250", "1649", 301, 400),
        ("1650", "2049", 401, 500),
    ),
)
SO2 = Pollutant(
    "so2",
    "1",
    (
        ("0", "35", 0, 50),
        ("36", "75", 51, 100),
        ("76", "185", 101, 150),
        ("186", "304", 151, 200),
        ("305", "604", 201, 300),
        ("605", "804", 301, 400),
        ("805", "1004", 401, 500),
    ),
)


@dataclass(frozen=True)
class AQIResult:
    aqi: int
    category: Category
    pollutant: str

    @property
    def name(self) -> str:
        return self.category.value


def ugm3_to_ppb(concentration: float, molecular_weight: float) -> float:
    return concentration * MOLAR_VOLUME_L / molecular_weight


def index_for(pollutant: Pollutant, concentration: float) -> int:
    """Return the sub-index of a single pollutant concentration."""
    value = Decimal(str(concentration))
    if value.is_nan() or value.is_infinite():
        raise AQIError(f"{pollutant.name} concentration must be finite, got {concentration!r}")
    if value < 0:
        raise AQIError(f"{pollutant.name} concentration must not be negative, got {concentration}")
    truncated = value.quantize(Decimal(pollutant.precision), rounding=ROUND_DOWN)
    for c_low, c_high, i_low, i_high in pollutant.breakpoints:
        low, high = Decimal(c_low), Decimal(c_high)
        if low <= truncated <= high:
            scaled = (Decimal(i_high - i_low) / (high - low)) * (truncated - low) + i_low
            return int(scaled.to_integral_value(rounding=ROUND_HALF_UP))
    raise AQIError(f"{pollutant.name} concentration {concentration} is outside the AQI table")


def calculate(concentrations: Iterable[Tuple[Pollutant, float]]) -> AQIResult:
    """Composite AQI: the highest sub-index among the given pollutants."""
    best: Optional[AQIResult] = None
    for pollutant, concentration in concentrations:
        index = index_for(pollutant, concentration)
        if best is None or index > best.aqi:
            best = AQIResult(aqi=index, category=_category(index), pollutant=pollutant.name)
    if best is None:
        raise AQIError("at least one pollutant concentration is required")
    return best


def particulates(reading: PollutionReading) -> AQIResult:
    return calculate([(PM25, reading.pm2_5), (PM10, reading.pm10)])


def overall(reading: PollutionReading) -> AQIResult:
    co_ppm = ugm3_to_ppb(reading.co, MOLECULAR_WEIGHT["co"]) / 1000.0
    return calculate(
        [
            (PM25, reading.pm2_5),
            (PM10, reading.pm10),
            (CO, co_ppm),
            (NO2, ugm3_to_ppb(reading.no2, MOLECULAR_WEIGHT["no2"])),
            (SO2, ugm3_to_ppb(reading.so2, MOLECULAR_WEIGHT["so2"])),
        ]
    )


__all__ = [
    "AQIError",
    "AQIResult",
    "CO",
    "Category",
    "NO2",
    "PM10",
    "PM25",
    "SO2",
    "calculate",
    "index_for",
    "overall",
    "particulates",
    "ugm3_to_ppb",
]
