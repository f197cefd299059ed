"""Unit conversions and derived meteorological indices.

Every function here is pure. Functions with a restricted domain raise a
:class:`FormulaError` subclass instead of returning a misleading number:

- :class:`NotApplicableError` when the inputs are valid but outside the range
  where the index is defined (heat index in cool weather, for example);
- :class:`InvalidInputError` when the inputs themselves are unusable
  (non-positive humidity for the dew point, non-finite temperatures).
"""
from __future__ import annotations

import math
from typing import Sequence, Tuple

from .entities import WindChillMode


MB_PER_INHG = 33.864
METERS_PER_MILE = 1609.34
MPH_PER_KNOT = 1.150779

DEW_POINT_A = 17.625
DEW_POINT_B = 243.04

WIND_CHILL_MAX_TEMP_F = 50.0
WIND_CHILL_MIN_SPEED_MPH = 3.0

HEAT_INDEX_MIN_TEMP_F = 80.0
HEAT_INDEX_MIN_HUMIDITY = 40.0

# (outdoor temperature lower bound in F, max indoor relative humidity in %)
INDOOR_HUMIDITY_STEPS_F: Tuple[Tuple[float, int], ...] = (
    (50.0, 50),
    (40.0, 45),
    (30.0, 40),
    (20.0, 35),
    (10.0, 30),
    (0.0, 25),
    (-10.0, 20),
)
INDOOR_HUMIDITY_FLOOR = 15


class FormulaError(ValueError):
    """Base error for derived values that cannot be computed."""


class NotApplicableError(FormulaError):
    """Raised when inputs fall outside the domain where an index is defined."""


class InvalidInputError(FormulaError):
    """Raised when inputs are physically meaningless for a formula."""


# -- Conversions ----------------------------------------------------------

def f_to_c(temp_f: float) -> float:
    return (temp_f - 32.0) / 1.8


def c_to_f(temp_c: float) -> float:
    return temp_c * 1.8 + 32.0


def mb_to_inhg(pressure_mb: float) -> float:
    return pressure_mb / MB_PER_INHG


def inhg_to_mb(pressure_inhg: float) -> float:
    return pressure_inhg * MB_PER_INHG


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def mph_to_knots(speed_mph: float) -> float:
    return speed_mph / MPH_PER_KNOT


def knots_to_mph(speed_kt: float) -> float:
    return speed_kt * MPH_PER_KNOT


def clamp_humidity(value: float) -> int:
    """Round a reported relative humidity and clamp it to 0-100."""
    return max(0, min(100, int(round(value))))


# -- Validation helpers ---------------------------------------------------

def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value!r}")


def _require_humidity(humidity: float) -> None:
    _require_finite("relative humidity", humidity)
    if humidity < 0 or humidity > 100:
        raise InvalidInputError(f"relative humidity must be within 0-100, got {humidity}")


# -- Derived indices ------------------------------------------------------

def dew_point_f(temp_f: float, humidity: float) -> float:
    """Dew point in Fahrenheit using the Magnus approximation.

    ``humidity`` is a percentage. Callers are expected to clamp it to 1-100;
    zero or negative values have no logarithm and raise
    :class:`InvalidInputError`.
    """
    _require_finite("temperature", temp_f)
    _require_finite("relative humidity", humidity)
    if humidity <= 0:
        raise InvalidInputError(f"dew point requires positive humidity, got {humidity}")
    temp_c = f_to_c(temp_f)
    alpha = math.log(humidity / 100.0) + DEW_POINT_A * temp_c / (DEW_POINT_B + temp_c)
    return c_to_f(DEW_POINT_B * alpha / (DEW_POINT_A - alpha))


def _wind_chill_formula(temp_f: float, wind_mph: float) -> float:
    factor = math.pow(wind_mph, 0.16)
    return 35.74 + 0.6215 * temp_f - 35.75 * factor + 0.4275 * temp_f * factor


def wind_chill_f(
    temp_f: float,
    wind_mph: float,
    mode: WindChillMode = WindChillMode.EXPLICIT,
) -> float:
    """NWS wind chill in Fahrenheit.

    The formula holds at or below 50F with winds of at least 3 mph. Outside
    that range ``IDENTITY`` mode returns ``temp_f`` unchanged while
    ``EXPLICIT`` mode raises :class:`NotApplicableError`.
    """
    _require_finite("temperature", temp_f)
    _require_finite("wind speed", wind_mph)
    if temp_f > WIND_CHILL_MAX_TEMP_F or wind_mph < WIND_CHILL_MIN_SPEED_MPH:
        if WindChillMode(mode) is WindChillMode.IDENTITY:
            return temp_f
        raise NotApplicableError(
            f"wind chill is defined at or below {WIND_CHILL_MAX_TEMP_F}F with wind of at least "
            f"{WIND_CHILL_MIN_SPEED_MPH} mph (got {temp_f}F, {wind_mph} mph)"
        )
    return _wind_chill_formula(temp_f, wind_mph)


def wind_chill_c(
    temp_c: float,
    wind_mph: float,
    mode: WindChillMode = WindChillMode.EXPLICIT,
) -> float:
    return f_to_c(wind_chill_f(c_to_f(temp_c), wind_mph, mode))


def heat_index_f(temp_f: float, humidity: float) -> float:
    """NWS heat index (Rothfusz regression with the NWS adjustments)."""
    _require_finite("temperature", temp_f)
    _require_humidity(humidity)
    if temp_f < HEAT_INDEX_MIN_TEMP_F or humidity < HEAT_INDEX_MIN_HUMIDITY:
        raise NotApplicableError(
            f"heat index is defined from {HEAT_INDEX_MIN_TEMP_F}F and {HEAT_INDEX_MIN_HUMIDITY}% "
            f"relative humidity (got {temp_f}F, {humidity}%)"
        )
    t, rh = temp_f, humidity
    simple = 0.5 * (t + 61.0 + (t - 68.0) * 1.2 + rh * 0.094)
    if (simple + t) / 2.0 < 80.0:
        return simple
    hi = (
        -42.379
        + 2.04901523 * t
        + 10.14333127 * rh
        - 0.22475541 * t * rh
        - 0.00683783 * t * t
        - 0.05481717 * rh * rh
        + 0.00122874 * t * t * rh
        + 0.00085282 * t * rh * rh
        - 0.00000199 * t * t * rh * rh
    )
    if rh < 13.0 and 80.0 <= t <= 112.0:
        hi -= ((13.0 - rh) / 4.0) * math.sqrt((17.0 - abs(t - 95.0)) / 17.0)
    elif rh > 85.0 and 80.0 <= t <= 87.0:
        hi += ((rh - 85.0) / 10.0) * ((87.0 - t) / 5.0)
    return hi


def heat_index_c(temp_c: float, humidity: float) -> float:
    return f_to_c(heat_index_f(c_to_f(temp_c), humidity))


def wet_bulb_c(temp_c: float, humidity: float) -> float:
    """Wet-bulb temperature in Celsius (Stull, 2011)."""
    _require_finite("temperature", temp_c)
    _require_humidity(humidity)
    t, rh = temp_c, humidity
    return (
        t * math.atan(0.151977 * math.sqrt(rh + 8.313659))
        + math.atan(t + rh)
        - math.atan(rh - 1.676331)
        + 0.00391838 * math.pow(rh, 1.5) * math.atan(0.023101 * rh)
        - 4.686035
    )


def wet_bulb_f(temp_f: float, humidity: float) -> float:
    _require_finite("temperature", temp_f)
    return c_to_f(wet_bulb_c(f_to_c(temp_f), humidity))


def absolute_humidity(temp_c: float, humidity: float) -> float:
    """Water vapour density in g/m3 from the saturation vapour pressure."""
    _require_finite("temperature", temp_c)
    _require_humidity(humidity)
    saturation_hpa = 6.112 * math.exp(17.67 * temp_c / (temp_c + 243.5))
    return saturation_hpa * humidity * 2.1674 / (273.15 + temp_c)


def _step(value: float, steps: Sequence[Tuple[float, int]]) -> int:
    for lower_bound, recommendation in steps:
        if value >= lower_bound:
            return recommendation
    return INDOOR_HUMIDITY_FLOOR


INDOOR_HUMIDITY_STEPS_C: Tuple[Tuple[float, int], ...] = tuple(
    (f_to_c(bound), recommendation) for bound, recommendation in INDOOR_HUMIDITY_STEPS_F
)


def indoor_humidity_recommendation_f(outdoor_temp_f: float) -> int:
    """Maximum indoor relative humidity (%) that avoids window condensation."""
    return _step(outdoor_temp_f, INDOOR_HUMIDITY_STEPS_F)


def indoor_humidity_recommendation_c(outdoor_temp_c: float) -> int:
    return _step(outdoor_temp_c, INDOOR_HUMIDITY_STEPS_C)


__all__ = [
    "FormulaError",
    "InvalidInputError",
    "NotApplicableError",
    "absolute_humidity",
    "c_to_f",
    "clamp_humidity",
    "dew_point_f",
    "f_to_c",
    "heat_index_c",
    "heat_index_f",
    "indoor_humidity_recommendation_c",
    "indoor_humidity_recommendation_f",
    "inhg_to_mb",
    "knots_to_mph",
    "mb_to_inhg",
    "meters_to_miles",
    "mph_to_knots",
    "wet_bulb_c",
    "wet_bulb_f",
    "wind_chill_c",
    "wind_chill_f",
]
