from __future__ import annotations

import math

import pytest

from wxconnector import formulas
from wxconnector.entities import WindChillMode
from wxconnector.formulas import InvalidInputError, NotApplicableError


@pytest.mark.parametrize("value", [-40.0, -12.5, 0.0, 32.0, 72.0, 104.9, 1e6])
def test_temperature_conversions_are_inverse(value):
    assert formulas.c_to_f(formulas.f_to_c(value)) == pytest.approx(value)
    assert formulas.f_to_c(formulas.c_to_f(value)) == pytest.approx(value)


@pytest.mark.parametrize("value", [0.0, 29.92, 870.0, 1013.25, 1084.0])
def test_pressure_conversions_are_inverse(value):
    assert formulas.mb_to_inhg(formulas.inhg_to_mb(value)) == pytest.approx(value)
    assert formulas.inhg_to_mb(formulas.mb_to_inhg(value)) == pytest.approx(value)


def test_linear_conversions():
    assert formulas.f_to_c(212.0) == pytest.approx(100.0)
    assert formulas.mb_to_inhg(1013.0) == pytest.approx(29.914, abs=1e-3)
    assert formulas.meters_to_miles(10000.0) == pytest.approx(6.2137, abs=1e-4)
    assert formulas.mph_to_knots(formulas.knots_to_mph(12.0)) == pytest.approx(12.0)
    assert formulas.mph_to_knots(11.50779) == pytest.approx(10.0, abs=1e-4)


def test_clamp_humidity():
    assert formulas.clamp_humidity(-3) == 0
    assert formulas.clamp_humidity(45.4) == 45
    assert formulas.clamp_humidity(104) == 100


def test_dew_point_known_value():
    assert formulas.dew_point_f(72.0, 45) == pytest.approx(49.5, abs=0.1)


@pytest.mark.parametrize("humidity", [0, -5])
def test_dew_point_rejects_non_positive_humidity(humidity):
    with pytest.raises(InvalidInputError):
        formulas.dew_point_f(72.0, humidity)


@pytest.mark.parametrize("temp_f", [-20.0, 32.0, 72.0, 100.0])
@pytest.mark.parametrize("humidity", [1, 25, 50, 99.5, 100])
def test_dew_point_never_exceeds_temperature(temp_f, humidity):
    assert formulas.dew_point_f(temp_f, humidity) <= temp_f + 1e-9


def test_dew_point_at_saturation_equals_temperature():
    assert formulas.dew_point_f(55.0, 100) == pytest.approx(55.0)


def test_wind_chill_value():
    assert formulas.wind_chill_f(30.0, 10.0) == pytest.approx(21.25, abs=0.01)
    assert formulas.wind_chill_c(formulas.f_to_c(30.0), 10.0) == pytest.approx(formulas.f_to_c(21.248), abs=0.01)


@pytest.mark.parametrize("temp_f, wind_mph", [(60.0, 10.0), (50.1, 3.0), (30.0, 2.9), (72.0, 0.0)])
def test_wind_chill_outside_domain(temp_f, wind_mph):
    assert formulas.wind_chill_f(temp_f, wind_mph, WindChillMode.IDENTITY) == temp_f
    with pytest.raises(NotApplicableError):
        formulas.wind_chill_f(temp_f, wind_mph, WindChillMode.EXPLICIT)


def test_wind_chill_domain_edges_are_inclusive():
    assert formulas.wind_chill_f(50.0, 3.0) == pytest.approx(formulas.wind_chill_f(50.0, 3.0, WindChillMode.IDENTITY))
    assert formulas.wind_chill_f(50.0, 3.0) < 50.0


def test_wind_chill_celsius_identity_mode_returns_input():
    assert formulas.wind_chill_c(20.0, 10.0, WindChillMode.IDENTITY) == pytest.approx(20.0)


def test_heat_index_value():
    assert formulas.heat_index_f(90.0, 50) == pytest.approx(94.6, abs=0.1)
    assert formulas.heat_index_c(formulas.f_to_c(90.0), 50) == pytest.approx(formulas.f_to_c(94.597), abs=0.01)


@pytest.mark.parametrize("temp_f, humidity", [(72.0, 45), (79.9, 90), (95.0, 39)])
def test_heat_index_not_applicable(temp_f, humidity):
    with pytest.raises(NotApplicableError):
        formulas.heat_index_f(temp_f, humidity)


def test_heat_index_humid_adjustment_applies():
    # Above 85% humidity between 80F and 87F the NWS adds a correction.
    assert formulas.heat_index_f(85.0, 90) > formulas.heat_index_f(85.0, 85)


def test_wet_bulb_known_value():
    assert formulas.wet_bulb_c(20.0, 50) == pytest.approx(13.7, abs=0.05)
    assert formulas.wet_bulb_f(68.0, 50) == pytest.approx(formulas.c_to_f(formulas.wet_bulb_c(20.0, 50)))


def test_wet_bulb_accepts_dry_air():
    assert formulas.wet_bulb_c(30.0, 0) < 30.0


@pytest.mark.parametrize("humidity", [-1, 100.5])
def test_wet_bulb_rejects_humidity_out_of_range(humidity):
    with pytest.raises(InvalidInputError):
        formulas.wet_bulb_c(20.0, humidity)


def test_wet_bulb_rejects_non_finite_temperature():
    with pytest.raises(InvalidInputError):
        formulas.wet_bulb_f(math.nan, 50)
    with pytest.raises(InvalidInputError):
        formulas.wet_bulb_c(math.inf, 50)


def test_absolute_humidity():
    assert formulas.absolute_humidity(20.0, 50) == pytest.approx(8.64, abs=0.01)
    assert formulas.absolute_humidity(20.0, 0) == 0.0
    with pytest.raises(InvalidInputError):
        formulas.absolute_humidity(20.0, 120)


@pytest.mark.parametrize(
    "temp_f, expected",
    [(50, 50), (40, 45), (30, 40), (20, 35), (10, 30), (0, 25), (-10, 20), (-20, 15)],
)
def test_indoor_humidity_breakpoints(temp_f, expected):
    assert formulas.indoor_humidity_recommendation_f(temp_f) == expected
    assert formulas.indoor_humidity_recommendation_c(formulas.f_to_c(temp_f)) == expected


def test_indoor_humidity_just_below_breakpoint():
    assert formulas.indoor_humidity_recommendation_f(49.9) == 45
    assert formulas.indoor_humidity_recommendation_c(9.9) == 45
    assert formulas.indoor_humidity_recommendation_f(95.0) == 50


def test_indoor_humidity_is_non_increasing_as_it_gets_colder():
    temps = [x / 2.0 for x in range(120, -80, -1)]
    values = [formulas.indoor_humidity_recommendation_f(t) for t in temps]
    assert all(earlier >= later for earlier, later in zip(values, values[1:]))
