from __future__ import annotations

from datetime import datetime, timezone

import pytest
from requests_mock import Mocker

from wxconnector.config import parse_config
from wxconnector.entities import PollutionReading, Reading


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


@pytest.fixture
def reading() -> Reading:
    return Reading(
        timestamp=datetime.fromtimestamp(1700000000, tz=timezone.utc),
        temperature_f=72.0,
        feels_like_f=70.0,
        humidity_percent=45,
        pressure_mb=1013.0,
        wind_speed_mph=5.0,
        wind_bearing=180.0,
        visibility_m=10000.0,
        cloud_cover_percent=20,
        latitude=40.0,
        longitude=-75.0,
    )


@pytest.fixture
def pollution() -> PollutionReading:
    return PollutionReading(
        timestamp=datetime.fromtimestamp(1700000300, tz=timezone.utc),
        latitude=40.0,
        longitude=-75.0,
        aqi_1_5=2,
        co=230.31,
        no=0.5,
        no2=10.0,
        o3=60.08,
        so2=2.5,
        pm2_5=15.0,
        pm10=20.0,
        nh3=1.1,
    )


@pytest.fixture
def config_data() -> dict:
    return {
        "api_key": "secret",
        "lat": 40.0,
        "lon": -75.0,
        "influx_server": "http://influx.test:8086",
        "influx_bucket": "weather",
        "influx_org": "home",
        "wx_measurement_name": "weather",
        "pollution_measurement_name": "pollution",
        "mqtt_broker": "broker.test:1883",
        "mqtt_topic_root": "home/outdoor",
    }


@pytest.fixture
def config(config_data):
    return parse_config(config_data, environ={})
