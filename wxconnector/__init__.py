"""Fetch OpenWeatherMap conditions and air pollution and write them to InfluxDB and MQTT."""

__version__ = "1.0.0"
