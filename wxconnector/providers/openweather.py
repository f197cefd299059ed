"""OpenWeatherMap current weather and air pollution provider."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import ValidationError
from requests import Response

from ..entities import PollutionReading, Reading
from .base import HTTPProvider, ProviderError
from .schemas import AirPollutionResponse, CurrentWeatherResponse


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openweathermap.org"


class OpenWeatherProvider(HTTPProvider):
    """Integration with the OpenWeatherMap current weather and air pollution endpoints."""

    name = "openweathermap"

    def __init__(self, *, api_key: str, base_url: str = DEFAULT_BASE_URL, **kwargs) -> None:
        super().__init__(secrets=(api_key,), **kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @property
    def weather_url(self) -> str:
        return f"{self.base_url}/data/2.5/weather"

    @property
    def pollution_url(self) -> str:
        return f"{self.base_url}/data/2.5/air_pollution"

    def current_weather(self, latitude: float, longitude: float) -> Reading:
        """Return current conditions in imperial units."""
        params = {"lat": latitude, "lon": longitude, "appid": self.api_key, "units": "imperial"}
        data = self._get(self.weather_url, params)
        try:
            return CurrentWeatherResponse.model_validate(data).to_reading()
        except ValidationError as exc:
            raise ProviderError(f"malformed weather response: {exc}") from exc

    def pollution(self, latitude: float, longitude: float) -> List[PollutionReading]:
        params = {"lat": latitude, "lon": longitude, "appid": self.api_key}
        data = self._get(self.pollution_url, params)
        try:
            return AirPollutionResponse.model_validate(data).to_readings()
        except ValidationError as exc:
            raise ProviderError(f"malformed pollution response: {exc}") from exc

    def current_pollution(self, latitude: float, longitude: float) -> PollutionReading:
        readings = self.pollution(latitude, longitude)
        if not readings:
            raise ProviderError("no pollution data returned")
        return readings[0]

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request("GET", url, params=params)
        self._log_response(response)
        return self._json(response)

    def _log_response(self, response: Response) -> None:
        logger.debug(
            "OpenWeatherMap response %s from %s: %s",
            response.status_code,
            self.redact(response.url),
            self.redact(response.text[:500]),
        )


__all__ = ["OpenWeatherProvider"]
