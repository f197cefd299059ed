from .base import HTTPProvider, ProviderError, QuotaExceeded, RequestConfig
from .openweather import OpenWeatherProvider

__all__ = ["HTTPProvider", "OpenWeatherProvider", "ProviderError", "QuotaExceeded", "RequestConfig"]
