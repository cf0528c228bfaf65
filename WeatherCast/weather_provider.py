"""Weather provider abstraction and the errors a provider may raise."""
import json
from abc import ABC, abstractmethod
from typing import Optional
from weather_data import WeatherSnapshot


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    def fetch_current_weather(self, location: str) -> WeatherSnapshot:
        """
        Fetch current conditions for a location.

        Args:
            location: City name or "lat,lon" query

        Returns:
            WeatherSnapshot: Decoded payload without a forecast block

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass

    @abstractmethod
    def fetch_forecast(self, location: str, days: int = 3) -> WeatherSnapshot:
        """
        Fetch current conditions plus a daily/hourly forecast.

        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass

    def fetch_hourly_forecast(self, location: str, days: int = 1) -> WeatherSnapshot:
        """Hourly data ships inside the forecast, so this is a short forecast."""
        return self.fetch_forecast(location, days=days)


class WeatherProviderError(Exception):
    """Exception raised when a weather provider fails."""
    pass


class InvalidURL(WeatherProviderError):
    def __init__(self):
        super().__init__("Invalid URL")


class NoData(WeatherProviderError):
    def __init__(self):
        super().__init__("No data received")


class DecodingError(WeatherProviderError):
    """Payload could not be decoded. Details are logged, never shown."""

    def __init__(self):
        super().__init__("Failed to process weather data")


class NetworkError(WeatherProviderError):
    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class InvalidResponse(WeatherProviderError):
    """Server answered with a status other than 200."""

    def __init__(self, status: int, body: Optional[str] = None):
        self.status = status
        self.body = body
        message = f"Invalid response from server ({status})"
        detail = _error_detail(body)
        if detail:
            message += f": {detail}"
        super().__init__(message)


def _error_detail(body: Optional[str]) -> str:
    """Pull error.message out of a WeatherAPI error body, else the raw text."""
    if not body:
        return ""
    try:
        data = json.loads(body)
        message = data.get("error", {}).get("message")
        if isinstance(message, str) and message:
            return message
    except (ValueError, TypeError, AttributeError):
        # Not JSON (or not the usual shape), show the text itself
        pass
    return body.strip()[:200]
