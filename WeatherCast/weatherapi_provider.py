"""WeatherAPI.com provider implementation."""
import logging
import requests
from typing import Any, Dict, Optional
from urllib.parse import urlsplit
from weather_provider import (
    WeatherProviderBase,
    InvalidURL,
    NoData,
    DecodingError,
    NetworkError,
    InvalidResponse,
)
from weather_data import WeatherSnapshot, SchemaError


class WeatherAPIClient(WeatherProviderBase):
    """
    Weather provider using the WeatherAPI.com REST API.

    Endpoints: https://www.weatherapi.com/docs/
    current.json returns location + current conditions, forecast.json adds
    forecast.forecastday with 24 hourly entries per day.

    One GET per call: no retries, no caching.
    """

    DEFAULT_BASE_URL = "https://api.weatherapi.com/v1"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None
    ):
        """
        Initialize WeatherAPI client.

        Args:
            api_key: WeatherAPI.com key (sent as the "key" query parameter)
            base_url: API root, e.g. "https://api.weatherapi.com/v1"
            timeout: HTTP timeout in seconds (None keeps the requests default)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch_current_weather(self, location: str) -> WeatherSnapshot:
        params = {
            "key": self.api_key,
            "q": location.strip(),
            "aqi": "no",
        }
        return self._get("/current.json", params)

    def fetch_forecast(self, location: str, days: int = 3) -> WeatherSnapshot:
        params = {
            "key": self.api_key,
            "q": location.strip(),
            "days": str(days),
            "aqi": "no",
            "alerts": "no",
        }
        return self._get("/forecast.json", params)

    def _make_url(self, path: str) -> str:
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            logging.error(f"Refusing to build request for malformed base URL: {self.base_url!r}")
            raise InvalidURL()
        return f"{self.base_url}{path}"

    def _get(self, path: str, params: Dict[str, Any]) -> WeatherSnapshot:
        """
        Execute one GET and decode the body.

        Raises:
            InvalidURL: If the base URL cannot be turned into a request
            NetworkError: On transport failure
            InvalidResponse: On any status other than 200
            NoData: On an empty 200 body
            DecodingError: If the body is not a valid snapshot
        """
        url = self._make_url(path)

        try:
            logging.info(f"Making WeatherAPI request: {url}")
            logging.debug(f"Request parameters: q={params['q']!r}, days={params.get('days')}")
            response = requests.get(url, params=params, timeout=self.timeout)
        except (requests.exceptions.InvalidURL,
                requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            logging.error(f"Invalid request URL {url}: {e}")
            raise InvalidURL()
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error during API request: {e}")
            raise NetworkError(e)

        logging.info(f"API response status: {response.status_code}")

        if response.status_code != 200:
            self._handle_error_response(response)

        if not response.content:
            logging.error("API returned an empty body")
            raise NoData()

        try:
            data = response.json()
            snapshot = WeatherSnapshot.from_dict(data)
        except (SchemaError, ValueError, TypeError, RecursionError) as e:
            logging.error(f"Failed to decode API response: {e}", exc_info=True)
            raise DecodingError()

        logging.info(
            f"Successfully parsed weather for {snapshot.location.name}: "
            f"{snapshot.current.temp_c}°C, {snapshot.current.condition.text}, "
            f"{len(snapshot.days)} forecast day(s)"
        )
        return snapshot

    def _handle_error_response(self, response: requests.Response) -> None:
        """Raise InvalidResponse, keeping the body text for the caller."""
        try:
            body = response.text
        except Exception as e:  # body is best effort only
            logging.debug(f"Could not read error body: {e}")
            body = None
        logging.error(f"Weather API error status={response.status_code}, body={body if body else '<empty>'}")
        raise InvalidResponse(response.status_code, body)
