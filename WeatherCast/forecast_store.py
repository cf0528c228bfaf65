"""Forecast store - observable loading/error/weather state for a front end."""
import asyncio
import logging
from typing import Callable, Dict, List, Optional
from weather_provider import WeatherProviderBase, WeatherProviderError
from weather_data import WeatherSnapshot

WEATHER_UPDATED = "weather_updated"
LOADING_CHANGED = "loading_changed"
ERROR_OCCURRED = "error_occurred"

EVENTS = (WEATHER_UPDATED, LOADING_CHANGED, ERROR_OCCURRED)


class ForecastStore:
    """
    Runs weather fetches and publishes the outcome to listeners.

    Three observable fields: ``is_loading``, ``error_message`` and
    ``current_weather``. They are only mutated on the event loop that
    awaits the load methods; the blocking HTTP call runs in a worker
    thread.

    Listeners are plain callables: ``ERROR_OCCURRED`` listeners receive the
    message, the others receive no arguments. A failed fetch keeps the
    previous snapshot.

    Overlapping loads are not coordinated: whichever finishes last
    decides the final state.
    """

    def __init__(self, provider: WeatherProviderBase):
        self.provider = provider

        self._is_loading = False
        self._error_message: Optional[str] = None
        self._current_weather: Optional[WeatherSnapshot] = None
        self._listeners: Dict[str, List[Callable]] = {event: [] for event in EVENTS}

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def current_weather(self) -> Optional[WeatherSnapshot]:
        return self._current_weather

    def add_listener(self, event: str, callback: Callable) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event}")
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable) -> None:
        try:
            self._listeners[event].remove(callback)
        except (KeyError, ValueError):
            logging.debug(f"Listener for {event} was not registered")

    def _emit(self, event: str, *args) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception:
                logging.exception(f"Listener for {event} raised")

    async def load_forecast(self, location: str, days: int = 3) -> None:
        await self._load(f"forecast ({days} days)", self.provider.fetch_forecast, location, days)

    async def load_current_weather(self, location: str) -> None:
        await self._load("current weather", self.provider.fetch_current_weather, location)

    async def load_hourly_forecast(self, location: str) -> None:
        await self._load("hourly forecast", self.provider.fetch_hourly_forecast, location)

    def clear_error(self) -> None:
        """Drop the error message; listeners get a WEATHER_UPDATED."""
        self._error_message = None
        self._emit(WEATHER_UPDATED)

    async def _load(self, what: str, fetch: Callable, location: str, *args) -> None:
        self._is_loading = True
        self._error_message = None
        self._emit(LOADING_CHANGED)

        logging.info(f"Loading {what} for {location!r}")
        try:
            weather = await asyncio.to_thread(fetch, location, *args)
        except WeatherProviderError as e:
            logging.error(f"Failed to load {what}: {e!r}")
            self._error_message = str(e)
            self._emit(ERROR_OCCURRED, self._error_message)
        else:
            self._current_weather = weather
            logging.info(f"Loaded {what} for {weather.location.name}, {weather.location.country}")
            self._emit(WEATHER_UPDATED)
        finally:
            self._is_loading = False
            self._emit(LOADING_CHANGED)
