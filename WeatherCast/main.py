"""Terminal weather client: resolve a location, fetch, print the forecast."""
import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Tuple

from dotenv import load_dotenv

from forecast_store import ForecastStore, ERROR_OCCURRED, LOADING_CHANGED, WEATHER_UPDATED
from formatting import TemperatureUnit, format_day_line, format_temperature, format_time, format_weather_lines
from ip_location_manager import IPLocationManager
from location_service import LocationError, LocationResolver
from weatherapi_provider import WeatherAPIClient

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "weathercast.log")
DEFAULT_LOCATION = "Moscow"
INITIAL_FORECAST_DAYS = 10


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("WeatherCast terminal client")
    parser.add_argument("--city", help="City or \"lat,lon\"; omit to use the device location")
    parser.add_argument("--days", type=int, default=INITIAL_FORECAST_DAYS)
    parser.add_argument("--mode", choices=["forecast", "current", "hourly"], default="forecast")
    parser.add_argument("--units", choices=["metric", "imperial"], default="metric")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--no-geolocation", action="store_true", help="Deny location access")
    parser.add_argument("--ask-location", action="store_true", help="Ask before using location")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def load_config() -> Tuple[str, str, str]:
    load_dotenv()
    api_key = os.getenv("WEATHER_API_KEY")
    base_url = os.getenv("WEATHER_API_BASE_URL", WeatherAPIClient.DEFAULT_BASE_URL)
    default_location = os.getenv("WEATHER_DEFAULT_LOCATION", DEFAULT_LOCATION)

    if not api_key:
        raise SystemExit("Missing WEATHER_API_KEY in environment")

    logging.info("Configuration loaded: base_url=%s default_location=%s", base_url, default_location)
    return api_key, base_url, default_location


async def resolve_initial_location(resolver: LocationResolver, default_location: str = DEFAULT_LOCATION) -> str:
    """Device position as "lat,lon", or the default location if it cannot be had."""
    try:
        return await resolver.resolve_coordinate_query()
    except LocationError as err:
        logging.warning("Location unavailable (%s), falling back to %s", err, default_location)
        return default_location


def ask_location_consent() -> bool:
    answer = input("Allow WeatherCast to use your approximate location? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def build_location_manager(args: argparse.Namespace) -> IPLocationManager:
    if args.no_geolocation:
        return IPLocationManager(consent=False)
    if args.ask_location:
        return IPLocationManager(consent=None, prompt=ask_location_consent)
    return IPLocationManager(consent=True)


def print_weather(store: ForecastStore, unit: TemperatureUnit, mode: str) -> None:
    weather = store.current_weather
    if weather is None:
        return
    headline, condition, details = format_weather_lines(weather, unit)
    print(headline)
    print(condition)
    print(details)
    print(f"Local time {weather.location.localtime}")

    if mode == "hourly" and weather.days:
        for hour in weather.days[0].hour:
            temp = hour.temp_c if unit is TemperatureUnit.CELSIUS else hour.temp_f
            print(f"  {format_time(hour.time)}  {format_temperature(temp, unit)}  {hour.condition.text}")
    elif mode == "forecast":
        for day in weather.days:
            print(f"  {format_day_line(day, unit)}")


async def run(args: argparse.Namespace, api_key: str, base_url: str, default_location: str) -> int:
    client = WeatherAPIClient(api_key=api_key, base_url=base_url, timeout=args.timeout)
    store = ForecastStore(client)
    unit = TemperatureUnit.CELSIUS if args.units == "metric" else TemperatureUnit.FAHRENHEIT

    store.add_listener(LOADING_CHANGED, lambda: logging.debug("Loading: %s", store.is_loading))
    store.add_listener(ERROR_OCCURRED, lambda message: print(f"Error: {message}", file=sys.stderr))
    store.add_listener(WEATHER_UPDATED, lambda: print_weather(store, unit, args.mode))

    location: Optional[str] = args.city
    if not location:
        resolver = LocationResolver(build_location_manager(args))
        location = await resolve_initial_location(resolver, default_location)

    if args.mode == "current":
        await store.load_current_weather(location)
    elif args.mode == "hourly":
        await store.load_hourly_forecast(location)
    else:
        await store.load_forecast(location, days=args.days)

    return 1 if store.error_message else 0


def main() -> None:
    args = parse_args()
    setup_logging(args.log_file, args.verbose)
    api_key, base_url, default_location = load_config()

    try:
        exit_code = asyncio.run(run(args, api_key, base_url, default_location))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
